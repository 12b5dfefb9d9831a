from __future__ import annotations

from typing import Any, Literal

from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

PROJECT_ROOT = Path(__file__).parent.parent.parent


class Settings(BaseSettings):
    """
    Central configuration.

    - Values loaded from `.env`
    - Comma-separated lists for multi-value settings like CORS_ORIGINS
    """

    # ----------------------------
    # Service
    # ----------------------------
    SERVICE_NAME: str = "fleet-access-service"
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # ----------------------------
    # Mongo
    # ----------------------------
    mongo_uri: str = "mongodb://localhost:27017"
    mongo_db: str = "fleet"

    # ----------------------------
    # Redis
    # ----------------------------
    redis_url: str = "redis://localhost:6379/0"
    redis_key_prefix: str = "fa:cache"

    # ----------------------------
    # Caching of permission / role data
    # ----------------------------
    CACHE_BACKEND: Literal["memory", "redis"] = "memory"
    PERMISSION_CACHE_TTL: int = 300  # 5 minutes
    ROLE_OVERRIDE_CACHE_TTL: int = 120  # 2 minutes
    CACHE_MAX_STALE: int = 600  # stale entries are dropped after this

    # ----------------------------
    # Access rules
    # ----------------------------
    # "open": a failing permission store degrades to the full-access default.
    # "closed": a failing permission store yields a locked-down record.
    PERMISSION_LOOKUP_FAILURE_MODE: Literal["open", "closed"] = "open"
    DRIVER_UNASSIGNED_SEES_TENANT: bool = True

    # ----------------------------
    # CORS
    # ----------------------------
    # store as raw string list from env; we will normalize in code
    CORS_ORIGINS: Any = Field(default_factory=list)

    # ----------------------------
    # JWT
    # ----------------------------
    jwt_alg: str = "HS256"
    jwt_secret: str = "change-me"
    jwt_audience: str | None = None
    jwt_issuer: str | None = None

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


_settings: Settings | None = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
