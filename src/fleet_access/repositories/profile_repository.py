from __future__ import annotations

from typing import Any

from motor.motor_asyncio import AsyncIOMotorDatabase

from fleet_access.configs.settings import Settings
from fleet_access.configs.logging_config import get_logger

log = get_logger(__name__)


class ProfileRepository:
    """Read access to user profiles and the tenant documents they point at."""

    def __init__(self, db: AsyncIOMotorDatabase, settings: Settings):
        self._db = db
        self._settings = settings
        self._profiles = db["profiles"]
        self._tenants = db["tenants"]

    async def get_profile(self, user_id: str) -> dict[str, Any] | None:
        log.info("repo.profile.get user_id=%s", user_id)
        doc = await self._profiles.find_one({"user_id": user_id}, projection={"_id": 0})
        if not doc:
            log.info("repo.profile.get not_found user_id=%s", user_id)
            return None
        tenant_id = doc.get("tenant_id")
        if tenant_id and not doc.get("tenant_external_ref"):
            tenant = await self._tenants.find_one(
                {"tenant_id": tenant_id}, projection={"_id": 0, "external_ref": 1}
            )
            if tenant:
                doc["tenant_external_ref"] = tenant.get("external_ref")
        return doc

    async def get_tenant_sections(self, tenant_id: str) -> list[str] | None:
        doc = await self._tenants.find_one(
            {"tenant_id": tenant_id}, projection={"_id": 0, "visible_sections": 1}
        )
        if not doc:
            return None
        return doc.get("visible_sections") or None
