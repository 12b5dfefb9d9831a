from __future__ import annotations

from typing import Any

from fastapi import Depends, Header, Request

from fleet_access.auth.jwt import decode_token
from fleet_access.auth.models import Principal
from fleet_access.configs.settings import get_settings
from fleet_access.errors import AuthError
from fleet_access.configs.logging_config import get_logger

log = get_logger(__name__)


def _bearer_token(authorization: str | None) -> str:
    if not authorization:
        raise AuthError("missing authorization header")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthError("invalid authorization header")
    return token.strip()


def get_claims(authorization: str | None = Header(default=None)) -> dict[str, Any]:
    token = _bearer_token(authorization)
    return decode_token(token, get_settings())


async def get_principal(request: Request, claims: dict[str, Any] = Depends(get_claims)) -> Principal:
    """
    Resolve the authenticated principal from verified claims plus the stored
    profile.
    """
    if not claims.get("sub") or not claims.get("email"):
        log.info(
            "auth.token_missing_claims has_sub=%s has_email=%s",
            bool(claims.get("sub")),
            bool(claims.get("email")),
        )
        raise AuthError("token missing required claims")
    return await request.app.state.access_service.load_principal(claims)
