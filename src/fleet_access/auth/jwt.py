from __future__ import annotations

from typing import Any

from jose import JWTError, jwt

from fleet_access.configs.settings import Settings
from fleet_access.errors import AuthError
from fleet_access.configs.logging_config import get_logger
log = get_logger(__name__)


def decode_token(token: str, settings: Settings) -> dict[str, Any]:
    """
    Decode and validate a token issued by the identity provider.

    Only verification happens here; issuing sessions is the provider's job.
    """
    try:
        options = {"verify_aud": settings.jwt_audience is not None}
        claims = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_alg],
            audience=settings.jwt_audience,
            issuer=settings.jwt_issuer,
            options=options,
        )
        log.info("jwt.decode ok sub=%s tenantId=%s role=%s", claims.get("sub"), claims.get("tenantId"), claims.get("role"))
        return claims
    except JWTError as e:
        log.info("jwt.decode failed error=%s", str(e))
        raise AuthError("invalid token") from e
