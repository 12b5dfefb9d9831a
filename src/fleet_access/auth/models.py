from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from fleet_access.access.roles import Role, parse_role
from fleet_access.errors import InvalidPrincipalError


@dataclass(frozen=True)
class Principal:
    user_id: str
    email: str
    role: Role
    tenant_id: str | None = None
    tenant_external_ref: str | None = None
    assigned_site_ids: frozenset[str] = field(default_factory=frozenset)
    assigned_vehicle_ids: frozenset[str] = field(default_factory=frozenset)
    section_override: tuple[str, ...] | None = None


def _ids(values: Iterable[Any] | None) -> frozenset[str]:
    return frozenset(str(v) for v in values or () if v is not None and str(v) != "")


def build_principal(claims: Mapping[str, Any], profile: Mapping[str, Any] | None) -> Principal:
    """
    Merge verified token claims with the stored profile document.

    The profile is authoritative for role and assignments; the token only
    supplies identity when no profile exists yet.
    """
    profile = profile or {}
    user_id = claims.get("sub") or profile.get("user_id")
    email = claims.get("email") or profile.get("email")
    if not user_id or not email:
        raise InvalidPrincipalError("principal requires a user id and an email")

    override = profile.get("visible_sections")
    return Principal(
        user_id=str(user_id),
        email=str(email).strip().lower(),
        role=parse_role(profile.get("role") or claims.get("role")),
        tenant_id=profile.get("tenant_id") or claims.get("tenantId"),
        tenant_external_ref=profile.get("tenant_external_ref") or None,
        assigned_site_ids=_ids(profile.get("assigned_sites")),
        assigned_vehicle_ids=_ids(profile.get("assigned_vehicles")),
        section_override=tuple(override) if override else None,
    )
