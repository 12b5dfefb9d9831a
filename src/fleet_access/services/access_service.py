from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional

from fleet_access.access import roles
from fleet_access.access.cache import TTLCache
from fleet_access.access.permissions import (
    DEFAULT_PERMISSION_RECORD,
    LOCKED_PERMISSION_RECORD,
    EffectivePermissions,
    email_domain,
    resolve_permissions,
)
from fleet_access.access.roles import Role
from fleet_access.access.scope import ScopeResult, scope_entities
from fleet_access.access.sections import (
    PathDecision,
    default_email_report_types,
    guard_path,
    landing_section,
    leaderboard_hidden,
    resolve_sections,
)
from fleet_access.auth.models import Principal, build_principal
from fleet_access.configs.settings import Settings
from fleet_access.configs.logging_config import get_logger
from fleet_access.domain.entities.fleet import ScopeRequest
from fleet_access.domain.entities.permission import PermissionRecord, RoleSectionOverride
from fleet_access.errors import AppError, AuthError, ForbiddenError
from fleet_access.repositories.permission_repository import PermissionRepository
from fleet_access.repositories.profile_repository import ProfileRepository
from fleet_access.repositories.role_override_repository import RoleOverrideRepository

log = get_logger(__name__)

ROLE_OVERRIDES_KEY = "role_overrides"


@dataclass(frozen=True)
class AccessSnapshot:
    principal: Principal
    permissions: EffectivePermissions
    sections: List[str] = field(default_factory=list)

    @property
    def leaderboard_hidden(self) -> bool:
        return leaderboard_hidden(self.sections)

    @property
    def landing_section(self) -> str:
        return landing_section(self.sections)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "role": self.principal.role.value,
            "role_label": roles.role_info(self.principal.role)["label"],
            "sections": list(self.sections),
            "landing_section": self.landing_section,
            "hide_leaderboard": self.leaderboard_hidden,
            "email_report_types": default_email_report_types(self.principal.role, self.sections),
        }


@dataclass
class _Lookup:
    record: Optional[PermissionRecord] = None
    failed: bool = False


class AccessService:
    """
    Fetches the stored inputs of an access decision (through the caches) and
    hands them to the pure resolvers. Store failures never propagate from
    here: they degrade to "absent" as documented per input.
    """

    def __init__(
        self,
        permission_repo: PermissionRepository,
        role_override_repo: RoleOverrideRepository,
        profile_repo: ProfileRepository,
        permission_cache: TTLCache,
        role_override_cache: TTLCache,
        settings: Settings,
    ):
        self._permission_repo = permission_repo
        self._role_override_repo = role_override_repo
        self._profile_repo = profile_repo
        self._permission_cache = permission_cache
        self._role_override_cache = role_override_cache
        self._settings = settings

    # ----------------------------
    # Principal
    # ----------------------------

    async def load_principal(self, claims: Mapping[str, Any]) -> Principal:
        user_id = claims.get("sub")
        if not user_id:
            raise AuthError("token missing required claims")
        profile = await self._profile_repo.get_profile(str(user_id))
        principal = build_principal(claims, profile)
        log.info(
            "access.principal user_id=%s role=%s tenant_id=%s has_tenant_ref=%s",
            principal.user_id,
            principal.role.value,
            principal.tenant_id,
            bool(principal.tenant_external_ref),
        )
        return principal

    # ----------------------------
    # Cached lookups
    # ----------------------------

    async def _cached_record(
        self, key: str, fetch: Callable[[], Awaitable[Optional[PermissionRecord]]]
    ) -> _Lookup:
        cached, stale = await self._permission_cache.get(key)
        if cached is not None and not stale:
            return _Lookup(record=_record_from_cache(cached))
        try:
            record = await fetch()
        except Exception as exc:
            if cached is not None:
                log.warning("access.permissions.lookup_failed_serving_stale key=%s error=%s", key, exc)
                return _Lookup(record=_record_from_cache(cached))
            log.warning("access.permissions.lookup_failed key=%s error=%s", key, exc)
            return _Lookup(failed=True)
        await self._permission_cache.set(
            key, {"record": record.model_dump(mode="json") if record else None}
        )
        return _Lookup(record=record)

    async def permissions_for(self, principal: Principal) -> EffectivePermissions:
        user = await self._cached_record(
            f"user:{principal.email}",
            lambda: self._permission_repo.find_user_record(principal.email),
        )
        domain = _Lookup()
        if user.record is None:
            key = email_domain(principal.email)
            if key:
                domain = await self._cached_record(
                    f"domain:{key}",
                    lambda: self._permission_repo.find_domain_record(key),
                )

        default = DEFAULT_PERMISSION_RECORD
        if (user.failed or domain.failed) and domain.record is None:
            if self._settings.PERMISSION_LOOKUP_FAILURE_MODE == "closed":
                default = LOCKED_PERMISSION_RECORD
                log.warning("access.permissions.fail_closed user_id=%s", principal.user_id)
            else:
                log.warning("access.permissions.fail_open user_id=%s", principal.user_id)

        perms = resolve_permissions(principal, user.record, domain.record, default=default)
        log.info(
            "access.permissions.resolved user_id=%s role=%s source=%s",
            principal.user_id,
            principal.role.value,
            perms.source,
        )
        return perms

    async def role_overrides(self) -> Dict[str, List[str]]:
        cached, stale = await self._role_override_cache.get(ROLE_OVERRIDES_KEY)
        if cached is not None and not stale:
            return cached
        try:
            overrides = await self._role_override_repo.load_all()
        except Exception as exc:
            log.warning("access.role_overrides.lookup_failed error=%s", exc)
            return cached or {}
        await self._role_override_cache.set(ROLE_OVERRIDES_KEY, overrides)
        return overrides

    async def tenant_sections(self, principal: Principal) -> Optional[List[str]]:
        if not principal.tenant_id:
            return None
        try:
            return await self._profile_repo.get_tenant_sections(principal.tenant_id)
        except Exception as exc:
            log.warning(
                "access.tenant_sections.lookup_failed tenant_id=%s error=%s",
                principal.tenant_id,
                exc,
            )
            return None

    # ----------------------------
    # Decisions
    # ----------------------------

    async def snapshot(self, principal: Principal) -> AccessSnapshot:
        permissions = await self.permissions_for(principal)
        overrides = await self.role_overrides()
        tenant_sections = await self.tenant_sections(principal)
        sections = resolve_sections(principal, permissions, overrides, tenant_sections)
        return AccessSnapshot(principal=principal, permissions=permissions, sections=sections)

    async def guard(self, principal: Principal, path: str) -> PathDecision:
        snap = await self.snapshot(principal)
        decision = guard_path(path, snap.sections)
        if not decision.allowed:
            log.info(
                "access.guard.redirect user_id=%s path=%s section=%s redirect_to=%s",
                principal.user_id,
                path,
                decision.section,
                decision.redirect_to,
            )
        return decision

    async def scope(self, principal: Principal, body: ScopeRequest) -> ScopeResult:
        permissions = await self.permissions_for(principal)
        return scope_entities(
            principal,
            permissions,
            body.vehicles,
            body.sites,
            body.customers,
            driver_unassigned_sees_tenant=self._settings.DRIVER_UNASSIGNED_SEES_TENANT,
        )

    # ----------------------------
    # Administration
    # ----------------------------

    async def save_role_override(
        self, actor: Principal, role: str, visible_sections: List[str]
    ) -> RoleSectionOverride:
        if actor.role is not Role.SUPER_ADMIN:
            raise ForbiddenError("only a super admin can change role sections")
        try:
            target = Role(role)
        except ValueError:
            raise AppError(f"unknown role: {role}") from None
        unknown = [s for s in visible_sections if s not in roles.ALL_SECTIONS]
        if unknown:
            raise AppError(f"unknown sections: {unknown}")
        saved = await self._role_override_repo.upsert(
            target.value, list(visible_sections), updated_by=actor.user_id
        )
        await self._role_override_cache.invalidate(ROLE_OVERRIDES_KEY)
        return saved

    async def save_permission_record(self, actor: Principal, record: PermissionRecord) -> PermissionRecord:
        if not roles.is_admin(actor.role):
            raise ForbiddenError("only admins can change permission records")
        if record.scope == "default":
            raise AppError("the default permission record cannot be changed")
        if record.scope == "user" and not record.user_email:
            raise AppError("user permission record requires user_email")
        if record.scope == "domain" and not record.email_domain:
            raise AppError("domain permission record requires email_domain")
        saved = await self._permission_repo.upsert(record, updated_by=actor.user_id)
        if saved.scope == "user":
            await self._permission_cache.invalidate(f"user:{saved.user_email}")
        else:
            await self._permission_cache.invalidate(f"domain:{saved.email_domain}")
        return saved


def _record_from_cache(cached: Mapping[str, Any]) -> Optional[PermissionRecord]:
    raw = cached.get("record")
    return PermissionRecord(**raw) if raw else None
