"""
Tenant and role scoping of fleet entity collections.

Every non-super-admin principal is first narrowed to their own tenant
(`tenant_external_ref`); a principal without one sees nothing. The role
filter then narrows further inside the tenant.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence

from fleet_access.access.permissions import EffectivePermissions
from fleet_access.access.roles import Role
from fleet_access.auth.models import Principal
from fleet_access.configs.logging_config import get_logger
from fleet_access.domain.entities.fleet import Customer, Site, Vehicle

log = get_logger(__name__)


@dataclass(frozen=True)
class ScopeResult:
    vehicles: List[Vehicle] = field(default_factory=list)
    sites: List[Site] = field(default_factory=list)
    customers: Optional[List[Customer]] = None

    def to_dict(self) -> dict:
        return {
            "vehicles": [v.model_dump() for v in self.vehicles],
            "sites": [s.model_dump() for s in self.sites],
            "customers": (
                None if self.customers is None else [c.model_dump() for c in self.customers]
            ),
        }


@dataclass(frozen=True)
class ScopeContext:
    principal: Principal
    permissions: EffectivePermissions
    driver_unassigned_sees_tenant: bool = True


RoleFilter = Callable[[ScopeContext, ScopeResult], ScopeResult]


def _empty(customers: Optional[Sequence[Customer]]) -> ScopeResult:
    return ScopeResult(vehicles=[], sites=[], customers=None if customers is None else [])


def tenant_filter(
    tenant_ref: str,
    vehicles: Sequence[Vehicle],
    sites: Sequence[Site],
    customers: Optional[Sequence[Customer]],
) -> ScopeResult:
    return ScopeResult(
        vehicles=[v for v in vehicles if v.tenant_external_ref == tenant_ref],
        sites=[s for s in sites if s.tenant_external_ref == tenant_ref],
        customers=(
            None if customers is None else [c for c in customers if c.owner_ref == tenant_ref]
        ),
    )


def _keep_sites(scoped: ScopeResult, site_ids: set[str]) -> ScopeResult:
    sites = [s for s in scoped.sites if s.id in site_ids]
    kept = {s.id for s in sites}
    vehicles = [v for v in scoped.vehicles if v.site_id in kept]
    customers = scoped.customers
    if customers is not None:
        refs = {s.customer_ref for s in sites if s.customer_ref}
        customers = [c for c in customers if c.id in refs]
    return ScopeResult(vehicles=vehicles, sites=sites, customers=customers)


def _customer_names(customers: Optional[Sequence[Customer]]) -> Dict[str, str]:
    return {c.id: c.name for c in customers or () if c.name}


def _restricted_customer(ctx: ScopeContext, scoped: ScopeResult) -> ScopeResult:
    needle = ctx.permissions.restricted_customer_name
    if not needle:
        return scoped
    needle = needle.upper()
    names = _customer_names(scoped.customers)

    def site_matches(site: Site) -> bool:
        name = site.customer_name or names.get(site.customer_ref or "")
        return bool(name) and needle in name.upper()

    site_ids = {s.id for s in scoped.sites if site_matches(s)}
    result = _keep_sites(scoped, site_ids)
    if scoped.customers is not None:
        customers = [c for c in scoped.customers if c.name and needle in c.name.upper()]
        result = ScopeResult(vehicles=result.vehicles, sites=result.sites, customers=customers)
    return result


def _assigned_sites(ctx: ScopeContext, scoped: ScopeResult) -> ScopeResult:
    assigned = ctx.principal.assigned_site_ids
    if not assigned:
        return scoped
    return _keep_sites(scoped, set(assigned))


def _batcher_sites(ctx: ScopeContext, scoped: ScopeResult) -> ScopeResult:
    assigned = ctx.principal.assigned_site_ids
    if not assigned:
        return _empty(scoped.customers)
    return _keep_sites(scoped, set(assigned))


def _driver_vehicles(ctx: ScopeContext, scoped: ScopeResult) -> ScopeResult:
    assigned = ctx.principal.assigned_vehicle_ids
    if not assigned:
        if not ctx.driver_unassigned_sees_tenant:
            return ScopeResult(vehicles=[], sites=[], customers=scoped.customers)
        log.warning(
            "access.scope.driver_unassigned user_id=%s tenant_ref=%s vehicles=%s",
            ctx.principal.user_id,
            ctx.principal.tenant_external_ref,
            len(scoped.vehicles),
        )
        return ScopeResult(vehicles=scoped.vehicles, sites=[], customers=scoped.customers)

    wanted = {str(v) for v in assigned}
    vehicles = [
        v
        for v in scoped.vehicles
        if str(v.id) in wanted or (v.rfid is not None and str(v.rfid) in wanted)
    ]
    return ScopeResult(vehicles=vehicles, sites=[], customers=scoped.customers)


ROLE_FILTERS: Dict[Role, RoleFilter] = {
    Role.ADMIN: _restricted_customer,
    Role.USER: _restricted_customer,
    Role.VIEWER: _restricted_customer,
    Role.MANAGER: _assigned_sites,
    Role.BATCHER: _batcher_sites,
    Role.DRIVER: _driver_vehicles,
}

# super_admin never reaches the role filters.
_unhandled = set(Role) - set(ROLE_FILTERS) - {Role.SUPER_ADMIN}
if _unhandled:
    raise RuntimeError(f"no scope filter for roles: {sorted(r.value for r in _unhandled)}")


def scope_entities(
    principal: Principal,
    permissions: EffectivePermissions,
    vehicles: Sequence[Vehicle],
    sites: Sequence[Site],
    customers: Optional[Sequence[Customer]] = None,
    *,
    driver_unassigned_sees_tenant: bool = True,
) -> ScopeResult:
    """
    Narrow `vehicles`, `sites` and (when given) `customers` to what
    `principal` may see. Inputs are never mutated.
    """
    if principal.role is Role.SUPER_ADMIN:
        return ScopeResult(
            vehicles=list(vehicles),
            sites=list(sites),
            customers=None if customers is None else list(customers),
        )

    tenant_ref = principal.tenant_external_ref
    if not tenant_ref:
        log.info(
            "access.scope.no_tenant_ref user_id=%s role=%s",
            principal.user_id,
            principal.role.value,
        )
        return _empty(customers)

    scoped = tenant_filter(tenant_ref, vehicles, sites, customers)
    ctx = ScopeContext(
        principal=principal,
        permissions=permissions,
        driver_unassigned_sees_tenant=driver_unassigned_sees_tenant,
    )
    result = ROLE_FILTERS[principal.role](ctx, scoped)
    log.debug(
        "access.scope.done user_id=%s role=%s vehicles=%s sites=%s",
        principal.user_id,
        principal.role.value,
        len(result.vehicles),
        len(result.sites),
    )
    return result
