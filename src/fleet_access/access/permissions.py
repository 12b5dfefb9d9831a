"""
Effective permission resolution.

Priority: user-scope record > domain-scope record > built-in default.
The first active record found replaces the default wholesale; only the
fields it leaves unset are taken from the default.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional, Tuple

from fleet_access.access.roles import LEADERBOARD
from fleet_access.auth.models import Principal
from fleet_access.domain.entities.permission import PermissionRecord


DEFAULT_PERMISSION_RECORD = PermissionRecord(
    scope="default",
    show_all_data=True,
    restricted_customer_name=None,
    lock_customer_filter=False,
    default_site="all",
    visible_sections=None,
    hidden_sections=None,
    can_view_compliance=True,
    can_view_reports=True,
    can_manage_sites=True,
    can_manage_users=True,
    can_export_data=True,
    can_view_costs=True,
    can_generate_ai_reports=True,
    can_edit_vehicles=True,
    can_edit_sites=True,
    can_delete_records=True,
    hide_cost_forecast=False,
    hide_leaderboard=False,
    hide_usage_costs=False,
)

# Used instead of the default when the permission store is down and the
# service runs with PERMISSION_LOOKUP_FAILURE_MODE=closed.
LOCKED_PERMISSION_RECORD = PermissionRecord(
    scope="default",
    show_all_data=False,
    restricted_customer_name=None,
    lock_customer_filter=True,
    default_site="all",
    visible_sections=None,
    hidden_sections=None,
    can_view_compliance=True,
    can_view_reports=False,
    can_manage_sites=False,
    can_manage_users=False,
    can_export_data=False,
    can_view_costs=False,
    can_generate_ai_reports=False,
    can_edit_vehicles=False,
    can_edit_sites=False,
    can_delete_records=False,
    hide_cost_forecast=True,
    hide_leaderboard=False,
    hide_usage_costs=True,
)

CAPABILITY_FIELDS: Tuple[str, ...] = (
    "can_view_compliance",
    "can_view_reports",
    "can_manage_sites",
    "can_manage_users",
    "can_export_data",
    "can_view_costs",
    "can_generate_ai_reports",
    "can_edit_vehicles",
    "can_edit_sites",
    "can_delete_records",
)


@dataclass(frozen=True)
class EffectivePermissions:
    source: str
    show_all_data: bool
    restricted_customer_name: Optional[str]
    lock_customer_filter: bool
    default_site: str

    can_view_compliance: bool
    can_view_reports: bool
    can_manage_sites: bool
    can_manage_users: bool
    can_export_data: bool
    can_view_costs: bool
    can_generate_ai_reports: bool
    can_edit_vehicles: bool
    can_edit_sites: bool
    can_delete_records: bool

    hide_cost_forecast: bool
    hide_usage_costs: bool

    visible_sections: Tuple[str, ...] = ()
    hidden_sections: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        out["visible_sections"] = list(self.visible_sections)
        out["hidden_sections"] = list(self.hidden_sections)
        return out


def email_domain(email: str | None) -> str | None:
    if not email:
        return None
    _, sep, domain = email.strip().rpartition("@")
    return domain.lower() if sep and domain else None


def _is_authoritative(record: PermissionRecord | None, scope: str) -> bool:
    return record is not None and record.is_active and record.scope == scope


def select_record(
    user_record: PermissionRecord | None,
    domain_record: PermissionRecord | None,
    default: PermissionRecord = DEFAULT_PERMISSION_RECORD,
) -> PermissionRecord:
    if _is_authoritative(user_record, "user"):
        return user_record
    if _is_authoritative(domain_record, "domain"):
        return domain_record
    return default


def _pick(record: PermissionRecord, default: PermissionRecord, name: str) -> Any:
    value = getattr(record, name)
    return getattr(default, name) if value is None else value


def _sections(values: Any) -> Tuple[str, ...]:
    out: list[str] = []
    for v in values or ():
        if v and v not in out:
            out.append(v)
    return tuple(out)


def resolve_permissions(
    principal: Principal,
    user_record: PermissionRecord | None = None,
    domain_record: PermissionRecord | None = None,
    *,
    default: PermissionRecord = DEFAULT_PERMISSION_RECORD,
) -> EffectivePermissions:
    """
    Resolve the effective permissions for `principal`.

    `user_record` and `domain_record` are whatever the stores returned for
    the principal's email and email domain; `None` means absent (or a failed
    lookup, which callers report the same way).
    """
    record = select_record(user_record, domain_record, default)

    hidden = list(_sections(_pick(record, default, "hidden_sections")))
    # The leaderboard flag is expressed as a hidden section so the section
    # list stays the single source for it.
    if _pick(record, default, "hide_leaderboard") and LEADERBOARD not in hidden:
        hidden.append(LEADERBOARD)

    restricted = _pick(record, default, "restricted_customer_name")
    if isinstance(restricted, str):
        restricted = restricted.strip() or None

    return EffectivePermissions(
        source=record.scope,
        show_all_data=_pick(record, default, "show_all_data"),
        restricted_customer_name=restricted,
        lock_customer_filter=_pick(record, default, "lock_customer_filter"),
        default_site=_pick(record, default, "default_site"),
        hide_cost_forecast=_pick(record, default, "hide_cost_forecast"),
        hide_usage_costs=_pick(record, default, "hide_usage_costs"),
        visible_sections=_sections(_pick(record, default, "visible_sections")),
        hidden_sections=tuple(hidden),
        **{name: _pick(record, default, name) for name in CAPABILITY_FIELDS},
    )
