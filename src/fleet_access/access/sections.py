"""
Navigation section visibility.

Precedence, first match wins:

1. principal-level override, returned verbatim
2. role sections (admin role override, else role default), optionally
   narrowed by the tenant's own section list
3. permission allow-list, intersected with the role sections
4. permission deny-list, subtracted from the role sections
5. the role sections
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple

from fleet_access.access import roles
from fleet_access.access.permissions import EffectivePermissions
from fleet_access.access.roles import Role
from fleet_access.auth.models import Principal
from fleet_access.configs.logging_config import get_logger

log = get_logger(__name__)

# First path segment (lower-cased) -> section that gates it.
PAGE_SECTIONS: Mapping[str, str] = {
    "": roles.DASHBOARD,
    "dashboard": roles.DASHBOARD,
    "compliance": roles.COMPLIANCE,
    "operationslog": roles.OPERATIONS_LOG,
    "operations-log": roles.OPERATIONS_LOG,
    "operationslogentry": roles.OPERATIONS_LOG_EDIT,
    "usagecosts": roles.COSTS,
    "costs": roles.COSTS,
    "refills": roles.REFILLS,
    "devicehealth": roles.DEVICES,
    "devices": roles.DEVICES,
    "sites": roles.SITES,
    "reports": roles.REPORTS,
    "emailreports": roles.EMAIL_REPORTS,
    "email-reports": roles.EMAIL_REPORTS,
    "branding": roles.BRANDING,
    "leaderboard": roles.LEADERBOARD,
    "eloraai": roles.AI_INSIGHTS,
    "ai-insights": roles.AI_INSIGHTS,
    "smsalerts": roles.SMS_ALERTS,
    "sms-alerts": roles.SMS_ALERTS,
}

SECTION_PATHS: Mapping[str, str] = {
    roles.DASHBOARD: "/",
    roles.COMPLIANCE: "/compliance",
    roles.OPERATIONS_LOG: "/operations-log",
    roles.OPERATIONS_LOG_EDIT: "/operations-log",
    roles.COSTS: "/costs",
    roles.REFILLS: "/refills",
    roles.DEVICES: "/devices",
    roles.SITES: "/sites",
    roles.REPORTS: "/reports",
    roles.EMAIL_REPORTS: "/email-reports",
    roles.BRANDING: "/branding",
    roles.LEADERBOARD: "/leaderboard",
    roles.AI_INSIGHTS: "/ai-insights",
    roles.SMS_ALERTS: "/sms-alerts",
}


@dataclass(frozen=True)
class PathDecision:
    allowed: bool
    section: Optional[str]
    redirect_to: Optional[str] = None


def role_sections(
    role: Role,
    role_overrides: Mapping[str, Sequence[str]] | None = None,
    tenant_sections: Sequence[str] | None = None,
) -> Tuple[str, ...]:
    override = (role_overrides or {}).get(role.value)
    base = tuple(override) if override else roles.default_sections(role)
    if tenant_sections:
        allowed = set(tenant_sections)
        base = tuple(s for s in base if s in allowed)
    return base


def resolve_sections(
    principal: Principal,
    permissions: EffectivePermissions,
    role_overrides: Mapping[str, Sequence[str]] | None = None,
    tenant_sections: Sequence[str] | None = None,
) -> List[str]:
    if principal.section_override:
        return list(principal.section_override)

    base = role_sections(principal.role, role_overrides, tenant_sections)

    if permissions.visible_sections:
        allowed = set(permissions.visible_sections)
        dropped = [s for s in permissions.visible_sections if s not in base]
        if dropped:
            log.debug(
                "access.sections.allow_list_dropped user_id=%s role=%s dropped=%s",
                principal.user_id,
                principal.role.value,
                dropped,
            )
        return [s for s in base if s in allowed]

    if permissions.hidden_sections:
        hidden = set(permissions.hidden_sections)
        return [s for s in base if s not in hidden]

    return list(base)


def leaderboard_hidden(sections: Iterable[str]) -> bool:
    return roles.LEADERBOARD not in set(sections)


def can_access_section(sections: Iterable[str], section: str) -> bool:
    return section in set(sections)


def section_for_path(path: str) -> Optional[str]:
    segment = path.split("?", 1)[0].strip("/").split("/", 1)[0].lower()
    return PAGE_SECTIONS.get(segment)


def has_own_page(section: str) -> bool:
    # operations-log-edit shares /operations-log, which operations-log gates
    path = SECTION_PATHS.get(section)
    return path is not None and section_for_path(path) == section


def landing_section(sections: Sequence[str]) -> str:
    if roles.DASHBOARD in sections:
        return roles.DASHBOARD
    for section in sections:
        if has_own_page(section):
            return section
    return roles.DASHBOARD


def guard_path(path: str, sections: Sequence[str]) -> PathDecision:
    """
    Decide whether `path` may be opened. A denied path is answered with the
    landing page so callers redirect silently instead of showing an error.
    """
    section = section_for_path(path)
    if section is None or section in sections:
        return PathDecision(allowed=True, section=section)
    landing = landing_section(sections)
    if landing not in sections:
        # nothing reachable to land on
        return PathDecision(allowed=False, section=section)
    return PathDecision(allowed=False, section=section, redirect_to=SECTION_PATHS[landing])


def default_email_report_types(role: Role, sections: Iterable[str]) -> List[str]:
    if roles.EMAIL_REPORTS not in set(sections):
        return []
    if role is Role.DRIVER:
        return ["compliance"]
    return ["compliance", "costs"]
