"""
Role hierarchy and per-role section defaults.

This module is the only place that knows which sections a role carries by
default and how roles rank against each other. Everything else asks it.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Tuple


class Role(str, Enum):
    SUPER_ADMIN = "super_admin"
    ADMIN = "admin"
    MANAGER = "manager"
    USER = "user"
    BATCHER = "batcher"
    DRIVER = "driver"
    VIEWER = "viewer"


# ----------------------------
# Section catalogue
# ----------------------------

DASHBOARD = "dashboard"
COMPLIANCE = "compliance"
OPERATIONS_LOG = "operations-log"
OPERATIONS_LOG_EDIT = "operations-log-edit"
COSTS = "costs"
REFILLS = "refills"
DEVICES = "devices"
SITES = "sites"
REPORTS = "reports"
EMAIL_REPORTS = "email-reports"
BRANDING = "branding"
LEADERBOARD = "leaderboard"
AI_INSIGHTS = "ai-insights"
SMS_ALERTS = "sms-alerts"

ALL_SECTIONS: Tuple[str, ...] = (
    DASHBOARD,
    COMPLIANCE,
    OPERATIONS_LOG,
    OPERATIONS_LOG_EDIT,
    COSTS,
    REFILLS,
    DEVICES,
    SITES,
    REPORTS,
    EMAIL_REPORTS,
    BRANDING,
    LEADERBOARD,
    AI_INSIGHTS,
    SMS_ALERTS,
)

MINIMAL_SECTIONS: Tuple[str, ...] = (DASHBOARD, COMPLIANCE, LEADERBOARD)

# ----------------------------
# Rank (higher = more privileged)
# ----------------------------

ROLE_RANK: Dict[Role, int] = {
    Role.SUPER_ADMIN: 100,
    Role.ADMIN: 80,
    Role.MANAGER: 60,
    Role.USER: 20,
    Role.BATCHER: 15,
    Role.DRIVER: 10,
    Role.VIEWER: 5,
}

# Shared by every role that sees the regular dashboard without edit rights.
_READ_SECTIONS: Tuple[str, ...] = (
    DASHBOARD,
    COMPLIANCE,
    OPERATIONS_LOG,
    COSTS,
    REFILLS,
    DEVICES,
    SITES,
    REPORTS,
    EMAIL_REPORTS,
    LEADERBOARD,
    AI_INSIGHTS,
)

DEFAULT_SECTIONS: Dict[Role, Tuple[str, ...]] = {
    Role.SUPER_ADMIN: ALL_SECTIONS,
    Role.ADMIN: tuple(s for s in ALL_SECTIONS if s != SMS_ALERTS),
    Role.MANAGER: tuple(s for s in ALL_SECTIONS if s not in (BRANDING, SMS_ALERTS)),
    Role.USER: _READ_SECTIONS,
    Role.BATCHER: _READ_SECTIONS,
    Role.DRIVER: MINIMAL_SECTIONS,
    Role.VIEWER: _READ_SECTIONS,
}

ROLE_INFO: Dict[Role, Dict[str, str]] = {
    Role.SUPER_ADMIN: {
        "label": "Super Admin",
        "description": "Platform-wide administrator with access to all companies",
    },
    Role.ADMIN: {
        "label": "Admin",
        "description": "Company administrator with full access to their company",
    },
    Role.MANAGER: {
        "label": "Manager",
        "description": "Fleet manager with team oversight",
    },
    Role.USER: {
        "label": "User",
        "description": "Standard user with dashboard access",
    },
    Role.BATCHER: {
        "label": "Batcher",
        "description": "Manages a single assigned site",
    },
    Role.DRIVER: {
        "label": "Driver",
        "description": "Vehicle operator with limited access",
    },
    Role.VIEWER: {
        "label": "Viewer",
        "description": "Read-only access to dashboards",
    },
}

ROLE_PERMISSION_SUMMARY: Dict[Role, Tuple[str, ...]] = {
    Role.SUPER_ADMIN: (
        "Access all companies",
        "Manage all users",
        "Manage companies",
        "Configure branding",
        "View all data",
    ),
    Role.ADMIN: (
        "Manage company users",
        "Configure company branding",
        "View company data",
        "Manage compliance targets",
        "Export reports",
    ),
    Role.MANAGER: (
        "View assigned sites data",
        "Manage compliance targets",
        "Run reports",
        "Export data",
    ),
    Role.USER: (
        "View company data",
        "View compliance data",
        "View costs",
        "Run reports",
    ),
    Role.BATCHER: (
        "View assigned site only",
        "Run site reports",
        "View compliance data",
    ),
    Role.DRIVER: (
        "View assigned vehicles only",
        "View compliance status",
    ),
    Role.VIEWER: (
        "Read-only dashboard access",
        "No editing capabilities",
    ),
}

for _table in (ROLE_RANK, DEFAULT_SECTIONS, ROLE_INFO, ROLE_PERMISSION_SUMMARY):
    _missing = set(Role) - set(_table)
    if _missing:
        raise RuntimeError(f"role table incomplete, missing: {sorted(r.value for r in _missing)}")


def parse_role(raw: Any) -> Role:
    """Map a raw role claim onto the enum; anything unrecognised is a viewer."""
    if isinstance(raw, Role):
        return raw
    try:
        return Role(str(raw).strip().lower())
    except ValueError:
        return Role.VIEWER


def _lookup(role: Any) -> Role | None:
    if isinstance(role, Role):
        return role
    try:
        return Role(str(role))
    except ValueError:
        return None


def rank(role: Any) -> int:
    known = _lookup(role)
    return ROLE_RANK[known] if known is not None else 0


def default_sections(role: Any) -> Tuple[str, ...]:
    known = _lookup(role)
    if known is None:
        return MINIMAL_SECTIONS
    return DEFAULT_SECTIONS[known]


def has_role_or_higher(role: Any, minimum: Any) -> bool:
    return rank(role) >= rank(minimum)


def is_super_admin(role: Any) -> bool:
    return _lookup(role) is Role.SUPER_ADMIN


def is_admin(role: Any) -> bool:
    return _lookup(role) in (Role.SUPER_ADMIN, Role.ADMIN)


def is_manager(role: Any) -> bool:
    return _lookup(role) in (Role.SUPER_ADMIN, Role.ADMIN, Role.MANAGER)


def role_info(role: Any) -> Dict[str, str]:
    known = _lookup(role)
    if known is None:
        return {"label": str(role), "description": "Unknown role"}
    return dict(ROLE_INFO[known])


def role_permission_summary(role: Any) -> Tuple[str, ...]:
    known = _lookup(role)
    return ROLE_PERMISSION_SUMMARY[known] if known is not None else ()
