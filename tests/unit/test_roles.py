from __future__ import annotations

import pytest

from fleet_access.access import roles
from fleet_access.access.roles import Role


def test_rank_orders_roles_by_privilege() -> None:
    ordered = sorted(Role, key=roles.rank, reverse=True)
    assert ordered[0] is Role.SUPER_ADMIN
    assert ordered[-1] is Role.VIEWER
    assert roles.rank("super_admin") == 100
    assert roles.rank(Role.VIEWER) == 5


def test_unknown_role_has_no_rank_and_minimal_sections() -> None:
    assert roles.rank("technician") == 0
    assert roles.default_sections("technician") == ("dashboard", "compliance", "leaderboard")
    assert roles.default_sections(None) == roles.MINIMAL_SECTIONS


@pytest.mark.parametrize("raw", ["technician", "", None, "ROOT"])
def test_parse_role_degrades_to_viewer(raw) -> None:
    assert roles.parse_role(raw) is Role.VIEWER


def test_parse_role_accepts_known_values() -> None:
    assert roles.parse_role(" Manager ") is Role.MANAGER
    assert roles.parse_role(Role.DRIVER) is Role.DRIVER


def test_default_sections_come_from_catalogue() -> None:
    for role in Role:
        sections = roles.default_sections(role)
        assert sections
        assert set(sections) <= set(roles.ALL_SECTIONS)


def test_only_super_admin_gets_sms_alerts_by_default() -> None:
    with_sms = [r for r in Role if roles.SMS_ALERTS in roles.default_sections(r)]
    assert with_sms == [Role.SUPER_ADMIN]


def test_driver_defaults_are_minimal() -> None:
    assert roles.default_sections(Role.DRIVER) == ("dashboard", "compliance", "leaderboard")


def test_manager_has_no_branding() -> None:
    assert roles.BRANDING not in roles.default_sections(Role.MANAGER)
    assert roles.BRANDING in roles.default_sections(Role.ADMIN)


def test_role_predicates() -> None:
    assert roles.is_admin(Role.SUPER_ADMIN)
    assert roles.is_admin("admin")
    assert not roles.is_admin(Role.MANAGER)
    assert roles.is_manager(Role.MANAGER)
    assert not roles.is_manager(Role.USER)
    assert roles.has_role_or_higher(Role.MANAGER, Role.USER)
    assert not roles.has_role_or_higher(Role.DRIVER, Role.BATCHER)


def test_role_info_for_unknown_role() -> None:
    assert roles.role_info(Role.BATCHER)["label"] == "Batcher"
    assert roles.role_info("pilot") == {"label": "pilot", "description": "Unknown role"}
    assert roles.role_permission_summary("pilot") == ()
