from __future__ import annotations

import pytest
from conftest import make_principal

from fleet_access.access.permissions import resolve_permissions
from fleet_access.access.roles import Role
from fleet_access.access.scope import scope_entities
from fleet_access.domain.entities.fleet import Customer, Site, Vehicle
from fleet_access.domain.entities.permission import PermissionRecord

SITES = [
    Site(id="S1", tenant_external_ref="T1", customer_ref="T1", customer_name="Heidelberg Materials"),
    Site(id="S2", tenant_external_ref="T1", customer_ref="C9", customer_name="Boral Concrete"),
    Site(id="S3", tenant_external_ref="T2", customer_ref="T2", customer_name="Holcim"),
]
VEHICLES = [
    Vehicle(id="V1", tenant_external_ref="T1", site_id="S1", rfid="RF-1"),
    Vehicle(id="V2", tenant_external_ref="T1", site_id="S2", rfid="RF-2"),
    Vehicle(id="V3", tenant_external_ref="T2", site_id="S3", rfid="RF-3"),
]
CUSTOMERS = [
    Customer(id="T1", name="Heidelberg Materials"),
    Customer(id="C9", name="Boral Concrete", tenant_external_ref="T1"),
    Customer(id="T2", name="Holcim"),
]


def _ids(items):
    return [i.id for i in items]


def _perms(principal, **fields):
    if not fields:
        return resolve_permissions(principal)
    return resolve_permissions(principal, PermissionRecord(scope="user", user_email=principal.email, **fields))


def _scope(principal, customers=CUSTOMERS, **fields):
    return scope_entities(principal, _perms(principal, **fields), VEHICLES, SITES, customers)


def test_super_admin_passthrough() -> None:
    principal = make_principal(Role.SUPER_ADMIN, tenant_ref=None)
    result = _scope(principal)
    assert result.vehicles == VEHICLES
    assert result.sites == SITES
    assert result.customers == CUSTOMERS


@pytest.mark.parametrize("role", [r for r in Role if r is not Role.SUPER_ADMIN])
@pytest.mark.parametrize("tenant_ref", ["T1", "T2", "T-unknown"])
def test_tenant_isolation(role, tenant_ref) -> None:
    principal = make_principal(role, tenant_ref=tenant_ref, sites=["S1", "S3"], vehicles=["V1", "V3"])
    result = _scope(principal)
    assert all(v.tenant_external_ref == tenant_ref for v in result.vehicles)
    assert all(s.tenant_external_ref == tenant_ref for s in result.sites)
    assert all(c.owner_ref == tenant_ref for c in result.customers)


@pytest.mark.parametrize("role", [r for r in Role if r is not Role.SUPER_ADMIN])
@pytest.mark.parametrize("tenant_ref", [None, ""])
def test_missing_tenant_ref_fails_closed(role, tenant_ref) -> None:
    principal = make_principal(role, tenant_ref=tenant_ref, sites=["S1"], vehicles=["V1"])
    result = _scope(principal)
    assert result.vehicles == []
    assert result.sites == []
    assert result.customers == []


def test_customers_stay_none_when_not_requested() -> None:
    principal = make_principal(Role.ADMIN, tenant_ref=None)
    assert _scope(principal, customers=None).customers is None
    assert _scope(make_principal(Role.ADMIN), customers=None).customers is None


def test_admin_without_restriction_sees_tenant() -> None:
    result = _scope(make_principal(Role.ADMIN))
    assert _ids(result.sites) == ["S1", "S2"]
    assert _ids(result.vehicles) == ["V1", "V2"]
    assert _ids(result.customers) == ["T1", "C9"]


@pytest.mark.parametrize("role", [Role.ADMIN, Role.USER, Role.VIEWER])
def test_restricted_customer_name_is_case_insensitive_substring(role) -> None:
    result = _scope(make_principal(role), restricted_customer_name="heidelberg")
    assert _ids(result.sites) == ["S1"]
    assert _ids(result.vehicles) == ["V1"]
    assert _ids(result.customers) == ["T1"]


def test_restricted_customer_uses_customer_list_for_site_names() -> None:
    sites = [Site(id="S1", tenant_external_ref="T1", customer_ref="C9")]
    vehicles = [Vehicle(id="V1", tenant_external_ref="T1", site_id="S1")]
    principal = make_principal(Role.USER)
    result = scope_entities(
        principal, _perms(principal, restricted_customer_name="BORAL"), vehicles, sites, CUSTOMERS
    )
    assert _ids(result.sites) == ["S1"]
    assert _ids(result.vehicles) == ["V1"]


def test_restricted_customer_without_match_returns_nothing() -> None:
    result = _scope(make_principal(Role.VIEWER), restricted_customer_name="Holcim")
    assert result.sites == []
    assert result.vehicles == []


def test_manager_with_assignment_sees_assigned_sites() -> None:
    result = _scope(make_principal(Role.MANAGER, sites=["S2"]))
    assert _ids(result.sites) == ["S2"]
    assert _ids(result.vehicles) == ["V2"]
    assert _ids(result.customers) == ["C9"]


def test_manager_without_assignment_sees_tenant() -> None:
    result = _scope(make_principal(Role.MANAGER))
    assert _ids(result.sites) == ["S1", "S2"]
    assert _ids(result.vehicles) == ["V1", "V2"]


def test_batcher_without_assignment_sees_nothing() -> None:
    result = _scope(make_principal(Role.BATCHER))
    assert result.sites == []
    assert result.vehicles == []
    assert result.customers == []


def test_batcher_scenario() -> None:
    principal = make_principal(Role.BATCHER, tenant_ref="T1", sites=["S1"])
    sites = [Site(id="S1", tenant_external_ref="T1"), Site(id="S2", tenant_external_ref="T1")]
    vehicles = [
        Vehicle(id="V1", site_id="S1", tenant_external_ref="T1"),
        Vehicle(id="V2", site_id="S2", tenant_external_ref="T1"),
    ]
    result = scope_entities(principal, _perms(principal), vehicles, sites)
    assert _ids(result.sites) == ["S1"]
    assert _ids(result.vehicles) == ["V1"]


def test_batcher_cannot_reach_other_tenant_site_by_assignment() -> None:
    result = _scope(make_principal(Role.BATCHER, sites=["S3"]))
    assert result.sites == []
    assert result.vehicles == []


def test_driver_matches_id_or_rfid_and_gets_no_sites() -> None:
    result = _scope(make_principal(Role.DRIVER, vehicles=["V1", "RF-2"]))
    assert _ids(result.vehicles) == ["V1", "V2"]
    assert result.sites == []


def test_driver_matches_numeric_upstream_ids() -> None:
    principal = make_principal(Role.DRIVER, vehicles=["101", "555"])
    vehicles = [
        Vehicle(id=101, tenant_external_ref="T1", site_id=7),
        Vehicle(id=102, tenant_external_ref="T1", rfid=555),
        Vehicle(id=103, tenant_external_ref="T1", rfid=556),
    ]
    result = scope_entities(principal, _perms(principal), vehicles, [], None)
    assert _ids(result.vehicles) == ["101", "102"]
    assert result.vehicles[1].rfid == "555"


def test_driver_without_assignment_sees_tenant_vehicles() -> None:
    result = _scope(make_principal(Role.DRIVER))
    assert _ids(result.vehicles) == ["V1", "V2"]
    assert result.sites == []


def test_driver_without_assignment_can_fail_closed() -> None:
    principal = make_principal(Role.DRIVER)
    result = scope_entities(
        principal, _perms(principal), VEHICLES, SITES, CUSTOMERS, driver_unassigned_sees_tenant=False
    )
    assert result.vehicles == []
    assert result.sites == []


@pytest.mark.parametrize(
    "principal",
    [
        make_principal(Role.MANAGER, sites=["S1"]),
        make_principal(Role.BATCHER, sites=["S2"]),
        make_principal(Role.ADMIN),
    ],
)
def test_vehicles_only_reference_returned_sites(principal) -> None:
    result = _scope(principal)
    site_ids = set(_ids(result.sites))
    assert all(v.site_id in site_ids for v in result.vehicles)


def test_restricted_admin_vehicles_reference_returned_sites() -> None:
    result = _scope(make_principal(Role.ADMIN), restricted_customer_name="boral")
    assert {v.site_id for v in result.vehicles} <= set(_ids(result.sites))


def test_scope_is_idempotent_and_does_not_mutate_inputs() -> None:
    principal = make_principal(Role.MANAGER, sites=["S1"])
    vehicles = list(VEHICLES)
    first = _scope(principal)
    second = _scope(principal)
    assert first == second
    assert vehicles == VEHICLES
