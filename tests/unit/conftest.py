from __future__ import annotations

from typing import Iterable

from fleet_access.access.roles import Role
from fleet_access.auth.models import Principal
from fleet_access.domain.entities.permission import PermissionRecord, RoleSectionOverride


def make_principal(
    role: Role = Role.ADMIN,
    *,
    tenant_ref: str | None = "T1",
    email: str = "ops@fleet.io",
    sites: Iterable[str] = (),
    vehicles: Iterable[str] = (),
    override: Iterable[str] | None = None,
) -> Principal:
    return Principal(
        user_id="u-1",
        email=email,
        role=role,
        tenant_id="tenant-1",
        tenant_external_ref=tenant_ref,
        assigned_site_ids=frozenset(sites),
        assigned_vehicle_ids=frozenset(vehicles),
        section_override=tuple(override) if override is not None else None,
    )



class FakePermissionRepo:
    def __init__(self, user=None, domain=None, fail=False):
        self.user = user
        self.domain = domain
        self.fail = fail
        self.calls: list[str] = []
        self.saved: list[PermissionRecord] = []

    async def find_user_record(self, email):
        self.calls.append(f"user:{email}")
        if self.fail:
            raise ConnectionError("store down")
        return self.user

    async def find_domain_record(self, domain):
        self.calls.append(f"domain:{domain}")
        if self.fail:
            raise ConnectionError("store down")
        return self.domain

    async def upsert(self, record, *, updated_by):
        self.saved.append(record)
        return record


class FakeRoleOverrideRepo:
    def __init__(self, overrides=None, fail=False):
        self.overrides = overrides or {}
        self.fail = fail
        self.loads = 0

    async def load_all(self):
        self.loads += 1
        if self.fail:
            raise ConnectionError("store down")
        return dict(self.overrides)

    async def upsert(self, role, visible_sections, *, updated_by):
        self.overrides[role] = visible_sections
        return RoleSectionOverride(role=role, visible_sections=visible_sections, updated_by=updated_by)


class FakeProfileRepo:
    def __init__(self, profile=None, tenant_sections=None):
        self.profile = profile
        self.tenant_sections = tenant_sections

    async def get_profile(self, user_id):
        return self.profile

    async def get_tenant_sections(self, tenant_id):
        return self.tenant_sections
