from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Vehicle(BaseModel):
    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)

    id: str
    tenant_external_ref: Optional[str] = None
    site_id: Optional[str] = None
    rfid: Optional[str] = None
    name: Optional[str] = None


class Site(BaseModel):
    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)

    id: str
    tenant_external_ref: Optional[str] = None
    customer_ref: Optional[str] = None
    customer_name: Optional[str] = None
    name: Optional[str] = None


class Customer(BaseModel):
    """
    Upstream customer. Without an explicit tenant_external_ref the customer's
    own id is the tenant ref it belongs to.
    """

    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)

    id: str
    name: Optional[str] = None
    tenant_external_ref: Optional[str] = None

    @property
    def owner_ref(self) -> str:
        return self.tenant_external_ref or self.id


class ScopeRequest(BaseModel):
    request_id: str | None = None
    vehicles: List[Vehicle] = Field(default_factory=list)
    sites: List[Site] = Field(default_factory=list)
    customers: Optional[List[Customer]] = None


class GuardRequest(BaseModel):
    request_id: str | None = None
    path: str
