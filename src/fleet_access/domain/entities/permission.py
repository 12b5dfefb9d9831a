from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator


class PermissionRecord(BaseModel):
    """
    Mongo document model for the `user_permissions` collection.

    Every field except `scope` is optional: a field left unset falls back to
    the built-in default record when the record is resolved.
    """

    scope: Literal["user", "domain", "default"]
    user_email: Optional[str] = None
    email_domain: Optional[str] = None
    is_active: bool = True

    # Data restrictions
    show_all_data: Optional[bool] = None
    restricted_customer_name: Optional[str] = None
    lock_customer_filter: Optional[bool] = None
    default_site: Optional[str] = None

    # Section visibility
    visible_sections: Optional[List[str]] = None
    hidden_sections: Optional[List[str]] = None

    # Capabilities
    can_view_compliance: Optional[bool] = None
    can_view_reports: Optional[bool] = None
    can_manage_sites: Optional[bool] = None
    can_manage_users: Optional[bool] = None
    can_export_data: Optional[bool] = None
    can_view_costs: Optional[bool] = None
    can_generate_ai_reports: Optional[bool] = None
    can_edit_vehicles: Optional[bool] = None
    can_edit_sites: Optional[bool] = None
    can_delete_records: Optional[bool] = None

    # UI suppression
    hide_cost_forecast: Optional[bool] = None
    hide_leaderboard: Optional[bool] = None
    hide_usage_costs: Optional[bool] = None

    updated_by: Optional[str] = None
    updated_at: Optional[datetime] = None

    @field_validator("user_email", "email_domain", mode="before")
    @classmethod
    def normalize_key(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v


class RoleSectionOverride(BaseModel):
    """Mongo document model for the `role_section_overrides` collection."""

    role: str
    visible_sections: List[str] = Field(default_factory=list)
    updated_by: Optional[str] = None
    updated_at: Optional[datetime] = None


class RoleOverrideUpdateRequest(BaseModel):
    request_id: str | None = None
    visible_sections: List[str] = Field(default_factory=list)


class PermissionUpdateRequest(BaseModel):
    request_id: str | None = None
    record: PermissionRecord
