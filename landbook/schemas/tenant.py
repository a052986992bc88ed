"""Tenant provisioning schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from landbook.models.tenant import UserRole


class TenantCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    slug: str = Field(..., min_length=2, max_length=100, pattern=r"^[a-zA-Z0-9-]+$")


class TenantResponse(BaseModel):
    id: int
    name: str
    slug: str
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class TenantDeactivate(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)


class UserCreate(BaseModel):
    """Add an operator to a tenant."""

    username: str = Field(..., min_length=3, max_length=100)
    display_name: str = Field(..., min_length=1, max_length=100)
    role: UserRole = UserRole.STAFF


class UserResponse(BaseModel):
    id: int
    tenant_id: Optional[int]
    username: str
    display_name: str
    role: UserRole
    is_active: bool

    model_config = {"from_attributes": True}
