"""School schemas."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field

from app.schemas.validators import Email, PhoneNumber, TenantCode


class SchoolCreate(BaseModel):
    """Schema for creating a new school."""

    name: str = Field(..., min_length=1, max_length=255)
    code: TenantCode
    # Required from platform admins, forced for org admins
    organization_id: UUID | None = None
    address: str | None = Field(None, max_length=500)
    phone: PhoneNumber | None = None
    email: Email | None = None
    settings: dict[str, Any] = Field(default_factory=dict)
    max_students: int = Field(100, ge=1)
    max_staff: int = Field(20, ge=1)


class SchoolUpdate(BaseModel):
    """Schema for updating a school."""

    name: str | None = Field(None, min_length=1, max_length=255)
    code: TenantCode | None = None
    address: str | None = Field(None, max_length=500)
    phone: PhoneNumber | None = None
    email: Email | None = None
    settings: dict[str, Any] | None = None
    max_students: int | None = Field(None, ge=1)
    max_staff: int | None = Field(None, ge=1)
    is_active: bool | None = None


class SchoolResponse(BaseModel):
    """School response schema."""

    id: UUID
    organization_id: UUID | None
    name: str
    code: str
    address: str | None
    phone: str | None
    email: str | None
    settings: dict[str, Any]
    max_students: int
    max_staff: int
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class SchoolListResponse(BaseModel):
    """Paginated list of schools."""

    items: list[SchoolResponse]
    total: int
    skip: int
    limit: int
