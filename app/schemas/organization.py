"""Organization schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from app.schemas.validators import Email, PhoneNumber, TenantCode


class OrganizationCreate(BaseModel):
    """Schema for creating a new organization."""

    name: str = Field(..., min_length=1, max_length=255)
    code: TenantCode
    email: Email | None = None
    phone: PhoneNumber | None = None
    city: str | None = Field(None, max_length=100)
    country: str = Field("Pakistan", max_length=100)
    max_schools: int = Field(10, ge=1, le=1000)


class OrganizationUpdate(BaseModel):
    """Schema for updating an organization."""

    name: str | None = Field(None, min_length=1, max_length=255)
    code: TenantCode | None = None
    email: Email | None = None
    phone: PhoneNumber | None = None
    city: str | None = Field(None, max_length=100)
    country: str | None = Field(None, max_length=100)
    max_schools: int | None = Field(None, ge=1, le=1000)
    is_active: bool | None = None


class OrganizationResponse(BaseModel):
    """Organization response schema."""

    id: UUID
    name: str
    code: str
    email: str | None
    phone: str | None
    city: str | None
    country: str
    max_schools: int
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class OrganizationListResponse(BaseModel):
    """Paginated list of organizations."""

    items: list[OrganizationResponse]
    total: int
    skip: int
    limit: int
