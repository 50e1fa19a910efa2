"""User schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from app.core.permissions import Role, UserStatus
from app.schemas.validators import Email, PhoneNumber


class UserCreate(BaseModel):
    """Schema for creating a new user under the caller's hierarchy."""

    email: Email
    password: str = Field(..., min_length=8)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    role: Role
    phone: PhoneNumber | None = None
    # Required for org_admin when created by a platform admin
    organization_id: UUID | None = None
    # Required for school-level roles unless forced from the creator
    school_id: UUID | None = None


class UserUpdate(BaseModel):
    """Schema for updating a user."""

    first_name: str | None = Field(None, min_length=1, max_length=100)
    last_name: str | None = Field(None, min_length=1, max_length=100)
    phone: PhoneNumber | None = None
    role: Role | None = None
    status: UserStatus | None = None


class UserUpdateMe(BaseModel):
    """Schema for user updating their own profile."""

    first_name: str | None = Field(None, min_length=1, max_length=100)
    last_name: str | None = Field(None, min_length=1, max_length=100)
    phone: PhoneNumber | None = None


class PasswordChange(BaseModel):
    """Schema for changing password."""

    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=8)


class UserResponse(BaseModel):
    """User response schema. Credential and lockout fields are never exposed."""

    id: UUID
    email: str
    first_name: str
    last_name: str
    phone: str | None
    role: Role
    status: UserStatus
    organization_id: UUID | None
    school_id: UUID | None
    last_login_at: datetime | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class UserProfileResponse(UserResponse):
    """Current user's profile with the advisory capability list."""

    permissions: list[str]


class UserListResponse(BaseModel):
    """Paginated list of users."""

    items: list[UserResponse]
    total: int
    skip: int
    limit: int
