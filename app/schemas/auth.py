"""Authentication schemas."""

from uuid import UUID

from pydantic import BaseModel, Field

from app.core.permissions import Role
from app.schemas.validators import Email, TenantCode


class Token(BaseModel):
    """JWT token response."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int


class RefreshRequest(BaseModel):
    """Refresh token request."""

    refresh_token: str


class TokenData(BaseModel):
    """Claims carried by an access token."""

    sub: UUID
    email: str
    role: Role
    organization_id: UUID | None = None
    school_id: UUID | None = None
    permissions: list[str] = []


class LoginRequest(BaseModel):
    """Login request schema.

    The same email may exist in several schools; the optional codes pick one.
    """

    email: Email
    password: str = Field(..., min_length=1)
    school_code: TenantCode | None = None
    organization_code: TenantCode | None = None


class LogoutRequest(BaseModel):
    """Logout request. Without a refresh token every session of the user is revoked."""

    refresh_token: str | None = None


class ForgotPasswordRequest(BaseModel):
    email: Email
    school_code: TenantCode | None = None
    organization_code: TenantCode | None = None


class ResetPasswordRequest(BaseModel):
    token: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=8)


class MessageResponse(BaseModel):
    """Plain acknowledgement; ``token`` is only filled in debug mode."""

    message: str
    token: str | None = None
