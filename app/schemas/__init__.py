"""Pydantic schemas."""

from app.schemas.auth import (
    Token,
    TokenData,
    LoginRequest,
    RefreshRequest,
    LogoutRequest,
    ForgotPasswordRequest,
    ResetPasswordRequest,
    MessageResponse,
)
from app.schemas.user import (
    UserCreate,
    UserUpdate,
    UserUpdateMe,
    UserResponse,
    UserProfileResponse,
    UserListResponse,
    PasswordChange,
)

__all__ = [
    # Auth
    "Token",
    "TokenData",
    "LoginRequest",
    "RefreshRequest",
    "LogoutRequest",
    "ForgotPasswordRequest",
    "ResetPasswordRequest",
    "MessageResponse",
    # User
    "UserCreate",
    "UserUpdate",
    "UserUpdateMe",
    "UserResponse",
    "UserProfileResponse",
    "UserListResponse",
    "PasswordChange",
]
