"""Authentication routes."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import get_db
from app.core.deps import CurrentUser
from app.core.permissions import permissions_for_role
from app.schemas.auth import (
    ForgotPasswordRequest,
    LoginRequest,
    LogoutRequest,
    MessageResponse,
    RefreshRequest,
    ResetPasswordRequest,
    Token,
)
from app.schemas.user import UserProfileResponse, UserResponse
from app.services import auth as auth_service

router = APIRouter(prefix="/auth", tags=["Authentication"])

RESET_REQUESTED_MESSAGE = "If a matching account exists, a reset link has been sent"


@router.post("/login", response_model=Token)
async def login(
    login_data: LoginRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Token:
    """Login with email and password (plus a school/organization code when the email is shared)."""
    user = await auth_service.authenticate_user(
        db,
        login_data.email,
        login_data.password,
        school_code=login_data.school_code,
        organization_code=login_data.organization_code,
    )
    return await auth_service.issue_tokens(db, user)


@router.post("/login/form", response_model=Token)
async def login_form(
    form_data: Annotated[OAuth2PasswordRequestForm, Depends()],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Token:
    """Login with OAuth2 form (for Swagger UI). Username = email."""
    user = await auth_service.authenticate_user(db, form_data.username, form_data.password)
    return await auth_service.issue_tokens(db, user)


@router.post("/refresh", response_model=Token)
async def refresh_tokens(
    refresh_data: RefreshRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Token:
    """Exchange a refresh token for a new pair. The old refresh token stops working."""
    user = await auth_service.rotate_refresh_token(db, refresh_data.refresh_token)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid refresh token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    # Fresh claims: role or tenant may have changed since the last login
    return await auth_service.issue_tokens(db, user)


@router.post("/logout", response_model=MessageResponse)
async def logout(
    current_user: CurrentUser,
    db: Annotated[AsyncSession, Depends(get_db)],
    logout_data: LogoutRequest | None = None,
) -> MessageResponse:
    """Revoke the given refresh token, or every session when none is sent."""
    refresh_token = logout_data.refresh_token if logout_data else None
    await auth_service.logout(db, current_user, refresh_token)
    return MessageResponse(message="Logged out")


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(
    request_data: ForgotPasswordRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> MessageResponse:
    """Request a password reset. The response never reveals whether the account exists."""
    token = await auth_service.request_password_reset(
        db,
        request_data.email,
        school_code=request_data.school_code,
        organization_code=request_data.organization_code,
    )
    # No mail delivery yet: expose the token in debug builds only
    return MessageResponse(
        message=RESET_REQUESTED_MESSAGE,
        token=token if settings.DEBUG else None,
    )


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(
    reset_data: ResetPasswordRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> MessageResponse:
    """Set a new password with a reset token. All sessions are revoked."""
    await auth_service.reset_password(db, reset_data.token, reset_data.new_password)
    return MessageResponse(message="Password has been reset")


@router.get("/me", response_model=UserProfileResponse)
async def get_profile(current_user: CurrentUser) -> UserProfileResponse:
    """Current user's profile with the capability list carried in the token."""
    return UserProfileResponse(
        **UserResponse.model_validate(current_user).model_dump(),
        permissions=permissions_for_role(current_user.role),
    )
