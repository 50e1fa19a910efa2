"""User routes."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.deps import CurrentUser, TenantScopeDep, require_roles
from app.core.permissions import Role, UserStatus
from app.core.security import verify_password
from app.schemas.user import (
    PasswordChange,
    UserCreate,
    UserListResponse,
    UserResponse,
    UserUpdate,
    UserUpdateMe,
)
from app.services import user as user_service

router = APIRouter(prefix="/users", tags=["Users"])

# Roles allowed to browse and manage other accounts in their scope
USER_ADMIN_ROLES = (
    Role.PLATFORM_ADMIN,
    Role.ORG_ADMIN,
    Role.SCHOOL_ADMIN,
)


# ============== Endpoints ==============

@router.get("", response_model=UserListResponse)
async def list_users(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: CurrentUser,
    scope: TenantScopeDep,
    school_id: UUID | None = Query(None, description="Filter by school ID"),
    role: Role | None = Query(None, description="Filter by role"),
    user_status: UserStatus | None = Query(None, alias="status", description="Filter by status"),
    search: str | None = Query(None, description="Search by email or name"),
    skip: int = Query(0, ge=0, description="Number of records to skip"),
    limit: int = Query(20, ge=1, le=100, description="Max number of records"),
) -> UserListResponse:
    """
    List users visible in the caller's scope.

    - PLATFORM_ADMIN: all users
    - ORG_ADMIN: users of the organization and its schools
    - SCHOOL_ADMIN: users of their school
    - Everyone else: only themselves
    """
    if current_user.role not in USER_ADMIN_ROLES:
        return UserListResponse(
            items=[UserResponse.model_validate(current_user)],
            total=1,
            skip=skip,
            limit=limit,
        )

    users, total = await user_service.get_users(
        db,
        scope,
        school_id=school_id,
        role=role,
        status=user_status,
        search=search,
        skip=skip,
        limit=limit,
    )

    return UserListResponse(
        items=[UserResponse.model_validate(u) for u in users],
        total=total,
        skip=skip,
        limit=limit,
    )


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    user_data: UserCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: CurrentUser,
    scope: TenantScopeDep,
) -> UserResponse:
    """
    Create a new user.

    - Can only create roles allowed by ROLE_HIERARCHY
    - Tenant ids are forced from the creator for org and school admins
    """
    user = await user_service.create_user(db, current_user, user_data)
    return UserResponse.model_validate(user)


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: CurrentUser) -> UserResponse:
    """Get current user's profile."""
    return UserResponse.model_validate(current_user)


@router.patch("/me", response_model=UserResponse)
async def update_me(
    user_data: UserUpdateMe,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: CurrentUser,
) -> UserResponse:
    """Update current user's profile (name, phone)."""
    user = await user_service.update_me(db, current_user, user_data.model_dump(exclude_unset=True))
    return UserResponse.model_validate(user)


@router.post("/me/password", status_code=status.HTTP_204_NO_CONTENT)
async def change_my_password(
    password_data: PasswordChange,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: CurrentUser,
) -> None:
    """Change current user's password."""
    if not verify_password(password_data.current_password, current_user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Current password is incorrect",
        )

    await user_service.change_password(db, current_user, password_data.new_password)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: CurrentUser,
    scope: TenantScopeDep,
) -> UserResponse:
    """
    Get a specific user by ID.

    Users outside the caller's scope are reported as not found.
    """
    if current_user.role not in USER_ADMIN_ROLES and user_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )

    user = await user_service.get_user_in_scope(db, scope, user_id)

    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )

    return UserResponse.model_validate(user)


@router.patch(
    "/{user_id}",
    response_model=UserResponse,
    dependencies=[Depends(require_roles(*USER_ADMIN_ROLES))],
)
async def update_user(
    user_id: UUID,
    user_data: UserUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: CurrentUser,
    scope: TenantScopeDep,
) -> UserResponse:
    """
    Update a user.

    - Admin roles only, and only for roles they could have created
    - Cannot change role to one you can't create
    """
    user = await user_service.get_user_in_scope(db, scope, user_id)

    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )

    if not user_service.can_manage_user(current_user, user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You don't have permission to update this user",
        )

    updated_user = await user_service.update_user(db, current_user, user, user_data)
    return UserResponse.model_validate(updated_user)


@router.delete(
    "/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_roles(*USER_ADMIN_ROLES))],
)
async def delete_user(
    user_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: CurrentUser,
    scope: TenantScopeDep,
) -> None:
    """
    Suspend a user (never hard-deleted).

    - Admin roles only, and only for roles they could have created
    """
    user = await user_service.get_user_in_scope(db, scope, user_id)

    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )

    if not user_service.can_manage_user(current_user, user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You don't have permission to delete this user",
        )

    await user_service.deactivate_user(db, user)
