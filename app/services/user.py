"""User service.

Accounts are provisioned top-down: a creator may only create the roles its
own role allows (see ROLE_HIERARCHY), and only inside its own tenant. Every
check runs before anything is written.
"""

from uuid import UUID

import structlog
from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    CrossTenantViolation,
    DuplicateAccount,
    ForbiddenRoleCreation,
    NotFoundError,
    ValidationFailed,
)
from app.core.permissions import (
    SCHOOL_ROLES,
    Role,
    UserStatus,
    can_create_role,
    creatable_roles,
    get_role_level,
)
from app.core.scope import ScopeKind, TenantScope, resolve_scope
from app.core.security import get_password_hash
from app.models.school import School
from app.models.user import User, tenant_key_for
from app.schemas.user import UserCreate, UserUpdate
from app.services import organization as organization_service
from app.services import school as school_service

logger = structlog.get_logger(__name__)

# Columns a PATCH may clear with an explicit null
_NULLABLE_FIELDS = frozenset({"phone"})


def _user_scope_filter(scope: TenantScope):
    if scope.kind == ScopeKind.SCHOOL:
        return User.school_id == scope.tenant_id
    if scope.kind == ScopeKind.ORGANIZATION:
        org_schools = select(School.id).where(School.organization_id == scope.tenant_id)
        return or_(User.organization_id == scope.tenant_id, User.school_id.in_(org_schools))
    return None


async def get_user_by_id(db: AsyncSession, user_id: UUID) -> User | None:
    """Get user by ID."""
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_user_in_scope(
    db: AsyncSession,
    scope: TenantScope,
    user_id: UUID,
) -> User | None:
    """Get a user only if the account lies inside the scope."""
    query = select(User).where(User.id == user_id)
    clause = _user_scope_filter(scope)
    if clause is not None:
        query = query.where(clause)
    result = await db.execute(query)
    return result.scalar_one_or_none()


async def get_user_by_email(
    db: AsyncSession,
    email: str,
    *,
    organization_id: UUID | None = None,
    school_id: UUID | None = None,
) -> User | None:
    """Get the account holding an email inside one tenant."""
    result = await db.execute(
        select(User).where(
            User.tenant_key == tenant_key_for(organization_id, school_id),
            User.email == email.lower(),
        )
    )
    return result.scalar_one_or_none()


async def get_users(
    db: AsyncSession,
    scope: TenantScope,
    *,
    school_id: UUID | None = None,
    role: Role | None = None,
    status: UserStatus | None = None,
    search: str | None = None,
    skip: int = 0,
    limit: int = 20,
) -> tuple[list[User], int]:
    """Get list of users in the scope with optional filters."""
    query = select(User)
    count_query = select(func.count()).select_from(User)

    clause = _user_scope_filter(scope)
    if clause is not None:
        query = query.where(clause)
        count_query = count_query.where(clause)

    # Apply filters
    if school_id is not None:
        query = query.where(User.school_id == school_id)
        count_query = count_query.where(User.school_id == school_id)

    if role is not None:
        query = query.where(User.role == role)
        count_query = count_query.where(User.role == role)

    if status is not None:
        query = query.where(User.status == status)
        count_query = count_query.where(User.status == status)

    if search:
        search_filter = (
            User.email.ilike(f"%{search}%")
            | User.first_name.ilike(f"%{search}%")
            | User.last_name.ilike(f"%{search}%")
        )
        query = query.where(search_filter)
        count_query = count_query.where(search_filter)

    # Get total count
    total_result = await db.execute(count_query)
    total = total_result.scalar() or 0

    # Get paginated results
    query = query.order_by(User.created_at.desc()).offset(skip).limit(limit)
    result = await db.execute(query)
    users = list(result.scalars().all())

    return users, total


async def _resolve_tenant(
    db: AsyncSession,
    creator: User,
    user_data: UserCreate,
) -> tuple[UUID | None, UUID | None]:
    """Work out (organization_id, school_id) for a new account."""
    organization_id = user_data.organization_id
    school_id = user_data.school_id
    scope = resolve_scope(creator)

    if scope.kind == ScopeKind.GLOBAL:
        if user_data.role == Role.ORG_ADMIN and organization_id is None:
            raise ValidationFailed("organization_id is required when creating Org Admin")
        if organization_id is not None:
            await organization_service.require_organization(db, organization_id)
        if school_id is not None:
            school = await school_service.get_school_by_id(db, school_id)
            if school is None:
                raise NotFoundError("School not found")
            if organization_id is not None and school.organization_id != organization_id:
                raise CrossTenantViolation("School is not in the given organization")
            organization_id = school.organization_id

    elif scope.kind == ScopeKind.ORGANIZATION:
        # Forced regardless of input
        organization_id = scope.tenant_id
        if school_id is not None:
            school = await school_service.get_school_by_id(db, school_id)
            if school is None or school.organization_id != scope.tenant_id:
                raise CrossTenantViolation("School is not in your organization")

    else:
        if school_id is not None and school_id != scope.tenant_id:
            raise CrossTenantViolation("Cannot create users for other schools")
        school_id = creator.school_id
        organization_id = creator.organization_id

    if user_data.role in SCHOOL_ROLES and school_id is None:
        raise ValidationFailed(f"school_id is required for {user_data.role.value} users")
    if user_data.role == Role.ORG_ADMIN and school_id is not None:
        raise ValidationFailed("Org Admin accounts cannot be bound to a school")

    return organization_id, school_id


async def create_user(db: AsyncSession, creator: User, user_data: UserCreate) -> User:
    """
    Create a user on behalf of ``creator``.

    Raises ForbiddenRoleCreation, CrossTenantViolation or DuplicateAccount
    (plus ValidationFailed/NotFoundError for malformed input); nothing is
    written unless every check passes.

    Suspended and inactive accounts keep their email: the
    (tenant_key, email) constraint covers every status, so an address stays
    taken inside its tenant for as long as the old account exists.
    """
    if not can_create_role(creator.role, user_data.role):
        logger.info(
            "user_provisioning_rejected",
            reason="forbidden_role",
            creator_id=str(creator.id),
            creator_role=creator.role.value,
            target_role=user_data.role.value,
        )
        raise ForbiddenRoleCreation(
            f"{creator.role.value} cannot create {user_data.role.value} users"
        )

    try:
        organization_id, school_id = await _resolve_tenant(db, creator, user_data)
    except CrossTenantViolation as exc:
        logger.warning(
            "user_provisioning_rejected",
            reason="cross_tenant",
            creator_id=str(creator.id),
            detail=exc.message,
        )
        raise

    email = user_data.email.lower()
    existing = await get_user_by_email(
        db, email, organization_id=organization_id, school_id=school_id
    )
    if existing:
        raise DuplicateAccount()

    user = User(
        email=email,
        password_hash=get_password_hash(user_data.password),
        first_name=user_data.first_name,
        last_name=user_data.last_name,
        phone=user_data.phone,
        role=user_data.role,
        status=UserStatus.ACTIVE,
        organization_id=organization_id,
        school_id=school_id,
    )

    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        # Concurrent request won the (tenant_key, email) constraint
        await db.rollback()
        raise DuplicateAccount()
    await db.refresh(user)

    logger.info(
        "user_provisioned",
        user_id=str(user.id),
        role=user.role.value,
        organization_id=str(user.organization_id) if user.organization_id else None,
        school_id=str(user.school_id) if user.school_id else None,
        created_by=str(creator.id),
    )
    return user


def can_manage_user(manager: User, target: User) -> bool:
    """Check if manager can manage (update/suspend) target user.

    Only roles that could have created the target qualify, so a teacher
    never manages a librarian even though it ranks higher. Tenant membership
    is checked separately by looking the target up in the manager's scope.
    """
    # Can't manage yourself through this (use /me endpoints)
    if manager.id == target.id:
        return False

    if target.role not in creatable_roles(manager.role):
        return False

    return get_role_level(manager.role) > get_role_level(target.role)


async def update_user(
    db: AsyncSession,
    manager: User,
    user: User,
    user_data: UserUpdate,
) -> User:
    """Update a user. Role changes follow the same hierarchy as creation."""
    update_data = {
        field: value
        for field, value in user_data.model_dump(exclude_unset=True).items()
        if value is not None or field in _NULLABLE_FIELDS
    }

    new_role = update_data.get("role")
    if new_role is not None and new_role != user.role:
        if not can_create_role(manager.role, new_role):
            raise ForbiddenRoleCreation(f"You can't assign role '{new_role.value}'")
        if new_role in SCHOOL_ROLES and user.school_id is None:
            raise ValidationFailed(f"school_id is required for {new_role.value} users")
        if new_role == Role.ORG_ADMIN and (user.school_id is not None or user.organization_id is None):
            raise ValidationFailed("Org Admin accounts need an organization and no school")

    for field, value in update_data.items():
        setattr(user, field, value)

    await db.commit()
    await db.refresh(user)

    return user


async def update_me(db: AsyncSession, user: User, data: dict) -> User:
    """Update own profile fields. Nulls only clear nullable columns."""
    for field, value in data.items():
        if value is None and field not in _NULLABLE_FIELDS:
            continue
        setattr(user, field, value)

    await db.commit()
    await db.refresh(user)
    return user


async def change_password(
    db: AsyncSession,
    user: User,
    new_password: str,
) -> User:
    """Change user's password."""
    user.password_hash = get_password_hash(new_password)
    await db.commit()
    await db.refresh(user)
    return user


async def deactivate_user(db: AsyncSession, user: User) -> User:
    """Deactivate a user by suspending the account (never hard-deleted)."""
    user.status = UserStatus.SUSPENDED
    await db.commit()
    await db.refresh(user)

    logger.info("user_suspended", user_id=str(user.id))
    return user
