"""School service."""

from uuid import UUID

import structlog
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import ConflictError, CrossTenantViolation, ValidationFailed
from app.core.scope import ScopeKind, TenantScope
from app.models.school import School
from app.schemas.school import SchoolCreate, SchoolUpdate
from app.services import organization as organization_service

logger = structlog.get_logger(__name__)

# Columns a PATCH may clear with an explicit null
_NULLABLE_FIELDS = frozenset({"address", "phone", "email"})


def _scoped(query, scope: TenantScope):
    if scope.kind == ScopeKind.ORGANIZATION:
        return query.where(School.organization_id == scope.tenant_id)
    if scope.kind == ScopeKind.SCHOOL:
        return query.where(School.id == scope.tenant_id)
    return query


async def get_school_by_id(db: AsyncSession, school_id: UUID) -> School | None:
    """Get a live (not soft-deleted) school by ID."""
    result = await db.execute(
        select(School).where(School.id == school_id, School.deleted_at.is_(None))
    )
    return result.scalar_one_or_none()


async def get_school_in_scope(
    db: AsyncSession,
    scope: TenantScope,
    school_id: UUID,
) -> School | None:
    """Get a school only if it lies inside the scope."""
    query = select(School).where(School.id == school_id, School.deleted_at.is_(None))
    result = await db.execute(_scoped(query, scope))
    return result.scalar_one_or_none()


async def get_school_by_code(
    db: AsyncSession,
    code: str,
    organization_id: UUID | None,
) -> School | None:
    """Get a school by code within an organization (or among independent schools)."""
    query = select(School).where(School.code == code)
    if organization_id is None:
        query = query.where(School.organization_id.is_(None))
    else:
        query = query.where(School.organization_id == organization_id)
    result = await db.execute(query)
    return result.scalars().first()


async def count_schools(db: AsyncSession, organization_id: UUID) -> int:
    """Count live schools of an organization."""
    result = await db.execute(
        select(func.count())
        .select_from(School)
        .where(School.organization_id == organization_id, School.deleted_at.is_(None))
    )
    return result.scalar() or 0


async def get_schools(
    db: AsyncSession,
    scope: TenantScope,
    *,
    organization_id: UUID | None = None,
    is_active: bool | None = None,
    search: str | None = None,
    skip: int = 0,
    limit: int = 20,
) -> tuple[list[School], int]:
    """Get list of schools visible in the scope with optional filters."""
    query = _scoped(select(School).where(School.deleted_at.is_(None)), scope)
    count_query = _scoped(
        select(func.count()).select_from(School).where(School.deleted_at.is_(None)),
        scope,
    )

    # Apply filters
    if organization_id is not None:
        query = query.where(School.organization_id == organization_id)
        count_query = count_query.where(School.organization_id == organization_id)

    if is_active is not None:
        query = query.where(School.is_active == is_active)
        count_query = count_query.where(School.is_active == is_active)

    if search:
        search_filter = School.name.ilike(f"%{search}%") | School.code.ilike(f"%{search}%")
        query = query.where(search_filter)
        count_query = count_query.where(search_filter)

    # Get total count
    total_result = await db.execute(count_query)
    total = total_result.scalar() or 0

    # Get paginated results
    query = query.order_by(School.name).offset(skip).limit(limit)
    result = await db.execute(query)
    schools = list(result.scalars().all())

    return schools, total


async def create_school(
    db: AsyncSession,
    scope: TenantScope,
    school_data: SchoolCreate,
) -> School:
    """
    Create a new school.

    - GLOBAL scope: organization_id must be supplied
    - ORGANIZATION scope: organization_id is forced to the scope's organization
    - SCHOOL scope: never allowed
    """
    organization_id = school_data.organization_id

    if scope.kind == ScopeKind.SCHOOL:
        raise CrossTenantViolation("School-level users cannot create schools")

    if scope.kind == ScopeKind.ORGANIZATION:
        if organization_id is not None and organization_id != scope.tenant_id:
            raise CrossTenantViolation(
                "Org Admin can only create schools within their own organization"
            )
        organization_id = scope.tenant_id
    elif organization_id is None:
        raise ValidationFailed("organization_id is required when creating a school")

    organization = await organization_service.require_organization(db, organization_id)

    if await count_schools(db, organization.id) >= organization.max_schools:
        raise ConflictError(
            f"Organization {organization.code} has reached its limit of "
            f"{organization.max_schools} schools"
        )

    if await get_school_by_code(db, school_data.code, organization.id):
        raise ConflictError(
            f"School with code {school_data.code} already exists in this organization"
        )

    school = School(
        organization_id=organization.id,
        name=school_data.name,
        code=school_data.code,
        address=school_data.address,
        phone=school_data.phone,
        email=school_data.email,
        settings={**settings.DEFAULT_SCHOOL_SETTINGS, **school_data.settings},
        max_students=school_data.max_students,
        max_staff=school_data.max_staff,
    )

    db.add(school)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError(
            f"School with code {school_data.code} already exists in this organization"
        )
    await db.refresh(school)

    logger.info(
        "school_created",
        school_id=str(school.id),
        organization_id=str(school.organization_id),
        code=school.code,
    )
    return school


async def update_school(
    db: AsyncSession,
    school: School,
    school_data: SchoolUpdate,
) -> School:
    """Update a school."""
    update_data = {
        field: value
        for field, value in school_data.model_dump(exclude_unset=True).items()
        if value is not None or field in _NULLABLE_FIELDS
    }

    new_code = update_data.get("code")
    if new_code and new_code != school.code:
        if await get_school_by_code(db, new_code, school.organization_id):
            raise ConflictError(f"School with code {new_code} already exists")

    if "settings" in update_data:
        update_data["settings"] = {**school.settings, **update_data["settings"]}

    for field, value in update_data.items():
        setattr(school, field, value)

    await db.commit()
    await db.refresh(school)

    return school


async def deactivate_school(db: AsyncSession, school: School) -> School:
    """Soft delete a school."""
    school.is_active = False
    school.soft_delete()
    await db.commit()
    await db.refresh(school)

    logger.info("school_deactivated", school_id=str(school.id))
    return school
