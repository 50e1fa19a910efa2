"""Organization service."""

from uuid import UUID

import structlog
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConflictError, NotFoundError
from app.models.organization import Organization
from app.schemas.organization import OrganizationCreate, OrganizationUpdate

logger = structlog.get_logger(__name__)

# Columns a PATCH may clear with an explicit null
_NULLABLE_FIELDS = frozenset({"email", "phone", "city"})


async def get_organization_by_id(
    db: AsyncSession,
    organization_id: UUID,
    *,
    include_deleted: bool = False,
) -> Organization | None:
    """Get organization by ID."""
    query = select(Organization).where(Organization.id == organization_id)
    if not include_deleted:
        query = query.where(Organization.deleted_at.is_(None))
    result = await db.execute(query)
    return result.scalar_one_or_none()


async def get_organization_by_code(db: AsyncSession, code: str) -> Organization | None:
    """Get organization by code (deleted ones included, codes are never reused)."""
    result = await db.execute(select(Organization).where(Organization.code == code))
    return result.scalar_one_or_none()


async def get_organizations(
    db: AsyncSession,
    *,
    is_active: bool | None = None,
    search: str | None = None,
    skip: int = 0,
    limit: int = 20,
) -> tuple[list[Organization], int]:
    """Get list of organizations with optional filters."""
    query = select(Organization).where(Organization.deleted_at.is_(None))
    count_query = (
        select(func.count())
        .select_from(Organization)
        .where(Organization.deleted_at.is_(None))
    )

    if is_active is not None:
        query = query.where(Organization.is_active == is_active)
        count_query = count_query.where(Organization.is_active == is_active)

    if search:
        search_filter = Organization.name.ilike(f"%{search}%") | Organization.code.ilike(
            f"%{search}%"
        )
        query = query.where(search_filter)
        count_query = count_query.where(search_filter)

    total_result = await db.execute(count_query)
    total = total_result.scalar() or 0

    query = query.order_by(Organization.name).offset(skip).limit(limit)
    result = await db.execute(query)
    organizations = list(result.scalars().all())

    return organizations, total


async def create_organization(
    db: AsyncSession,
    organization_data: OrganizationCreate,
) -> Organization:
    """Create a new organization."""
    if await get_organization_by_code(db, organization_data.code):
        raise ConflictError(f"Organization with code {organization_data.code} already exists")

    organization = Organization(**organization_data.model_dump())
    db.add(organization)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError(f"Organization with code {organization_data.code} already exists")
    await db.refresh(organization)

    logger.info("organization_created", organization_id=str(organization.id), code=organization.code)
    return organization


async def update_organization(
    db: AsyncSession,
    organization: Organization,
    organization_data: OrganizationUpdate,
) -> Organization:
    """Update an organization."""
    update_data = {
        field: value
        for field, value in organization_data.model_dump(exclude_unset=True).items()
        if value is not None or field in _NULLABLE_FIELDS
    }

    new_code = update_data.get("code")
    if new_code and new_code != organization.code:
        if await get_organization_by_code(db, new_code):
            raise ConflictError(f"Organization with code {new_code} already exists")

    for field, value in update_data.items():
        setattr(organization, field, value)

    await db.commit()
    await db.refresh(organization)

    return organization


async def deactivate_organization(db: AsyncSession, organization: Organization) -> Organization:
    """Soft delete an organization."""
    organization.is_active = False
    organization.soft_delete()
    await db.commit()
    await db.refresh(organization)

    logger.info("organization_deactivated", organization_id=str(organization.id))
    return organization


async def require_organization(db: AsyncSession, organization_id: UUID) -> Organization:
    """Get a live organization or raise NotFoundError."""
    organization = await get_organization_by_id(db, organization_id)
    if organization is None:
        raise NotFoundError("Organization not found")
    return organization
