"""School routes."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.deps import TenantScopeDep, require_roles
from app.core.permissions import Role
from app.schemas.school import (
    SchoolCreate,
    SchoolListResponse,
    SchoolResponse,
    SchoolUpdate,
)
from app.services import school as school_service

router = APIRouter(prefix="/schools", tags=["Schools"])


async def _get_in_scope_or_404(db: AsyncSession, scope, school_id: UUID):
    school = await school_service.get_school_in_scope(db, scope, school_id)
    if not school:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="School not found",
        )
    return school


# ============== Endpoints ==============


@router.get("", response_model=SchoolListResponse)
async def list_schools(
    db: Annotated[AsyncSession, Depends(get_db)],
    scope: TenantScopeDep,
    organization_id: UUID | None = Query(None, description="Filter by organization ID"),
    is_active: bool | None = Query(None, description="Filter by active status"),
    search: str | None = Query(None, description="Search by school name or code"),
    skip: int = Query(0, ge=0, description="Number of records to skip"),
    limit: int = Query(20, ge=1, le=100, description="Max number of records"),
) -> SchoolListResponse:
    """
    List schools.

    - PLATFORM_ADMIN: all schools
    - ORG_ADMIN: schools of their organization
    - Others: their own school
    """
    schools, total = await school_service.get_schools(
        db,
        scope,
        organization_id=organization_id,
        is_active=is_active,
        search=search,
        skip=skip,
        limit=limit,
    )

    return SchoolListResponse(
        items=[SchoolResponse.model_validate(s) for s in schools],
        total=total,
        skip=skip,
        limit=limit,
    )


@router.post(
    "",
    response_model=SchoolResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_roles(Role.PLATFORM_ADMIN, Role.ORG_ADMIN))],
)
async def create_school(
    school_data: SchoolCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    scope: TenantScopeDep,
) -> SchoolResponse:
    """
    Create a new school.

    - PLATFORM_ADMIN: organization_id is required
    - ORG_ADMIN: created in their own organization
    """
    school = await school_service.create_school(db, scope, school_data)
    return SchoolResponse.model_validate(school)


@router.get("/{school_id}", response_model=SchoolResponse)
async def get_school(
    school_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    scope: TenantScopeDep,
) -> SchoolResponse:
    """Get a specific school by ID. Schools outside the scope are not found."""
    school = await _get_in_scope_or_404(db, scope, school_id)
    return SchoolResponse.model_validate(school)


@router.patch(
    "/{school_id}",
    response_model=SchoolResponse,
    dependencies=[
        Depends(require_roles(Role.PLATFORM_ADMIN, Role.ORG_ADMIN, Role.SCHOOL_ADMIN))
    ],
)
async def update_school(
    school_id: UUID,
    school_data: SchoolUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    scope: TenantScopeDep,
) -> SchoolResponse:
    """Update a school inside the caller's scope."""
    school = await _get_in_scope_or_404(db, scope, school_id)
    updated_school = await school_service.update_school(db, school, school_data)
    return SchoolResponse.model_validate(updated_school)


@router.delete(
    "/{school_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_roles(Role.PLATFORM_ADMIN, Role.ORG_ADMIN))],
)
async def delete_school(
    school_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    scope: TenantScopeDep,
) -> None:
    """Deactivate a school (soft delete)."""
    school = await _get_in_scope_or_404(db, scope, school_id)
    await school_service.deactivate_school(db, school)
