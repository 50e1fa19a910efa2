"""Organization routes. Platform admins only."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.deps import require_roles
from app.core.permissions import Role
from app.schemas.organization import (
    OrganizationCreate,
    OrganizationListResponse,
    OrganizationResponse,
    OrganizationUpdate,
)
from app.services import organization as organization_service

router = APIRouter(
    prefix="/organizations",
    tags=["Organizations"],
    dependencies=[Depends(require_roles(Role.PLATFORM_ADMIN))],
)


async def _get_or_404(db: AsyncSession, organization_id: UUID):
    organization = await organization_service.get_organization_by_id(db, organization_id)
    if not organization:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Organization not found",
        )
    return organization


@router.get("", response_model=OrganizationListResponse)
async def list_organizations(
    db: Annotated[AsyncSession, Depends(get_db)],
    is_active: bool | None = Query(None, description="Filter by active status"),
    search: str | None = Query(None, description="Search by name or code"),
    skip: int = Query(0, ge=0, description="Number of records to skip"),
    limit: int = Query(20, ge=1, le=100, description="Max number of records"),
) -> OrganizationListResponse:
    """List organizations."""
    organizations, total = await organization_service.get_organizations(
        db,
        is_active=is_active,
        search=search,
        skip=skip,
        limit=limit,
    )

    return OrganizationListResponse(
        items=[OrganizationResponse.model_validate(o) for o in organizations],
        total=total,
        skip=skip,
        limit=limit,
    )


@router.post("", response_model=OrganizationResponse, status_code=status.HTTP_201_CREATED)
async def create_organization(
    organization_data: OrganizationCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> OrganizationResponse:
    """Create a new organization."""
    organization = await organization_service.create_organization(db, organization_data)
    return OrganizationResponse.model_validate(organization)


@router.get("/{organization_id}", response_model=OrganizationResponse)
async def get_organization(
    organization_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> OrganizationResponse:
    """Get a specific organization by ID."""
    organization = await _get_or_404(db, organization_id)
    return OrganizationResponse.model_validate(organization)


@router.patch("/{organization_id}", response_model=OrganizationResponse)
async def update_organization(
    organization_id: UUID,
    organization_data: OrganizationUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> OrganizationResponse:
    """Update an organization."""
    organization = await _get_or_404(db, organization_id)
    updated = await organization_service.update_organization(db, organization, organization_data)
    return OrganizationResponse.model_validate(updated)


@router.delete("/{organization_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_organization(
    organization_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> None:
    """Deactivate an organization (soft delete)."""
    organization = await _get_or_404(db, organization_id)
    await organization_service.deactivate_organization(db, organization)
