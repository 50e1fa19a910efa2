"""Student routes."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.deps import TenantScopeDep, require_roles
from app.core.permissions import Role
from app.schemas.student import (
    StudentCreate,
    StudentListResponse,
    StudentResponse,
    StudentUpdate,
)
from app.services import student as student_service

router = APIRouter(prefix="/students", tags=["Students"])

# Roles allowed to create/update students
STUDENT_WRITERS = (
    Role.PLATFORM_ADMIN,
    Role.ORG_ADMIN,
    Role.SCHOOL_ADMIN,
    Role.PRINCIPAL,
    Role.VICE_PRINCIPAL,
    Role.RECEPTIONIST,
)


async def _get_or_404(db: AsyncSession, scope, student_id: UUID):
    student = await student_service.get_student(db, scope, student_id)
    if not student:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Student not found",
        )
    return student


# ============== Endpoints ==============


@router.get("", response_model=StudentListResponse)
async def list_students(
    db: Annotated[AsyncSession, Depends(get_db)],
    scope: TenantScopeDep,
    school_id: UUID | None = Query(None, description="Filter by school ID"),
    is_active: bool | None = Query(None, description="Filter by active status"),
    graduated: bool | None = Query(None, description="Filter by graduation status"),
    search: str | None = Query(None, description="Search by name, admission number or guardian phone"),
    skip: int = Query(0, ge=0, description="Number of records to skip"),
    limit: int = Query(20, ge=1, le=100, description="Max number of records"),
) -> StudentListResponse:
    """List students inside the caller's scope."""
    students, total = await student_service.get_students(
        db,
        scope,
        school_id=school_id,
        is_active=is_active,
        graduated=graduated,
        search=search,
        skip=skip,
        limit=limit,
    )

    return StudentListResponse(
        items=[StudentResponse.model_validate(s) for s in students],
        total=total,
        skip=skip,
        limit=limit,
    )


@router.post(
    "",
    response_model=StudentResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_roles(*STUDENT_WRITERS))],
)
async def create_student(
    student_data: StudentCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    scope: TenantScopeDep,
) -> StudentResponse:
    """
    Create a new student.

    - School-level users: always in their own school
    - ORG_ADMIN / PLATFORM_ADMIN: school_id required, must be inside the scope
    """
    student = await student_service.create_student(db, scope, student_data)
    return StudentResponse.model_validate(student)


@router.get("/{student_id}", response_model=StudentResponse)
async def get_student(
    student_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    scope: TenantScopeDep,
) -> StudentResponse:
    """Get a specific student by ID."""
    student = await _get_or_404(db, scope, student_id)
    return StudentResponse.model_validate(student)


@router.patch(
    "/{student_id}",
    response_model=StudentResponse,
    dependencies=[Depends(require_roles(*STUDENT_WRITERS))],
)
async def update_student(
    student_id: UUID,
    student_data: StudentUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    scope: TenantScopeDep,
) -> StudentResponse:
    """Update a student."""
    student = await _get_or_404(db, scope, student_id)
    updated_student = await student_service.update_student(db, student, student_data)
    return StudentResponse.model_validate(updated_student)


@router.delete(
    "/{student_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_roles(*STUDENT_WRITERS))],
)
async def delete_student(
    student_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    scope: TenantScopeDep,
) -> None:
    """Deactivate a student (soft delete)."""
    student = await _get_or_404(db, scope, student_id)
    await student_service.deactivate_student(db, student)
