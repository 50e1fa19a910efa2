"""Student service. Every function takes the caller's tenant scope."""

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConflictError, CrossTenantViolation, NotFoundError, ValidationFailed
from app.core.scope import ScopeKind, TenantScope, apply_school_scope
from app.models.student import Student
from app.schemas.student import StudentCreate, StudentUpdate
from app.services import school as school_service

# Columns a PATCH may clear with an explicit null
_NULLABLE_FIELDS = frozenset({"date_of_birth", "graduated_at"})


async def get_student(
    db: AsyncSession,
    scope: TenantScope,
    student_id: UUID,
) -> Student | None:
    """Get a student by ID inside the scope."""
    query = apply_school_scope(
        select(Student).where(Student.id == student_id), scope, Student.school_id
    )
    result = await db.execute(query)
    return result.scalar_one_or_none()


async def get_students(
    db: AsyncSession,
    scope: TenantScope,
    *,
    school_id: UUID | None = None,
    is_active: bool | None = None,
    graduated: bool | None = None,
    search: str | None = None,
    skip: int = 0,
    limit: int = 20,
) -> tuple[list[Student], int]:
    """Get list of students in the scope with optional filters."""
    query = apply_school_scope(select(Student), scope, Student.school_id)
    count_query = apply_school_scope(
        select(func.count()).select_from(Student), scope, Student.school_id
    )

    # Apply filters
    if school_id is not None:
        query = query.where(Student.school_id == school_id)
        count_query = count_query.where(Student.school_id == school_id)

    if is_active is not None:
        query = query.where(Student.is_active == is_active)
        count_query = count_query.where(Student.is_active == is_active)

    if graduated is not None:
        if graduated:
            query = query.where(Student.graduated_at.is_not(None))
            count_query = count_query.where(Student.graduated_at.is_not(None))
        else:
            query = query.where(Student.graduated_at.is_(None))
            count_query = count_query.where(Student.graduated_at.is_(None))

    if search:
        search_filter = (
            Student.first_name.ilike(f"%{search}%")
            | Student.last_name.ilike(f"%{search}%")
            | Student.admission_number.ilike(f"%{search}%")
            | Student.guardian_phone.ilike(f"%{search}%")
        )
        query = query.where(search_filter)
        count_query = count_query.where(search_filter)

    # Get total count
    total_result = await db.execute(count_query)
    total = total_result.scalar() or 0

    # Get paginated results
    query = query.order_by(Student.created_at.desc()).offset(skip).limit(limit)
    result = await db.execute(query)
    students = list(result.scalars().all())

    return students, total


async def create_student(
    db: AsyncSession,
    scope: TenantScope,
    student_data: StudentCreate,
) -> Student:
    """Create a student in a school inside the scope."""
    school_id = student_data.school_id

    if scope.kind == ScopeKind.SCHOOL:
        if school_id is not None and school_id != scope.tenant_id:
            raise CrossTenantViolation("You can only create students in your own school")
        school_id = scope.tenant_id
    elif school_id is None:
        raise ValidationFailed("school_id is required")

    school = await school_service.get_school_by_id(db, school_id)
    if school is None:
        raise NotFoundError("School not found")
    if not scope.covers_school(school):
        raise CrossTenantViolation("You can only create students in your own schools")

    student = Student(
        school_id=school.id,
        admission_number=student_data.admission_number,
        first_name=student_data.first_name,
        last_name=student_data.last_name,
        date_of_birth=student_data.date_of_birth,
        guardian_name=student_data.guardian_name,
        guardian_phone=student_data.guardian_phone,
        enrolled_at=student_data.enrolled_at,
    )

    db.add(student)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError(
            f"Admission number {student_data.admission_number} already exists in this school"
        )
    await db.refresh(student)

    return student


async def update_student(
    db: AsyncSession,
    student: Student,
    student_data: StudentUpdate,
) -> Student:
    """Update a student (already looked up within the scope)."""
    update_data = {
        field: value
        for field, value in student_data.model_dump(exclude_unset=True).items()
        if value is not None or field in _NULLABLE_FIELDS
    }

    for field, value in update_data.items():
        setattr(student, field, value)

    await db.commit()
    await db.refresh(student)

    return student


async def deactivate_student(db: AsyncSession, student: Student) -> Student:
    """Soft delete a student by setting is_active to False."""
    student.is_active = False
    await db.commit()
    await db.refresh(student)
    return student
