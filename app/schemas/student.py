"""Student schemas."""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, Field

from app.schemas.validators import PhoneNumber


class StudentCreate(BaseModel):
    """Schema for creating a new student."""

    # Forced to the caller's school for school-scoped users
    school_id: UUID | None = None
    admission_number: str = Field(..., min_length=1, max_length=50)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    date_of_birth: date | None = None

    # Guardian information
    guardian_name: str = Field(..., min_length=1, max_length=200)
    guardian_phone: PhoneNumber

    enrolled_at: date


class StudentUpdate(BaseModel):
    """Schema for updating a student."""

    first_name: str | None = Field(None, min_length=1, max_length=100)
    last_name: str | None = Field(None, min_length=1, max_length=100)
    date_of_birth: date | None = None
    guardian_name: str | None = Field(None, min_length=1, max_length=200)
    guardian_phone: PhoneNumber | None = None
    graduated_at: date | None = None
    is_active: bool | None = None


class StudentResponse(BaseModel):
    """Student response schema."""

    id: UUID
    school_id: UUID
    admission_number: str
    first_name: str
    last_name: str
    date_of_birth: date | None
    guardian_name: str
    guardian_phone: str
    enrolled_at: date
    graduated_at: date | None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class StudentListResponse(BaseModel):
    """Paginated list of students."""

    items: list[StudentResponse]
    total: int
    skip: int
    limit: int
