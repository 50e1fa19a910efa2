"""School model."""

from typing import Any
from uuid import UUID

from sqlalchemy import JSON, Boolean, ForeignKey, Integer, String, Uuid, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import BaseModel, SoftDeleteMixin


class School(SoftDeleteMixin, BaseModel):
    """School model - second-level tenant, optionally part of an organization."""

    __tablename__ = "schools"
    __table_args__ = (
        UniqueConstraint("organization_id", "code", name="uq_school_org_code"),
    )

    organization_id: Mapped[UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("organizations.id", ondelete="SET NULL"),
        nullable=True,  # NULL for independent schools
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    code: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    address: Mapped[str | None] = mapped_column(String(500))
    phone: Mapped[str | None] = mapped_column(String(50))
    email: Mapped[str | None] = mapped_column(String(255))

    settings: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)
    max_students: Mapped[int] = mapped_column(Integer, default=100, server_default="100")
    max_staff: Mapped[int] = mapped_column(Integer, default=20, server_default="20")

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        server_default="true",
    )

    # Relationships
    organization: Mapped["Organization | None"] = relationship(
        "Organization", back_populates="schools"
    )
    users: Mapped[list["User"]] = relationship("User", back_populates="school")
    students: Mapped[list["Student"]] = relationship("Student", back_populates="school")

    def __repr__(self) -> str:
        return f"<School(id={self.id}, code={self.code})>"
