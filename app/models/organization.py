"""Organization model."""

from sqlalchemy import Boolean, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import BaseModel, SoftDeleteMixin


class Organization(SoftDeleteMixin, BaseModel):
    """Organization model - a school chain, the top-level tenant."""

    __tablename__ = "organizations"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    code: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        nullable=False,
        index=True,
    )
    email: Mapped[str | None] = mapped_column(String(255))
    phone: Mapped[str | None] = mapped_column(String(50))
    city: Mapped[str | None] = mapped_column(String(100))
    country: Mapped[str] = mapped_column(
        String(100),
        default="Pakistan",
        server_default="Pakistan",
    )

    max_schools: Mapped[int] = mapped_column(
        Integer,
        default=10,
        server_default="10",
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        server_default="true",
    )

    # Relationships
    schools: Mapped[list["School"]] = relationship("School", back_populates="organization")
    users: Mapped[list["User"]] = relationship("User", back_populates="organization")

    def __repr__(self) -> str:
        return f"<Organization(id={self.id}, code={self.code})>"
