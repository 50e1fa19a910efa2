"""User model."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import DateTime, Enum, ForeignKey, Integer, String, Uuid, UniqueConstraint, event
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import BaseModel, as_utc
from app.core.permissions import Role, UserStatus


def _enum_values(enum_cls) -> list[str]:
    return [member.value for member in enum_cls]


def tenant_key_for(organization_id: UUID | None, school_id: UUID | None) -> str:
    """Uniqueness scope for an account's email: its school, else its organization, else global."""
    if school_id is not None:
        return f"school:{school_id}"
    if organization_id is not None:
        return f"org:{organization_id}"
    return "global"


class User(BaseModel):
    """User model for authentication and authorization."""

    __tablename__ = "users"
    __table_args__ = (
        UniqueConstraint("tenant_key", "email", name="uq_user_tenant_email"),
    )

    organization_id: Mapped[UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("organizations.id", ondelete="SET NULL"),
        nullable=True,  # NULL for platform admins and independent schools
        index=True,
    )
    school_id: Mapped[UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("schools.id", ondelete="CASCADE"),
        nullable=True,  # NULL for platform and organization admins
        index=True,
    )
    # Kept in sync with organization_id/school_id by the listeners below
    tenant_key: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(50))
    role: Mapped[Role] = mapped_column(
        Enum(Role, native_enum=False, length=20, values_callable=_enum_values),
        nullable=False,
        index=True,
    )
    status: Mapped[UserStatus] = mapped_column(
        Enum(UserStatus, native_enum=False, length=20, values_callable=_enum_values),
        nullable=False,
        default=UserStatus.ACTIVE,
        server_default="active",
    )

    # Lockout
    failed_login_attempts: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default="0",
    )
    locked_until: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    last_login_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    # Relationships
    organization: Mapped["Organization | None"] = relationship(
        "Organization", back_populates="users"
    )
    school: Mapped["School | None"] = relationship("School", back_populates="users")

    @property
    def full_name(self) -> str:
        """Return the user's full name."""
        return f"{self.first_name} {self.last_name}"

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE

    @property
    def is_platform_admin(self) -> bool:
        return self.role == Role.PLATFORM_ADMIN

    def is_locked(self, now: datetime) -> bool:
        """Check if a lock is still in effect at ``now``."""
        locked_until = as_utc(self.locked_until)
        return locked_until is not None and locked_until > now

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"


@event.listens_for(User, "before_insert")
@event.listens_for(User, "before_update")
def _sync_tenant_key(mapper, connection, target: User) -> None:
    target.tenant_key = tenant_key_for(target.organization_id, target.school_id)
