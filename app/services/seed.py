"""Bootstrap of the first platform admin."""

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.permissions import Role, UserStatus
from app.core.security import get_password_hash
from app.models.user import User

logger = structlog.get_logger(__name__)


async def get_platform_admin(db: AsyncSession) -> User | None:
    result = await db.execute(select(User).where(User.role == Role.PLATFORM_ADMIN).limit(1))
    return result.scalar_one_or_none()


async def ensure_platform_admin(
    db: AsyncSession,
    *,
    email: str,
    password: str,
    first_name: str = "Platform",
    last_name: str = "Admin",
) -> tuple[User, bool]:
    """
    Create the first platform admin if none exists.

    Returns (user, created). The only account that is not created by a
    higher-ranked account.
    """
    existing = await get_platform_admin(db)
    if existing:
        return existing, False

    admin = User(
        email=email.strip().lower(),
        password_hash=get_password_hash(password),
        first_name=first_name,
        last_name=last_name,
        role=Role.PLATFORM_ADMIN,
        status=UserStatus.ACTIVE,
        organization_id=None,
        school_id=None,
    )
    db.add(admin)
    await db.commit()
    await db.refresh(admin)

    logger.info("platform_admin_seeded", user_id=str(admin.id))
    return admin, True
