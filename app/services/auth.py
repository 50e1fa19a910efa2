"""Authentication service."""

from datetime import datetime, timedelta

import structlog
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import utcnow
from app.core.exceptions import (
    AccountLocked,
    InactiveAccount,
    InvalidCredentials,
    ValidationFailed,
)
from app.core.permissions import permissions_for_role
from app.core.security import (
    create_access_token,
    generate_opaque_token,
    get_password_hash,
    hash_token,
    verify_password,
)
from app.models.auth_token import PasswordResetToken, RefreshToken
from app.models.organization import Organization
from app.models.school import School
from app.models.user import User
from app.schemas.auth import Token

logger = structlog.get_logger(__name__)


async def find_login_candidates(
    db: AsyncSession,
    email: str,
    *,
    school_code: str | None = None,
    organization_code: str | None = None,
) -> list[User]:
    """Accounts matching an email, narrowed by school or organization code."""
    query = select(User).where(User.email == email.lower())

    if school_code:
        query = query.join(School, User.school_id == School.id).where(School.code == school_code)
        if organization_code:
            query = query.join(Organization, School.organization_id == Organization.id).where(
                Organization.code == organization_code
            )
    elif organization_code:
        query = (
            query.join(Organization, User.organization_id == Organization.id)
            .where(Organization.code == organization_code)
            .where(User.school_id.is_(None))
        )

    # Row lock so concurrent attempts don't lose counter increments
    if db.bind is not None and db.bind.dialect.name != "sqlite":
        query = query.with_for_update(of=User)

    result = await db.execute(query)
    return list(result.scalars().all())


async def register_failed_attempt(db: AsyncSession, user: User, now: datetime) -> None:
    """Count a failed credential check, locking the account at the threshold."""
    user.failed_login_attempts += 1
    if user.failed_login_attempts >= settings.MAX_FAILED_LOGIN_ATTEMPTS:
        user.locked_until = now + timedelta(minutes=settings.ACCOUNT_LOCK_MINUTES)
        logger.warning(
            "account_locked",
            user_id=str(user.id),
            failed_attempts=user.failed_login_attempts,
            locked_until=user.locked_until.isoformat(),
        )
    else:
        logger.info(
            "login_failed",
            user_id=str(user.id),
            failed_attempts=user.failed_login_attempts,
        )
    await db.commit()


async def register_successful_login(db: AsyncSession, user: User, now: datetime) -> None:
    """Reset the failure counter and clear any lock."""
    user.failed_login_attempts = 0
    user.locked_until = None
    user.last_login_at = now
    await db.commit()
    await db.refresh(user)


async def authenticate_user(
    db: AsyncSession,
    email: str,
    password: str,
    *,
    school_code: str | None = None,
    organization_code: str | None = None,
    now: datetime | None = None,
) -> User:
    """
    Authenticate a user with email and password.

    - A lock in effect rejects every attempt, correct password included
    - Each wrong password increments the counter; reaching the threshold locks
      the account for ACCOUNT_LOCK_MINUTES
    - Success resets the counter and clears the lock
    """
    now = now or utcnow()

    candidates = await find_login_candidates(
        db,
        email,
        school_code=school_code,
        organization_code=organization_code,
    )
    if not candidates:
        raise InvalidCredentials()
    if len(candidates) > 1:
        raise ValidationFailed(
            "Several accounts use this email; specify school_code or organization_code"
        )

    user = candidates[0]

    if user.is_locked(now):
        logger.info("login_rejected_locked", user_id=str(user.id))
        raise AccountLocked()

    if user.locked_until is not None:
        # Lock window elapsed: start counting afresh
        user.failed_login_attempts = 0
        user.locked_until = None

    if not verify_password(password, user.password_hash):
        await register_failed_attempt(db, user, now)
        raise InvalidCredentials()

    if not user.is_active:
        raise InactiveAccount(f"Account is {user.status.value}")

    await register_successful_login(db, user, now)
    logger.info("login_succeeded", user_id=str(user.id), role=user.role.value)
    return user


async def issue_tokens(db: AsyncSession, user: User) -> Token:
    """
    Issue an access token and a stored refresh token.

    The access token embeds role, tenant ids and capabilities. The refresh
    token is opaque; only its hash is persisted so it can be revoked.
    """
    claims = {
        "sub": str(user.id),
        "email": user.email,
        "role": user.role.value,
        "organization_id": str(user.organization_id) if user.organization_id else None,
        "school_id": str(user.school_id) if user.school_id else None,
        "permissions": permissions_for_role(user.role),
    }
    refresh_token = generate_opaque_token()
    db.add(
        RefreshToken(
            user_id=user.id,
            token_hash=hash_token(refresh_token),
            expires_at=utcnow() + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
        )
    )
    await db.commit()

    return Token(
        access_token=create_access_token(data=claims),
        refresh_token=refresh_token,
        expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )


async def get_refresh_token(db: AsyncSession, token: str) -> RefreshToken | None:
    result = await db.execute(
        select(RefreshToken).where(RefreshToken.token_hash == hash_token(token))
    )
    return result.scalar_one_or_none()


async def rotate_refresh_token(
    db: AsyncSession, token: str, now: datetime | None = None
) -> User | None:
    """
    Consume a refresh token.

    Returns the owning user and revokes the token, or None when the token is
    unknown, revoked, expired or belongs to an inactive account.
    """
    now = now or utcnow()
    stored = await get_refresh_token(db, token)
    if stored is None or not stored.is_valid(now):
        return None

    user = await db.get(User, stored.user_id)
    if user is None or not user.is_active:
        return None

    stored.revoked_at = now
    stored.revoked_reason = "token_refresh"
    await db.commit()
    return user


async def revoke_user_tokens(
    db: AsyncSession, user: User, reason: str, now: datetime | None = None
) -> None:
    """Revoke every live refresh token of a user."""
    await db.execute(
        update(RefreshToken)
        .where(RefreshToken.user_id == user.id)
        .where(RefreshToken.revoked_at.is_(None))
        .values(revoked_at=now or utcnow(), revoked_reason=reason)
    )
    await db.commit()


async def logout(db: AsyncSession, user: User, refresh_token: str | None = None) -> None:
    """Revoke one refresh token of the user, or all of them when none is given."""
    if refresh_token is None:
        await revoke_user_tokens(db, user, "logout_all")
        logger.info("logout_all", user_id=str(user.id))
        return

    stored = await get_refresh_token(db, refresh_token)
    # Someone else's token is left alone
    if stored is None or stored.user_id != user.id:
        return
    if stored.revoked_at is None:
        stored.revoked_at = utcnow()
        stored.revoked_reason = "logout"
        await db.commit()
    logger.info("logout", user_id=str(user.id))


async def request_password_reset(
    db: AsyncSession,
    email: str,
    *,
    school_code: str | None = None,
    organization_code: str | None = None,
) -> str | None:
    """
    Create a reset token for the single active account matching the email.

    Returns the raw token, or None when no account (or more than one) matches.
    Callers must not reveal which case occurred.
    """
    candidates = await find_login_candidates(
        db,
        email,
        school_code=school_code,
        organization_code=organization_code,
    )
    active = [user for user in candidates if user.is_active]
    if len(active) != 1:
        logger.info("password_reset_not_issued", matches=len(active))
        return None

    user = active[0]
    token = generate_opaque_token()
    db.add(
        PasswordResetToken(
            user_id=user.id,
            token_hash=hash_token(token),
            expires_at=utcnow()
            + timedelta(minutes=settings.PASSWORD_RESET_TOKEN_EXPIRE_MINUTES),
        )
    )
    await db.commit()
    logger.info("password_reset_requested", user_id=str(user.id))
    return token


async def reset_password(
    db: AsyncSession, token: str, new_password: str, now: datetime | None = None
) -> User:
    """Set a new password from a reset token, ending every session of the user."""
    now = now or utcnow()
    result = await db.execute(
        select(PasswordResetToken).where(PasswordResetToken.token_hash == hash_token(token))
    )
    stored = result.scalar_one_or_none()
    if stored is None or not stored.is_valid(now):
        raise ValidationFailed("Invalid or expired reset token")

    user = await db.get(User, stored.user_id)
    if user is None or not user.is_active:
        raise ValidationFailed("Invalid or expired reset token")

    user.password_hash = get_password_hash(new_password)
    user.failed_login_attempts = 0
    user.locked_until = None
    stored.is_used = True
    stored.used_at = now
    await db.commit()

    await revoke_user_tokens(db, user, "password_reset", now)
    await db.refresh(user)
    logger.info("password_reset_completed", user_id=str(user.id))
    return user
