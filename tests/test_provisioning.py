"""Tests for hierarchical, tenant-bound account provisioning."""

from uuid import uuid4

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    CrossTenantViolation,
    DuplicateAccount,
    ForbiddenRoleCreation,
    NotFoundError,
    ValidationFailed,
)
from app.core.permissions import Role
from app.models.user import User
from app.schemas.user import UserCreate
from app.services import user as user_service
from tests.conftest import make_user


def new_user(role: Role, email: str = "new@example.com", **kwargs) -> UserCreate:
    return UserCreate(
        email=email,
        password="password123",
        first_name="New",
        last_name="User",
        role=role,
        **kwargs,
    )


async def count_users(db: AsyncSession) -> int:
    result = await db.execute(select(func.count()).select_from(User))
    return result.scalar_one()


class TestPlatformAdminProvisioning:
    """Accounts created from the global scope."""

    async def test_create_org_admin(self, db, platform_admin, org1):
        user = await user_service.create_user(
            db, platform_admin, new_user(Role.ORG_ADMIN, organization_id=org1.id)
        )

        assert user.role == Role.ORG_ADMIN
        assert user.organization_id == org1.id
        assert user.school_id is None

    async def test_org_admin_requires_organization(self, db, platform_admin):
        before = await count_users(db)

        with pytest.raises(ValidationFailed):
            await user_service.create_user(db, platform_admin, new_user(Role.ORG_ADMIN))

        assert await count_users(db) == before

    async def test_org_admin_unknown_organization(self, db, platform_admin, org1):
        with pytest.raises(NotFoundError):
            await user_service.create_user(
                db, platform_admin, new_user(Role.ORG_ADMIN, organization_id=uuid4())
            )

    async def test_school_admin_takes_school_organization(
        self, db, platform_admin, school_a, org1
    ):
        user = await user_service.create_user(
            db, platform_admin, new_user(Role.SCHOOL_ADMIN, school_id=school_a.id)
        )

        assert user.school_id == school_a.id
        assert user.organization_id == org1.id

    async def test_school_not_in_given_organization(
        self, db, platform_admin, school_b, org1
    ):
        with pytest.raises(CrossTenantViolation):
            await user_service.create_user(
                db,
                platform_admin,
                new_user(Role.SCHOOL_ADMIN, school_id=school_b.id, organization_id=org1.id),
            )

    async def test_school_role_requires_school(self, db, platform_admin, org1):
        with pytest.raises(ValidationFailed):
            await user_service.create_user(
                db, platform_admin, new_user(Role.TEACHER, organization_id=org1.id)
            )

    async def test_org_admin_cannot_carry_school(self, db, platform_admin, org1, school_a):
        with pytest.raises(ValidationFailed):
            await user_service.create_user(
                db,
                platform_admin,
                new_user(Role.ORG_ADMIN, organization_id=org1.id, school_id=school_a.id),
            )

    async def test_cannot_create_platform_admin(self, db, platform_admin):
        with pytest.raises(ForbiddenRoleCreation):
            await user_service.create_user(db, platform_admin, new_user(Role.PLATFORM_ADMIN))


class TestOrgAdminProvisioning:
    """Accounts created from an organization scope."""

    async def test_create_school_admin_in_own_school(self, db, org_admin, school_a, org1):
        user = await user_service.create_user(
            db, org_admin, new_user(Role.SCHOOL_ADMIN, school_id=school_a.id)
        )

        assert user.school_id == school_a.id
        assert user.organization_id == org1.id

    async def test_school_in_other_organization(self, db, org_admin, school_b):
        before = await count_users(db)

        with pytest.raises(CrossTenantViolation):
            await user_service.create_user(
                db, org_admin, new_user(Role.SCHOOL_ADMIN, school_id=school_b.id)
            )

        assert await count_users(db) == before

    async def test_create_peer_org_admin_forces_organization(self, db, org_admin, org1, org2):
        user = await user_service.create_user(
            db, org_admin, new_user(Role.ORG_ADMIN, organization_id=org2.id)
        )

        assert user.organization_id == org1.id
        assert user.school_id is None

    async def test_cannot_create_platform_admin(self, db, org_admin):
        with pytest.raises(ForbiddenRoleCreation):
            await user_service.create_user(db, org_admin, new_user(Role.PLATFORM_ADMIN))


class TestSchoolAdminProvisioning:
    """Accounts created from a school scope."""

    async def test_teacher_gets_forced_school(self, db, school_admin, school_a, org1):
        user = await user_service.create_user(db, school_admin, new_user(Role.TEACHER))

        assert user.school_id == school_a.id
        assert user.organization_id == org1.id

    async def test_conflicting_school_rejected(self, db, school_admin, school_b):
        before = await count_users(db)

        with pytest.raises(CrossTenantViolation):
            await user_service.create_user(
                db, school_admin, new_user(Role.TEACHER, school_id=school_b.id)
            )

        assert await count_users(db) == before

    async def test_organization_input_ignored(self, db, school_admin, org1, org2):
        user = await user_service.create_user(
            db, school_admin, new_user(Role.ACCOUNTANT, organization_id=org2.id)
        )

        assert user.organization_id == org1.id

    @pytest.mark.parametrize("role", [Role.SCHOOL_ADMIN, Role.ORG_ADMIN, Role.PLATFORM_ADMIN])
    async def test_cannot_create_admins(self, db, school_admin, role):
        with pytest.raises(ForbiddenRoleCreation):
            await user_service.create_user(db, school_admin, new_user(role))


class TestForbiddenRoleCreation:
    """Roles with an empty creatable set."""

    @pytest.mark.parametrize("role", list(Role))
    async def test_teacher_cannot_create_anything(self, db, teacher, role):
        before = await count_users(db)

        with pytest.raises(ForbiddenRoleCreation):
            await user_service.create_user(db, teacher, new_user(role))

        assert await count_users(db) == before

    async def test_role_checked_before_tenant(self, db, teacher, school_b):
        with pytest.raises(ForbiddenRoleCreation):
            await user_service.create_user(
                db, teacher, new_user(Role.TEACHER, school_id=school_b.id)
            )

    async def test_error_message(self, db, teacher):
        with pytest.raises(ForbiddenRoleCreation) as exc_info:
            await user_service.create_user(db, teacher, new_user(Role.HR))
        assert exc_info.value.message == "teacher cannot create hr users"


class TestEmailUniqueness:
    """One account per email inside a tenant."""

    async def test_duplicate_in_same_school(self, db, school_admin, teacher):
        with pytest.raises(DuplicateAccount):
            await user_service.create_user(
                db, school_admin, new_user(Role.LIBRARIAN, email=teacher.email)
            )

    async def test_duplicate_is_case_insensitive(self, db, school_admin):
        await user_service.create_user(
            db, school_admin, new_user(Role.TEACHER, email="Same@Example.com")
        )

        with pytest.raises(DuplicateAccount):
            await user_service.create_user(
                db, school_admin, new_user(Role.HR, email="same@example.com")
            )

    async def test_same_email_in_two_schools(self, db, platform_admin, school_a, school_b):
        first = await user_service.create_user(
            db, platform_admin, new_user(Role.TEACHER, school_id=school_a.id)
        )
        second = await user_service.create_user(
            db, platform_admin, new_user(Role.TEACHER, school_id=school_b.id)
        )

        assert first.email == second.email
        assert first.id != second.id

    async def test_constraint_rejects_direct_duplicate(self, db, school_a, org1):
        school_id, org_id = school_a.id, org1.id
        await make_user(db, "dup@example.com", Role.TEACHER, organization_id=org_id, school_id=school_id)

        with pytest.raises(IntegrityError):
            await make_user(
                db, "dup@example.com", Role.HR, organization_id=org_id, school_id=school_id
            )
        await db.rollback()

    async def test_lost_race_reports_duplicate(self, db, school_admin, teacher, monkeypatch):
        """A duplicate that slips past the lookup is caught by the constraint."""
        email = teacher.email

        async def no_match(*args, **kwargs):
            return None

        monkeypatch.setattr(user_service, "get_user_by_email", no_match)

        with pytest.raises(DuplicateAccount):
            await user_service.create_user(db, school_admin, new_user(Role.HR, email=email))

        result = await db.execute(select(func.count()).select_from(User).where(User.email == email))
        assert result.scalar_one() == 1


class TestManageUser:
    """Tests for can_manage_user."""

    async def test_higher_level_manages_lower(self, school_admin, teacher):
        assert user_service.can_manage_user(school_admin, teacher)
        assert not user_service.can_manage_user(teacher, school_admin)

    async def test_cannot_manage_self(self, school_admin):
        assert not user_service.can_manage_user(school_admin, school_admin)

    async def test_rank_alone_is_not_enough(self, db, teacher, org1, school_a):
        librarian = await make_user(
            db,
            "librarian@example.com",
            Role.LIBRARIAN,
            organization_id=org1.id,
            school_id=school_a.id,
        )
        assert not user_service.can_manage_user(teacher, librarian)

    async def test_platform_admin_manages_org_admin(self, platform_admin, org_admin):
        assert user_service.can_manage_user(platform_admin, org_admin)

    async def test_org_admin_cannot_manage_peer(self, db, org_admin, org1):
        peer = await make_user(db, "peer@example.com", Role.ORG_ADMIN, organization_id=org1.id)
        assert not user_service.can_manage_user(org_admin, peer)
