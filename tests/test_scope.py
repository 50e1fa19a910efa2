"""Tests for tenant scope resolution."""

from dataclasses import dataclass
from uuid import UUID, uuid4

import pytest

from app.core.exceptions import ScopeError
from app.core.permissions import Role
from app.core.scope import ScopeKind, TenantScope, resolve_scope


@dataclass
class FakePrincipal:
    role: Role
    organization_id: UUID | None = None
    school_id: UUID | None = None


class TestResolveScope:
    """Tests for resolve_scope."""

    def test_platform_admin_is_global(self):
        scope = resolve_scope(FakePrincipal(Role.PLATFORM_ADMIN))
        assert scope.kind == ScopeKind.GLOBAL
        assert scope.is_global

    def test_platform_admin_ignores_tenant_ids(self):
        scope = resolve_scope(
            FakePrincipal(Role.PLATFORM_ADMIN, organization_id=uuid4(), school_id=uuid4())
        )
        assert scope == TenantScope.global_()

    def test_org_admin_gets_organization(self):
        org_id = uuid4()
        scope = resolve_scope(FakePrincipal(Role.ORG_ADMIN, organization_id=org_id))
        assert scope == TenantScope.organization(org_id)

    def test_org_admin_without_organization(self):
        with pytest.raises(ScopeError) as exc_info:
            resolve_scope(FakePrincipal(Role.ORG_ADMIN))
        assert exc_info.value.status_code == 403

    @pytest.mark.parametrize(
        "role",
        [Role.SCHOOL_ADMIN, Role.TEACHER, Role.ACCOUNTANT, Role.PARENT, Role.STUDENT],
    )
    def test_school_roles_get_school(self, role):
        school_id = uuid4()
        scope = resolve_scope(
            FakePrincipal(role, organization_id=uuid4(), school_id=school_id)
        )
        assert scope == TenantScope.school(school_id)

    @pytest.mark.parametrize("role", [Role.SCHOOL_ADMIN, Role.TEACHER, Role.PARENT])
    def test_school_roles_without_school(self, role):
        with pytest.raises(ScopeError):
            resolve_scope(FakePrincipal(role, organization_id=uuid4()))

    def test_is_deterministic(self):
        principal = FakePrincipal(Role.TEACHER, school_id=uuid4())
        assert resolve_scope(principal) == resolve_scope(principal)


class TestScopeCovers:
    """Tests for TenantScope.covers."""

    def test_global_covers_everything(self):
        assert TenantScope.global_().covers(organization_id=uuid4(), school_id=uuid4())
        assert TenantScope.global_().covers()

    def test_organization_covers_its_schools(self):
        org_id = uuid4()
        scope = TenantScope.organization(org_id)
        assert scope.covers(organization_id=org_id, school_id=uuid4())
        assert not scope.covers(organization_id=uuid4(), school_id=uuid4())

    def test_organization_does_not_cover_independent_school(self):
        scope = TenantScope.organization(uuid4())
        assert not scope.covers(organization_id=None, school_id=uuid4())

    def test_school_covers_only_itself(self):
        school_id = uuid4()
        scope = TenantScope.school(school_id)
        assert scope.covers(school_id=school_id)
        assert not scope.covers(school_id=uuid4())

    def test_str(self):
        school_id = uuid4()
        assert str(TenantScope.global_()) == "GLOBAL"
        assert str(TenantScope.school(school_id)) == f"SCHOOL({school_id})"
