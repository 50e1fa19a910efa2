"""Tenant scope resolution.

Every authenticated request is reduced to one effective scope:

- ``GLOBAL``: no tenant filter (platform admin only)
- ``ORGANIZATION(id)``: the organization and every school it owns
- ``SCHOOL(id)``: a single school

Domain services receive the scope as an explicit argument and apply it to
every query they run.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Protocol
from uuid import UUID

from sqlalchemy import ColumnElement, select

from app.core.exceptions import ScopeError
from app.core.permissions import Role
from app.models.school import School


class Principal(Protocol):
    """Anything carrying a role and tenant identifiers (usually a User)."""

    role: Role
    organization_id: UUID | None
    school_id: UUID | None


class ScopeKind(str, Enum):
    GLOBAL = "global"
    ORGANIZATION = "organization"
    SCHOOL = "school"


@dataclass(frozen=True)
class TenantScope:
    """Resolved tenant boundary for a request."""

    kind: ScopeKind
    tenant_id: UUID | None = None

    @classmethod
    def global_(cls) -> "TenantScope":
        return cls(ScopeKind.GLOBAL)

    @classmethod
    def organization(cls, organization_id: UUID) -> "TenantScope":
        return cls(ScopeKind.ORGANIZATION, organization_id)

    @classmethod
    def school(cls, school_id: UUID) -> "TenantScope":
        return cls(ScopeKind.SCHOOL, school_id)

    @property
    def is_global(self) -> bool:
        return self.kind == ScopeKind.GLOBAL

    def covers(
        self,
        *,
        organization_id: UUID | None = None,
        school_id: UUID | None = None,
    ) -> bool:
        """Whether a record owned by the given organization/school is inside this scope.

        For school-owned records pass both ids (the school's organization may be None).
        """
        if self.kind == ScopeKind.GLOBAL:
            return True
        if self.kind == ScopeKind.ORGANIZATION:
            return organization_id is not None and organization_id == self.tenant_id
        return school_id is not None and school_id == self.tenant_id

    def covers_school(self, school: School) -> bool:
        return self.covers(organization_id=school.organization_id, school_id=school.id)

    def __str__(self) -> str:
        if self.kind == ScopeKind.GLOBAL:
            return "GLOBAL"
        return f"{self.kind.name}({self.tenant_id})"


def resolve_scope(principal: Principal) -> TenantScope:
    """Compute the effective tenant scope for a principal.

    Raises ScopeError when an organization admin has no organization or a
    school-level role has no school.
    """
    if principal.role == Role.PLATFORM_ADMIN:
        return TenantScope.global_()

    if principal.role == Role.ORG_ADMIN:
        if principal.organization_id is None:
            raise ScopeError("Org Admin must be associated with an organization")
        return TenantScope.organization(principal.organization_id)

    if principal.school_id is None:
        raise ScopeError("User is not associated with any school")
    return TenantScope.school(principal.school_id)


def school_filter(scope: TenantScope, school_id_column) -> ColumnElement[bool] | None:
    """WHERE clause restricting a school_id column to the scope, None for GLOBAL."""
    if scope.kind == ScopeKind.GLOBAL:
        return None
    if scope.kind == ScopeKind.SCHOOL:
        return school_id_column == scope.tenant_id
    org_schools = select(School.id).where(School.organization_id == scope.tenant_id)
    return school_id_column.in_(org_schools)


def apply_school_scope(query, scope: TenantScope, school_id_column):
    """Add the scope's school filter to a select()."""
    clause = school_filter(scope, school_id_column)
    if clause is None:
        return query
    return query.where(clause)
