"""User roles, creation hierarchy and capability lists."""

from enum import Enum


class Role(str, Enum):
    """User roles in the system."""

    PLATFORM_ADMIN = "platform_admin"  # Whole system, no tenant
    ORG_ADMIN = "org_admin"  # One organization (school chain) and its schools
    SCHOOL_ADMIN = "school_admin"  # One school
    PRINCIPAL = "principal"
    VICE_PRINCIPAL = "vice_principal"
    TEACHER = "teacher"
    ACCOUNTANT = "accountant"
    HR = "hr"
    LIBRARIAN = "librarian"
    RECEPTIONIST = "receptionist"
    PARENT = "parent"
    STUDENT = "student"


class UserStatus(str, Enum):
    """Account status."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    PENDING = "pending"
    SUSPENDED = "suspended"


# Roles bound to exactly one school (school_id required)
SCHOOL_ROLES = frozenset(
    {
        Role.SCHOOL_ADMIN,
        Role.PRINCIPAL,
        Role.VICE_PRINCIPAL,
        Role.TEACHER,
        Role.ACCOUNTANT,
        Role.HR,
        Role.LIBRARIAN,
        Role.RECEPTIONIST,
    }
)

_STAFF_ROLES = frozenset(
    {
        Role.PRINCIPAL,
        Role.VICE_PRINCIPAL,
        Role.TEACHER,
        Role.ACCOUNTANT,
        Role.HR,
        Role.LIBRARIAN,
        Role.RECEPTIONIST,
    }
)


# Which roles can create which other roles
ROLE_HIERARCHY: dict[Role, frozenset[Role]] = {
    Role.PLATFORM_ADMIN: frozenset({Role.ORG_ADMIN, Role.SCHOOL_ADMIN}) | _STAFF_ROLES,
    Role.ORG_ADMIN: frozenset({Role.ORG_ADMIN, Role.SCHOOL_ADMIN}) | _STAFF_ROLES,
    Role.SCHOOL_ADMIN: _STAFF_ROLES,
    Role.PRINCIPAL: frozenset(),
    Role.VICE_PRINCIPAL: frozenset(),
    Role.TEACHER: frozenset(),
    Role.ACCOUNTANT: frozenset(),
    Role.HR: frozenset(),
    Role.LIBRARIAN: frozenset(),
    Role.RECEPTIONIST: frozenset(),
    Role.PARENT: frozenset(),
    Role.STUDENT: frozenset(),
}


# Capability hints embedded in the access token. Advisory only: the server
# authorizes with roles and tenant scope, never with these strings.
ROLE_PERMISSIONS: dict[Role, tuple[str, ...]] = {
    Role.PLATFORM_ADMIN: (
        "read:*",
        "write:*",
        "delete:*",
        "manage:organizations",
        "manage:schools",
        "manage:users",
    ),
    Role.ORG_ADMIN: (
        "read:org-wide",
        "write:org-wide",
        "manage:schools",
        "manage:school-admins",
        "create:org-admins",
        "read:students",
        "read:staff",
        "read:reports",
    ),
    Role.SCHOOL_ADMIN: (
        "read:school",
        "write:school",
        "manage:staff",
        "manage:students",
        "manage:classes",
        "read:attendance",
        "write:attendance",
        "read:grades",
        "write:grades",
        "read:fees",
        "write:fees",
        "read:reports",
        "create:reports",
    ),
    Role.PRINCIPAL: (
        "read:school",
        "write:school",
        "read:students",
        "write:students",
        "read:attendance",
        "write:attendance",
        "read:grades",
        "write:grades",
        "publish:grades",
        "read:fees",
        "write:fees",
        "read:reports",
        "create:reports",
    ),
    Role.VICE_PRINCIPAL: (
        "read:school",
        "read:students",
        "write:students",
        "read:attendance",
        "write:attendance",
        "read:grades",
        "write:grades",
        "read:fees",
        "read:reports",
    ),
    Role.TEACHER: (
        "read:own-classes",
        "read:students:assigned",
        "write:attendance:assigned",
        "write:grades:own-subjects",
        "read:timetable",
        "send:messages",
    ),
    Role.ACCOUNTANT: (
        "read:school",
        "read:students",
        "read:fees",
        "write:fees",
        "manage:fees",
        "read:payments",
        "write:payments",
        "read:financial-reports",
        "create:financial-reports",
    ),
    Role.HR: (
        "read:staff",
        "write:staff",
        "create:staff",
        "read:leave-requests",
        "approve:leave-requests",
    ),
    Role.LIBRARIAN: (
        "read:students",
        "read:staff",
        "manage:library",
    ),
    Role.RECEPTIONIST: (
        "read:students",
        "create:students",
        "read:visitors",
        "write:visitors",
    ),
    Role.PARENT: (
        "read:own-children",
        "read:attendance:own-children",
        "read:grades:own-children",
        "read:fees:own-children",
        "pay:fees",
        "send:messages:teachers",
    ),
    Role.STUDENT: (
        "read:self",
        "read:attendance:self",
        "read:grades:self",
        "read:timetable:self",
        "send:messages:teachers",
    ),
}


# Used to decide who may manage (update/suspend) whom
ROLE_LEVELS: dict[Role, int] = {
    Role.PLATFORM_ADMIN: 100,
    Role.ORG_ADMIN: 90,
    Role.SCHOOL_ADMIN: 80,
    Role.PRINCIPAL: 70,
    Role.VICE_PRINCIPAL: 60,
    Role.HR: 50,
    Role.ACCOUNTANT: 50,
    Role.TEACHER: 40,
    Role.LIBRARIAN: 30,
    Role.RECEPTIONIST: 30,
    Role.PARENT: 10,
    Role.STUDENT: 10,
}


def permissions_for_role(role: Role) -> list[str]:
    """Capability list for a role."""
    return list(ROLE_PERMISSIONS.get(role, ()))


def creatable_roles(role: Role) -> frozenset[Role]:
    """Roles that the given role may create."""
    return ROLE_HIERARCHY.get(role, frozenset())


def can_create_role(creator_role: Role, target_role: Role) -> bool:
    """Check if a role can create another role."""
    return target_role in creatable_roles(creator_role)


def get_role_level(role: Role) -> int:
    """Get numeric level for role comparison."""
    return ROLE_LEVELS.get(role, 0)


def can_manage_schools(role: Role) -> bool:
    """Check if role can create/deactivate schools."""
    return role in (Role.PLATFORM_ADMIN, Role.ORG_ADMIN)
