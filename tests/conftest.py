"""Test configuration and fixtures."""

import os
import tempfile
from collections.abc import AsyncGenerator
from pathlib import Path

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from app.core.database import Base, get_db
from app.core.permissions import Role
from app.core.security import get_password_hash
from app.models.organization import Organization
from app.models.school import School
from app.models.user import User
from main import app

# Test database URL - a throwaway SQLite file unless TEST_DATABASE_URL points elsewhere
TEST_DATABASE_URL = os.environ.get(
    "TEST_DATABASE_URL",
    f"sqlite+aiosqlite:///{Path(tempfile.gettempdir()) / 'school_management_test.db'}",
)

PASSWORD = "password123"

# Create test engine with NullPool to avoid connection issues
test_engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    poolclass=NullPool,
)
test_session_maker = async_sessionmaker(
    test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
    """Override database dependency for tests."""
    async with test_session_maker() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def setup_database() -> AsyncGenerator[None, None]:
    """Create test database tables before each test that needs it."""
    app.dependency_overrides[get_db] = override_get_db

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    app.dependency_overrides.pop(get_db, None)


@pytest_asyncio.fixture
async def db(setup_database: None) -> AsyncGenerator[AsyncSession, None]:
    """Get database session for tests."""
    async with test_session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def client(setup_database: None) -> AsyncGenerator[AsyncClient, None]:
    """Get async HTTP client."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


async def make_user(
    db: AsyncSession,
    email: str,
    role: Role,
    *,
    organization_id=None,
    school_id=None,
    first_name: str = "Test",
    last_name: str = "User",
) -> User:
    """Insert an account directly, bypassing the provisioning rules."""
    user = User(
        email=email,
        password_hash=get_password_hash(PASSWORD),
        first_name=first_name,
        last_name=last_name,
        role=role,
        organization_id=organization_id,
        school_id=school_id,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


@pytest_asyncio.fixture
async def org1(db: AsyncSession) -> Organization:
    """Organization ORG1."""
    organization = Organization(name="Beaconhouse", code="ORG1")
    db.add(organization)
    await db.commit()
    await db.refresh(organization)
    return organization


@pytest_asyncio.fixture
async def org2(db: AsyncSession) -> Organization:
    """Organization ORG2."""
    organization = Organization(name="City School", code="ORG2")
    db.add(organization)
    await db.commit()
    await db.refresh(organization)
    return organization


@pytest_asyncio.fixture
async def school_a(db: AsyncSession, org1: Organization) -> School:
    """School A, part of ORG1."""
    school = School(organization_id=org1.id, name="School A", code="SCH-A", settings={})
    db.add(school)
    await db.commit()
    await db.refresh(school)
    return school


@pytest_asyncio.fixture
async def school_b(db: AsyncSession, org2: Organization) -> School:
    """School B, part of ORG2."""
    school = School(organization_id=org2.id, name="School B", code="SCH-B", settings={})
    db.add(school)
    await db.commit()
    await db.refresh(school)
    return school


@pytest_asyncio.fixture
async def platform_admin(db: AsyncSession) -> User:
    """Platform admin, no tenant."""
    return await make_user(db, "admin@example.com", Role.PLATFORM_ADMIN, first_name="Platform")


@pytest_asyncio.fixture
async def org_admin(db: AsyncSession, org1: Organization) -> User:
    """Org admin of ORG1."""
    return await make_user(
        db, "orgadmin@example.com", Role.ORG_ADMIN, organization_id=org1.id
    )


@pytest_asyncio.fixture
async def school_admin(db: AsyncSession, org1: Organization, school_a: School) -> User:
    """School admin of School A."""
    return await make_user(
        db,
        "schooladmin@example.com",
        Role.SCHOOL_ADMIN,
        organization_id=org1.id,
        school_id=school_a.id,
    )


@pytest_asyncio.fixture
async def teacher(db: AsyncSession, org1: Organization, school_a: School) -> User:
    """Teacher of School A."""
    return await make_user(
        db,
        "teacher@example.com",
        Role.TEACHER,
        organization_id=org1.id,
        school_id=school_a.id,
    )


async def login(client: AsyncClient, email: str, password: str = PASSWORD, **codes) -> str:
    """Log in and return the access token."""
    response = await client.post(
        "/api/v1/auth/login",
        json={"email": email, "password": password, **codes},
    )
    assert response.status_code == 200, response.text
    return response.json()["access_token"]


@pytest_asyncio.fixture
async def platform_token(client: AsyncClient, platform_admin: User) -> str:
    return await login(client, platform_admin.email)


@pytest_asyncio.fixture
async def org_admin_token(client: AsyncClient, org_admin: User) -> str:
    return await login(client, org_admin.email)


@pytest_asyncio.fixture
async def school_admin_token(client: AsyncClient, school_admin: User) -> str:
    return await login(client, school_admin.email)


@pytest_asyncio.fixture
async def teacher_token(client: AsyncClient, teacher: User) -> str:
    return await login(client, teacher.email)


def auth_header(token: str) -> dict[str, str]:
    """Create authorization header."""
    return {"Authorization": f"Bearer {token}"}
