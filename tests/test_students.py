"""Tests for student endpoints."""

from datetime import date

import pytest
from httpx import AsyncClient

from app.core.permissions import Role
from app.models.student import Student
from tests.conftest import auth_header, login, make_user


def student_payload(admission_number: str = "ADM-001", **extra) -> dict:
    return {
        "admission_number": admission_number,
        "first_name": "Ali",
        "last_name": "Khan",
        "guardian_name": "Imran Khan",
        "guardian_phone": "+92 300 1234567",
        "enrolled_at": "2024-04-01",
        **extra,
    }


@pytest.fixture
async def student_b(db, school_b) -> Student:
    """Student of School B."""
    student = Student(
        school_id=school_b.id,
        admission_number="B-001",
        first_name="Sara",
        last_name="Ahmed",
        guardian_name="Ahmed",
        guardian_phone="+923001112233",
        enrolled_at=date(2024, 4, 1),
    )
    db.add(student)
    await db.commit()
    await db.refresh(student)
    return student


class TestCreateStudent:
    """Tests for student creation."""

    async def test_school_admin_creates_in_own_school(
        self, client: AsyncClient, school_admin_token, school_a
    ):
        response = await client.post(
            "/api/v1/students",
            headers=auth_header(school_admin_token),
            json=student_payload(),
        )
        assert response.status_code == 201
        data = response.json()
        assert data["school_id"] == str(school_a.id)
        assert data["guardian_phone"] == "+923001234567"
        assert data["is_active"] is True

    async def test_school_admin_other_school(
        self, client: AsyncClient, school_admin_token, school_b
    ):
        response = await client.post(
            "/api/v1/students",
            headers=auth_header(school_admin_token),
            json=student_payload(school_id=str(school_b.id)),
        )
        assert response.status_code == 403

    async def test_org_admin_requires_school(self, client: AsyncClient, org_admin_token):
        response = await client.post(
            "/api/v1/students",
            headers=auth_header(org_admin_token),
            json=student_payload(),
        )
        assert response.status_code == 400

    async def test_org_admin_in_own_school(
        self, client: AsyncClient, org_admin_token, school_a
    ):
        response = await client.post(
            "/api/v1/students",
            headers=auth_header(org_admin_token),
            json=student_payload(school_id=str(school_a.id)),
        )
        assert response.status_code == 201

    async def test_org_admin_in_other_organization(
        self, client: AsyncClient, org_admin_token, school_b
    ):
        response = await client.post(
            "/api/v1/students",
            headers=auth_header(org_admin_token),
            json=student_payload(school_id=str(school_b.id)),
        )
        assert response.status_code == 403
        assert response.json()["error_code"] == "CROSS_TENANT_VIOLATION"

    async def test_teacher_cannot_create(self, client: AsyncClient, teacher_token):
        response = await client.post(
            "/api/v1/students",
            headers=auth_header(teacher_token),
            json=student_payload(),
        )
        assert response.status_code == 403

    async def test_receptionist_can_create(self, client: AsyncClient, db, org1, school_a):
        await make_user(
            db, "front@example.com", Role.RECEPTIONIST, organization_id=org1.id, school_id=school_a.id
        )
        token = await login(client, "front@example.com")

        response = await client.post(
            "/api/v1/students", headers=auth_header(token), json=student_payload()
        )
        assert response.status_code == 201

    async def test_duplicate_admission_number(self, client: AsyncClient, school_admin_token):
        await client.post(
            "/api/v1/students",
            headers=auth_header(school_admin_token),
            json=student_payload(),
        )
        response = await client.post(
            "/api/v1/students",
            headers=auth_header(school_admin_token),
            json=student_payload(),
        )
        assert response.status_code == 409


class TestStudentIsolation:
    """Students never leak across tenants."""

    async def test_list_is_scoped(
        self, client: AsyncClient, school_admin_token, platform_token, student_b
    ):
        await client.post(
            "/api/v1/students",
            headers=auth_header(school_admin_token),
            json=student_payload(),
        )

        response = await client.get("/api/v1/students", headers=auth_header(school_admin_token))
        data = response.json()
        assert data["total"] == 1
        assert data["items"][0]["admission_number"] == "ADM-001"

        response = await client.get("/api/v1/students", headers=auth_header(platform_token))
        assert response.json()["total"] == 2

    async def test_org_admin_cannot_see_other_organization(
        self, client: AsyncClient, org_admin_token, student_b
    ):
        response = await client.get("/api/v1/students", headers=auth_header(org_admin_token))
        assert response.json()["total"] == 0

        response = await client.get(
            f"/api/v1/students/{student_b.id}", headers=auth_header(org_admin_token)
        )
        assert response.status_code == 404

    async def test_cannot_update_other_school_student(
        self, client: AsyncClient, school_admin_token, student_b
    ):
        response = await client.patch(
            f"/api/v1/students/{student_b.id}",
            headers=auth_header(school_admin_token),
            json={"first_name": "Changed"},
        )
        assert response.status_code == 404


class TestUpdateStudent:
    """Tests for student updates."""

    async def test_update_and_deactivate(self, client: AsyncClient, school_admin_token):
        response = await client.post(
            "/api/v1/students",
            headers=auth_header(school_admin_token),
            json=student_payload(),
        )
        student_id = response.json()["id"]

        response = await client.patch(
            f"/api/v1/students/{student_id}",
            headers=auth_header(school_admin_token),
            json={"graduated_at": "2030-03-31"},
        )
        assert response.status_code == 200
        assert response.json()["graduated_at"] == "2030-03-31"

        response = await client.get(
            "/api/v1/students",
            headers=auth_header(school_admin_token),
            params={"graduated": True},
        )
        assert response.json()["total"] == 1

        response = await client.delete(
            f"/api/v1/students/{student_id}", headers=auth_header(school_admin_token)
        )
        assert response.status_code == 204

        response = await client.get(
            f"/api/v1/students/{student_id}", headers=auth_header(school_admin_token)
        )
        assert response.json()["is_active"] is False

    async def test_null_fields(self, client: AsyncClient, school_admin_token):
        response = await client.post(
            "/api/v1/students",
            headers=auth_header(school_admin_token),
            json=student_payload(date_of_birth="2015-06-01"),
        )
        student_id = response.json()["id"]

        response = await client.patch(
            f"/api/v1/students/{student_id}",
            headers=auth_header(school_admin_token),
            json={"first_name": None, "guardian_phone": None, "date_of_birth": None},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["first_name"] == "Ali"
        assert data["guardian_phone"] == "+923001234567"
        assert data["date_of_birth"] is None
