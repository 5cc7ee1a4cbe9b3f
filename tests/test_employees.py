"""Tests for employee CRUD, state transitions and duplicate checks."""

from datetime import date

import pytest
from httpx import AsyncClient
from sqlalchemy import select

from pontaj.models.user import User


async def _create(async_client: AsyncClient, **fields) -> dict:
    payload = {"name": "Bob Jones", "email": "bob@example.com", "department": "Engineering"}
    payload.update(fields)
    resp = await async_client.post("/api/v1/employees", json=payload)
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


@pytest.mark.asyncio
async def test_create_employee(async_client: AsyncClient):
    """POST /employees should create an active employee."""
    resp = await async_client.post("/api/v1/employees", json={
        "name": "  Bob Jones ",
        "email": "Bob@Example.com",
        "department": "Engineering",
        "position": "Developer",
    })
    assert resp.status_code == 201
    body = resp.json()
    assert body["success"] is True
    data = body["data"]
    assert data["name"] == "Bob Jones"
    assert data["email"] == "bob@example.com"
    assert data["is_active"] is True
    assert data["leave_date"] is None
    assert data["join_date"] == date.today().isoformat()
    assert data["generated_password"] is None
    assert data["user_id"] is None


@pytest.mark.asyncio
async def test_create_employee_with_generated_account(async_client: AsyncClient, db_session):
    """Asking for an account without a password generates one."""
    data = await _create(async_client, email="acct@example.com", create_user_account=True)
    assert data["user_id"] is not None
    assert len(data["generated_password"]) >= 12

    result = await db_session.execute(select(User).where(User.email == "acct@example.com"))
    user = result.scalar_one()
    assert user.role == "employee"
    assert user.id == data["user_id"]


@pytest.mark.asyncio
async def test_create_employee_weak_password_rejected(async_client: AsyncClient):
    resp = await async_client.post("/api/v1/employees", json={
        "name": "Weak", "email": "weak@example.com",
        "create_user_account": True, "password": "abc",
    })
    assert resp.status_code == 400
    body = resp.json()
    assert body["success"] is False
    assert "too weak" in body["error"]


@pytest.mark.asyncio
async def test_create_duplicate_email_rejected(async_client: AsyncClient):
    """Two employees cannot share an email (case-insensitive)."""
    await _create(async_client, email="dup@example.com")
    resp = await async_client.post(
        "/api/v1/employees", json={"name": "Other", "email": "DUP@example.com"}
    )
    assert resp.status_code == 409
    assert "already exists" in resp.json()["error"]


@pytest.mark.asyncio
async def test_create_employee_invalid_payload(async_client: AsyncClient):
    resp = await async_client.post("/api/v1/employees", json={"name": " ", "email": "x@example.com"})
    assert resp.status_code == 422
    assert resp.json()["success"] is False


@pytest.mark.asyncio
async def test_list_and_search_employees(async_client: AsyncClient):
    await _create(async_client, name="Alice", email="alice@example.com", department="Sales")
    await _create(async_client, name="Bogdan", email="bogdan@example.com", department="IT")

    resp = await async_client.get("/api/v1/employees")
    assert resp.status_code == 200
    assert len(resp.json()["data"]) == 2

    resp = await async_client.get("/api/v1/employees", params={"search": "sal"})
    names = [e["name"] for e in resp.json()["data"]]
    assert names == ["Alice"]


@pytest.mark.asyncio
async def test_list_for_dropdown_hides_inactive(async_client: AsyncClient):
    active = await _create(async_client, name="Zed", email="zed@example.com")
    gone = await _create(async_client, name="Amy", email="amy@example.com")
    await async_client.delete(f"/api/v1/employees/{gone['id']}")

    resp = await async_client.get("/api/v1/employees", params={"for_dropdown": True, "include_inactive": False})
    data = resp.json()["data"]
    assert [e["id"] for e in data] == [active["id"]]
    # slim rows only
    assert "position" not in data[0]


@pytest.mark.asyncio
async def test_get_employee_not_found(async_client: AsyncClient):
    """Requesting a non-existent employee should return 404."""
    resp = await async_client.get("/api/v1/employees/9999")
    assert resp.status_code == 404
    assert resp.json() == {"success": False, "error": "Employee 9999 not found"}


@pytest.mark.asyncio
async def test_update_employee(async_client: AsyncClient):
    """PUT /employees/{id} without action updates the details."""
    emp = await _create(async_client, name="Old Name")
    resp = await async_client.put(
        f"/api/v1/employees/{emp['id']}", json={"name": "New Name", "department": "Sales"}
    )
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["name"] == "New Name"
    assert data["department"] == "Sales"


@pytest.mark.asyncio
async def test_update_to_taken_email_conflicts(async_client: AsyncClient):
    await _create(async_client, email="taken@example.com")
    emp = await _create(async_client, email="free@example.com")
    resp = await async_client.put(f"/api/v1/employees/{emp['id']}", json={"email": "taken@example.com"})
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_deactivate_and_activate(async_client: AsyncClient):
    """Inactive employees always carry a leave date; reactivation clears it."""
    emp = await _create(async_client)
    url = f"/api/v1/employees/{emp['id']}"

    resp = await async_client.put(url, params={"action": "deactivate"}, json={"leave_date": "2024-03-15"})
    data = resp.json()["data"]
    assert data["is_active"] is False
    assert data["leave_date"] == "2024-03-15"

    resp = await async_client.put(url, params={"action": "activate"})
    data = resp.json()["data"]
    assert data["is_active"] is True
    assert data["leave_date"] is None

    # plain update to inactive stamps today's date
    resp = await async_client.put(url, json={"is_active": False})
    data = resp.json()["data"]
    assert data["is_active"] is False
    assert data["leave_date"] == date.today().isoformat()


@pytest.mark.asyncio
async def test_deactivating_replaces_stale_leave_date(async_client: AsyncClient):
    emp = await _create(async_client)
    url = f"/api/v1/employees/{emp['id']}"

    resp = await async_client.put(url, json={"leave_date": "2020-01-01"})
    assert resp.json()["data"]["is_active"] is True

    resp = await async_client.put(url, json={"is_active": False})
    data = resp.json()["data"]
    assert data["is_active"] is False
    assert data["leave_date"] == date.today().isoformat()

    # an explicit date in the deactivating update wins
    await async_client.put(url, params={"action": "activate"})
    resp = await async_client.put(url, json={"is_active": False, "leave_date": "2024-03-15"})
    assert resp.json()["data"]["leave_date"] == "2024-03-15"


@pytest.mark.asyncio
async def test_delete_is_soft(async_client: AsyncClient):
    emp = await _create(async_client)
    resp = await async_client.delete(f"/api/v1/employees/{emp['id']}")
    assert resp.status_code == 200
    resp = await async_client.get(f"/api/v1/employees/{emp['id']}")
    assert resp.status_code == 200
    assert resp.json()["data"]["is_active"] is False


@pytest.mark.asyncio
async def test_toggle_test_eligibility(async_client: AsyncClient):
    emp = await _create(async_client)
    url = f"/api/v1/employees/{emp['id']}"
    resp = await async_client.put(url, params={"action": "toggle_test_eligibility"})
    assert resp.json()["data"]["test_eligible"] is True
    resp = await async_client.put(url, params={"action": "toggle_test_eligibility"})
    assert resp.json()["data"]["test_eligible"] is False
    resp = await async_client.put(url, params={"action": "toggle_test_eligibility"}, json={"test_eligible": False})
    assert resp.json()["data"]["test_eligible"] is False


@pytest.mark.asyncio
async def test_departments_and_stats(async_client: AsyncClient):
    await _create(async_client, name="A", email="a@example.com", department="Sales")
    b = await _create(async_client, name="B", email="b@example.com", department="Sales")
    await _create(async_client, name="C", email="c@example.com", department="IT")
    await async_client.delete(f"/api/v1/employees/{b['id']}")

    resp = await async_client.get("/api/v1/employees/departments")
    assert resp.json()["data"] == ["IT", "Sales"]

    resp = await async_client.get("/api/v1/employees/stats")
    stats = {s["department"]: s for s in resp.json()["data"]}
    assert stats["Sales"] == {"department": "Sales", "count": 2, "active_count": 1}
    assert stats["IT"]["active_count"] == 1


@pytest.mark.asyncio
async def test_check_duplicates(async_client: AsyncClient):
    emp = await _create(async_client, name="Maria Ionescu", email="maria@example.com", phone="+40 721-000-111")

    resp = await async_client.post(
        "/api/v1/validation/check-duplicates", json={"field": "phone", "value": "40721000111"}
    )
    data = resp.json()["data"]
    assert data["is_duplicate"] is True
    assert data["matches"][0]["id"] == emp["id"]

    resp = await async_client.post(
        "/api/v1/validation/check-duplicates",
        json={"field": "email", "value": "MARIA@example.com", "exclude_id": emp["id"]},
    )
    assert resp.json()["data"]["is_duplicate"] is False

    resp = await async_client.post(
        "/api/v1/validation/check-duplicates", json={"field": "name", "value": "ionescu"}
    )
    assert resp.json()["data"]["is_duplicate"] is True
