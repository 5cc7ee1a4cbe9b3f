"""Tests for leave requests: validation, lifecycle, balances and self-service."""

import pytest
from httpx import AsyncClient

URL = "/api/v1/leave-requests"


async def _file(async_client: AsyncClient, employee_id: int, start: str, end: str, **extra):
    payload = {
        "employee_id": employee_id,
        "start_date": start,
        "end_date": end,
        "leave_type": "vacation",
        "reason": "Holiday",
    }
    payload.update(extra)
    return await async_client.post(URL, json=payload)


@pytest.mark.asyncio
async def test_create_counts_work_days(async_client: AsyncClient, make_employee):
    emp = await make_employee(name="Ana", department="Sales")
    # Fri 2024-06-07 .. Tue 2024-06-11 spans a weekend
    resp = await _file(async_client, emp.id, "2024-06-07", "2024-06-11")
    assert resp.status_code == 201, resp.text
    data = resp.json()["data"]
    request = data["request"]
    assert request["days"] == 3
    assert request["status"] == "pending"
    assert request["approved_by"] is None
    assert isinstance(data["warnings"], list)


@pytest.mark.asyncio
async def test_invalid_ranges_rejected(async_client: AsyncClient, make_employee):
    emp = await make_employee()
    resp = await _file(async_client, emp.id, "2024-06-10", "2024-06-07")
    assert resp.status_code == 400
    assert "End date" in resp.json()["error"]

    # Saturday + Sunday only
    resp = await _file(async_client, emp.id, "2024-06-08", "2024-06-09")
    assert resp.status_code == 400
    assert "no work days" in resp.json()["error"]


@pytest.mark.asyncio
async def test_unknown_employee(async_client: AsyncClient):
    resp = await _file(async_client, 999, "2024-06-03", "2024-06-04")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_overlap_with_open_request_conflicts(async_client: AsyncClient, make_employee):
    emp = await make_employee()
    first = await _file(async_client, emp.id, "2024-06-03", "2024-06-07")
    resp = await _file(async_client, emp.id, "2024-06-07", "2024-06-12")
    assert resp.status_code == 409
    assert resp.json()["success"] is False
    assert "Overlaps" in resp.json()["error"]

    # a rejected request no longer blocks the dates
    request_id = first.json()["data"]["request"]["id"]
    await async_client.put(f"{URL}/{request_id}", params={"action": "reject"})
    resp = await _file(async_client, emp.id, "2024-06-07", "2024-06-12")
    assert resp.status_code == 201


@pytest.mark.asyncio
async def test_other_employees_do_not_overlap(async_client: AsyncClient, make_employee):
    a = await make_employee()
    b = await make_employee()
    assert (await _file(async_client, a.id, "2024-06-03", "2024-06-07")).status_code == 201
    assert (await _file(async_client, b.id, "2024-06-03", "2024-06-07")).status_code == 201


@pytest.mark.asyncio
async def test_approve_and_reject_only_from_pending(async_client: AsyncClient, make_employee):
    emp = await make_employee()
    resp = await _file(async_client, emp.id, "2024-06-03", "2024-06-04")
    request_id = resp.json()["data"]["request"]["id"]

    resp = await async_client.put(f"{URL}/{request_id}", params={"action": "approve"})
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["status"] == "approved"
    assert data["approved_by"] == 1
    assert data["approved_at"] is not None

    resp = await async_client.put(f"{URL}/{request_id}", params={"action": "reject"})
    assert resp.status_code == 409
    resp = await async_client.put(f"{URL}/{request_id}", params={"action": "approve"})
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_update_and_delete_only_while_pending(async_client: AsyncClient, make_employee):
    emp = await make_employee()
    resp = await _file(async_client, emp.id, "2024-06-03", "2024-06-04")
    request_id = resp.json()["data"]["request"]["id"]

    resp = await async_client.put(f"{URL}/{request_id}", json={"end_date": "2024-06-05"})
    assert resp.status_code == 200
    assert resp.json()["data"]["days"] == 3

    await async_client.put(f"{URL}/{request_id}", params={"action": "approve"})
    resp = await async_client.put(f"{URL}/{request_id}", json={"end_date": "2024-06-06"})
    assert resp.status_code == 409
    resp = await async_client.delete(f"{URL}/{request_id}")
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_update_does_not_overlap_itself(async_client: AsyncClient, make_employee):
    emp = await make_employee()
    resp = await _file(async_client, emp.id, "2024-06-03", "2024-06-05")
    request_id = resp.json()["data"]["request"]["id"]
    resp = await async_client.put(f"{URL}/{request_id}", json={"start_date": "2024-06-04"})
    assert resp.status_code == 200
    assert resp.json()["data"]["days"] == 2


@pytest.mark.asyncio
async def test_delete_pending(async_client: AsyncClient, make_employee):
    emp = await make_employee()
    resp = await _file(async_client, emp.id, "2024-06-03", "2024-06-04")
    request_id = resp.json()["data"]["request"]["id"]
    resp = await async_client.delete(f"{URL}/{request_id}")
    assert resp.status_code == 200
    resp = await async_client.get(URL)
    assert resp.json()["data"] == []


@pytest.mark.asyncio
async def test_list_includes_employee_details(async_client: AsyncClient, make_employee):
    emp = await make_employee(name="Ana", department="Sales")
    await _file(async_client, emp.id, "2024-06-03", "2024-06-04")
    resp = await async_client.get(URL, params={"status": "pending"})
    rows = resp.json()["data"]
    assert len(rows) == 1
    assert rows[0]["employee_name"] == "Ana"
    assert rows[0]["department"] == "Sales"

    resp = await async_client.get(URL, params={"status": "approved"})
    assert resp.json()["data"] == []


@pytest.mark.asyncio
async def test_balance_counts_approved_and_pending(async_client: AsyncClient, make_employee):
    emp = await make_employee()
    approved = await _file(async_client, emp.id, "2024-06-03", "2024-06-07")
    await async_client.put(
        f"{URL}/{approved.json()['data']['request']['id']}", params={"action": "approve"}
    )
    await _file(async_client, emp.id, "2024-07-01", "2024-07-02")

    resp = await async_client.get(f"{URL}/balance", params={"employee_id": emp.id, "year": 2024})
    assert resp.json()["data"] == {
        "employee_id": emp.id,
        "year": 2024,
        "total_days_per_year": 25,
        "used_days": 5,
        "pending_days": 2,
        "remaining_days": 20,
    }


@pytest.mark.asyncio
async def test_balance_shortfall_is_a_warning(async_client: AsyncClient, make_employee):
    emp = await make_employee()
    await async_client.put("/api/v1/settings", json={"settings": {"max_leave_days_per_year": 2}})

    resp = await async_client.post("/api/v1/validation/leave-conflicts", json={
        "employee_id": emp.id, "start_date": "2024-06-03", "end_date": "2024-06-07",
        "leave_type": "vacation", "reason": "Trip",
    })
    result = resp.json()["data"]
    assert result["is_valid"] is True
    assert result["calculated_days"] == 5
    assert result["remaining_balance"] == 2
    assert any("Not enough leave" in w for w in result["warnings"])

    resp = await _file(async_client, emp.id, "2024-06-03", "2024-06-07")
    assert resp.status_code == 201
    assert any("Not enough leave" in w for w in resp.json()["data"]["warnings"])


@pytest.mark.asyncio
async def test_leave_conflicts_reports_overlaps(async_client: AsyncClient, make_employee):
    emp = await make_employee()
    resp = await _file(async_client, emp.id, "2024-06-03", "2024-06-05")
    existing_id = resp.json()["data"]["request"]["id"]

    payload = {
        "employee_id": emp.id, "start_date": "2024-06-05", "end_date": "2024-06-06",
        "leave_type": "personal",
    }
    resp = await async_client.post("/api/v1/validation/leave-conflicts", json=payload)
    result = resp.json()["data"]
    assert result["is_valid"] is False
    assert "overlap" in result["errors"]
    assert [r["id"] for r in result["overlapping"]] == [existing_id]
    assert any("reason" in w for w in result["warnings"])

    # excluding the request being edited clears the clash
    resp = await async_client.post(
        "/api/v1/validation/leave-conflicts", json={**payload, "exclude_id": existing_id}
    )
    assert resp.json()["data"]["is_valid"] is True


@pytest.mark.asyncio
async def test_auto_approve_setting(async_client: AsyncClient, make_employee):
    emp = await make_employee()
    await async_client.put("/api/v1/settings", json={"settings": {"auto_approve_leave": True}})
    resp = await _file(async_client, emp.id, "2024-06-03", "2024-06-04")
    assert resp.json()["data"]["request"]["status"] == "approved"


@pytest.mark.asyncio
async def test_pending_count_and_stats(async_client: AsyncClient, make_employee):
    emp = await make_employee()
    first = await _file(async_client, emp.id, "2024-06-03", "2024-06-04")
    await _file(async_client, emp.id, "2024-07-01", "2024-07-02")
    await async_client.put(
        f"{URL}/{first.json()['data']['request']['id']}", params={"action": "approve"}
    )

    resp = await async_client.get(f"{URL}/pending-count")
    assert resp.json()["data"] == 1
    resp = await async_client.get(f"{URL}/stats", params={"year": 2024})
    assert resp.json()["data"] == {"year": 2024, "total": 2, "pending": 1, "approved": 1, "rejected": 0}


@pytest.mark.asyncio
async def test_employee_self_service_leave(async_client: AsyncClient, linked_employee, make_employee):
    other = await make_employee()
    await _file(async_client, other.id, "2024-06-03", "2024-06-04")

    resp = await async_client.post("/api/v1/employee/leave-requests", json={
        "start_date": "2024-08-05", "end_date": "2024-08-06", "leave_type": "medical",
    })
    assert resp.status_code == 201, resp.text
    request = resp.json()["data"]["request"]
    assert request["employee_id"] == linked_employee.id
    assert request["employee_name"] == "Self Service"

    resp = await async_client.get("/api/v1/employee/leave-requests")
    rows = resp.json()["data"]
    assert [r["employee_id"] for r in rows] == [linked_employee.id]
