"""Tests for reports, exports, dashboard and health endpoints."""

import csv
import io
from datetime import date

import pytest
from httpx import AsyncClient
from openpyxl import load_workbook


async def _seed_month(async_client: AsyncClient, make_employee) -> dict:
    """Helper: two active employees with June 2024 timesheets and leave."""
    for title in ("Present", "Update PR"):
        await async_client.post("/api/v1/timesheet-options", json={"title": title})
    ana = await make_employee(name="Ana", department="Sales")
    bob = await make_employee(name="Bob", department="IT")
    await make_employee(name="Gone", department="IT", is_active=False, leave_date=date(2024, 1, 1))

    await async_client.post("/api/v1/timesheet", json={
        "employee_id": ana.id, "entry_date": "2024-06-03",
        "timesheet_data": {"present": True, "update_pr": True},
    })
    await async_client.post("/api/v1/timesheet", json={
        "employee_id": ana.id, "entry_date": "2024-06-04", "timesheet_data": {"present": True},
    })

    leave = await async_client.post("/api/v1/leave-requests", json={
        "employee_id": ana.id, "start_date": "2024-06-10", "end_date": "2024-06-12",
        "leave_type": "vacation", "reason": "Trip",
    })
    await async_client.put(
        f"/api/v1/leave-requests/{leave.json()['data']['request']['id']}", params={"action": "approve"}
    )
    await async_client.post("/api/v1/leave-requests", json={
        "employee_id": bob.id, "start_date": "2024-07-01", "end_date": "2024-07-02",
        "leave_type": "vacation", "reason": "Trip",
    })
    return {"ana": ana, "bob": bob}


# ── JSON reports ────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_attendance_report(async_client: AsyncClient, make_employee):
    await _seed_month(async_client, make_employee)
    resp = await async_client.get("/api/v1/reports", params={"type": "attendance", "year": 2024, "month": 6})
    assert resp.status_code == 200, resp.text
    report = resp.json()["data"]
    assert report["period"] == "2024_6"
    assert report["headers"] == [
        "Employee", "Department", "Work Days", "Present Days", "Absences", "Attendance Rate (%)",
    ]
    assert report["rows"] == [
        {"Employee": "Ana", "Department": "Sales", "Work Days": 20, "Present Days": 2,
         "Absences": 18, "Attendance Rate (%)": 10},
        {"Employee": "Bob", "Department": "IT", "Work Days": 20, "Present Days": 0,
         "Absences": 20, "Attendance Rate (%)": 0},
    ]


@pytest.mark.asyncio
async def test_leave_report(async_client: AsyncClient, make_employee):
    await _seed_month(async_client, make_employee)
    resp = await async_client.get("/api/v1/reports", params={"type": "leave", "year": 2024})
    report = resp.json()["data"]
    assert report["period"] == "2024"
    ana, bob = report["rows"]
    assert (ana["Used Days"], ana["Pending Days"], ana["Remaining Days"]) == (3, 0, 22)
    assert (bob["Used Days"], bob["Pending Days"], bob["Remaining Days"]) == (0, 2, 25)


@pytest.mark.asyncio
async def test_department_summary_report(async_client: AsyncClient, make_employee):
    await _seed_month(async_client, make_employee)
    resp = await async_client.get("/api/v1/reports", params={"type": "summary", "year": 2024, "month": 6})
    assert resp.json()["data"]["rows"] == [
        {"Department": "IT", "Employees": 1, "Average Attendance (%)": 0, "Leave Days": 0},
        {"Department": "Sales", "Employees": 1, "Average Attendance (%)": 10, "Leave Days": 3},
    ]


@pytest.mark.asyncio
async def test_timesheet_report_uses_option_titles(async_client: AsyncClient, make_employee):
    await _seed_month(async_client, make_employee)
    resp = await async_client.get("/api/v1/reports", params={"type": "timesheet", "date": "2024-06-03"})
    report = resp.json()["data"]
    assert report["period"] == "2024-06-03"
    assert report["headers"] == ["Employee", "Department", "Present", "Update PR", "Status", "Submitted At"]
    ana, bob = report["rows"]
    assert (ana["Present"], ana["Update PR"], ana["Status"]) == ("Yes", "Yes", "complete")
    assert ana["Submitted At"] != ""
    assert (bob["Present"], bob["Status"], bob["Submitted At"]) == ("No", "absent", "")


@pytest.mark.asyncio
async def test_stats_report(async_client: AsyncClient, make_employee):
    await _seed_month(async_client, make_employee)
    resp = await async_client.get("/api/v1/reports", params={"type": "stats", "year": 2024, "month": 6})
    assert resp.json()["data"] == {
        "year": 2024, "month": 6, "total_employees": 2, "average_attendance": 5,
        "total_leave_days": 3, "pending_requests": 1,
    }


@pytest.mark.asyncio
async def test_report_parameter_errors(async_client: AsyncClient):
    resp = await async_client.get("/api/v1/reports", params={"type": "attendance", "year": 2024})
    assert resp.status_code == 400
    resp = await async_client.get("/api/v1/reports", params={"type": "attendance", "year": 2024, "month": 13})
    assert resp.status_code == 400
    resp = await async_client.get("/api/v1/reports", params={"type": "timesheet"})
    assert resp.status_code == 400
    resp = await async_client.get("/api/v1/reports", params={"type": "payroll"})
    assert resp.status_code == 422


# ── Exports ─────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_export_csv(async_client: AsyncClient, make_employee):
    await _seed_month(async_client, make_employee)
    resp = await async_client.get(
        "/api/v1/reports/export", params={"type": "attendance", "format": "csv", "year": 2024, "month": 6}
    )
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/csv")
    assert resp.headers["content-disposition"] == 'attachment; filename="attendance_2024_6.csv"'
    rows = list(csv.reader(io.StringIO(resp.text)))
    assert len(rows) == 3
    assert rows[0][0] == "Employee"
    assert rows[1][:2] == ["Ana", "Sales"]


@pytest.mark.asyncio
async def test_export_excel(async_client: AsyncClient, make_employee):
    await _seed_month(async_client, make_employee)
    resp = await async_client.get(
        "/api/v1/reports/export", params={"type": "leave", "format": "excel", "year": 2024}
    )
    assert resp.status_code == 200
    assert resp.headers["content-disposition"] == 'attachment; filename="leave_2024.xlsx"'
    ws = load_workbook(io.BytesIO(resp.content)).active
    values = [[c.value for c in row] for row in ws.iter_rows()]
    assert len(values) == 3
    assert values[0][:2] == ["Employee", "Department"]


@pytest.mark.asyncio
async def test_export_printable_html(async_client: AsyncClient, make_employee):
    await _seed_month(async_client, make_employee)
    resp = await async_client.get(
        "/api/v1/reports/export", params={"type": "timesheet", "format": "pdf", "date": "2024-06-03"}
    )
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/html")
    assert resp.headers["content-disposition"] == 'attachment; filename="timesheet_2024-06-03.html"'
    assert "<table>" in resp.text
    assert "Ana" in resp.text


# ── Dashboard / Health / Status ─────────────────────────────────────
@pytest.mark.asyncio
async def test_dashboard(async_client: AsyncClient, make_employee):
    await _seed_month(async_client, make_employee)
    resp = await async_client.get("/api/v1/dashboard", params={"date": "2024-06-03"})
    assert resp.status_code == 200, resp.text
    data = resp.json()["data"]
    assert data["active_employees"] == 2
    assert data["timesheet"] == {"total": 2, "complete": 1, "incomplete": 0, "absent": 1}
    assert data["attendance_rate"] == 50
    assert data["pending_leave_requests"] == 1
    assert data["leave"]["approved"] == 1
    assert data["tests"]["total_assignments"] == 0


@pytest.mark.asyncio
async def test_weekly_attendance(async_client: AsyncClient, make_employee):
    await _seed_month(async_client, make_employee)
    resp = await async_client.get("/api/v1/dashboard/weekly", params={"date": "2024-06-05"})
    days = resp.json()["data"]
    assert [d["day"] for d in days] == [
        "2024-06-03", "2024-06-04", "2024-06-05", "2024-06-06", "2024-06-07",
    ]
    assert [d["attendance_rate"] for d in days] == [50, 50, 0, 0, 0]


@pytest.mark.asyncio
async def test_health(async_client: AsyncClient):
    resp = await async_client.get("/api/v1/health")
    assert resp.status_code == 200
    assert resp.json()["db"] is True


@pytest.mark.asyncio
async def test_status(async_client: AsyncClient, make_employee):
    await _seed_month(async_client, make_employee)
    resp = await async_client.get("/api/v1/status")
    data = resp.json()
    assert data["total_employees"] == 2
    assert data["pending_leave_requests"] == 1
    assert data["status"] == "operational"
