"""
Timesheet endpoints.

- ``/timesheet``           raw entries; admin upsert.
- ``/admin/timesheet``     the admin day grid, stats and daily task notes.
- ``/employee/timesheet``  self-service view and submission for the
                           logged-in employee.
"""

from __future__ import annotations

from datetime import date
from typing import Annotated, Literal, Union

from fastapi import APIRouter, Depends, Query
from pydantic import Field
from sqlalchemy.ext.asyncio import AsyncSession

from pontaj.api.v1.deps import (get_current_active_user, get_current_employee,
                                get_db, require_admin)
from pontaj.core.exceptions import ValidationError
from pontaj.models.employee import Employee
from pontaj.models.user import User
from pontaj.schemas.assessment import AssignmentRead
from pontaj.schemas.common import ApiResponse
from pontaj.schemas.timesheet import (AdminDayView, CheckboxUpdate, DayRow,
                                      DayStats, EmployeeTimesheetSubmit,
                                      EmployeeTimesheetView, MonthlyStats,
                                      TimesheetEntryRead,
                                      TimesheetEntryUpsert,
                                      TimesheetOptionRead)
from pontaj.services.assignment_service import AssignmentService
from pontaj.services.settings_service import SettingsService
from pontaj.services.timesheet_option_service import TimesheetOptionService
from pontaj.services.timesheet_service import TimesheetService

router = APIRouter(tags=["timesheet"])

AdminDayPayload = Annotated[
    Union[AdminDayView, DayStats, list[DayRow]], Field(union_mode="left_to_right")
]


# ── Raw entries ─────────────────────────────────────────────────────
@router.get("/timesheet", response_model=ApiResponse[list[TimesheetEntryRead]])
async def get_entries(
    employee_id: int | None = None,
    entry_date: date | None = None,
    for_date: date | None = None,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(get_current_active_user),
) -> ApiResponse[list[TimesheetEntryRead]]:
    """One employee's entry for a date, or every entry of ``for_date``."""
    service = TimesheetService(db)
    if employee_id is not None and entry_date is not None:
        entry = await service.get_entry(employee_id, entry_date)
        entries = [entry] if entry else []
    elif for_date is not None:
        entries = await service.entries_for_date(for_date)
    else:
        raise ValidationError("Provide employee_id and entry_date, or for_date")
    return ApiResponse(data=[TimesheetEntryRead.model_validate(e) for e in entries])


@router.post("/timesheet", response_model=ApiResponse[TimesheetEntryRead])
async def upsert_entry(
    body: TimesheetEntryUpsert,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> ApiResponse[TimesheetEntryRead]:
    if await SettingsService(db).get_bool("require_daily_notes") and not (body.notes or "").strip():
        raise ValidationError("Daily notes are required")
    # notes left out of the body keep their stored value
    extra = {"notes": body.notes} if "notes" in body.model_fields_set else {}
    entry = await TimesheetService(db).upsert(
        body.employee_id, body.entry_date, body.timesheet_data, **extra
    )
    return ApiResponse(data=TimesheetEntryRead.model_validate(entry), message="Timesheet saved")


# ── Admin day grid ──────────────────────────────────────────────────
@router.get("/admin/timesheet", response_model=ApiResponse[AdminDayPayload])
async def admin_timesheet(
    day: date | None = Query(default=None, alias="date"),
    action: Literal["full_data", "stats", "daily_tasks"] = "full_data",
    tab: Literal["active", "inactive"] = "active",
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> ApiResponse:
    service = TimesheetService(db)
    day = day or date.today()
    if action == "daily_tasks":
        rows = await service.daily_tasks(day, tab)
        return ApiResponse(data=[DayRow(**r) for r in rows])

    view = await service.admin_day_view(day, tab)
    if action == "stats":
        return ApiResponse(data=DayStats(**view["stats"]))
    return ApiResponse(
        data=AdminDayView(
            entry_date=view["entry_date"],
            tab=view["tab"],
            options=[TimesheetOptionRead.model_validate(o) for o in view["options"]],
            rows=[DayRow(**r) for r in view["rows"]],
            stats=DayStats(**view["stats"]),
        )
    )


@router.post("/admin/timesheet/update-checkbox", response_model=ApiResponse[TimesheetEntryRead])
async def update_checkbox(
    body: CheckboxUpdate,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> ApiResponse[TimesheetEntryRead]:
    entry = await TimesheetService(db).set_flag(
        body.employee_id, body.entry_date, body.option_key, body.value
    )
    return ApiResponse(
        data=TimesheetEntryRead.model_validate(entry),
        message=f"Status: {entry.status}",
    )


# ── Self-service ────────────────────────────────────────────────────
@router.get("/employee/timesheet", response_model=ApiResponse[EmployeeTimesheetView])
async def employee_timesheet(
    action: Literal["full_data", "entry_data", "stats_refresh"] = "full_data",
    entry_date: date | None = None,
    db: AsyncSession = Depends(get_db),
    employee: Employee = Depends(get_current_employee),
) -> ApiResponse[EmployeeTimesheetView]:
    """Self-service page data; ``action`` narrows what gets loaded."""
    service = TimesheetService(db)
    today = date.today()
    entry_date = entry_date or today
    view = EmployeeTimesheetView(entry_date=entry_date)

    if action in ("full_data", "entry_data"):
        entry = await service.get_entry(employee.id, entry_date)
        view.entry = TimesheetEntryRead.model_validate(entry) if entry else None
    if action in ("full_data", "stats_refresh"):
        stats = await service.employee_monthly_stats(
            employee.id, entry_date.year, entry_date.month, today=today
        )
        view.monthly_stats = MonthlyStats(**stats)
        view.recent_entries = [
            TimesheetEntryRead.model_validate(e) for e in await service.recent_entries(employee.id)
        ]
    if action == "full_data":
        options = await TimesheetOptionService(db).list_options(active_only=True)
        view.options = [TimesheetOptionRead.model_validate(o) for o in options]
        tests = await AssignmentService(db).todays_for_employee(employee.id, today)
        view.todays_tests = [AssignmentRead.model_validate(t) for t in tests]

    return ApiResponse(data=view)


@router.post("/employee/timesheet", response_model=ApiResponse[TimesheetEntryRead])
async def submit_timesheet(
    body: EmployeeTimesheetSubmit,
    db: AsyncSession = Depends(get_db),
    employee: Employee = Depends(get_current_employee),
) -> ApiResponse[TimesheetEntryRead]:
    entry = await TimesheetService(db).submit_for_employee(
        employee, body.entry_date or date.today(), body.timesheet_data, body.notes
    )
    return ApiResponse(data=TimesheetEntryRead.model_validate(entry), message="Timesheet submitted")
