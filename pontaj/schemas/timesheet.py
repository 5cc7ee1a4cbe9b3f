"""Pydantic schemas for timesheet options and daily entries."""

from __future__ import annotations

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from pontaj.schemas.assessment import AssignmentRead


# ── Options ─────────────────────────────────────────────────────────
class TimesheetOptionCreate(BaseModel):
    title: str
    key: str | None = None
    employee_text: str | None = None
    active: bool = True

    @field_validator("title")
    @classmethod
    def _title(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Title must not be empty")
        return v


class TimesheetOptionUpdate(BaseModel):
    title: str | None = None
    employee_text: str | None = None
    display_order: int | None = None
    active: bool | None = None


class TimesheetOptionRead(BaseModel):
    id: int
    title: str
    key: str
    employee_text: str
    display_order: int
    active: bool

    model_config = {"from_attributes": True}


# ── Entries ─────────────────────────────────────────────────────────
class TimesheetEntryUpsert(BaseModel):
    employee_id: int
    entry_date: date
    timesheet_data: dict[str, bool] = Field(default_factory=dict)
    notes: str | None = None


class TimesheetEntryRead(BaseModel):
    id: int
    employee_id: int
    entry_date: date
    timesheet_data: dict[str, bool]
    notes: str | None
    status: str
    submitted_at: datetime | None

    model_config = {"from_attributes": True}


class CheckboxUpdate(BaseModel):
    employee_id: int
    entry_date: date
    option_key: str
    value: bool


class EmployeeTimesheetSubmit(BaseModel):
    entry_date: date | None = None
    timesheet_data: dict[str, bool] = Field(default_factory=dict)
    notes: str


# ── Admin day grid ──────────────────────────────────────────────────
class DayRow(BaseModel):
    employee_id: int
    employee_name: str
    department: str
    position: str
    is_active: bool
    entry_id: int | None = None
    timesheet_data: dict[str, bool]
    notes: str | None = None
    status: str
    submitted_at: datetime | None = None


class DayStats(BaseModel):
    total: int = 0
    complete: int = 0
    incomplete: int = 0
    absent: int = 0


class AdminDayView(BaseModel):
    entry_date: date
    tab: Literal["active", "inactive"]
    options: list[TimesheetOptionRead]
    rows: list[DayRow]
    stats: DayStats


class MonthlyStats(BaseModel):
    year: int
    month: int
    work_days: int
    complete: int
    incomplete: int
    absent: int
    attendance_rate: int


class EmployeeTimesheetView(BaseModel):
    """Everything the self-service timesheet page needs in one call."""

    entry_date: date
    options: list[TimesheetOptionRead] = []
    entry: TimesheetEntryRead | None = None
    todays_tests: list[AssignmentRead] = []
    monthly_stats: MonthlyStats | None = None
    recent_entries: list[TimesheetEntryRead] = []
