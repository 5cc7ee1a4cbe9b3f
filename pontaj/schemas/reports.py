"""Pydantic schemas for reports, dashboard and health endpoints."""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel

from pontaj.schemas.leave import LeaveStats
from pontaj.schemas.assessment import AssignmentStats
from pontaj.schemas.timesheet import DayStats


class ReportTable(BaseModel):
    type: str
    period: str
    headers: list[str]
    rows: list[dict[str, str | int | float | None]]


class SummaryStats(BaseModel):
    year: int
    month: int
    total_employees: int
    average_attendance: int
    total_leave_days: int
    pending_requests: int


class WeeklyAttendanceDay(BaseModel):
    day: date
    attendance_rate: int
    present_employees: int
    total_employees: int


class DashboardStats(BaseModel):
    day: date
    active_employees: int
    timesheet: DayStats
    attendance_rate: int
    pending_leave_requests: int
    leave: LeaveStats
    tests: AssignmentStats


class HealthResponse(BaseModel):
    db: bool
    redis: bool


class StatusResponse(BaseModel):
    total_employees: int
    entries_today: int
    pending_leave_requests: int
    status: str
