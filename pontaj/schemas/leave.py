"""Pydantic schemas for leave requests, balances and validation results."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel

from pontaj.core.enums import LeaveStatus, LeaveType


class LeaveRequestBase(BaseModel):
    start_date: date
    end_date: date
    leave_type: LeaveType
    reason: str | None = None


class EmployeeLeaveCreate(LeaveRequestBase):
    """Self-service request; the employee comes from the session."""


class LeaveRequestCreate(LeaveRequestBase):
    employee_id: int


class LeaveRequestUpdate(BaseModel):
    start_date: date | None = None
    end_date: date | None = None
    leave_type: LeaveType | None = None
    reason: str | None = None


class LeaveRequestRead(BaseModel):
    id: int
    employee_id: int
    employee_name: str | None = None
    department: str | None = None
    start_date: date
    end_date: date
    days: int
    leave_type: str
    reason: str | None
    status: LeaveStatus
    submitted_date: date
    approved_by: int | None
    approved_at: datetime | None

    model_config = {"from_attributes": True}


class LeaveCreated(BaseModel):
    request: LeaveRequestRead
    warnings: list[str] = []


# ── Validation ──────────────────────────────────────────────────────
class LeaveValidationRequest(LeaveRequestCreate):
    exclude_id: int | None = None


class LeaveConflict(BaseModel):
    id: int
    start_date: date
    end_date: date
    leave_type: str
    status: str

    model_config = {"from_attributes": True}


class LeaveValidationResult(BaseModel):
    is_valid: bool
    errors: dict[str, str]
    warnings: list[str]
    calculated_days: int
    remaining_balance: int
    overlapping: list[LeaveConflict] = []
    consecutive: list[LeaveConflict] = []


# ── Balance & stats ─────────────────────────────────────────────────
class LeaveBalance(BaseModel):
    employee_id: int
    year: int
    total_days_per_year: int
    used_days: int
    pending_days: int
    remaining_days: int


class LeaveStats(BaseModel):
    year: int
    total: int = 0
    pending: int = 0
    approved: int = 0
    rejected: int = 0
