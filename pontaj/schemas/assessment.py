"""Pydantic schemas for tests and test assignments."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, field_validator

from pontaj.core.enums import AssignmentStatus, AssignmentType, TestStatus


# ── Tests ───────────────────────────────────────────────────────────
class AssessmentCreate(BaseModel):
    title: str
    description: str
    instructions: str | None = None
    status: TestStatus = TestStatus.ACTIVE
    assignment_type: AssignmentType = AssignmentType.AUTOMATIC
    assigned_employees: list[int] | None = None
    assigned_departments: list[str] | None = None
    display_order: int | None = None

    @field_validator("title", "description")
    @classmethod
    def _required_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Field must not be empty")
        return v


class AssessmentUpdate(BaseModel):
    title: str | None = None
    description: str | None = None
    instructions: str | None = None
    status: TestStatus | None = None
    assignment_type: AssignmentType | None = None
    assigned_employees: list[int] | None = None
    assigned_departments: list[str] | None = None
    display_order: int | None = None


class AssessmentRead(BaseModel):
    id: int
    title: str
    description: str
    instructions: str | None
    status: TestStatus
    assignment_type: AssignmentType
    assigned_employees: list[int] | None
    assigned_departments: list[str] | None
    display_order: int
    created_by: int | None
    created_at: datetime | None

    model_config = {"from_attributes": True}


class AssessmentStats(BaseModel):
    total: int = 0
    active: int = 0
    inactive: int = 0
    archived: int = 0


# ── Assignments ─────────────────────────────────────────────────────
class AssignmentCreate(BaseModel):
    test_id: int
    employee_id: int
    assigned_date: date | None = None
    due_date: date | None = None
    notes: str | None = None


class AssignmentUpdate(BaseModel):
    status: AssignmentStatus | None = None
    due_date: date | None = None
    notes: str | None = None


class AssignmentRead(BaseModel):
    id: int
    test_id: int
    employee_id: int
    assigned_date: date
    due_date: date
    status: AssignmentStatus
    completed_at: datetime | None
    notes: str | None
    test_title: str | None = None
    test_description: str | None = None
    test_instructions: str | None = None
    employee_name: str | None = None
    employee_department: str | None = None

    model_config = {"from_attributes": True}


class AssignmentsByDate(BaseModel):
    assignment_date: date
    is_today: bool
    total_tests: int
    total_assignments: int
    assignments: list[AssignmentRead]


class AssignmentStats(BaseModel):
    assignment_date: date
    is_today: bool
    total_tests: int = 0
    total_assignments: int = 0
    pending: int = 0
    completed: int = 0
    skipped: int = 0


class BatchUpdateItem(AssignmentUpdate):
    id: int


class BatchUpdateRequest(BaseModel):
    updates: list[BatchUpdateItem]


class BatchError(BaseModel):
    id: int
    error: str


class BatchUpdateResult(BaseModel):
    success_count: int
    error_count: int
    results: list[AssignmentRead]
    errors: list[BatchError]


class EmployeeTestStats(BaseModel):
    total_assigned: int = 0
    completed: int = 0
    pending: int = 0
    skipped: int = 0
    completion_rate: int = 0


class EmployeeTestsOverview(BaseModel):
    assignments: list[AssignmentRead]
    todays_tests: list[AssignmentRead]
    stats: EmployeeTestStats


class EmployeeAssignmentUpdate(BaseModel):
    status: AssignmentStatus
    notes: str | None = None


# ── Daily job ───────────────────────────────────────────────────────
class DailyAssignmentRequest(BaseModel):
    assignment_date: date | None = None


class DailyAssignmentResult(BaseModel):
    success: bool
    assignment_date: date
    deleted_assignments: int
    total_tests_processed: int
    total_assignments_created: int
    message: str
