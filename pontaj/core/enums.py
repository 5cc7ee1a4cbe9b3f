from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles used for access control."""

    ADMIN = "admin"
    EMPLOYEE = "employee"


class TimesheetStatus(str, Enum):
    """Status derived from how many checklist flags are set."""

    ABSENT = "absent"
    INCOMPLETE = "incomplete"
    COMPLETE = "complete"


class LeaveType(str, Enum):
    VACATION = "vacation"
    MEDICAL = "medical"
    PERSONAL = "personal"
    MATERNITY = "maternity"
    PATERNITY = "paternity"
    UNPAID = "unpaid"


class LeaveStatus(str, Enum):
    """Approval flow: pending -> approved | rejected."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class TestStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    ARCHIVED = "archived"


class AssignmentType(str, Enum):
    AUTOMATIC = "automatic"
    MANUAL_EMPLOYEES = "manual_employees"
    MANUAL_DEPARTMENTS = "manual_departments"


class AssignmentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    SKIPPED = "skipped"


class SettingType(str, Enum):
    STRING = "string"
    BOOLEAN = "boolean"
    INTEGER = "integer"
    TIME = "time"


class ExportFormat(str, Enum):
    CSV = "csv"
    EXCEL = "excel"
    PDF = "pdf"


class ReportType(str, Enum):
    ATTENDANCE = "attendance"
    LEAVE = "leave"
    SUMMARY = "summary"
    TIMESHEET = "timesheet"
    STATS = "stats"
