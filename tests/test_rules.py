"""Tests for the pure business rules (no database)."""

import random
from datetime import date, timedelta

import pytest

from pontaj.core.enums import AssignmentType, TimesheetStatus
from pontaj.models.assessment import Assessment
from pontaj.models.employee import Employee
from pontaj.services.assignment_service import pick_employees, select_pool
from pontaj.utils.rules import (attendance_rate, count_checked,
                                count_work_days, dates_overlap,
                                derive_timesheet_status, is_valid_key,
                                is_weekend, month_bounds, slugify_key,
                                week_days, work_days_in_month)


def _reference_work_days(start: date, end: date) -> int:
    days = 0
    current = start
    while current <= end:
        if current.weekday() < 5:
            days += 1
        current += timedelta(days=1)
    return days


# ── Timesheet status ────────────────────────────────────────────────
@pytest.mark.parametrize(
    "flags, expected",
    [
        ({}, TimesheetStatus.ABSENT),
        (None, TimesheetStatus.ABSENT),
        ({"present": False, "update_pr": False}, TimesheetStatus.ABSENT),
        ({"present": True}, TimesheetStatus.INCOMPLETE),
        ({"present": True, "update_pr": False}, TimesheetStatus.INCOMPLETE),
        ({"present": True, "update_pr": True}, TimesheetStatus.COMPLETE),
        ({"a": True, "b": True, "c": True}, TimesheetStatus.COMPLETE),
    ],
)
def test_derive_timesheet_status(flags, expected):
    assert derive_timesheet_status(flags) == expected


def test_count_checked_ignores_falsy_values():
    assert count_checked({"a": True, "b": 0, "c": "", "d": 1}) == 2


def test_slugify_key():
    assert slugify_key("Update PR!") == "update_pr"
    assert slugify_key("  Work   from home ") == "work_from_home"
    assert slugify_key("!!!") == ""
    assert slugify_key("Late_Arrival") == "late_arrival"


def test_is_valid_key():
    assert is_valid_key("late_arrival")
    assert is_valid_key("pr2")
    assert not is_valid_key("early-leave")
    assert not is_valid_key("")
    assert not is_valid_key("present\n")


# ── Calendar ────────────────────────────────────────────────────────
def test_count_work_days_matches_day_by_day_count():
    rng = random.Random(7)
    base = date(2024, 1, 1)
    for _ in range(200):
        start = base + timedelta(days=rng.randint(0, 700))
        end = start + timedelta(days=rng.randint(0, 60))
        assert count_work_days(start, end) == _reference_work_days(start, end)


def test_count_work_days_edges():
    saturday, sunday = date(2024, 6, 1), date(2024, 6, 2)
    assert is_weekend(saturday) and is_weekend(sunday)
    assert count_work_days(saturday, sunday) == 0
    assert count_work_days(date(2024, 6, 3), date(2024, 6, 3)) == 1
    assert count_work_days(date(2024, 6, 7), date(2024, 6, 3)) == 0
    # Monday to Friday
    assert count_work_days(date(2024, 6, 3), date(2024, 6, 7)) == 5


def test_month_helpers():
    assert month_bounds(2024, 2) == (date(2024, 2, 1), date(2024, 2, 29))
    assert work_days_in_month(2024, 2) == 21
    assert work_days_in_month(2024, 6) == 20


def test_week_days_starts_on_monday():
    days = week_days(date(2024, 6, 6))  # Thursday
    assert days[0] == date(2024, 6, 3)
    assert days[-1] == date(2024, 6, 7)
    assert len(days) == 5


def test_dates_overlap_is_inclusive():
    assert dates_overlap(date(2024, 1, 1), date(2024, 1, 5), date(2024, 1, 5), date(2024, 1, 9))
    assert not dates_overlap(date(2024, 1, 1), date(2024, 1, 5), date(2024, 1, 6), date(2024, 1, 9))


def test_attendance_rate():
    assert attendance_rate(0, 0) == 0
    assert attendance_rate(5, 20) == 25
    assert attendance_rate(2, 3) == 67


# ── Assignment pools ────────────────────────────────────────────────
def _staff() -> list[Employee]:
    return [
        Employee(id=1, name="A", department="Sales"),
        Employee(id=2, name="B", department="Sales"),
        Employee(id=3, name="C", department="IT"),
    ]


def test_select_pool_strategies():
    staff = _staff()
    automatic = Assessment(assignment_type=AssignmentType.AUTOMATIC.value)
    by_employee = Assessment(
        assignment_type=AssignmentType.MANUAL_EMPLOYEES.value, assigned_employees=[3, 99]
    )
    by_department = Assessment(
        assignment_type=AssignmentType.MANUAL_DEPARTMENTS.value, assigned_departments=["Sales"]
    )
    assert [e.id for e in select_pool(automatic, staff)] == [1, 2, 3]
    assert [e.id for e in select_pool(by_employee, staff)] == [3]
    assert [e.id for e in select_pool(by_department, staff)] == [1, 2]


def test_select_pool_empty_manual_selection_falls_back_to_everyone():
    staff = _staff()
    test = Assessment(assignment_type=AssignmentType.MANUAL_EMPLOYEES.value, assigned_employees=[])
    assert len(select_pool(test, staff)) == 3


def test_pick_employees_caps_and_is_unique():
    staff = _staff()
    picked = pick_employees(staff, 2, random.Random(1))
    assert len(picked) == 2
    assert len({e.id for e in picked}) == 2
    assert pick_employees(staff[:1], 2, random.Random(1)) == staff[:1]
