"""
Small pure business rules shared by services and reports.

Nothing here touches the database, so every rule can be unit tested
directly.
"""

from __future__ import annotations

import calendar
import re
from collections.abc import Mapping
from datetime import date, timedelta

from pontaj.core.enums import TimesheetStatus

# Flags needed for a day to count as complete.
COMPLETE_THRESHOLD = 2

_NON_KEY_CHARS = re.compile(r"[^a-z0-9_\s]")
_WHITESPACE = re.compile(r"\s+")
_KEY = re.compile(r"[a-z0-9_]+")


# ── Timesheet ───────────────────────────────────────────────────────
def count_checked(flags: Mapping[str, object] | None) -> int:
    if not flags:
        return 0
    return sum(1 for value in flags.values() if value)


def derive_timesheet_status(flags: Mapping[str, object] | None) -> TimesheetStatus:
    """0 flags -> absent, 1 -> incomplete, COMPLETE_THRESHOLD or more -> complete."""
    checked = count_checked(flags)
    if checked == 0:
        return TimesheetStatus.ABSENT
    if checked >= COMPLETE_THRESHOLD:
        return TimesheetStatus.COMPLETE
    return TimesheetStatus.INCOMPLETE


def slugify_key(title: str) -> str:
    """'Update PR!' -> 'update_pr'."""
    cleaned = _NON_KEY_CHARS.sub("", title.lower()).strip()
    return _WHITESPACE.sub("_", cleaned)


def is_valid_key(key: str) -> bool:
    return _KEY.fullmatch(key) is not None


# ── Calendar ────────────────────────────────────────────────────────
def is_weekend(day: date) -> bool:
    return day.weekday() >= 5


def count_work_days(start: date, end: date) -> int:
    """Inclusive number of Monday-Friday days between *start* and *end*."""
    if start > end:
        return 0
    total_days = (end - start).days + 1
    full_weeks, remainder = divmod(total_days, 7)
    work_days = full_weeks * 5
    for offset in range(remainder):
        if not is_weekend(start + timedelta(days=full_weeks * 7 + offset)):
            work_days += 1
    return work_days


def month_bounds(year: int, month: int) -> tuple[date, date]:
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def work_days_in_month(year: int, month: int) -> int:
    return count_work_days(*month_bounds(year, month))


def week_days(day: date) -> list[date]:
    """Monday..Friday of the week containing *day*."""
    monday = day - timedelta(days=day.weekday())
    return [monday + timedelta(days=i) for i in range(5)]


def dates_overlap(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    return a_start <= b_end and b_start <= a_end


def days_between(a_end: date, b_start: date) -> int:
    return abs((b_start - a_end).days)


def attendance_rate(present: int, expected: int) -> int:
    if expected <= 0:
        return 0
    return round(present * 100 / expected)
