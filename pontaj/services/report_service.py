"""
Report builders.

Each report fetches what it needs in a handful of grouped queries and
aggregates in Python.  Reports return ``(headers, rows)`` where every row
is a dict keyed by the declared headers; the export layer relies on that
ordering.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from pontaj.core.enums import LeaveStatus, ReportType, TimesheetStatus
from pontaj.core.exceptions import ValidationError
from pontaj.models.employee import Employee
from pontaj.models.leave_request import LeaveRequest
from pontaj.models.timesheet import TimesheetEntry
from pontaj.services.leave_service import LeaveService
from pontaj.services.timesheet_option_service import TimesheetOptionService
from pontaj.utils.rules import attendance_rate, month_bounds, work_days_in_month

logger = logging.getLogger(__name__)

Rows = list[dict[str, object]]

ATTENDANCE_HEADERS = ["Employee", "Department", "Work Days", "Present Days", "Absences", "Attendance Rate (%)"]
LEAVE_HEADERS = ["Employee", "Department", "Total Days", "Used Days", "Pending Days", "Remaining Days"]
SUMMARY_HEADERS = ["Department", "Employees", "Average Attendance (%)", "Leave Days"]
STATS_HEADERS = ["Metric", "Value"]

_PRESENT = (TimesheetStatus.COMPLETE.value, TimesheetStatus.INCOMPLETE.value)


def _require(value: object, message: str) -> None:
    if value is None:
        raise ValidationError(message)


def _check_month(month: int | None) -> None:
    if month is not None and not 1 <= month <= 12:
        raise ValidationError("Month must be between 1 and 12")


class ReportService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _active_employees(self) -> list[Employee]:
        result = await self.db.execute(
            select(Employee).where(Employee.is_active.is_(True)).order_by(Employee.name)
        )
        return list(result.scalars().all())

    async def _present_days(self, year: int, month: int) -> dict[int, int]:
        start, end = month_bounds(year, month)
        result = await self.db.execute(
            select(TimesheetEntry.employee_id, func.count(TimesheetEntry.id))
            .where(
                TimesheetEntry.entry_date >= start,
                TimesheetEntry.entry_date <= end,
                TimesheetEntry.status.in_(_PRESENT),
            )
            .group_by(TimesheetEntry.employee_id)
        )
        return {employee_id: count for employee_id, count in result.all()}

    # ── Attendance ──────────────────────────────────────────────────
    async def attendance(self, year: int, month: int) -> tuple[list[str], Rows]:
        work_days = work_days_in_month(year, month)
        present = await self._present_days(year, month)
        rows = []
        for emp in await self._active_employees():
            present_days = present.get(emp.id, 0)
            rows.append(
                {
                    "Employee": emp.name,
                    "Department": emp.department,
                    "Work Days": work_days,
                    "Present Days": present_days,
                    "Absences": max(0, work_days - present_days),
                    "Attendance Rate (%)": attendance_rate(present_days, work_days),
                }
            )
        return ATTENDANCE_HEADERS, rows

    # ── Leave ───────────────────────────────────────────────────────
    async def leave(self, year: int) -> tuple[list[str], Rows]:
        allowance = await LeaveService(self.db).allowance()
        result = await self.db.execute(
            select(LeaveRequest.employee_id, LeaveRequest.status, func.sum(LeaveRequest.days))
            .where(
                LeaveRequest.start_date >= date(year, 1, 1),
                LeaveRequest.start_date <= date(year, 12, 31),
            )
            .group_by(LeaveRequest.employee_id, LeaveRequest.status)
        )
        totals: dict[int, dict[str, int]] = defaultdict(dict)
        for employee_id, status, days in result.all():
            totals[employee_id][status] = int(days or 0)

        rows = []
        for emp in await self._active_employees():
            used = totals[emp.id].get(LeaveStatus.APPROVED.value, 0)
            rows.append(
                {
                    "Employee": emp.name,
                    "Department": emp.department,
                    "Total Days": allowance,
                    "Used Days": used,
                    "Pending Days": totals[emp.id].get(LeaveStatus.PENDING.value, 0),
                    "Remaining Days": allowance - used,
                }
            )
        return LEAVE_HEADERS, rows

    # ── Department summary ──────────────────────────────────────────
    async def _approved_leave_days(self, year: int, month: int) -> dict[int, int]:
        start, end = month_bounds(year, month)
        result = await self.db.execute(
            select(LeaveRequest.employee_id, func.sum(LeaveRequest.days))
            .where(
                LeaveRequest.status == LeaveStatus.APPROVED.value,
                LeaveRequest.start_date >= start,
                LeaveRequest.start_date <= end,
            )
            .group_by(LeaveRequest.employee_id)
        )
        return {employee_id: int(days or 0) for employee_id, days in result.all()}

    async def department_summary(self, year: int, month: int) -> tuple[list[str], Rows]:
        work_days = work_days_in_month(year, month)
        present = await self._present_days(year, month)
        leave_days = await self._approved_leave_days(year, month)

        by_department: dict[str, list[Employee]] = defaultdict(list)
        for emp in await self._active_employees():
            by_department[emp.department].append(emp)

        rows = []
        for department in sorted(by_department):
            members = by_department[department]
            rates = [attendance_rate(present.get(e.id, 0), work_days) for e in members]
            rows.append(
                {
                    "Department": department,
                    "Employees": len(members),
                    "Average Attendance (%)": round(sum(rates) / len(rates)) if rates else 0,
                    "Leave Days": sum(leave_days.get(e.id, 0) for e in members),
                }
            )
        return SUMMARY_HEADERS, rows

    # ── Timesheet (one day) ─────────────────────────────────────────
    async def timesheet(self, day: date) -> tuple[list[str], Rows]:
        options = await TimesheetOptionService(self.db).list_options(active_only=True)
        result = await self.db.execute(
            select(TimesheetEntry).where(TimesheetEntry.entry_date == day)
        )
        entries = {e.employee_id: e for e in result.scalars().all()}

        headers = ["Employee", "Department", *[o.title for o in options], "Status", "Submitted At"]
        rows = []
        for emp in await self._active_employees():
            entry = entries.get(emp.id)
            flags = (entry.timesheet_data or {}) if entry else {}
            row: dict[str, object] = {"Employee": emp.name, "Department": emp.department}
            for option in options:
                row[option.title] = "Yes" if flags.get(option.key) else "No"
            row["Status"] = entry.status if entry else TimesheetStatus.ABSENT.value
            row["Submitted At"] = (
                entry.submitted_at.strftime("%H:%M") if entry and entry.submitted_at else ""
            )
            rows.append(row)
        return headers, rows

    # ── Summary stats ───────────────────────────────────────────────
    async def summary_stats(self, year: int, month: int) -> dict:
        _, attendance_rows = await self.attendance(year, month)
        rates = [r["Attendance Rate (%)"] for r in attendance_rows]
        leave_days = await self._approved_leave_days(year, month)
        return {
            "year": year,
            "month": month,
            "total_employees": len(attendance_rows),
            "average_attendance": round(sum(rates) / len(rates)) if rates else 0,  # type: ignore[arg-type]
            "total_leave_days": sum(leave_days.values()),
            "pending_requests": await LeaveService(self.db).pending_count(),
        }

    # ── Dispatch ────────────────────────────────────────────────────
    async def build(
        self,
        report_type: ReportType | str,
        *,
        year: int | None = None,
        month: int | None = None,
        day: date | None = None,
    ) -> tuple[str, list[str], Rows]:
        """Build any report; returns ``(period, headers, rows)``."""
        report_type = ReportType(report_type)
        _check_month(month)

        if report_type == ReportType.TIMESHEET:
            _require(day, "Date is required for the timesheet report")
            headers, rows = await self.timesheet(day)  # type: ignore[arg-type]
            return day.isoformat(), headers, rows  # type: ignore[union-attr]

        _require(year, "Year is required")
        if report_type == ReportType.LEAVE:
            headers, rows = await self.leave(year)  # type: ignore[arg-type]
            return str(year), headers, rows

        _require(month, f"Month is required for the {report_type.value} report")
        period = f"{year}_{month}"
        if report_type == ReportType.ATTENDANCE:
            headers, rows = await self.attendance(year, month)  # type: ignore[arg-type]
        elif report_type == ReportType.SUMMARY:
            headers, rows = await self.department_summary(year, month)  # type: ignore[arg-type]
        else:
            stats = await self.summary_stats(year, month)  # type: ignore[arg-type]
            headers = STATS_HEADERS
            rows = [{"Metric": k, "Value": v} for k, v in stats.items() if k not in ("year", "month")]
        logger.debug("Built %s report for %s (%d rows)", report_type.value, period, len(rows))
        return period, headers, rows
