"""
Dashboard aggregates for the admin home page.
"""

from __future__ import annotations

from datetime import date

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from pontaj.core.enums import TimesheetStatus
from pontaj.models.employee import Employee
from pontaj.models.timesheet import TimesheetEntry
from pontaj.services.assignment_service import AssignmentService
from pontaj.services.leave_service import LeaveService
from pontaj.utils.rules import attendance_rate, week_days

_PRESENT = (TimesheetStatus.COMPLETE.value, TimesheetStatus.INCOMPLETE.value)


class DashboardService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _active_ids(self) -> set[int]:
        result = await self.db.execute(select(Employee.id).where(Employee.is_active.is_(True)))
        return set(result.scalars().all())

    async def _status_counts(self, day: date, employee_ids: set[int]) -> dict[str, int]:
        result = await self.db.execute(
            select(TimesheetEntry.employee_id, TimesheetEntry.status).where(
                TimesheetEntry.entry_date == day
            )
        )
        counts = {s.value: 0 for s in TimesheetStatus}
        seen = 0
        for employee_id, status in result.all():
            if employee_id in employee_ids:
                counts[status] += 1
                seen += 1
        # employees without an entry count as absent
        counts[TimesheetStatus.ABSENT.value] += len(employee_ids) - seen
        return counts

    async def stats(self, day: date | None = None) -> dict:
        day = day or date.today()
        active = await self._active_ids()
        counts = await self._status_counts(day, active)
        present = counts["complete"] + counts["incomplete"]
        leave = LeaveService(self.db)
        return {
            "day": day,
            "active_employees": len(active),
            "timesheet": {"total": len(active), **counts},
            "attendance_rate": attendance_rate(present, len(active)),
            "pending_leave_requests": await leave.pending_count(),
            "leave": await leave.stats(day.year),
            "tests": await AssignmentService(self.db).stats(day, today=day),
        }

    async def weekly_attendance(self, day: date | None = None) -> list[dict]:
        """Monday-Friday attendance for the week containing *day*."""
        day = day or date.today()
        active = await self._active_ids()
        days = week_days(day)
        result = await self.db.execute(
            select(TimesheetEntry.entry_date, func.count(TimesheetEntry.id))
            .where(
                TimesheetEntry.entry_date >= days[0],
                TimesheetEntry.entry_date <= days[-1],
                TimesheetEntry.status.in_(_PRESENT),
                TimesheetEntry.employee_id.in_(sorted(active)),
            )
            .group_by(TimesheetEntry.entry_date)
        )
        present = {entry_date: count for entry_date, count in result.all()}
        return [
            {
                "day": d,
                "attendance_rate": attendance_rate(present.get(d, 0), len(active)),
                "present_employees": present.get(d, 0),
                "total_employees": len(active),
            }
            for d in days
        ]
