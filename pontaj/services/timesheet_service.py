"""
Timesheet service: daily entries, admin day grid and self-service saves.

Every write path goes through ``upsert`` so the stored status always
matches the flag map.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pontaj.core.enums import TimesheetStatus
from pontaj.core.exceptions import NotFoundError, ValidationError
from pontaj.models.employee import Employee
from pontaj.models.timesheet import TimesheetEntry
from pontaj.services.settings_service import SettingsService
from pontaj.services.timesheet_option_service import TimesheetOptionService
from pontaj.utils.rules import (attendance_rate, count_work_days,
                                derive_timesheet_status, is_weekend,
                                month_bounds)

logger = logging.getLogger(__name__)

_UNSET = object()


class TimesheetService:
    def __init__(self, db: AsyncSession):
        self.db = db

    # ── Reads ───────────────────────────────────────────────────────
    async def get_entry(self, employee_id: int, entry_date: date) -> TimesheetEntry | None:
        result = await self.db.execute(
            select(TimesheetEntry).where(
                TimesheetEntry.employee_id == employee_id,
                TimesheetEntry.entry_date == entry_date,
            )
        )
        return result.scalar_one_or_none()

    async def entries_for_date(self, entry_date: date) -> list[TimesheetEntry]:
        result = await self.db.execute(
            select(TimesheetEntry)
            .where(TimesheetEntry.entry_date == entry_date)
            .order_by(TimesheetEntry.employee_id)
        )
        return list(result.scalars().all())

    async def entries_for_employee(
        self, employee_id: int, start: date, end: date
    ) -> list[TimesheetEntry]:
        result = await self.db.execute(
            select(TimesheetEntry)
            .where(
                TimesheetEntry.employee_id == employee_id,
                TimesheetEntry.entry_date >= start,
                TimesheetEntry.entry_date <= end,
            )
            .order_by(TimesheetEntry.entry_date)
        )
        return list(result.scalars().all())

    async def recent_entries(self, employee_id: int, limit: int = 4) -> list[TimesheetEntry]:
        result = await self.db.execute(
            select(TimesheetEntry)
            .where(TimesheetEntry.employee_id == employee_id)
            .order_by(TimesheetEntry.entry_date.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    # ── Writes ──────────────────────────────────────────────────────
    async def upsert(
        self,
        employee_id: int,
        entry_date: date,
        timesheet_data: dict[str, bool] | None,
        notes: object = _UNSET,
    ) -> TimesheetEntry:
        """Insert or overwrite the (employee, date) entry and derive its status."""
        if await self.db.get(Employee, employee_id) is None:
            raise NotFoundError(f"Employee {employee_id} not found")

        flags = {str(k): bool(v) for k, v in (timesheet_data or {}).items()}
        status = derive_timesheet_status(flags)

        entry = await self.get_entry(employee_id, entry_date)
        if entry is None:
            entry = TimesheetEntry(employee_id=employee_id, entry_date=entry_date)
            self.db.add(entry)
        entry.timesheet_data = flags
        entry.status = status.value
        if notes is not _UNSET:
            entry.notes = notes  # type: ignore[assignment]
        if entry.submitted_at is None and status != TimesheetStatus.ABSENT:
            entry.submitted_at = datetime.now(timezone.utc)

        await self.db.commit()
        await self.db.refresh(entry)
        logger.info(
            "Timesheet %s for employee %d -> %s (%d flags)",
            entry_date,
            employee_id,
            entry.status,
            sum(flags.values()),
        )
        return entry

    async def set_flag(
        self, employee_id: int, entry_date: date, option_key: str, value: bool
    ) -> TimesheetEntry:
        """Admin checkbox edit: merge one flag into the day's map."""
        if await TimesheetOptionService(self.db).get_by_key(option_key) is None:
            raise ValidationError(f"Unknown timesheet option '{option_key}'")
        entry = await self.get_entry(employee_id, entry_date)
        flags = dict(entry.timesheet_data or {}) if entry else {}
        flags[option_key] = value
        return await self.upsert(employee_id, entry_date, flags)

    async def submit_for_employee(
        self,
        employee: Employee,
        entry_date: date,
        timesheet_data: dict[str, bool],
        notes: str,
        now: datetime | None = None,
    ) -> TimesheetEntry:
        """Self-service save with the submission rules from system settings."""
        now = now or datetime.now()
        today = now.date()
        settings = SettingsService(self.db)

        if not employee.is_active:
            raise ValidationError("Inactive employees cannot submit timesheets")
        if not (notes or "").strip():
            raise ValidationError("Notes are required when submitting a timesheet")
        if entry_date > today:
            raise ValidationError("Cannot submit a timesheet for a future date")
        if is_weekend(entry_date) and not await settings.get_bool("allow_weekend_pontaj"):
            raise ValidationError("Timesheet submissions are disabled on weekends")
        if entry_date == today:
            cutoff = await settings.get_time("pontaj_cutoff_time")
            if cutoff is not None and now.time() > cutoff:
                raise ValidationError(
                    f"Today's timesheet closed at {cutoff.strftime('%H:%M')}"
                )

        # Only active checklist options count towards the status
        options = await TimesheetOptionService(self.db).list_options(active_only=True)
        known = {o.key for o in options}
        flags = {k: v for k, v in timesheet_data.items() if k in known}
        if len(flags) != len(timesheet_data):
            logger.info(
                "Dropped unknown timesheet flags for employee %d: %s",
                employee.id,
                ", ".join(sorted(set(timesheet_data) - known)),
            )
        return await self.upsert(employee.id, entry_date, flags, notes.strip())

    # ── Admin day grid ──────────────────────────────────────────────
    async def admin_day_view(self, entry_date: date, tab: str = "active") -> dict:
        """One row per employee for *entry_date*; missing entries default to absent."""
        options = await TimesheetOptionService(self.db).list_options(active_only=True)
        employees = (
            await self.db.execute(
                select(Employee)
                .where(Employee.is_active.is_(tab != "inactive"))
                .order_by(Employee.name)
            )
        ).scalars().all()
        entries = {e.employee_id: e for e in await self.entries_for_date(entry_date)}
        empty_flags = {o.key: False for o in options}

        rows = []
        stats = {"total": 0, "complete": 0, "incomplete": 0, "absent": 0}
        for emp in employees:
            entry = entries.get(emp.id)
            status = entry.status if entry else TimesheetStatus.ABSENT.value
            rows.append(
                {
                    "employee_id": emp.id,
                    "employee_name": emp.name,
                    "department": emp.department,
                    "position": emp.position,
                    "is_active": emp.is_active,
                    "entry_id": entry.id if entry else None,
                    "timesheet_data": {**empty_flags, **(entry.timesheet_data or {})} if entry else dict(empty_flags),
                    "notes": entry.notes if entry else None,
                    "status": status,
                    "submitted_at": entry.submitted_at if entry else None,
                }
            )
            stats["total"] += 1
            stats[status] += 1

        return {
            "entry_date": entry_date,
            "tab": "inactive" if tab == "inactive" else "active",
            "options": options,
            "rows": rows,
            "stats": stats,
        }

    async def daily_tasks(self, entry_date: date, tab: str = "active") -> list[dict]:
        view = await self.admin_day_view(entry_date, tab)
        return [row for row in view["rows"] if (row["notes"] or "").strip()]

    async def employee_monthly_stats(
        self, employee_id: int, year: int, month: int, today: date | None = None
    ) -> dict:
        """Counts for one month; work days stop at *today* for the current month."""
        today = today or date.today()
        start, end = month_bounds(year, month)
        entries = await self.entries_for_employee(employee_id, start, end)
        counts = {s.value: 0 for s in TimesheetStatus}
        for entry in entries:
            counts[entry.status] = counts.get(entry.status, 0) + 1

        work_days = count_work_days(start, min(end, today)) if start <= today else 0
        present = counts["complete"] + counts["incomplete"]
        return {
            "year": year,
            "month": month,
            "work_days": work_days,
            "complete": counts["complete"],
            "incomplete": counts["incomplete"],
            "absent": max(0, work_days - present),
            "attendance_rate": attendance_rate(present, work_days),
        }
