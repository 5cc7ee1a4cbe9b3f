"""
Leave request service: validation, lifecycle and yearly balances.

Only invalid ranges and overlaps with an employee's pending or approved
requests block a submission; every other rule produces a warning that is
returned alongside the saved request.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from pontaj.core.config import settings as app_settings
from pontaj.core.enums import LeaveStatus, LeaveType
from pontaj.core.exceptions import ConflictError, NotFoundError, ValidationError
from pontaj.models.employee import Employee
from pontaj.models.leave_request import LeaveRequest
from pontaj.models.user import User
from pontaj.schemas.leave import LeaveRequestCreate, LeaveRequestUpdate
from pontaj.services.settings_service import SettingsService
from pontaj.utils.rules import count_work_days, dates_overlap, days_between

logger = logging.getLogger(__name__)

_OPEN_STATUSES = (LeaveStatus.PENDING.value, LeaveStatus.APPROVED.value)

# Work-day thresholds above which a leave type gets a warning.
_LONG_LEAVE_WARNINGS = {
    LeaveType.MEDICAL: (15, "Medical leave over 15 days needs special approval"),
    LeaveType.VACATION: (10, "Vacation over 10 days should be planned in advance"),
    LeaveType.UNPAID: (30, "Unpaid leave over 30 days needs special approval"),
    LeaveType.PERSONAL: (5, "Personal leave over 5 days needs a detailed justification"),
}
_PARENTAL_LIMIT = 90
_MAX_WORK_DAYS = 30
_ADJACENT_GAP_DAYS = 3
_FREQUENCY_WINDOW_DAYS = 30


@dataclass
class LeaveValidation:
    calculated_days: int
    remaining_balance: int
    errors: dict[str, str] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)
    overlapping: list[LeaveRequest] = field(default_factory=list)
    consecutive: list[LeaveRequest] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


class LeaveService:
    def __init__(self, db: AsyncSession):
        self.db = db

    # ── Reads ───────────────────────────────────────────────────────
    async def list_requests(
        self, *, employee_id: int | None = None, status: str | None = None
    ) -> list[tuple[LeaveRequest, str, str]]:
        """Requests newest first, each paired with employee name and department."""
        query = (
            select(LeaveRequest, Employee.name, Employee.department)
            .join(Employee, LeaveRequest.employee_id == Employee.id)
            .order_by(LeaveRequest.created_at.desc(), LeaveRequest.id.desc())
        )
        if employee_id is not None:
            query = query.where(LeaveRequest.employee_id == employee_id)
        if status:
            query = query.where(LeaveRequest.status == status)
        result = await self.db.execute(query)
        return [(req, name, dept) for req, name, dept in result.all()]

    async def get(self, request_id: int) -> LeaveRequest:
        request = await self.db.get(LeaveRequest, request_id)
        if request is None:
            raise NotFoundError(f"Leave request {request_id} not found")
        return request

    async def _open_requests(
        self, employee_id: int, exclude_id: int | None = None
    ) -> list[LeaveRequest]:
        query = select(LeaveRequest).where(
            LeaveRequest.employee_id == employee_id,
            LeaveRequest.status.in_(_OPEN_STATUSES),
        )
        if exclude_id is not None:
            query = query.where(LeaveRequest.id != exclude_id)
        result = await self.db.execute(query.order_by(LeaveRequest.start_date))
        return list(result.scalars().all())

    async def is_on_leave(self, employee_id: int, day: date) -> bool:
        result = await self.db.execute(
            select(func.count(LeaveRequest.id)).where(
                LeaveRequest.employee_id == employee_id,
                LeaveRequest.status == LeaveStatus.APPROVED.value,
                LeaveRequest.start_date <= day,
                LeaveRequest.end_date >= day,
            )
        )
        return (result.scalar() or 0) > 0

    async def employees_on_leave(self, day: date) -> set[int]:
        result = await self.db.execute(
            select(LeaveRequest.employee_id).where(
                LeaveRequest.status == LeaveStatus.APPROVED.value,
                LeaveRequest.start_date <= day,
                LeaveRequest.end_date >= day,
            )
        )
        return set(result.scalars().all())

    async def pending_count(self) -> int:
        result = await self.db.execute(
            select(func.count(LeaveRequest.id)).where(
                LeaveRequest.status == LeaveStatus.PENDING.value
            )
        )
        return result.scalar() or 0

    async def stats(self, year: int) -> dict:
        start, end = date(year, 1, 1), date(year, 12, 31)
        result = await self.db.execute(
            select(LeaveRequest.status, func.count(LeaveRequest.id))
            .where(LeaveRequest.start_date >= start, LeaveRequest.start_date <= end)
            .group_by(LeaveRequest.status)
        )
        stats = {"year": year, "total": 0, "pending": 0, "approved": 0, "rejected": 0}
        for status, count in result.all():
            stats[status] = count
            stats["total"] += count
        return stats

    async def allowance(self) -> int:
        return await SettingsService(self.db).get_int(
            "max_leave_days_per_year", app_settings.DEFAULT_LEAVE_DAYS_PER_YEAR
        )

    async def balance(self, employee_id: int, year: int, allowance: int | None = None) -> dict:
        if allowance is None:
            allowance = await self.allowance()
        result = await self.db.execute(
            select(LeaveRequest.status, func.coalesce(func.sum(LeaveRequest.days), 0))
            .where(
                LeaveRequest.employee_id == employee_id,
                LeaveRequest.start_date >= date(year, 1, 1),
                LeaveRequest.start_date <= date(year, 12, 31),
            )
            .group_by(LeaveRequest.status)
        )
        totals = {status: int(days) for status, days in result.all()}
        used = totals.get(LeaveStatus.APPROVED.value, 0)
        return {
            "employee_id": employee_id,
            "year": year,
            "total_days_per_year": allowance,
            "used_days": used,
            "pending_days": totals.get(LeaveStatus.PENDING.value, 0),
            "remaining_days": allowance - used,
        }

    # ── Validation ──────────────────────────────────────────────────
    async def validate(
        self,
        employee_id: int,
        start: date,
        end: date,
        leave_type: LeaveType | str,
        reason: str | None = None,
        exclude_id: int | None = None,
        today: date | None = None,
    ) -> LeaveValidation:
        today = today or date.today()
        leave_type = LeaveType(leave_type)
        days = count_work_days(start, end)
        balance = await self.balance(employee_id, start.year)
        check = LeaveValidation(calculated_days=days, remaining_balance=balance["remaining_days"])

        if end < start:
            check.errors["date_range"] = "End date must be on or after the start date"
            return check
        if days == 0:
            check.errors["days"] = "The selected period contains no work days"
            return check

        if start < today - timedelta(days=30):
            check.warnings.append("Start date is more than 30 days in the past")
        if start > today + timedelta(days=365):
            check.warnings.append("Start date is more than one year in the future")
        if days > _MAX_WORK_DAYS:
            check.warnings.append(f"Request spans {days} work days (more than {_MAX_WORK_DAYS})")

        # Overlap (blocking) and near-adjacent requests (warning)
        existing = await self._open_requests(employee_id, exclude_id)
        for other in existing:
            if dates_overlap(start, end, other.start_date, other.end_date):
                check.overlapping.append(other)
            elif min(
                days_between(other.end_date, start), days_between(end, other.start_date)
            ) <= _ADJACENT_GAP_DAYS:
                check.consecutive.append(other)
        if check.overlapping:
            check.errors["overlap"] = "Overlaps with existing requests: " + "; ".join(
                f"{r.start_date} - {r.end_date} ({r.leave_type}, {r.status})"
                for r in check.overlapping
            )
        if check.consecutive:
            check.warnings.append(
                f"{len(check.consecutive)} consecutive or very close requests detected"
            )

        if days > balance["remaining_days"]:
            check.warnings.append(
                f"Not enough leave left: {balance['remaining_days']} days remaining, {days} requested"
            )

        # Frequency heuristics over requests starting in the 30 days before this one
        window_start = start - timedelta(days=_FREQUENCY_WINDOW_DAYS)
        recent = [r for r in existing if r.start_date >= window_start]
        if len(recent) >= 3:
            check.warnings.append(f"{len(recent)} requests in the last 30 days")
        recent_days = sum(r.days for r in recent)
        if recent_days >= 10:
            check.warnings.append(f"{recent_days} days requested in the last 30 days")
        bridge_requests = [
            r
            for r in recent
            if r.days <= 2 and (r.start_date.weekday() == 0 or r.end_date.weekday() == 4)
        ]
        if len(bridge_requests) >= 2:
            check.warnings.append("Pattern of Friday/Monday requests detected")

        # Per-type rules
        if leave_type in (LeaveType.MATERNITY, LeaveType.PATERNITY) and days > _PARENTAL_LIMIT:
            check.warnings.append(f"Parental leave over {_PARENTAL_LIMIT} days needs HR review")
        limit = _LONG_LEAVE_WARNINGS.get(leave_type)
        if limit and days > limit[0]:
            check.warnings.append(limit[1])
        if leave_type in (LeaveType.PERSONAL, LeaveType.UNPAID) and not (reason or "").strip():
            check.warnings.append(f"A reason is recommended for {leave_type.value} leave")
        if days == 1:
            check.warnings.append("Single-day request")
        if (start.year, start.month) != (end.year, end.month):
            check.warnings.append("Request spans more than one month")

        return check

    @staticmethod
    def _raise_for(check: LeaveValidation) -> None:
        if check.is_valid:
            return
        if "overlap" in check.errors:
            raise ConflictError(check.errors["overlap"], details=check.errors)
        raise ValidationError(next(iter(check.errors.values())), details=check.errors)

    # ── Writes ──────────────────────────────────────────────────────
    async def create(self, data: LeaveRequestCreate) -> tuple[LeaveRequest, list[str]]:
        if await self.db.get(Employee, data.employee_id) is None:
            raise NotFoundError(f"Employee {data.employee_id} not found")
        check = await self.validate(
            data.employee_id, data.start_date, data.end_date, data.leave_type, data.reason
        )
        self._raise_for(check)

        request = LeaveRequest(
            employee_id=data.employee_id,
            start_date=data.start_date,
            end_date=data.end_date,
            days=check.calculated_days,
            leave_type=LeaveType(data.leave_type).value,
            reason=(data.reason or "").strip() or None,
            status=LeaveStatus.PENDING.value,
            submitted_date=date.today(),
        )
        if await SettingsService(self.db).get_bool("auto_approve_leave"):
            request.status = LeaveStatus.APPROVED.value
            request.approved_at = datetime.now(timezone.utc)

        self.db.add(request)
        await self.db.commit()
        await self.db.refresh(request)
        logger.info(
            "Leave request %d created for employee %d: %s..%s (%d days, %s)",
            request.id,
            request.employee_id,
            request.start_date,
            request.end_date,
            request.days,
            request.status,
        )
        return request, check.warnings

    async def update(
        self, request_id: int, data: LeaveRequestUpdate
    ) -> tuple[LeaveRequest, list[str]]:
        request = await self.get(request_id)
        if request.status != LeaveStatus.PENDING.value:
            raise ConflictError(f"Only pending requests can be edited (status is {request.status})")

        fields = data.model_dump(exclude_unset=True)
        start = fields.get("start_date") or request.start_date
        end = fields.get("end_date") or request.end_date
        leave_type = fields.get("leave_type") or request.leave_type
        reason = fields["reason"] if "reason" in fields else request.reason

        check = await self.validate(
            request.employee_id, start, end, leave_type, reason, exclude_id=request.id
        )
        self._raise_for(check)

        request.start_date = start
        request.end_date = end
        request.leave_type = LeaveType(leave_type).value
        request.reason = (reason or "").strip() or None
        request.days = check.calculated_days
        await self.db.commit()
        await self.db.refresh(request)
        logger.info("Leave request %d updated (%d days)", request.id, request.days)
        return request, check.warnings

    async def _decide(self, request_id: int, admin: User, status: LeaveStatus) -> LeaveRequest:
        request = await self.get(request_id)
        if request.status != LeaveStatus.PENDING.value:
            raise ConflictError(
                f"Leave request {request_id} is already {request.status}"
            )
        request.status = status.value
        request.approved_by = admin.id
        request.approved_at = datetime.now(timezone.utc)
        await self.db.commit()
        await self.db.refresh(request)
        logger.info("Leave request %d %s by user %s", request.id, status.value, admin.id)
        return request

    async def approve(self, request_id: int, admin: User) -> LeaveRequest:
        return await self._decide(request_id, admin, LeaveStatus.APPROVED)

    async def reject(self, request_id: int, admin: User) -> LeaveRequest:
        return await self._decide(request_id, admin, LeaveStatus.REJECTED)

    async def delete(self, request_id: int) -> None:
        request = await self.get(request_id)
        if request.status != LeaveStatus.PENDING.value:
            raise ConflictError("Only pending requests can be deleted")
        await self.db.delete(request)
        await self.db.commit()
        logger.warning("Deleted leave request %d", request_id)
