"""
Dashboard, health and status endpoints.
"""

from __future__ import annotations

import logging
from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from pontaj.api.v1.deps import get_current_active_user, get_db, require_admin
from pontaj.core.config import settings
from pontaj.models.employee import Employee
from pontaj.models.timesheet import TimesheetEntry
from pontaj.models.user import User
from pontaj.schemas.common import ApiResponse
from pontaj.schemas.reports import (DashboardStats, HealthResponse,
                                    StatusResponse, WeeklyAttendanceDay)
from pontaj.services.dashboard_service import DashboardService
from pontaj.services.leave_service import LeaveService

router = APIRouter(tags=["dashboard"])
logger = logging.getLogger(__name__)


@router.get("/dashboard", response_model=ApiResponse[DashboardStats])
async def dashboard(
    day: date | None = Query(default=None, alias="date"),
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> ApiResponse[DashboardStats]:
    stats = await DashboardService(db).stats(day)
    return ApiResponse(data=DashboardStats(**stats))


@router.get("/dashboard/weekly", response_model=ApiResponse[list[WeeklyAttendanceDay]])
async def weekly_attendance(
    day: date | None = Query(default=None, alias="date"),
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> ApiResponse[list[WeeklyAttendanceDay]]:
    """Attendance rate for each work day of the week containing ``date``."""
    days = await DashboardService(db).weekly_attendance(day)
    return ApiResponse(data=[WeeklyAttendanceDay(**d) for d in days])


# ── Health / Status ─────────────────────────────────────────────────
@router.get("/health", response_model=HealthResponse)
async def health(db: AsyncSession = Depends(get_db)) -> HealthResponse:
    """Public health check: DB and Redis connectivity."""
    result = HealthResponse(db=False, redis=False)

    try:
        await db.execute(select(1))
        result.db = True
    except Exception as e:
        logger.error("Health check DB failure: %s", e)

    try:
        import redis.asyncio as aioredis

        r = aioredis.from_url(settings.REDIS_URL)
        await r.ping()
        await r.aclose()
        result.redis = True
    except Exception as e:
        logger.error("Health check Redis failure: %s", e)

    return result


@router.get("/status", response_model=StatusResponse)
async def system_status(
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(get_current_active_user),
) -> StatusResponse:
    """Active head count, today's timesheet entries and pending leave."""
    emp_count = await db.execute(
        select(func.count(Employee.id)).where(Employee.is_active.is_(True))
    )
    entry_count = await db.execute(
        select(func.count(TimesheetEntry.id)).where(TimesheetEntry.entry_date == date.today())
    )

    return StatusResponse(
        total_employees=emp_count.scalar() or 0,
        entries_today=entry_count.scalar() or 0,
        pending_leave_requests=await LeaveService(db).pending_count(),
        status="operational",
    )
