"""
Leave request endpoints.

Admins manage every request under ``/leave-requests``; employees file and
review their own under ``/employee/leave-requests``.
"""

from __future__ import annotations

from datetime import date
from typing import Literal

from fastapi import APIRouter, Body, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from pontaj.api.v1.deps import (get_current_active_user, get_current_employee,
                                get_db, require_admin)
from pontaj.core.enums import LeaveStatus
from pontaj.models.employee import Employee
from pontaj.models.leave_request import LeaveRequest
from pontaj.models.user import User
from pontaj.schemas.common import ApiResponse, MessageResponse
from pontaj.schemas.leave import (EmployeeLeaveCreate, LeaveBalance,
                                  LeaveCreated, LeaveRequestCreate,
                                  LeaveRequestRead, LeaveRequestUpdate,
                                  LeaveStats)
from pontaj.services.leave_service import LeaveService

router = APIRouter(tags=["leave-requests"])


def _read(request: LeaveRequest, name: str | None = None, department: str | None = None) -> LeaveRequestRead:
    data = LeaveRequestRead.model_validate(request)
    data.employee_name = name
    data.department = department
    return data


def _created_message(warnings: list[str]) -> str:
    if not warnings:
        return "Leave request submitted"
    return "Leave request submitted with warnings: " + "; ".join(warnings)


# ── Admin ───────────────────────────────────────────────────────────
@router.get("/leave-requests", response_model=ApiResponse[list[LeaveRequestRead]])
async def list_leave_requests(
    employee_id: int | None = None,
    status: LeaveStatus | None = None,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> ApiResponse[list[LeaveRequestRead]]:
    rows = await LeaveService(db).list_requests(
        employee_id=employee_id, status=status.value if status else None
    )
    return ApiResponse(data=[_read(*row) for row in rows])


@router.post("/leave-requests", response_model=ApiResponse[LeaveCreated], status_code=201)
async def create_leave_request(
    body: LeaveRequestCreate,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> ApiResponse[LeaveCreated]:
    request, warnings = await LeaveService(db).create(body)
    return ApiResponse(
        data=LeaveCreated(request=_read(request), warnings=warnings),
        message=_created_message(warnings),
    )


@router.get("/leave-requests/balance", response_model=ApiResponse[LeaveBalance])
async def leave_balance(
    employee_id: int,
    year: int | None = None,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(get_current_active_user),
) -> ApiResponse[LeaveBalance]:
    balance = await LeaveService(db).balance(employee_id, year or date.today().year)
    return ApiResponse(data=LeaveBalance(**balance))


@router.get("/leave-requests/pending-count", response_model=ApiResponse[int])
async def pending_count(
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> ApiResponse[int]:
    return ApiResponse(data=await LeaveService(db).pending_count())


@router.get("/leave-requests/stats", response_model=ApiResponse[LeaveStats])
async def leave_stats(
    year: int | None = None,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> ApiResponse[LeaveStats]:
    stats = await LeaveService(db).stats(year or date.today().year)
    return ApiResponse(data=LeaveStats(**stats))


@router.put("/leave-requests/{request_id}", response_model=ApiResponse[LeaveRequestRead])
async def update_leave_request(
    request_id: int,
    action: Literal["approve", "reject"] | None = None,
    body: dict | None = Body(default=None),
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
) -> ApiResponse[LeaveRequestRead]:
    """Approve / reject a pending request, or edit it when no ``action`` is given."""
    service = LeaveService(db)
    if action == "approve":
        request = await service.approve(request_id, admin)
        return ApiResponse(data=_read(request), message="Leave request approved")
    if action == "reject":
        request = await service.reject(request_id, admin)
        return ApiResponse(data=_read(request), message="Leave request rejected")

    request, warnings = await service.update(
        request_id, LeaveRequestUpdate.model_validate(body or {})
    )
    message = "Leave request updated"
    if warnings:
        message += " with warnings: " + "; ".join(warnings)
    return ApiResponse(data=_read(request), message=message)


@router.delete("/leave-requests/{request_id}", response_model=MessageResponse)
async def delete_leave_request(
    request_id: int,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> MessageResponse:
    await LeaveService(db).delete(request_id)
    return MessageResponse(message="Leave request deleted")


# ── Self-service ────────────────────────────────────────────────────
@router.get("/employee/leave-requests", response_model=ApiResponse[list[LeaveRequestRead]])
async def my_leave_requests(
    db: AsyncSession = Depends(get_db),
    employee: Employee = Depends(get_current_employee),
) -> ApiResponse[list[LeaveRequestRead]]:
    rows = await LeaveService(db).list_requests(employee_id=employee.id)
    return ApiResponse(data=[_read(*row) for row in rows])


@router.post("/employee/leave-requests", response_model=ApiResponse[LeaveCreated], status_code=201)
async def file_leave_request(
    body: EmployeeLeaveCreate,
    db: AsyncSession = Depends(get_db),
    employee: Employee = Depends(get_current_employee),
) -> ApiResponse[LeaveCreated]:
    data = LeaveRequestCreate(employee_id=employee.id, **body.model_dump())
    request, warnings = await LeaveService(db).create(data)
    return ApiResponse(
        data=LeaveCreated(request=_read(request, employee.name, employee.department), warnings=warnings),
        message=_created_message(warnings),
    )
