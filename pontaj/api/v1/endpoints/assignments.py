"""
Test assignment endpoints.

- ``/test-assignments``  admin management of per-day assignments.
- ``/employee/tests``    the logged-in employee's own assignments.
"""

from __future__ import annotations

from datetime import date
from typing import Annotated, Union

from fastapi import APIRouter, Depends, Query
from pydantic import Field
from sqlalchemy.ext.asyncio import AsyncSession

from pontaj.api.v1.deps import get_current_employee, get_db, require_admin
from pontaj.core.exceptions import NotFoundError
from pontaj.models.employee import Employee
from pontaj.models.user import User
from pontaj.schemas.assessment import (AssignmentCreate, AssignmentRead,
                                       AssignmentsByDate, AssignmentStats,
                                       AssignmentUpdate, BatchUpdateRequest,
                                       BatchUpdateResult,
                                       EmployeeAssignmentUpdate,
                                       EmployeeTestsOverview,
                                       EmployeeTestStats)
from pontaj.schemas.common import ApiResponse, MessageResponse
from pontaj.schemas.employee import EmployeeOption
from pontaj.services.assignment_service import AssignmentService

router = APIRouter(tags=["test-assignments"])

AssignmentsPayload = Annotated[
    Union[AssignmentsByDate, list[AssignmentRead]], Field(union_mode="left_to_right")
]


# ── Admin ───────────────────────────────────────────────────────────
@router.get("/test-assignments", response_model=ApiResponse[AssignmentsPayload])
async def list_assignments(
    day: date | None = Query(default=None, alias="date"),
    employee_id: int | None = None,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> ApiResponse:
    """Assignments of one day (default today), or every assignment of an employee."""
    service = AssignmentService(db)
    if employee_id is not None:
        rows = await service.for_employee(employee_id)
        return ApiResponse(data=[AssignmentRead.model_validate(r) for r in rows])
    return ApiResponse(data=AssignmentsByDate(**await service.by_date(day or date.today())))


@router.get("/test-assignments/stats", response_model=ApiResponse[AssignmentStats])
async def assignment_stats(
    day: date | None = Query(default=None, alias="date"),
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> ApiResponse[AssignmentStats]:
    stats = await AssignmentService(db).stats(day or date.today())
    return ApiResponse(data=AssignmentStats(**stats))


@router.get("/test-assignments/eligible-employees", response_model=ApiResponse[list[EmployeeOption]])
async def eligible_employees(
    day: date | None = Query(default=None, alias="date"),
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> ApiResponse[list[EmployeeOption]]:
    employees = await AssignmentService(db).eligible_employees(day or date.today())
    return ApiResponse(data=[EmployeeOption.model_validate(e) for e in employees])


@router.post("/test-assignments", response_model=ApiResponse[AssignmentRead], status_code=201)
async def create_assignment(
    body: AssignmentCreate,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> ApiResponse[AssignmentRead]:
    service = AssignmentService(db)
    assignment = await service.create(body)
    return ApiResponse(
        data=AssignmentRead.model_validate(await service.get_detailed(assignment.id)),
        message="Test assigned",
    )


@router.post("/test-assignments/batch-update", response_model=ApiResponse[BatchUpdateResult])
async def batch_update(
    body: BatchUpdateRequest,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> ApiResponse[BatchUpdateResult]:
    result = await AssignmentService(db).batch_update(body.updates)
    return ApiResponse(
        data=BatchUpdateResult(**result),
        message=f"{result['success_count']} updated, {result['error_count']} failed",
    )


@router.put("/test-assignments/{assignment_id}", response_model=ApiResponse[AssignmentRead])
async def update_assignment(
    assignment_id: int,
    body: AssignmentUpdate,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> ApiResponse[AssignmentRead]:
    service = AssignmentService(db)
    await service.update(assignment_id, body)
    return ApiResponse(
        data=AssignmentRead.model_validate(await service.get_detailed(assignment_id)),
        message="Assignment updated",
    )


@router.delete("/test-assignments/{assignment_id}", response_model=MessageResponse)
async def delete_assignment(
    assignment_id: int,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> MessageResponse:
    await AssignmentService(db).delete(assignment_id)
    return MessageResponse(message="Assignment deleted")


# ── Self-service ────────────────────────────────────────────────────
@router.get("/employee/tests", response_model=ApiResponse[EmployeeTestsOverview])
async def my_tests(
    db: AsyncSession = Depends(get_db),
    employee: Employee = Depends(get_current_employee),
) -> ApiResponse[EmployeeTestsOverview]:
    service = AssignmentService(db)
    rows = await service.for_employee(employee.id)
    today = date.today()
    return ApiResponse(
        data=EmployeeTestsOverview(
            assignments=[AssignmentRead.model_validate(r) for r in rows],
            todays_tests=[AssignmentRead.model_validate(r) for r in rows if r["assigned_date"] == today],
            stats=EmployeeTestStats(**await service.employee_stats(employee.id)),
        )
    )


@router.put("/employee/tests/{assignment_id}", response_model=ApiResponse[AssignmentRead])
async def update_my_test(
    assignment_id: int,
    body: EmployeeAssignmentUpdate,
    db: AsyncSession = Depends(get_db),
    employee: Employee = Depends(get_current_employee),
) -> ApiResponse[AssignmentRead]:
    """Employees may only change the status and notes of their own assignments."""
    service = AssignmentService(db)
    assignment = await service.get(assignment_id)
    if assignment.employee_id != employee.id:
        raise NotFoundError(f"Test assignment {assignment_id} not found")
    await service.update(assignment_id, AssignmentUpdate(**body.model_dump(exclude_unset=True)))
    return ApiResponse(
        data=AssignmentRead.model_validate(await service.get_detailed(assignment_id)),
        message="Test updated",
    )
