"""
Employee endpoints.

- GET operations require any authenticated user.
- POST / PUT / DELETE operations require admin role.
- State transitions go through PUT with an ``action`` query parameter.
"""

from __future__ import annotations

from typing import Annotated, Literal, Union

from fastapi import APIRouter, Body, Depends, Query
from pydantic import Field
from sqlalchemy.ext.asyncio import AsyncSession

from pontaj.api.v1.deps import get_current_active_user, get_db, require_admin
from pontaj.core.exceptions import NotFoundError
from pontaj.models.user import User
from pontaj.schemas.common import ApiResponse
from pontaj.schemas.employee import (DepartmentStat, EmployeeAction,
                                     EmployeeCreate, EmployeeCreated,
                                     EmployeeOption, EmployeeRead,
                                     EmployeeUpdate)
from pontaj.services.employee_service import EmployeeService

router = APIRouter(prefix="/employees", tags=["employees"])

# Full rows first; dropdown rows only match the slim schema
EmployeeListItem = Annotated[Union[EmployeeRead, EmployeeOption], Field(union_mode="left_to_right")]


@router.get("", response_model=ApiResponse[list[EmployeeListItem]])
async def list_employees(
    include_inactive: bool = True,
    for_dropdown: bool = False,
    search: str | None = Query(default=None, max_length=100),
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(get_current_active_user),
) -> ApiResponse:
    service = EmployeeService(db)
    if for_dropdown:
        employees = await service.list_for_dropdown(include_inactive=include_inactive)
        return ApiResponse(data=[EmployeeOption.model_validate(e) for e in employees])
    employees = await service.list_employees(include_inactive=include_inactive, search=search)
    return ApiResponse(data=[EmployeeRead.model_validate(e) for e in employees])


@router.get("/departments", response_model=ApiResponse[list[str]])
async def list_departments(
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(get_current_active_user),
) -> ApiResponse[list[str]]:
    return ApiResponse(data=await EmployeeService(db).departments())


@router.get("/stats", response_model=ApiResponse[list[DepartmentStat]])
async def department_stats(
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(get_current_active_user),
) -> ApiResponse[list[DepartmentStat]]:
    """Head count and active head count per department."""
    stats = await EmployeeService(db).department_stats()
    return ApiResponse(data=[DepartmentStat(**s) for s in stats])


@router.get("/by-user/{user_id}", response_model=ApiResponse[EmployeeRead])
async def get_employee_by_user(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(get_current_active_user),
) -> ApiResponse[EmployeeRead]:
    employee = await EmployeeService(db).get_by_user_id(user_id)
    if employee is None:
        raise NotFoundError(f"No employee linked to user {user_id}")
    return ApiResponse(data=EmployeeRead.model_validate(employee))


@router.get("/{employee_id}", response_model=ApiResponse[EmployeeRead])
async def get_employee(
    employee_id: int,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(get_current_active_user),
) -> ApiResponse[EmployeeRead]:
    employee = await EmployeeService(db).get(employee_id)
    return ApiResponse(data=EmployeeRead.model_validate(employee))


@router.post("", response_model=ApiResponse[EmployeeCreated], status_code=201)
async def create_employee(
    body: EmployeeCreate,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> ApiResponse[EmployeeCreated]:
    employee, generated_password = await EmployeeService(db).create(body)
    data = EmployeeCreated.model_validate(employee)
    data.generated_password = generated_password
    return ApiResponse(data=data, message=f"Employee '{employee.name}' created")


@router.put("/{employee_id}", response_model=ApiResponse[EmployeeRead])
async def update_employee(
    employee_id: int,
    action: Literal["activate", "deactivate", "toggle_test_eligibility"] | None = None,
    body: dict | None = Body(default=None),
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> ApiResponse[EmployeeRead]:
    """Plain update, or a state transition when ``action`` is given."""
    service = EmployeeService(db)
    if action == "activate":
        employee = await service.activate(employee_id)
        message = "Employee reactivated"
    elif action == "deactivate":
        params = EmployeeAction.model_validate(body or {})
        employee = await service.deactivate(employee_id, params.leave_date)
        message = "Employee deactivated"
    elif action == "toggle_test_eligibility":
        params = EmployeeAction.model_validate(body or {})
        employee = await service.set_test_eligibility(employee_id, params.test_eligible)
        message = "Test eligibility updated"
    else:
        employee = await service.update(employee_id, EmployeeUpdate.model_validate(body or {}))
        message = "Employee updated"
    return ApiResponse(data=EmployeeRead.model_validate(employee), message=message)


@router.delete("/{employee_id}", response_model=ApiResponse[EmployeeRead])
async def delete_employee(
    employee_id: int,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> ApiResponse[EmployeeRead]:
    """Soft-delete (deactivate) an employee. History is preserved."""
    employee = await EmployeeService(db).deactivate(employee_id)
    return ApiResponse(
        data=EmployeeRead.model_validate(employee),
        message=f"Employee '{employee.name}' deactivated",
    )
