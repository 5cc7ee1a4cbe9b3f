"""
Pre-flight validation endpoints used by the forms before they submit.
Nothing here writes to the database.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from pontaj.api.v1.deps import get_current_active_user, get_db
from pontaj.models.user import User
from pontaj.schemas.common import ApiResponse
from pontaj.schemas.employee import (DuplicateCheckRequest,
                                     DuplicateCheckResult, EmployeeOption)
from pontaj.schemas.leave import (LeaveConflict, LeaveValidationRequest,
                                  LeaveValidationResult)
from pontaj.services.employee_service import EmployeeService
from pontaj.services.leave_service import LeaveService

router = APIRouter(prefix="/validation", tags=["validation"])


@router.post("/check-duplicates", response_model=ApiResponse[DuplicateCheckResult])
async def check_duplicates(
    body: DuplicateCheckRequest,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(get_current_active_user),
) -> ApiResponse[DuplicateCheckResult]:
    matches = await EmployeeService(db).check_duplicate(body.field, body.value, body.exclude_id)
    return ApiResponse(
        data=DuplicateCheckResult(
            field=body.field,
            value=body.value,
            is_duplicate=bool(matches),
            matches=[EmployeeOption.model_validate(e) for e in matches],
        )
    )


@router.post("/leave-conflicts", response_model=ApiResponse[LeaveValidationResult])
async def leave_conflicts(
    body: LeaveValidationRequest,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(get_current_active_user),
) -> ApiResponse[LeaveValidationResult]:
    """Run the full leave validator without creating anything."""
    check = await LeaveService(db).validate(
        body.employee_id,
        body.start_date,
        body.end_date,
        body.leave_type,
        body.reason,
        exclude_id=body.exclude_id,
    )
    return ApiResponse(
        data=LeaveValidationResult(
            is_valid=check.is_valid,
            errors=check.errors,
            warnings=check.warnings,
            calculated_days=check.calculated_days,
            remaining_balance=check.remaining_balance,
            overlapping=[LeaveConflict.model_validate(r) for r in check.overlapping],
            consecutive=[LeaveConflict.model_validate(r) for r in check.consecutive],
        )
    )
