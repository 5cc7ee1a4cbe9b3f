"""
Test definition endpoints and the daily auto-assignment trigger.
"""

from __future__ import annotations

from typing import Annotated, Union

from fastapi import APIRouter, Body, Depends
from pydantic import Field
from sqlalchemy.ext.asyncio import AsyncSession

from pontaj.api.v1.deps import get_current_active_user, get_db, require_admin
from pontaj.core.enums import TestStatus
from pontaj.models.user import User
from pontaj.schemas.assessment import (AssessmentCreate, AssessmentRead,
                                       AssessmentStats, AssessmentUpdate,
                                       DailyAssignmentRequest,
                                       DailyAssignmentResult)
from pontaj.schemas.common import ApiResponse, MessageResponse
from pontaj.services.assessment_service import AssessmentService
from pontaj.services.assignment_service import AssignmentService

router = APIRouter(prefix="/tests", tags=["tests"])

TestsPayload = Annotated[
    Union[list[AssessmentRead], AssessmentStats], Field(union_mode="left_to_right")
]


@router.get("", response_model=ApiResponse[TestsPayload])
async def list_tests(
    stats_only: bool = False,
    status: TestStatus | None = None,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(get_current_active_user),
) -> ApiResponse:
    service = AssessmentService(db)
    if stats_only:
        return ApiResponse(data=AssessmentStats(**await service.stats()))
    tests = await service.list_tests(status=status.value if status else None)
    return ApiResponse(data=[AssessmentRead.model_validate(t) for t in tests])


@router.post("", response_model=ApiResponse[AssessmentRead], status_code=201)
async def create_test(
    body: AssessmentCreate,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
) -> ApiResponse[AssessmentRead]:
    test = await AssessmentService(db).create(body, author=admin)
    return ApiResponse(data=AssessmentRead.model_validate(test), message=f"Test '{test.title}' created")


@router.post("/assign-daily", response_model=ApiResponse[DailyAssignmentResult])
async def assign_daily(
    body: DailyAssignmentRequest | None = Body(default=None),
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> ApiResponse[DailyAssignmentResult]:
    """Rebuild the assignments for one day (today when no date is given)."""
    day = body.assignment_date if body else None
    result = await AssignmentService(db).assign_daily(day)
    return ApiResponse(data=DailyAssignmentResult(**result), message=result["message"])


@router.put("/{test_id}", response_model=ApiResponse[AssessmentRead])
async def update_test(
    test_id: int,
    body: AssessmentUpdate,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> ApiResponse[AssessmentRead]:
    test = await AssessmentService(db).update(test_id, body)
    return ApiResponse(data=AssessmentRead.model_validate(test), message="Test updated")


@router.delete("/{test_id}", response_model=MessageResponse)
async def delete_test(
    test_id: int,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> MessageResponse:
    await AssessmentService(db).delete(test_id)
    return MessageResponse(message="Test deleted")
