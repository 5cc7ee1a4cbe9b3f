"""
Timesheet option endpoints: the checklist columns of the daily timesheet.
"""

from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from pontaj.api.v1.deps import get_current_active_user, get_db, require_admin
from pontaj.models.user import User
from pontaj.schemas.common import ApiResponse, MessageResponse
from pontaj.schemas.timesheet import (TimesheetOptionCreate,
                                      TimesheetOptionRead,
                                      TimesheetOptionUpdate)
from pontaj.services.timesheet_option_service import TimesheetOptionService

router = APIRouter(prefix="/timesheet-options", tags=["timesheet-options"])


@router.get("", response_model=ApiResponse[list[TimesheetOptionRead]])
async def list_options(
    active_only: bool = False,
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(get_current_active_user),
) -> ApiResponse[list[TimesheetOptionRead]]:
    options = await TimesheetOptionService(db).list_options(active_only=active_only)
    return ApiResponse(data=[TimesheetOptionRead.model_validate(o) for o in options])


@router.post("", response_model=ApiResponse[TimesheetOptionRead], status_code=201)
async def create_option(
    body: TimesheetOptionCreate,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> ApiResponse[TimesheetOptionRead]:
    option = await TimesheetOptionService(db).create(body)
    return ApiResponse(
        data=TimesheetOptionRead.model_validate(option),
        message=f"Option '{option.title}' created",
    )


@router.put("/{option_id}", response_model=ApiResponse[TimesheetOptionRead])
async def update_option(
    option_id: int,
    body: TimesheetOptionUpdate,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> ApiResponse[TimesheetOptionRead]:
    option = await TimesheetOptionService(db).update(option_id, body)
    return ApiResponse(data=TimesheetOptionRead.model_validate(option), message="Option updated")


@router.delete("/{option_id}", response_model=MessageResponse)
async def delete_option(
    option_id: int,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> MessageResponse:
    await TimesheetOptionService(db).delete(option_id)
    return MessageResponse(message="Option deleted")


@router.post("/{option_id}/toggle", response_model=ApiResponse[TimesheetOptionRead])
async def toggle_option(
    option_id: int,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> ApiResponse[TimesheetOptionRead]:
    option = await TimesheetOptionService(db).toggle(option_id)
    state = "activated" if option.active else "deactivated"
    return ApiResponse(data=TimesheetOptionRead.model_validate(option), message=f"Option {state}")


@router.post("/{option_id}/reorder", response_model=ApiResponse[list[TimesheetOptionRead]])
async def reorder_option(
    option_id: int,
    direction: Literal["up", "down"],
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> ApiResponse[list[TimesheetOptionRead]]:
    """Move an option one slot up or down; returns the full ordered list."""
    options = await TimesheetOptionService(db).reorder(option_id, direction)
    return ApiResponse(data=[TimesheetOptionRead.model_validate(o) for o in options])
