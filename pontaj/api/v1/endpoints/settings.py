"""
System settings endpoints: admin-configurable key/value rules.

Values are stored as text and typed by ``setting_type``; the ``grouped``
view returns them parsed, one dict per settings page section.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from pontaj.api.v1.deps import get_current_active_user, get_db, require_admin
from pontaj.models.user import User
from pontaj.schemas.common import ApiResponse
from pontaj.schemas.settings import (InitializeResult, SettingRead,
                                     SettingsOverview, SettingsUpdate)
from pontaj.services.settings_service import SettingsService

router = APIRouter(prefix="/settings", tags=["settings"])
logger = logging.getLogger(__name__)


async def _overview(service: SettingsService) -> SettingsOverview:
    return SettingsOverview(
        settings=[SettingRead.model_validate(s) for s in await service.list_settings()],
        grouped=await service.grouped(),
    )


@router.get("", response_model=ApiResponse[SettingsOverview])
async def get_settings(
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(get_current_active_user),
) -> ApiResponse[SettingsOverview]:
    """Stored rows plus typed values grouped by section (defaults fill gaps)."""
    return ApiResponse(data=await _overview(SettingsService(db)))


@router.put("", response_model=ApiResponse[SettingsOverview])
async def update_settings(
    body: SettingsUpdate,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
) -> ApiResponse[SettingsOverview]:
    service = SettingsService(db)
    await service.update_many(body.settings)
    logger.info("Settings updated by user %s", admin.id)
    return ApiResponse(data=await _overview(service), message="Settings saved")


@router.post("/initialize", response_model=ApiResponse[InitializeResult])
async def initialize_settings(
    overwrite: bool = False,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> ApiResponse[InitializeResult]:
    """Create missing defaults; ``overwrite`` also resets existing values."""
    service = SettingsService(db)
    created = await service.initialize(overwrite=overwrite)
    total = len(await service.list_settings())
    return ApiResponse(
        data=InitializeResult(created=created, total=total),
        message=f"{created} default settings created",
    )
