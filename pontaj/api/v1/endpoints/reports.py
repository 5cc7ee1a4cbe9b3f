"""
Reporting endpoints.

``GET /reports`` returns a report as JSON (headers + rows); ``GET
/reports/export`` serialises the same rows as CSV, Excel or a printable
HTML page and sends them as a file download.
"""

from __future__ import annotations

import io
import logging
from datetime import date
from typing import Annotated, Union

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from pydantic import Field
from sqlalchemy.ext.asyncio import AsyncSession

from pontaj.api.v1.deps import get_db, require_admin
from pontaj.core.enums import ExportFormat, ReportType
from pontaj.core.exceptions import ValidationError
from pontaj.models.user import User
from pontaj.schemas.common import ApiResponse
from pontaj.schemas.reports import ReportTable, SummaryStats
from pontaj.services.report_service import ReportService
from pontaj.utils.export import EXPORT_FORMATS, render_export

router = APIRouter(prefix="/reports", tags=["reports"])
logger = logging.getLogger(__name__)

ReportPayload = Annotated[Union[ReportTable, SummaryStats], Field(union_mode="left_to_right")]


@router.get("", response_model=ApiResponse[ReportPayload])
async def get_report(
    report_type: ReportType = Query(alias="type"),
    year: int | None = None,
    month: int | None = None,
    day: date | None = Query(default=None, alias="date"),
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> ApiResponse:
    service = ReportService(db)
    if report_type == ReportType.STATS:
        if year is None or month is None:
            raise ValidationError("Year and month are required for the stats report")
        if not 1 <= month <= 12:
            raise ValidationError("Month must be between 1 and 12")
        return ApiResponse(data=SummaryStats(**await service.summary_stats(year, month)))

    period, headers, rows = await service.build(report_type, year=year, month=month, day=day)
    return ApiResponse(
        data=ReportTable(type=report_type.value, period=period, headers=headers, rows=rows)
    )


@router.get("/export")
async def export_report(
    report_type: ReportType = Query(alias="type"),
    export_format: ExportFormat = Query(default=ExportFormat.CSV, alias="format"),
    year: int | None = None,
    month: int | None = None,
    day: date | None = Query(default=None, alias="date"),
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_admin),
) -> StreamingResponse:
    """Download a report as ``<type>_<period>.<ext>``."""
    period, headers, rows = await ReportService(db).build(
        report_type, year=year, month=month, day=day
    )
    info = EXPORT_FORMATS[export_format.value]
    content = render_export(export_format.value, report_type.value, period, headers, rows)
    filename = f"{report_type.value}_{period}.{info.extension}"
    logger.info("Exported %s (%d rows, %d bytes)", filename, len(rows), len(content))

    return StreamingResponse(
        io.BytesIO(content),
        media_type=info.media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
