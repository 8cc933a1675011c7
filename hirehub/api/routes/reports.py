from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from hirehub.api.deps import get_cache, get_db_session, require_roles
from hirehub.api.schemas.activity import PipelineMetrics
from hirehub.domain import Identity
from hirehub.domain.services.reports import ReportService
from hirehub.infrastructure.cache import CacheAside

router = APIRouter(prefix="/reports", tags=["Reports"])

REPORT_READERS = ["admin", "hr"]


@router.get("/export", response_class=Response)
async def export_applications(
    created_from: datetime | None = Query(None, alias="from"),
    created_to: datetime | None = Query(None, alias="to"),
    identity: Identity = Depends(require_roles(REPORT_READERS)),
    session: AsyncSession = Depends(get_db_session),
    cache: CacheAside = Depends(get_cache),
) -> Response:
    """Download applications as CSV, optionally bounded by submission date."""
    body = await ReportService(session, cache).export_csv(
        created_from=created_from, created_to=created_to
    )
    return Response(
        content=body,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": "attachment; filename=applications_report.csv"},
    )


@router.get("/pipeline", response_model=PipelineMetrics)
async def pipeline_metrics(
    identity: Identity = Depends(require_roles(REPORT_READERS)),
    session: AsyncSession = Depends(get_db_session),
    cache: CacheAside = Depends(get_cache),
) -> dict:
    return await ReportService(session, cache).pipeline_metrics()
