"""Recruitment reporting: CSV export and pipeline metrics."""

from __future__ import annotations

import csv
import io
from datetime import datetime
from typing import Any

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from hirehub.core.config import get_settings
from hirehub.infrastructure.cache import CacheAside, CacheKeys
from hirehub.infrastructure.db.models import ApplicationModel, ApplicationStatus
from hirehub.infrastructure.repositories import ApplicationRepository

logger = structlog.get_logger(__name__)

CSV_COLUMNS = (
    "candidate_name",
    "email",
    "job_title",
    "department",
    "status",
    "resume",
    "applied_at",
)


def _csv_row(application: ApplicationModel) -> dict[str, str]:
    applicant = application.applicant
    job = application.job
    name = application.candidate_name or (applicant.full_name if applicant else "")
    email = application.candidate_email or (applicant.email if applicant else "")
    return {
        "candidate_name": name,
        "email": email,
        "job_title": job.title if job else "",
        "department": job.department if job else "",
        "status": application.status.value,
        "resume": application.resume,
        "applied_at": application.created_at.isoformat(),
    }


class ReportService:
    def __init__(self, session: AsyncSession, cache: CacheAside) -> None:
        self.repo = ApplicationRepository(session)
        self.cache = cache

    async def export_csv(
        self, *, created_from: datetime | None = None, created_to: datetime | None = None
    ) -> str:
        stmt = self.repo.filtered(created_from=created_from, created_to=created_to)
        applications = await self.repo.list_all(stmt)

        buffer = io.StringIO()
        writer = csv.DictWriter(buffer, fieldnames=CSV_COLUMNS)
        writer.writeheader()
        for application in applications:
            writer.writerow(_csv_row(application))

        logger.info("applications_exported", rows=len(applications))
        return buffer.getvalue()

    async def pipeline_metrics(self) -> dict[str, Any]:
        """Counts per status plus average days from submission to offer (cached)."""

        async def load() -> dict[str, Any]:
            counts = await self.repo.count_by_status()
            durations = await self.repo.offer_durations_days()
            average = sum(durations) / len(durations) if durations else 0.0
            return {
                "pipeline": [
                    {"status": status.value, "count": counts.get(status.value, 0)}
                    for status in ApplicationStatus
                ],
                "total": sum(counts.values()),
                "avg_time_to_offer_days": round(average, 2),
            }

        return await self.cache.get_or_load(
            CacheKeys.PIPELINE_METRICS, load, get_settings().cache_ttl_metrics
        )
