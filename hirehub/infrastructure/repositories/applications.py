from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import Select, func, select

from hirehub.infrastructure.db.models import ApplicationModel, ApplicationStatus, InterviewModel

from .base import SoftDeleteRepository


class ApplicationRepository(SoftDeleteRepository[ApplicationModel]):
    model = ApplicationModel
    label = "Application"
    sortable = frozenset({"created_at", "updated_at", "status"})

    def filtered(
        self,
        *,
        job_id: str | None = None,
        status: str | None = None,
        applicant_id: str | None = None,
        created_from: datetime | None = None,
        created_to: datetime | None = None,
    ) -> Select[Any]:
        stmt = self.select()
        if job_id:
            stmt = stmt.where(ApplicationModel.job_id == job_id)
        if status:
            stmt = stmt.where(ApplicationModel.status == status)
        if applicant_id:
            stmt = stmt.where(ApplicationModel.applicant_id == applicant_id)
        if created_from:
            stmt = stmt.where(ApplicationModel.created_at >= created_from)
        if created_to:
            stmt = stmt.where(ApplicationModel.created_at <= created_to)
        return stmt

    async def list_all(self, stmt: Select[Any]) -> list[ApplicationModel]:
        stmt = stmt.order_by(ApplicationModel.created_at.desc())
        return list((await self.session.execute(stmt)).scalars().all())

    async def count_by_status(self) -> dict[str, int]:
        stmt = (
            select(ApplicationModel.status, func.count(ApplicationModel.id))
            .where(ApplicationModel.deleted_at.is_(None))
            .group_by(ApplicationModel.status)
        )
        rows = (await self.session.execute(stmt)).all()
        return {
            (status.value if isinstance(status, ApplicationStatus) else str(status)): count
            for status, count in rows
        }

    async def offer_durations_days(self) -> list[float]:
        """Days between submission and last update, for applications at the offer stage."""
        stmt = select(ApplicationModel.created_at, ApplicationModel.updated_at).where(
            ApplicationModel.deleted_at.is_(None),
            ApplicationModel.status == ApplicationStatus.OFFER,
        )
        rows = (await self.session.execute(stmt)).all()
        return [(updated - created).total_seconds() / 86400 for created, updated in rows]


class InterviewRepository(SoftDeleteRepository[InterviewModel]):
    model = InterviewModel
    label = "Interview"
    sortable = frozenset({"created_at", "scheduled_at", "status"})
