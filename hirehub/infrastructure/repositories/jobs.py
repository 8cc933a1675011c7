from __future__ import annotations

from typing import Any

from sqlalchemy import Select, or_

from hirehub.infrastructure.db.models import JobModel

from .base import SoftDeleteRepository


class JobRepository(SoftDeleteRepository[JobModel]):
    model = JobModel
    label = "Job"
    sortable = frozenset({"created_at", "updated_at", "title", "department", "status"})

    def filtered(
        self,
        *,
        q: str | None = None,
        department: str | None = None,
        status: str | None = None,
        visibility: str | None = None,
    ) -> Select[Any]:
        """Free-text search over title, description and tags plus equality filters."""
        stmt = self.select()
        if q:
            for term in q.split():
                pattern = f"%{term}%"
                stmt = stmt.where(
                    or_(
                        JobModel.title.ilike(pattern),
                        JobModel.description.ilike(pattern),
                        JobModel.tags_text.ilike(pattern),
                    )
                )
        if department:
            stmt = stmt.where(JobModel.department == department)
        if status:
            stmt = stmt.where(JobModel.status == status)
        if visibility:
            stmt = stmt.where(JobModel.visibility == visibility)
        return stmt
