from __future__ import annotations

from typing import Any

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from hirehub.core.config import get_settings
from hirehub.domain.events import DomainEvent, EventBus
from hirehub.domain.models import Identity
from hirehub.domain.services.serializers import job_to_dict, page_to_dict
from hirehub.domain.status import ensure_transition
from hirehub.infrastructure.cache import CacheAside, CacheKeys, listing_cache_key
from hirehub.infrastructure.db.models import JobModel, JobStatus, JobType, JobVisibility
from hirehub.infrastructure.repositories import JobRepository

logger = structlog.get_logger(__name__)

JOB_LIST_DEFAULTS: dict[str, Any] = {"page": 1, "limit": 10, "sort": "-created_at"}

_ENUM_FIELDS = {"job_type": JobType, "visibility": JobVisibility, "status": JobStatus}


class JobService:
    """Job postings: listing with cache-aside, CRUD and the publish/close lifecycle."""

    def __init__(self, session: AsyncSession, cache: CacheAside, bus: EventBus) -> None:
        self.session = session
        self.repo = JobRepository(session)
        self.cache = cache
        self.bus = bus

    async def list_jobs(
        self,
        *,
        page: int = 1,
        limit: int = 10,
        sort: str | None = None,
        q: str | None = None,
        department: str | None = None,
        status: str | None = None,
        visibility: str | None = None,
    ) -> dict[str, Any]:
        params = {
            "page": page,
            "limit": limit,
            "sort": sort or JOB_LIST_DEFAULTS["sort"],
            "q": q,
            "department": department,
            "status": status,
            "visibility": visibility,
        }
        key = listing_cache_key(
            "jobs", params, defaults=JOB_LIST_DEFAULTS, aggregate_key=CacheKeys.JOBS_ALL
        )

        async def load() -> dict[str, Any]:
            stmt = self.repo.filtered(
                q=q, department=department, status=status, visibility=visibility
            )
            result = await self.repo.paginate(stmt, page=page, limit=limit, sort=sort)
            return page_to_dict(result, job_to_dict)

        return await self.cache.get_or_load(key, load, get_settings().cache_ttl_listing)

    async def get_job(self, job_id: str) -> dict[str, Any]:
        return job_to_dict(await self.repo.get_or_raise(job_id))

    async def create_job(self, actor: Identity, data: dict[str, Any]) -> dict[str, Any]:
        job = JobModel(created_by=actor.user_id, **_coerce(data))
        await self.repo.add(job)
        await self.session.commit()
        job = await self.repo.get_or_raise(job.id, refresh=True)

        logger.info("job_created", job_id=job.id, title=job.title, actor_id=actor.user_id)
        await self._after_change("create_job", actor, job, {"title": job.title})
        return job_to_dict(job)

    async def update_job(self, actor: Identity, job_id: str, changes: dict[str, Any]) -> dict[str, Any]:
        job = await self.repo.get_or_raise(job_id)
        if changes.get("status") == job.status.value:
            changes = {k: v for k, v in changes.items() if k != "status"}
        if "status" in changes:
            ensure_transition("Job", job.status.value, changes["status"])

        for field, value in _coerce(changes).items():
            setattr(job, field, value)
        await self.session.commit()
        job = await self.repo.get_or_raise(job_id, refresh=True)

        logger.info("job_updated", job_id=job_id, fields=sorted(changes), actor_id=actor.user_id)
        await self._after_change("update_job", actor, job, changes)
        return job_to_dict(job)

    async def delete_job(self, actor: Identity, job_id: str) -> None:
        job = await self.repo.get_or_raise(job_id)
        await self.repo.soft_delete(job)
        await self.session.commit()

        logger.info("job_deleted", job_id=job_id, actor_id=actor.user_id)
        await self._after_change("delete_job", actor, job, {"title": job.title})

    async def publish_job(self, actor: Identity, job_id: str) -> dict[str, Any]:
        return await self._set_status(actor, job_id, JobStatus.PUBLISHED, "publish_job")

    async def close_job(self, actor: Identity, job_id: str) -> dict[str, Any]:
        return await self._set_status(actor, job_id, JobStatus.CLOSED, "close_job")

    async def _set_status(
        self, actor: Identity, job_id: str, target: JobStatus, action: str
    ) -> dict[str, Any]:
        job = await self.repo.get_or_raise(job_id)
        previous = job.status.value
        ensure_transition("Job", previous, target.value)

        job.status = target
        await self.session.commit()
        job = await self.repo.get_or_raise(job_id, refresh=True)

        logger.info(action, job_id=job_id, previous=previous, actor_id=actor.user_id)
        await self._after_change(
            action, actor, job, {"status": target.value, "previous_status": previous}
        )
        return job_to_dict(job)

    async def _after_change(
        self, action: str, actor: Identity, job: JobModel, details: dict[str, Any]
    ) -> None:
        await self.cache.invalidate(CacheKeys.JOBS_ALL)
        await self.bus.publish(
            DomainEvent(
                action=action,
                actor_id=actor.user_id,
                target_type="Job",
                target_id=job.id,
                details=details,
                context={"title": job.title, "creator_id": job.created_by},
            )
        )


def _coerce(data: dict[str, Any]) -> dict[str, Any]:
    """Turn enum values coming from the API into their column types."""
    return {
        key: _ENUM_FIELDS[key](value) if key in _ENUM_FIELDS and value is not None else value
        for key, value in data.items()
    }
