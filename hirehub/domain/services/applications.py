from __future__ import annotations

from typing import Any

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from hirehub.core.config import get_settings
from hirehub.core.errors import ConflictError
from hirehub.domain.events import DomainEvent, EventBus
from hirehub.domain.models import Identity
from hirehub.domain.services.serializers import application_to_dict, page_to_dict
from hirehub.domain.status import ensure_transition
from hirehub.infrastructure.cache import CacheAside, CacheKeys, listing_cache_key
from hirehub.infrastructure.db.models import (
    ApplicationModel,
    ApplicationNoteModel,
    ApplicationStatus,
    JobStatus,
)
from hirehub.infrastructure.repositories import ApplicationRepository, JobRepository, UserRepository
from hirehub.infrastructure.storage import ResumeStorage

logger = structlog.get_logger(__name__)

APPLICATION_LIST_DEFAULTS: dict[str, Any] = {"page": 1, "limit": 20, "sort": "-created_at"}

# Statuses under which an applicant still holds a live application for a job
_OPEN_STATUSES = (
    ApplicationStatus.PENDING,
    ApplicationStatus.IN_REVIEW,
    ApplicationStatus.INTERVIEW,
    ApplicationStatus.OFFER,
)


class ApplicationService:
    def __init__(self, session: AsyncSession, cache: CacheAside, bus: EventBus) -> None:
        self.session = session
        self.repo = ApplicationRepository(session)
        self.jobs = JobRepository(session)
        self.users = UserRepository(session)
        self.cache = cache
        self.bus = bus

    async def apply(
        self,
        actor: Identity,
        job_id: str,
        *,
        storage: ResumeStorage,
        resume_filename: str,
        resume_content: bytes,
        cover_letter: str = "",
        candidate_name: str | None = None,
        candidate_email: str | None = None,
        candidate_phone: str | None = None,
    ) -> dict[str, Any]:
        job = await self.jobs.get_or_raise(job_id)
        if job.status != JobStatus.PUBLISHED:
            raise ConflictError("Job is not accepting applications")

        duplicate = await self.session.scalar(
            self.repo.select()
            .where(
                ApplicationModel.job_id == job_id,
                ApplicationModel.applicant_id == actor.user_id,
                ApplicationModel.status.in_(_OPEN_STATUSES),
            )
            .limit(1)
        )
        if duplicate is not None:
            raise ConflictError("You have already applied to this job")

        applicant = await self.users.get(actor.user_id)
        reference = await storage.save(resume_filename, resume_content)

        application = ApplicationModel(
            applicant_id=actor.user_id,
            job_id=job_id,
            resume=reference,
            cover_letter=cover_letter or "",
            candidate_name=candidate_name or (applicant.full_name if applicant else actor.name) or None,
            candidate_email=candidate_email or (applicant.email if applicant else actor.email) or None,
            candidate_phone=candidate_phone,
        )
        try:
            await self.repo.add(application)
            await self.session.commit()
        except SQLAlchemyError:
            await self.session.rollback()
            await storage.delete(reference)
            raise

        application = await self.repo.get_or_raise(application.id, refresh=True)
        logger.info(
            "application_created",
            application_id=application.id,
            job_id=job_id,
            applicant_id=actor.user_id,
        )

        recruiter = job.creator
        await self._after_change(
            "create_application",
            actor,
            application,
            {"job_id": job_id},
            context={
                "job_id": job_id,
                "job_title": job.title,
                "applicant_email": application.candidate_email,
                "applicant_name": application.candidate_name,
                "recruiter_id": job.created_by,
                "recruiter_email": recruiter.email if recruiter else None,
            },
        )
        return application_to_dict(application)

    async def list_applications(
        self,
        *,
        page: int = 1,
        limit: int = 20,
        sort: str | None = None,
        status: str | None = None,
        job_id: str | None = None,
        applicant_id: str | None = None,
    ) -> dict[str, Any]:
        params = {
            "page": page,
            "limit": limit,
            "sort": sort or APPLICATION_LIST_DEFAULTS["sort"],
            "status": status,
            "job_id": job_id,
            "applicant_id": applicant_id,
        }
        key = listing_cache_key(
            "applications",
            params,
            defaults=APPLICATION_LIST_DEFAULTS,
            aggregate_key=CacheKeys.APPLICATIONS_ALL,
        )

        async def load() -> dict[str, Any]:
            stmt = self.repo.filtered(job_id=job_id, status=status, applicant_id=applicant_id)
            result = await self.repo.paginate(stmt, page=page, limit=limit, sort=sort)
            return page_to_dict(result, application_to_dict)

        return await self.cache.get_or_load(key, load, get_settings().cache_ttl_listing)

    async def list_for_job(self, job_id: str, **filters: Any) -> dict[str, Any]:
        await self.jobs.get_or_raise(job_id)
        return await self.list_applications(job_id=job_id, **filters)

    async def get_application(self, application_id: str) -> dict[str, Any]:
        return application_to_dict(await self.repo.get_or_raise(application_id))

    async def update_status(
        self, actor: Identity, application_id: str, status: str
    ) -> dict[str, Any]:
        application = await self.repo.get_or_raise(application_id)
        previous = application.status.value
        ensure_transition("Application", previous, status)

        application.status = ApplicationStatus(status)
        await self.session.commit()
        application = await self.repo.get_or_raise(application_id, refresh=True)

        logger.info(
            "application_status_updated",
            application_id=application_id,
            previous=previous,
            status=status,
            actor_id=actor.user_id,
        )
        await self._after_change(
            "update_status",
            actor,
            application,
            {"status": status, "previous_status": previous},
            context={
                "applicant_id": application.applicant_id,
                "applicant_email": application.candidate_email
                or (application.applicant.email if application.applicant else None),
                "job_title": application.job.title if application.job else "",
            },
        )
        return application_to_dict(application)

    async def add_note(self, actor: Identity, application_id: str, text: str) -> dict[str, Any]:
        application = await self.repo.get_or_raise(application_id)
        self.session.add(
            ApplicationNoteModel(application_id=application.id, text=text, added_by=actor.user_id)
        )
        await self.session.commit()
        application = await self.repo.get_or_raise(application_id, refresh=True)

        logger.info("application_note_added", application_id=application_id, actor_id=actor.user_id)
        await self._after_change("add_note", actor, application, {"text": text})
        return application_to_dict(application)

    async def _after_change(
        self,
        action: str,
        actor: Identity,
        application: ApplicationModel,
        details: dict[str, Any],
        *,
        context: dict[str, Any] | None = None,
    ) -> None:
        await self.cache.invalidate(CacheKeys.APPLICATIONS_ALL, CacheKeys.PIPELINE_METRICS)
        await self.bus.publish(
            DomainEvent(
                action=action,
                actor_id=actor.user_id,
                target_type="Application",
                target_id=application.id,
                details=details,
                context=context or {},
            )
        )
