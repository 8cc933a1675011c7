from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, File, Query, Request, UploadFile, status
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from hirehub.api.deps import (
    get_cache,
    get_current_identity,
    get_db_session,
    get_event_bus,
    get_resume_storage,
    require_roles,
)
from hirehub.api.schemas.applications import ApplicationForm, ApplicationResponse
from hirehub.api.schemas.common import PageResponse
from hirehub.api.schemas.jobs import JobCreate, JobResponse, JobStatusName, JobUpdate, JobVisibilityName
from hirehub.core.errors import ValidationFailedError
from hirehub.domain import Identity
from hirehub.domain.events import EventBus
from hirehub.domain.services.applications import ApplicationService
from hirehub.domain.services.jobs import JobService
from hirehub.infrastructure.cache import CacheAside
from hirehub.infrastructure.storage import ResumeStorage

router = APIRouter(prefix="/jobs", tags=["Jobs"])
logger = structlog.get_logger()

JOB_MANAGERS = ["admin", "hr"]


@router.get("", response_model=PageResponse[JobResponse])
async def list_jobs(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    sort: str | None = Query(None, max_length=64),
    q: str | None = Query(None, max_length=200),
    department: str | None = None,
    status_filter: JobStatusName | None = Query(None, alias="status"),
    visibility: JobVisibilityName | None = None,
    session: AsyncSession = Depends(get_db_session),
    cache: CacheAside = Depends(get_cache),
) -> dict:
    """Search and filter job postings (cached per canonical query)."""
    service = JobService(session, cache, EventBus())
    return await service.list_jobs(
        page=page,
        limit=limit,
        sort=sort,
        q=q,
        department=department,
        status=status_filter.value if status_filter else None,
        visibility=visibility.value if visibility else None,
    )


@router.get("/{job_id}", response_model=JobResponse)
async def get_job(
    job_id: str,
    session: AsyncSession = Depends(get_db_session),
    cache: CacheAside = Depends(get_cache),
) -> dict:
    return await JobService(session, cache, EventBus()).get_job(job_id)


@router.post("", response_model=JobResponse, status_code=status.HTTP_201_CREATED)
async def create_job(
    payload: JobCreate,
    identity: Identity = Depends(require_roles(JOB_MANAGERS)),
    session: AsyncSession = Depends(get_db_session),
    cache: CacheAside = Depends(get_cache),
    bus: EventBus = Depends(get_event_bus),
) -> dict:
    """Create a draft job posting (admin/hr)."""
    service = JobService(session, cache, bus)
    return await service.create_job(identity, payload.model_dump(mode="json"))


@router.put("/{job_id}", response_model=JobResponse)
async def update_job(
    job_id: str,
    payload: JobUpdate,
    identity: Identity = Depends(require_roles(JOB_MANAGERS)),
    session: AsyncSession = Depends(get_db_session),
    cache: CacheAside = Depends(get_cache),
    bus: EventBus = Depends(get_event_bus),
) -> dict:
    changes = payload.model_dump(mode="json", exclude_unset=True, exclude_none=True)
    if not changes:
        raise ValidationFailedError([{"field": "body", "message": "No fields to update"}])
    return await JobService(session, cache, bus).update_job(identity, job_id, changes)


@router.delete("/{job_id}", status_code=status.HTTP_204_NO_CONTENT, response_model=None)
async def delete_job(
    job_id: str,
    identity: Identity = Depends(require_roles(JOB_MANAGERS)),
    session: AsyncSession = Depends(get_db_session),
    cache: CacheAside = Depends(get_cache),
    bus: EventBus = Depends(get_event_bus),
) -> None:
    """Soft delete a job posting (admin/hr)."""
    await JobService(session, cache, bus).delete_job(identity, job_id)


@router.post("/{job_id}/publish", response_model=JobResponse)
async def publish_job(
    job_id: str,
    identity: Identity = Depends(require_roles(JOB_MANAGERS)),
    session: AsyncSession = Depends(get_db_session),
    cache: CacheAside = Depends(get_cache),
    bus: EventBus = Depends(get_event_bus),
) -> dict:
    return await JobService(session, cache, bus).publish_job(identity, job_id)


@router.post("/{job_id}/close", response_model=JobResponse)
async def close_job(
    job_id: str,
    identity: Identity = Depends(require_roles(JOB_MANAGERS)),
    session: AsyncSession = Depends(get_db_session),
    cache: CacheAside = Depends(get_cache),
    bus: EventBus = Depends(get_event_bus),
) -> dict:
    return await JobService(session, cache, bus).close_job(identity, job_id)


@router.post(
    "/{job_id}/apply",
    response_model=ApplicationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def apply_to_job(
    job_id: str,
    request: Request,
    resume: UploadFile | None = File(None),
    identity: Identity = Depends(get_current_identity),
    session: AsyncSession = Depends(get_db_session),
    cache: CacheAside = Depends(get_cache),
    bus: EventBus = Depends(get_event_bus),
    storage: ResumeStorage = Depends(get_resume_storage),
) -> dict:
    """Submit an application with a resume file (multipart).

    Text fields (``coverLetter``, ``candidateName``, ``candidateEmail``,
    ``candidatePhone``) are accepted in camelCase or snake_case.
    """
    content = await storage.read_upload(resume) if resume is not None else b""
    filename = resume.filename if resume is not None else None

    errors = storage.check(filename, content)
    fields = {
        key: value
        for key, value in (await request.form()).items()
        if isinstance(value, str) and value.strip()
    }
    try:
        form = ApplicationForm.model_validate(fields)
    except ValidationError as exc:
        errors.extend(
            {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
            for err in exc.errors()
        )
    if errors:
        raise ValidationFailedError(errors)

    service = ApplicationService(session, cache, bus)
    return await service.apply(
        identity,
        job_id,
        storage=storage,
        resume_filename=filename or "",
        resume_content=content,
        cover_letter=form.cover_letter,
        candidate_name=form.candidate_name,
        candidate_email=form.candidate_email,
        candidate_phone=form.candidate_phone,
    )
