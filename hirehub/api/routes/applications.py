from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from hirehub.api.deps import get_cache, get_db_session, get_event_bus, require_roles
from hirehub.api.schemas.applications import (
    ApplicationResponse,
    ApplicationStatusName,
    NoteCreate,
    StatusUpdate,
)
from hirehub.api.schemas.common import PageResponse
from hirehub.api.schemas.interviews import InterviewCreate, InterviewResponse
from hirehub.domain import Identity
from hirehub.domain.events import EventBus
from hirehub.domain.services.applications import ApplicationService
from hirehub.domain.services.interviews import InterviewService
from hirehub.infrastructure.cache import CacheAside

router = APIRouter(tags=["Applications"])

RECRUITERS = ["admin", "hr"]


@router.get("/applications", response_model=PageResponse[ApplicationResponse])
async def list_applications(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    sort: str | None = Query(None, max_length=64),
    status_filter: ApplicationStatusName | None = Query(None, alias="status"),
    job_id: str | None = Query(None, alias="jobId"),
    identity: Identity = Depends(require_roles(RECRUITERS)),
    session: AsyncSession = Depends(get_db_session),
    cache: CacheAside = Depends(get_cache),
) -> dict:
    service = ApplicationService(session, cache, EventBus())
    return await service.list_applications(
        page=page,
        limit=limit,
        sort=sort,
        status=status_filter.value if status_filter else None,
        job_id=job_id,
    )


@router.get("/jobs/{job_id}/applications", response_model=PageResponse[ApplicationResponse])
async def list_job_applications(
    job_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    sort: str | None = Query(None, max_length=64),
    status_filter: ApplicationStatusName | None = Query(None, alias="status"),
    identity: Identity = Depends(require_roles(RECRUITERS)),
    session: AsyncSession = Depends(get_db_session),
    cache: CacheAside = Depends(get_cache),
) -> dict:
    service = ApplicationService(session, cache, EventBus())
    return await service.list_for_job(
        job_id,
        page=page,
        limit=limit,
        sort=sort,
        status=status_filter.value if status_filter else None,
    )


@router.get("/applications/{application_id}", response_model=ApplicationResponse)
async def get_application(
    application_id: str,
    identity: Identity = Depends(require_roles(RECRUITERS)),
    session: AsyncSession = Depends(get_db_session),
    cache: CacheAside = Depends(get_cache),
) -> dict:
    return await ApplicationService(session, cache, EventBus()).get_application(application_id)


@router.put("/applications/{application_id}/status", response_model=ApplicationResponse)
async def update_application_status(
    application_id: str,
    payload: StatusUpdate,
    identity: Identity = Depends(require_roles(RECRUITERS)),
    session: AsyncSession = Depends(get_db_session),
    cache: CacheAside = Depends(get_cache),
    bus: EventBus = Depends(get_event_bus),
) -> dict:
    """Move an application through the pipeline and notify the applicant."""
    service = ApplicationService(session, cache, bus)
    return await service.update_status(identity, application_id, payload.status.value)


@router.post("/applications/{application_id}/notes", response_model=ApplicationResponse)
async def add_application_note(
    application_id: str,
    payload: NoteCreate,
    identity: Identity = Depends(require_roles(RECRUITERS)),
    session: AsyncSession = Depends(get_db_session),
    cache: CacheAside = Depends(get_cache),
    bus: EventBus = Depends(get_event_bus),
) -> dict:
    service = ApplicationService(session, cache, bus)
    return await service.add_note(identity, application_id, payload.text)


@router.post(
    "/applications/{application_id}/interviews",
    response_model=InterviewResponse,
    status_code=status.HTTP_201_CREATED,
)
async def schedule_interview(
    application_id: str,
    payload: InterviewCreate,
    identity: Identity = Depends(require_roles(RECRUITERS)),
    session: AsyncSession = Depends(get_db_session),
    cache: CacheAside = Depends(get_cache),
    bus: EventBus = Depends(get_event_bus),
) -> dict:
    """Schedule an interview; participants are emailed and the applicant notified."""
    service = InterviewService(session, cache, bus)
    return await service.schedule(identity, application_id, payload.model_dump(exclude_none=True))
