from __future__ import annotations

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from hirehub.api.deps import get_cache, get_db_session, get_event_bus, require_roles
from hirehub.api.schemas.interviews import InterviewComplete, InterviewResponse, InterviewUpdate
from hirehub.core.errors import ValidationFailedError
from hirehub.domain import Identity
from hirehub.domain.events import EventBus
from hirehub.domain.services.interviews import InterviewService
from hirehub.infrastructure.cache import CacheAside

router = APIRouter(prefix="/interviews", tags=["Interviews"])

RECRUITERS = ["admin", "hr"]


@router.get("/{interview_id}", response_model=InterviewResponse)
async def get_interview(
    interview_id: str,
    identity: Identity = Depends(require_roles(RECRUITERS)),
    session: AsyncSession = Depends(get_db_session),
    cache: CacheAside = Depends(get_cache),
) -> dict:
    return await InterviewService(session, cache, EventBus()).get_interview(interview_id)


@router.put("/{interview_id}", response_model=InterviewResponse)
async def update_interview(
    interview_id: str,
    payload: InterviewUpdate,
    identity: Identity = Depends(require_roles(RECRUITERS)),
    session: AsyncSession = Depends(get_db_session),
    cache: CacheAside = Depends(get_cache),
    bus: EventBus = Depends(get_event_bus),
) -> dict:
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    if "status" in changes:
        changes["status"] = changes["status"].value
    if not changes:
        raise ValidationFailedError([{"field": "body", "message": "No fields to update"}])
    return await InterviewService(session, cache, bus).update(identity, interview_id, changes)


@router.post("/{interview_id}/complete", response_model=InterviewResponse)
async def complete_interview(
    interview_id: str,
    payload: InterviewComplete,
    identity: Identity = Depends(require_roles(RECRUITERS)),
    session: AsyncSession = Depends(get_db_session),
    cache: CacheAside = Depends(get_cache),
    bus: EventBus = Depends(get_event_bus),
) -> dict:
    """Record the evaluation and mark the interview completed."""
    service = InterviewService(session, cache, bus)
    return await service.complete(identity, interview_id, payload.evaluation.model_dump())


@router.get("/{interview_id}/export", response_class=Response)
async def export_interview(
    interview_id: str,
    identity: Identity = Depends(require_roles(RECRUITERS)),
    session: AsyncSession = Depends(get_db_session),
    cache: CacheAside = Depends(get_cache),
) -> Response:
    """Download the interview as an iCalendar file."""
    body = await InterviewService(session, cache, EventBus()).export_ics(interview_id)
    return Response(
        content=body,
        media_type="text/calendar; charset=utf-8",
        headers={"Content-Disposition": "attachment; filename=interview.ics"},
    )
