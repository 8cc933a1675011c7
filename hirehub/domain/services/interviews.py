from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any

import structlog
from icalendar import Calendar, Event, vCalAddress, vText
from sqlalchemy.ext.asyncio import AsyncSession

from hirehub.core.config import get_settings
from hirehub.domain.events import DomainEvent, EventBus
from hirehub.domain.models import Identity
from hirehub.domain.services.serializers import interview_to_dict
from hirehub.domain.status import can_transition, ensure_transition
from hirehub.infrastructure.cache import CacheAside, CacheKeys
from hirehub.infrastructure.db.models import ApplicationStatus, InterviewModel, InterviewStatus
from hirehub.infrastructure.repositories import ApplicationRepository, InterviewRepository

logger = structlog.get_logger(__name__)

CALENDAR_PRODID = "-//HireHub//Interview Calendar//EN"


class InterviewService:
    def __init__(self, session: AsyncSession, cache: CacheAside, bus: EventBus) -> None:
        self.session = session
        self.repo = InterviewRepository(session)
        self.applications = ApplicationRepository(session)
        self.cache = cache
        self.bus = bus

    async def schedule(
        self, actor: Identity, application_id: str, data: dict[str, Any]
    ) -> dict[str, Any]:
        """Create an interview and move the application to the interview stage."""
        application = await self.applications.get_or_raise(application_id)

        interview = InterviewModel(application_id=application.id, **data)
        await self.repo.add(interview)

        previous = application.status.value
        moved = previous != ApplicationStatus.INTERVIEW.value and (
            can_transition("Application", previous, ApplicationStatus.INTERVIEW.value)
            or not get_settings().strict_status_transitions
        )
        if moved:
            application.status = ApplicationStatus.INTERVIEW
        await self.session.commit()
        interview = await self.repo.get_or_raise(interview.id, refresh=True)

        logger.info(
            "interview_scheduled",
            interview_id=interview.id,
            application_id=application_id,
            application_moved=moved,
            actor_id=actor.user_id,
        )
        if moved:
            await self.cache.invalidate(CacheKeys.APPLICATIONS_ALL, CacheKeys.PIPELINE_METRICS)

        await self._publish(
            "create_interview",
            actor,
            interview,
            {"application_id": application_id, "scheduled_at": interview.scheduled_at.isoformat()},
            context={
                "application_id": application_id,
                "applicant_id": application.applicant_id,
                "participants": list(interview.participants or []),
                "scheduled_at": interview.scheduled_at.isoformat(),
                "location": interview.location,
            },
        )
        return interview_to_dict(interview)

    async def get_interview(self, interview_id: str) -> dict[str, Any]:
        return interview_to_dict(await self.repo.get_or_raise(interview_id))

    async def update(
        self, actor: Identity, interview_id: str, changes: dict[str, Any]
    ) -> dict[str, Any]:
        interview = await self.repo.get_or_raise(interview_id)
        # Echoing the current status is a plain edit, not a transition
        if changes.get("status") == interview.status.value:
            changes = {k: v for k, v in changes.items() if k != "status"}
        if "status" in changes:
            ensure_transition("Interview", interview.status.value, changes["status"])
            changes = {**changes, "status": InterviewStatus(changes["status"])}

        for field, value in changes.items():
            setattr(interview, field, value)
        await self.session.commit()
        interview = await self.repo.get_or_raise(interview_id, refresh=True)

        logger.info("interview_updated", interview_id=interview_id, fields=sorted(changes))
        await self._publish("update_interview", actor, interview, _audit_details(changes))
        return interview_to_dict(interview)

    async def complete(
        self, actor: Identity, interview_id: str, evaluation: dict[str, Any]
    ) -> dict[str, Any]:
        interview = await self.repo.get_or_raise(interview_id)
        ensure_transition("Interview", interview.status.value, InterviewStatus.COMPLETED.value)

        interview.status = InterviewStatus.COMPLETED
        interview.evaluation = evaluation
        await self.session.commit()
        interview = await self.repo.get_or_raise(interview_id, refresh=True)

        logger.info("interview_completed", interview_id=interview_id, actor_id=actor.user_id)
        await self._publish("complete_interview", actor, interview, {"evaluation": evaluation})
        return interview_to_dict(interview)

    async def export_ics(self, interview_id: str) -> bytes:
        interview = await self.repo.get_or_raise(interview_id)
        return build_calendar(interview, organizer_email=get_settings().resend_from_email)

    async def _publish(
        self,
        action: str,
        actor: Identity,
        interview: InterviewModel,
        details: dict[str, Any],
        *,
        context: dict[str, Any] | None = None,
    ) -> None:
        await self.bus.publish(
            DomainEvent(
                action=action,
                actor_id=actor.user_id,
                target_type="Interview",
                target_id=interview.id,
                details=details,
                context=context or {},
            )
        )


def _audit_details(changes: dict[str, Any]) -> dict[str, Any]:
    details: dict[str, Any] = {}
    for key, value in changes.items():
        if isinstance(value, datetime):
            value = value.isoformat()
        elif isinstance(value, InterviewStatus):
            value = value.value
        details[key] = value
    return details


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; they were stored as UTC
    return value.replace(tzinfo=UTC) if value.tzinfo is None else value.astimezone(UTC)


def build_calendar(interview: InterviewModel, *, organizer_email: str = "") -> bytes:
    """Render a single-event iCalendar document for an interview."""
    start = _as_utc(interview.scheduled_at)

    calendar = Calendar()
    calendar.add("prodid", CALENDAR_PRODID)
    calendar.add("version", "2.0")
    calendar.add("x-wr-calname", "Interview Calendar")

    event = Event()
    event.add("uid", f"{interview.id}@hirehub")
    event.add("dtstamp", datetime.now(UTC))
    event.add("dtstart", start)
    event.add("dtend", start + timedelta(minutes=interview.duration))
    event.add("summary", f"Interview for application {interview.application_id}")
    event.add("description", (interview.evaluation or {}).get("notes", ""))
    if interview.location:
        event["location"] = vText(interview.location)
    if organizer_email:
        _, _, address = organizer_email.rpartition("<")
        organizer = vCalAddress(f"mailto:{address.rstrip('>').strip()}")
        organizer.params["cn"] = vText("HireHub Recruitment")
        event["organizer"] = organizer
    for participant in interview.participants or []:
        if participant.get("email"):
            event.add("attendee", f"mailto:{participant['email']}")

    calendar.add_component(event)
    return calendar.to_ical()
