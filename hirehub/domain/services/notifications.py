"""
Side-effect dispatcher and the notification inbox.

``NotificationDispatcher`` subscribes to domain events and fans each one out to
email, a persisted Notification record and a real-time push. Every channel is
best-effort on its own: a failed email does not prevent the push. Database
work runs in the dispatcher's own sessions, apart from the request session.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

import structlog
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from hirehub.core.errors import NotFoundError
from hirehub.domain.events import DomainEvent, EventBus
from hirehub.domain.models import Identity
from hirehub.domain.services.serializers import notification_to_dict, page_to_dict
from hirehub.infrastructure.db.models import NotificationModel, UserModel
from hirehub.infrastructure.repositories import NotificationRepository
from hirehub.libs.mailer import EmailMessage, Mailer
from hirehub.realtime.registry import ConnectionRegistry

logger = structlog.get_logger(__name__)


class NotificationDispatcher:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        mailer: Mailer,
        registry: ConnectionRegistry,
    ) -> None:
        self.session_factory = session_factory
        self.mailer = mailer
        self.registry = registry

    def attach(self, bus: EventBus) -> None:
        bus.subscribe("register_user", self.on_user_registered)
        bus.subscribe("create_job", self.on_job_created)
        bus.subscribe("publish_job", self.on_job_status_changed)
        bus.subscribe("close_job", self.on_job_status_changed)
        bus.subscribe("create_application", self.on_application_created)
        bus.subscribe("update_status", self.on_application_status_changed)
        bus.subscribe("create_interview", self.on_interview_scheduled)

    # Channels

    async def send_email(self, to: Iterable[str | None], subject: str, text: str) -> bool:
        recipients = [address for address in to if address]
        if not recipients:
            return False
        try:
            await self.mailer.send(EmailMessage(to=recipients, subject=subject, text=text))
        except Exception as exc:  # noqa: BLE001
            logger.warning("email_delivery_failed", subject=subject, error=str(exc))
            return False
        return True

    async def notify(self, user_id: str | None, kind: str, payload: dict[str, Any]) -> bool:
        if not user_id:
            return False
        try:
            async with self.session_factory() as session:
                session.add(NotificationModel(user_id=user_id, type=kind, payload=payload))
                await session.commit()
        except SQLAlchemyError as exc:
            logger.warning("notification_persist_failed", user_id=user_id, type=kind, error=str(exc))
            return False
        logger.info("notification_created", user_id=user_id, type=kind)
        return True

    async def push(self, user_id: str | None, event: str, payload: dict[str, Any]) -> int:
        if not user_id:
            return 0
        return await self.registry.emit(user_id, event, payload)

    # Handlers

    async def on_user_registered(self, event: DomainEvent) -> None:
        first_name = event.context.get("first_name", "")
        await self.send_email(
            [event.context.get("email")],
            "Welcome to HireHub",
            f"Hello {first_name}, your account has been created successfully.",
        )

    async def on_job_created(self, event: DomainEvent) -> None:
        await self.push(
            event.actor_id,
            "new_job",
            {"job_id": event.target_id, "title": event.context.get("title")},
        )

    async def on_job_status_changed(self, event: DomainEvent) -> None:
        name = "job_published" if event.action == "publish_job" else "job_closed"
        await self.push(
            event.context.get("creator_id") or event.actor_id,
            name,
            {"job_id": event.target_id, "title": event.context.get("title")},
        )

    async def on_application_created(self, event: DomainEvent) -> None:
        ctx = event.context
        title = ctx.get("job_title", "")
        await self.send_email(
            [ctx.get("applicant_email")],
            "Application Received",
            f"Your application for {title} has been received.",
        )
        await self.send_email(
            [ctx.get("recruiter_email")],
            "New Application",
            f"{ctx.get('applicant_name', 'A candidate')} applied for {title}.",
        )
        payload = {"application_id": event.target_id, "job_id": ctx.get("job_id")}
        await self.notify(ctx.get("recruiter_id"), "new_application", payload)
        await self.push(ctx.get("recruiter_id"), "new_application", payload)

    async def on_application_status_changed(self, event: DomainEvent) -> None:
        ctx = event.context
        status = event.details.get("status")
        await self.send_email(
            [ctx.get("applicant_email")],
            "Application Status Update",
            f"Your application status for {ctx.get('job_title', '')} is now {status}.",
        )
        payload = {"application_id": event.target_id, "status": status}
        await self.notify(ctx.get("applicant_id"), "status_update", payload)
        await self.push(ctx.get("applicant_id"), "application_status", payload)

    async def on_interview_scheduled(self, event: DomainEvent) -> None:
        ctx = event.context
        participants: list[dict[str, Any]] = ctx.get("participants", [])
        recipients = await self._participant_emails(participants)
        location = ctx.get("location") or "to be confirmed"
        for address in recipients:
            await self.send_email(
                [address],
                "Interview Scheduled",
                f"An interview is scheduled for {ctx.get('scheduled_at')}. Location: {location}",
            )
        payload = {"interview_id": event.target_id, "application_id": ctx.get("application_id")}
        await self.notify(ctx.get("applicant_id"), "interview_scheduled", payload)
        await self.push(ctx.get("applicant_id"), "interview_scheduled", payload)

    async def _participant_emails(self, participants: list[dict[str, Any]]) -> list[str]:
        emails = [p["email"] for p in participants if p.get("email")]
        unresolved = [p["user_id"] for p in participants if not p.get("email") and p.get("user_id")]
        if unresolved:
            stmt = select(UserModel.email).where(
                UserModel.id.in_(unresolved), UserModel.deleted_at.is_(None)
            )
            async with self.session_factory() as session:
                emails.extend((await session.execute(stmt)).scalars().all())
        return list(dict.fromkeys(emails))


class NotificationService:
    """A user's own notification inbox."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.repo = NotificationRepository(session)

    async def list_for(
        self,
        identity: Identity,
        *,
        unread_only: bool = False,
        page: int = 1,
        limit: int = 20,
    ) -> dict[str, Any]:
        stmt = self.repo.for_user(identity.user_id, unread_only=unread_only)
        result = await self.repo.paginate(stmt, page=page, limit=limit)
        return page_to_dict(result, notification_to_dict)

    async def mark_read(self, identity: Identity, notification_id: str) -> dict[str, Any]:
        notification = await self.repo.get(notification_id)
        # Someone else's notification is reported exactly like a missing one
        if notification is None or notification.user_id != identity.user_id:
            raise NotFoundError("Notification not found")

        notification.read = True
        await self.session.commit()
        logger.info("notification_read", notification_id=notification_id, user_id=identity.user_id)
        return notification_to_dict(notification)
