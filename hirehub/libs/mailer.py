"""
Outbound mail delivery.

``inline`` mode sends through Resend inside the request; ``queue`` mode hands
the message to the RQ notifications queue and returns immediately.
"""

from __future__ import annotations

import asyncio
from dataclasses import asdict, dataclass, field
from typing import Any, Protocol

import structlog
from redis import Redis
from rq import Queue

from hirehub.core.config import Settings, get_settings
from hirehub.libs.resend_client import ResendClient

logger = structlog.get_logger(__name__)

SEND_EMAIL_JOB = "hirehub.workers.jobs.send_email_job"


@dataclass(slots=True)
class EmailMessage:
    to: list[str]
    subject: str
    text: str
    html: str | None = None
    tags: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class Mailer(Protocol):
    async def send(self, message: EmailMessage) -> None: ...


class ResendMailer:
    def __init__(self, client: ResendClient | None = None, from_email: str | None = None) -> None:
        self.client = client or ResendClient()
        self.from_email = from_email or get_settings().resend_from_email

    async def send(self, message: EmailMessage) -> None:
        response = await self.client.send_email(
            from_email=self.from_email,
            to_emails=message.to,
            subject=message.subject,
            text=message.text,
            html=message.html,
            tags=message.tags,
        )
        logger.info("email_sent", resend_id=response.id, subject=message.subject, **message.tags)


class QueuedMailer:
    def __init__(self, queue: Queue) -> None:
        self.queue = queue

    async def send(self, message: EmailMessage) -> None:
        job = await asyncio.to_thread(self.queue.enqueue, SEND_EMAIL_JOB, message.to_dict())
        logger.info(
            "email_enqueued",
            job_id=job.id,
            queue=self.queue.name,
            subject=message.subject,
            **message.tags,
        )


def build_mailer(settings: Settings | None = None) -> Mailer:
    settings = settings or get_settings()
    if settings.email_delivery_mode == "queue":
        connection = Redis.from_url(settings.redis_url)
        return QueuedMailer(Queue(settings.notifications_queue, connection=connection))
    if not settings.resend_api_key:
        logger.warning("resend_api_key_missing", msg="RESEND_API_KEY not configured")
    return ResendMailer()
