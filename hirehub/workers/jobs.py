"""
Jobs executed by the RQ worker.

RQ calls plain functions, so each job drives its coroutine with ``asyncio.run``.
"""

from __future__ import annotations

import asyncio
from typing import Any

import structlog

from hirehub.libs.mailer import EmailMessage, ResendMailer

logger = structlog.get_logger()


def send_email_job(message: dict[str, Any]) -> dict[str, Any]:
    """Deliver one queued email through Resend."""
    return asyncio.run(_send_email_async(message))


async def _send_email_async(message: dict[str, Any]) -> dict[str, Any]:
    email = EmailMessage(**message)
    try:
        await ResendMailer().send(email)
    except Exception:
        logger.exception("email_job_failed", subject=email.subject, recipients=len(email.to))
        # RQ moves the job to the failed registry
        raise
    return {"status": "sent", "recipients": len(email.to)}
