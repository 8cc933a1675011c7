"""Shared library helpers."""

from hirehub.libs.mailer import EmailMessage, Mailer, QueuedMailer, ResendMailer, build_mailer
from hirehub.libs.resend_client import (
    ResendAPIError,
    ResendClient,
    ResendClientError,
    ResendEmailResponse,
)

__all__ = [
    "EmailMessage",
    "Mailer",
    "QueuedMailer",
    "ResendAPIError",
    "ResendClient",
    "ResendClientError",
    "ResendEmailResponse",
    "ResendMailer",
    "build_mailer",
]
