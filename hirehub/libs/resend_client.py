"""Thin async client for the Resend ``/emails`` endpoint."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx
import structlog

from hirehub.core.config import get_settings

logger = structlog.get_logger(__name__)

SUCCESS_CODES = frozenset({200, 201})


class ResendClientError(Exception):
    """Mail could not be handed to Resend (configuration or transport)."""


class ResendAPIError(ResendClientError):
    """Resend answered, but not with an accepted email."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass(slots=True)
class ResendEmailResponse:
    id: str


def build_payload(
    *,
    from_email: str,
    to_emails: list[str],
    subject: str,
    text: str,
    html: str | None = None,
    tags: dict[str, str] | None = None,
) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "from": from_email,
        "to": to_emails,
        "subject": subject,
        "text": text,
    }
    if html:
        payload["html"] = html
    if tags:
        payload["tags"] = [{"name": name, "value": value} for name, value in tags.items()]
    return payload


def parse_response(response: httpx.Response) -> ResendEmailResponse:
    if response.status_code not in SUCCESS_CODES:
        raise ResendAPIError(
            f"Resend error {response.status_code}: {response.text}",
            status_code=response.status_code,
        )
    try:
        email_id = response.json().get("id")
    except ValueError as exc:
        raise ResendAPIError("Resend response was not valid JSON", response.status_code) from exc
    if not email_id:
        raise ResendAPIError("Resend response missing email id", response.status_code)
    return ResendEmailResponse(id=email_id)


class ResendClient:
    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout_seconds: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        settings = get_settings()
        self.api_key = api_key if api_key is not None else settings.resend_api_key
        self.endpoint = f"{(base_url or settings.resend_base_url).rstrip('/')}/emails"
        self.timeout = timeout_seconds or settings.resend_timeout_seconds
        self.transport = transport

    async def send_email(
        self,
        *,
        from_email: str,
        to_emails: list[str],
        subject: str,
        text: str,
        html: str | None = None,
        tags: dict[str, str] | None = None,
        idempotency_key: str | None = None,
    ) -> ResendEmailResponse:
        """POST one email; raises ResendClientError before any I/O when unconfigured."""
        if not self.api_key:
            raise ResendClientError("RESEND_API_KEY not configured")
        if not to_emails:
            raise ResendClientError("No recipients")

        headers = {"Authorization": f"Bearer {self.api_key}"}
        if idempotency_key:
            headers["Idempotency-Key"] = idempotency_key
        payload = build_payload(
            from_email=from_email,
            to_emails=to_emails,
            subject=subject,
            text=text,
            html=html,
            tags=tags,
        )

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(self.endpoint, headers=headers, json=payload)
        except httpx.HTTPError as exc:
            logger.warning("resend_transport_error", error=str(exc), subject=subject)
            raise ResendClientError(f"Resend transport error: {exc}") from exc

        return parse_response(response)
