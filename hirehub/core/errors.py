"""Application error taxonomy.

Services raise these; the API layer renders them through exception handlers
registered in ``hirehub.api.main``.
"""

from __future__ import annotations

from typing import Any


class AppError(Exception):
    """Base class for errors that map to a client-facing HTTP status."""

    status_code = 500

    def __init__(self, detail: str, **extra: Any) -> None:
        super().__init__(detail)
        self.detail = detail
        self.extra = extra

    def to_dict(self) -> dict[str, Any]:
        return {"detail": self.detail, **self.extra}


class UnauthenticatedError(AppError):
    """Missing, invalid, expired or revoked credential."""

    status_code = 401


class ForbiddenError(AppError):
    """Authenticated, but the role or ownership check failed."""

    status_code = 403


class ValidationFailedError(AppError):
    """Payload violated its schema; ``errors`` lists every violated field."""

    status_code = 400

    def __init__(self, errors: list[dict[str, str]], detail: str = "Validation failed") -> None:
        super().__init__(detail, errors=errors)
        self.errors = errors


class NotFoundError(AppError):
    """Entity id does not resolve, or resolves to a soft-deleted record."""

    status_code = 404


class ConflictError(AppError):
    """Duplicate unique field or a status change outside the transition table."""

    status_code = 400


class RateLimitedError(AppError):
    status_code = 429
