"""HTTP middleware: request correlation and fixed-window rate limiting."""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable
from uuid import uuid4

import structlog
from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.responses import Response
from structlog.contextvars import bind_contextvars, clear_contextvars

from hirehub.core.config import get_settings
from hirehub.core.errors import RateLimitedError
from hirehub.infrastructure.cache import CacheKeys, CacheStore, CacheUnavailableError

logger = structlog.get_logger()

CallNext = Callable[[Request], Awaitable[Response]]

RATE_LIMIT_EXEMPT_PATHS = frozenset({"/health"})


async def correlation_id_middleware(request: Request, call_next: CallNext) -> Response:
    request_id = request.headers.get("x-request-id", str(uuid4()))
    bind_contextvars(
        request_id=request_id,
        path=str(request.url.path),
        method=request.method,
    )
    try:
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response
    finally:
        clear_contextvars()


def client_address(request: Request) -> str:
    """Socket peer, or the nearest untrusted X-Forwarded-For hop behind a trusted proxy."""
    peer = request.client.host if request.client else "unknown"
    trusted = get_settings().trusted_proxies
    forwarded = request.headers.get("x-forwarded-for")
    if not forwarded or peer not in trusted:
        return peer

    hops = [hop.strip() for hop in forwarded.split(",") if hop.strip()]
    for hop in reversed(hops):
        if hop not in trusted:
            return hop
    return hops[0] if hops else peer


async def rate_limit_middleware(request: Request, call_next: CallNext) -> Response:
    settings = get_settings()
    if not settings.rate_limit_enabled or request.url.path in RATE_LIMIT_EXEMPT_PATHS:
        return await call_next(request)

    store: CacheStore = request.app.state.cache
    window_seconds = settings.rate_limit_window_seconds
    now = int(time.time())
    window = now // window_seconds
    client = client_address(request)

    try:
        count = await store.incr(CacheKeys.rate_limit(client, window), window_seconds)
    except CacheUnavailableError as exc:
        logger.warning("rate_limit_unavailable", client=client, error=str(exc))
        return await call_next(request)

    remaining = max(settings.rate_limit_max_requests - count, 0)
    reset_in = (window + 1) * window_seconds - now
    headers = {
        "X-RateLimit-Limit": str(settings.rate_limit_max_requests),
        "X-RateLimit-Remaining": str(remaining),
        "X-RateLimit-Reset": str(reset_in),
    }

    if count > settings.rate_limit_max_requests:
        logger.warning("rate_limit_exceeded", client=client, count=count)
        error = RateLimitedError("Too many requests, please try again later")
        return JSONResponse(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            content=error.to_dict(),
            headers={**headers, "Retry-After": str(reset_in)},
        )

    response = await call_next(request)
    response.headers.update(headers)
    return response
