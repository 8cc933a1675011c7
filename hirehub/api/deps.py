from __future__ import annotations

from collections.abc import AsyncIterator, Callable, Sequence

import structlog
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from hirehub.core.auth import (
    PRIVILEGED_ROLES,
    Role,
    TokenError,
    create_access_token,
    decode_access_token,
    extract_bearer_token,
    is_allowed,
    is_self_or_privileged,
)
from hirehub.core.config import get_settings
from hirehub.core.errors import ForbiddenError, UnauthenticatedError
from hirehub.domain import Identity
from hirehub.domain.events import EventBus
from hirehub.domain.services.audit import AuditRecorder
from hirehub.domain.services.notifications import NotificationDispatcher
from hirehub.infrastructure.cache import CacheAside, CacheStore
from hirehub.infrastructure.db.session import get_session, get_session_factory
from hirehub.infrastructure.revocation import TokenRevocationStore
from hirehub.infrastructure.storage import ResumeStorage
from hirehub.libs.mailer import Mailer
from hirehub.realtime.registry import ConnectionRegistry

logger = structlog.get_logger()


async def get_db_session() -> AsyncIterator[AsyncSession]:
    """Provide an async SQLAlchemy session for API handlers."""
    async for session in get_session():
        yield session


def get_db_session_factory() -> async_sessionmaker[AsyncSession]:
    """Session factory for event subscribers that write outside the request session."""
    return get_session_factory()


def get_cache_store(request: Request) -> CacheStore:
    return request.app.state.cache


def get_cache(store: CacheStore = Depends(get_cache_store)) -> CacheAside:  # noqa: B008
    return CacheAside(store)


def get_revocations(store: CacheStore = Depends(get_cache_store)) -> TokenRevocationStore:  # noqa: B008
    return TokenRevocationStore(store)


def get_registry(request: Request) -> ConnectionRegistry:
    return request.app.state.registry


def get_mailer(request: Request) -> Mailer:
    return request.app.state.mailer


def get_resume_storage(request: Request) -> ResumeStorage:
    return request.app.state.resume_storage


def get_event_bus(
    factory: async_sessionmaker[AsyncSession] = Depends(get_db_session_factory),  # noqa: B008
    cache: CacheAside = Depends(get_cache),  # noqa: B008
    mailer: Mailer = Depends(get_mailer),  # noqa: B008
    registry: ConnectionRegistry = Depends(get_registry),  # noqa: B008
) -> EventBus:
    """Per-request bus with the audit recorder and the notification dispatcher attached."""
    bus = EventBus()
    AuditRecorder(factory, cache).attach(bus)
    NotificationDispatcher(factory, mailer, registry).attach(bus)
    return bus


async def authenticate_token(token: str | None, revocations: TokenRevocationStore) -> Identity:
    """Verify a raw access token and build the Identity it carries."""
    if not token:
        raise UnauthenticatedError("Missing bearer token")

    try:
        payload = decode_access_token(token)
    except TokenError as exc:
        raise UnauthenticatedError(str(exc)) from exc

    if await revocations.is_revoked(token):
        raise UnauthenticatedError("Token revoked")

    return Identity(
        user_id=payload["sub"],
        role=payload["role"],
        email=payload.get("email", ""),
        name=payload.get("name", ""),
    )


async def get_current_identity(
    request: Request,
    revocations: TokenRevocationStore = Depends(get_revocations),  # noqa: B008
) -> Identity:
    """Resolve the authenticated identity from the Authorization header."""
    token = extract_bearer_token(request.headers.get("authorization"))
    identity = await authenticate_token(token, revocations)
    structlog.contextvars.bind_contextvars(user_id=identity.user_id, role=identity.role)
    return identity


def require_roles(allowed_roles: Sequence[str]) -> Callable[[Identity], Identity]:
    """Dependency factory enforcing that the identity holds one of the allowed roles."""
    settings = get_settings()
    invalid_roles = [role for role in allowed_roles if role not in settings.allowed_roles]
    if invalid_roles:
        raise ValueError(f"Unsupported role(s) requested: {', '.join(invalid_roles)}")

    allowed = frozenset(allowed_roles)

    def dependency(identity: Identity = Depends(get_current_identity)) -> Identity:  # noqa: B008
        if not is_allowed(identity.role, allowed):
            logger.info("access_denied", user_id=identity.user_id, role=identity.role)
            raise ForbiddenError("Insufficient role privileges")
        return identity

    return dependency


def require_self_or_roles(
    privileged_roles: Sequence[str] = tuple(PRIVILEGED_ROLES),
    *,
    path_param: str = "user_id",
) -> Callable[[Request, Identity], Identity]:
    """Allow the owner of ``{path_param}`` or any of ``privileged_roles``."""
    privileged = frozenset(privileged_roles)

    def dependency(
        request: Request,
        identity: Identity = Depends(get_current_identity),  # noqa: B008
    ) -> Identity:
        target_id = request.path_params.get(path_param, "")
        if not is_self_or_privileged(identity.user_id, identity.role, target_id, privileged):
            logger.info("access_denied", user_id=identity.user_id, target_id=target_id)
            raise ForbiddenError("You may only access your own record")
        return identity

    return dependency


def issue_smoke_token(user_id: str, *, role: Role, email: str | None = None) -> str:
    """Generate a signed token for manual smoke testing."""
    return create_access_token(user_id, role=role.value, email=email)
