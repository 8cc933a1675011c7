"""Audit trail: recording subscriber and the admin listing."""

from __future__ import annotations

from typing import Any

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from hirehub.core.config import get_settings
from hirehub.domain.events import ALL_ACTIONS, DomainEvent, EventBus
from hirehub.domain.services.serializers import audit_log_to_dict, page_to_dict
from hirehub.infrastructure.cache import CacheAside, CacheKeys, listing_cache_key
from hirehub.infrastructure.db.models import AuditLogModel
from hirehub.infrastructure.repositories import AuditLogRepository

logger = structlog.get_logger(__name__)

AUDIT_LIST_DEFAULTS: dict[str, Any] = {"page": 1, "limit": 20, "sort": "-created_at"}


class AuditRecorder:
    """Writes one insert-only record per published domain event.

    Records go through their own session so a failed insert never touches the
    request session the service has already committed.
    """

    def __init__(
        self, session_factory: async_sessionmaker[AsyncSession], cache: CacheAside
    ) -> None:
        self.session_factory = session_factory
        self.cache = cache

    def attach(self, bus: EventBus) -> None:
        bus.subscribe(ALL_ACTIONS, self.record)

    async def record(self, event: DomainEvent) -> AuditLogModel:
        entry = AuditLogModel(
            actor_id=event.actor_id,
            action=event.action,
            target_type=event.target_type,
            target_id=event.target_id,
            details=event.details,
        )
        try:
            async with self.session_factory() as session:
                session.add(entry)
                await session.commit()
        except SQLAlchemyError:
            logger.error(
                "audit_write_failed",
                action=event.action,
                target_type=event.target_type,
                target_id=event.target_id,
            )
            raise

        await self.cache.invalidate(CacheKeys.AUDIT_LOGS_ALL)
        logger.info(
            "audit_recorded",
            action=event.action,
            actor_id=event.actor_id,
            target_type=event.target_type,
            target_id=event.target_id,
        )
        return entry


class AuditLogService:
    def __init__(self, session: AsyncSession, cache: CacheAside) -> None:
        self.repo = AuditLogRepository(session)
        self.cache = cache

    async def list_logs(
        self,
        *,
        page: int = 1,
        limit: int = 20,
        sort: str | None = None,
        actor_id: str | None = None,
        target_type: str | None = None,
        target_id: str | None = None,
        action: str | None = None,
    ) -> dict[str, Any]:
        params = {
            "page": page,
            "limit": limit,
            "sort": sort or AUDIT_LIST_DEFAULTS["sort"],
            "actor_id": actor_id,
            "target_type": target_type,
            "target_id": target_id,
            "action": action,
        }
        key = listing_cache_key(
            "audit_logs",
            params,
            defaults=AUDIT_LIST_DEFAULTS,
            aggregate_key=CacheKeys.AUDIT_LOGS_ALL,
        )

        async def load() -> dict[str, Any]:
            stmt = self.repo.filtered(
                actor_id=actor_id, target_type=target_type, target_id=target_id, action=action
            )
            result = await self.repo.paginate(stmt, page=page, limit=limit, sort=sort)
            return page_to_dict(result, audit_log_to_dict)

        return await self.cache.get_or_load(key, load, get_settings().cache_ttl_listing)
