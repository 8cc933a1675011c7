from __future__ import annotations

from datetime import UTC, datetime

import structlog
from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from hirehub.api.deps import get_cache_store, get_db_session
from hirehub.core.config import get_settings
from hirehub.infrastructure.cache import CacheStore

router = APIRouter(tags=["Observability"])
logger = structlog.get_logger()


async def check_database(session: AsyncSession) -> dict:
    try:
        await session.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        return {"status": "error", "message": str(e)[:100]}
    return {"status": "ok"}


async def check_cache(store: CacheStore) -> dict:
    if await store.ping():
        return {"status": "ok"}
    return {"status": "error", "message": "cache store unreachable"}


@router.get("/health", summary="Service health probe")
async def health_check(
    session: AsyncSession = Depends(get_db_session),
    store: CacheStore = Depends(get_cache_store),
) -> dict:
    """Return basic service and datastore status information."""
    settings = get_settings()

    database_status = await check_database(session)
    cache_status = await check_cache(store)

    # The cache fails open everywhere, so only the database decides "ok"
    overall_status = "ok" if database_status["status"] == "ok" else "degraded"

    payload = {
        "service": settings.app_name,
        "version": settings.version,
        "status": overall_status,
        "timestamp": datetime.now(UTC).isoformat(),
        "datastores": {
            "database": database_status,
            "redis": cache_status,
        },
    }
    logger.info("health_probe", status=overall_status)
    return payload
