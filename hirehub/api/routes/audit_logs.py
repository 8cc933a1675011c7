from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from hirehub.api.deps import get_cache, get_db_session, require_roles
from hirehub.api.schemas.activity import AuditLogResponse
from hirehub.api.schemas.common import PageResponse
from hirehub.domain import Identity
from hirehub.domain.services.audit import AuditLogService
from hirehub.infrastructure.cache import CacheAside

router = APIRouter(prefix="/audit-logs", tags=["Audit"])


@router.get("", response_model=PageResponse[AuditLogResponse])
async def list_audit_logs(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    sort: str | None = Query(None, max_length=64),
    actor_id: str | None = Query(None, alias="actorId"),
    target_type: str | None = Query(None, alias="targetType"),
    target_id: str | None = Query(None, alias="targetId"),
    action: str | None = None,
    identity: Identity = Depends(require_roles(["admin"])),
    session: AsyncSession = Depends(get_db_session),
    cache: CacheAside = Depends(get_cache),
) -> dict:
    """Browse the append-only audit trail (admin only)."""
    return await AuditLogService(session, cache).list_logs(
        page=page,
        limit=limit,
        sort=sort,
        actor_id=actor_id,
        target_type=target_type,
        target_id=target_id,
        action=action,
    )
