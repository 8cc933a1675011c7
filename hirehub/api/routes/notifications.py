from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from hirehub.api.deps import get_current_identity, get_db_session
from hirehub.api.schemas.activity import NotificationResponse
from hirehub.api.schemas.common import PageResponse
from hirehub.domain import Identity
from hirehub.domain.services.notifications import NotificationService

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("", response_model=PageResponse[NotificationResponse])
async def list_notifications(
    unread: bool = Query(False, description="Only unread notifications"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    identity: Identity = Depends(get_current_identity),
    session: AsyncSession = Depends(get_db_session),
) -> dict:
    """The caller's own notifications, newest first."""
    return await NotificationService(session).list_for(
        identity, unread_only=unread, page=page, limit=limit
    )


@router.put("/{notification_id}/read", response_model=NotificationResponse)
async def mark_notification_read(
    notification_id: str,
    identity: Identity = Depends(get_current_identity),
    session: AsyncSession = Depends(get_db_session),
) -> dict:
    return await NotificationService(session).mark_read(identity, notification_id)
