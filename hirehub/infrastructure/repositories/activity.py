from __future__ import annotations

from typing import Any

from sqlalchemy import Select

from hirehub.infrastructure.db.models import AuditLogModel, NotificationModel

from .base import Repository, SoftDeleteRepository


class NotificationRepository(SoftDeleteRepository[NotificationModel]):
    model = NotificationModel
    label = "Notification"
    sortable = frozenset({"created_at", "read"})

    def for_user(self, user_id: str, *, unread_only: bool = False) -> Select[Any]:
        stmt = self.select().where(NotificationModel.user_id == user_id)
        if unread_only:
            stmt = stmt.where(NotificationModel.read.is_(False))
        return stmt


class AuditLogRepository(Repository[AuditLogModel]):
    model = AuditLogModel
    label = "Audit log"
    sortable = frozenset({"created_at", "action", "target_type"})

    def filtered(
        self,
        *,
        actor_id: str | None = None,
        target_type: str | None = None,
        target_id: str | None = None,
        action: str | None = None,
    ) -> Select[Any]:
        stmt = self.select()
        if actor_id:
            stmt = stmt.where(AuditLogModel.actor_id == actor_id)
        if target_type:
            stmt = stmt.where(AuditLogModel.target_type == target_type)
        if target_id:
            stmt = stmt.where(AuditLogModel.target_id == target_id)
        if action:
            stmt = stmt.where(AuditLogModel.action == action)
        return stmt
