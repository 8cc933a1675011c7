"""Schemas for notifications, audit logs and reports."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel


class NotificationResponse(BaseModel):
    id: str
    user_id: str
    type: str
    payload: dict[str, Any]
    read: bool
    created_at: datetime


class AuditLogResponse(BaseModel):
    id: str
    actor_id: str
    action: str
    target_type: str
    target_id: str
    details: dict[str, Any]
    created_at: datetime


class PipelineStage(BaseModel):
    status: str
    count: int


class PipelineMetrics(BaseModel):
    pipeline: list[PipelineStage]
    total: int
    avg_time_to_offer_days: float
