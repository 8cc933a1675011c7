from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, EmailStr, Field, model_validator

from hirehub.api.schemas.common import RequestModel


class InterviewStatusName(str, Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Participant(RequestModel):
    user_id: str | None = None
    email: EmailStr | None = None

    @model_validator(mode="after")
    def _needs_contact(self) -> Participant:
        if not self.user_id and not self.email:
            raise ValueError("participant needs a user_id or an email")
        return self


class InterviewCreate(RequestModel):
    scheduled_at: datetime
    duration: int = Field(default=60, ge=5, le=8 * 60)
    participants: list[Participant] = Field(default_factory=list)
    location: str | None = Field(None, max_length=255)


class InterviewUpdate(RequestModel):
    scheduled_at: datetime | None = None
    duration: int | None = Field(None, ge=5, le=8 * 60)
    participants: list[Participant] | None = None
    location: str | None = Field(None, max_length=255)
    status: InterviewStatusName | None = None


class Evaluation(RequestModel):
    scores: dict[str, float] = Field(default_factory=dict)
    notes: str = Field(default="", max_length=10_000)


class InterviewComplete(RequestModel):
    evaluation: Evaluation


class InterviewResponse(BaseModel):
    id: str
    application_id: str
    scheduled_at: datetime
    duration: int
    participants: list[dict[str, Any]]
    location: str | None = None
    status: str
    evaluation: dict[str, Any]
    created_at: datetime
    updated_at: datetime
