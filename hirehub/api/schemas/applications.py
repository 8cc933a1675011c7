from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, EmailStr, Field

from hirehub.api.schemas.common import RequestModel
from hirehub.api.schemas.users import UserSummary


class ApplicationStatusName(str, Enum):
    PENDING = "pending"
    IN_REVIEW = "in_review"
    INTERVIEW = "interview"
    OFFER = "offer"
    REJECTED = "rejected"
    ACCEPTED = "accepted"


class ApplicationForm(RequestModel):
    """Text fields sent alongside the ``resume`` file."""

    cover_letter: str = Field(default="", max_length=10_000)
    candidate_name: str | None = Field(None, min_length=2, max_length=255)
    candidate_email: EmailStr | None = None
    candidate_phone: str | None = Field(None, max_length=64)


class StatusUpdate(RequestModel):
    status: ApplicationStatusName


class NoteCreate(RequestModel):
    text: str = Field(..., min_length=1, max_length=5_000)


class JobSummary(BaseModel):
    id: str
    title: str | None = None
    department: str | None = None


class CandidateInfo(BaseModel):
    name: str | None = None
    email: str | None = None
    phone: str | None = None


class NoteResponse(BaseModel):
    id: str
    text: str
    added_by: str
    added_at: datetime


class ApplicationResponse(BaseModel):
    id: str
    job: JobSummary
    applicant: UserSummary
    resume: str
    cover_letter: str
    candidate: CandidateInfo
    status: str
    scores: dict[str, float]
    notes: list[NoteResponse]
    created_at: datetime
    updated_at: datetime
