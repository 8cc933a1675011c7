from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from hirehub.api.schemas.common import RequestModel
from hirehub.api.schemas.users import UserSummary


class JobTypeName(str, Enum):
    CDI = "CDI"
    CDD = "CDD"
    STAGE = "Stage"
    INTERN = "Intern"


class JobStatusName(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    CLOSED = "closed"


class JobVisibilityName(str, Enum):
    INTERNAL = "internal"
    PUBLIC = "public"


class JobCreate(RequestModel):
    title: str = Field(..., min_length=3, max_length=255)
    description: str = Field(..., min_length=10)
    department: str = Field(..., min_length=1, max_length=128)
    location: str = Field(default="Remote", max_length=255)
    salary_range: str | None = Field(None, max_length=128)
    job_type: JobTypeName = JobTypeName.CDI
    requirements: list[str] = Field(default_factory=list)
    benefits: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    visibility: JobVisibilityName = JobVisibilityName.PUBLIC


class JobUpdate(RequestModel):
    title: str | None = Field(None, min_length=3, max_length=255)
    description: str | None = Field(None, min_length=10)
    department: str | None = Field(None, min_length=1, max_length=128)
    location: str | None = Field(None, max_length=255)
    salary_range: str | None = Field(None, max_length=128)
    job_type: JobTypeName | None = None
    requirements: list[str] | None = None
    benefits: list[str] | None = None
    tags: list[str] | None = None
    status: JobStatusName | None = None
    visibility: JobVisibilityName | None = None


class JobResponse(BaseModel):
    id: str
    title: str
    description: str
    department: str
    location: str
    salary_range: str | None = None
    job_type: str
    requirements: list[str]
    benefits: list[str]
    tags: list[str]
    status: str
    visibility: str
    created_by: UserSummary
    created_at: datetime
    updated_at: datetime
