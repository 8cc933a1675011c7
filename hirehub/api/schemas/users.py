from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, EmailStr, Field

from hirehub.api.schemas.common import RequestModel


class RoleName(str, Enum):
    ADMIN = "admin"
    HR = "hr"
    EMPLOYEE = "employee"
    APPLICANT = "applicant"


class UserCreate(RequestModel):
    first_name: str = Field(..., min_length=3, max_length=128)
    last_name: str = Field(..., min_length=2, max_length=128)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)
    role: RoleName = RoleName.EMPLOYEE
    department: str | None = Field(None, max_length=128)
    manager_id: str | None = None
    profile_photo_url: str | None = Field(None, max_length=512)


class UserUpdate(RequestModel):
    first_name: str | None = Field(None, min_length=3, max_length=128)
    last_name: str | None = Field(None, min_length=2, max_length=128)
    email: EmailStr | None = None
    password: str | None = Field(None, min_length=6, max_length=128)
    role: RoleName | None = None
    department: str | None = Field(None, max_length=128)
    manager_id: str | None = None
    profile_photo_url: str | None = Field(None, max_length=512)
    is_active: bool | None = None


class UserSummary(BaseModel):
    id: str
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None


class UserResponse(BaseModel):
    id: str
    first_name: str
    last_name: str
    email: str
    role: str
    department: str
    manager_id: str | None = None
    is_active: bool
    profile_photo_url: str
    last_login_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class UserEnvelope(BaseModel):
    message: str
    user: UserResponse
