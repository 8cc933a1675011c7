"""Pydantic schemas for authentication endpoints."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, EmailStr, Field

from hirehub.api.schemas.common import RequestModel
from hirehub.api.schemas.users import UserResponse


class SelfServiceRole(str, Enum):
    """Roles a visitor may pick at registration; privileged accounts are created by an admin."""

    EMPLOYEE = "employee"
    APPLICANT = "applicant"


class RegisterRequest(RequestModel):
    first_name: str = Field(..., min_length=3, max_length=128)
    last_name: str = Field(..., min_length=2, max_length=128)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)
    role: SelfServiceRole = SelfServiceRole.EMPLOYEE


class LoginRequest(RequestModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class RegisterResponse(BaseModel):
    message: str = Field(default="User registered")
    user_id: str


class TokenResponse(BaseModel):
    """Response schema containing a JWT access token."""

    message: str
    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer")
    expires_in: int = Field(..., description="Access token TTL in seconds")
    user: UserResponse


class MeResponse(BaseModel):
    user: UserResponse
