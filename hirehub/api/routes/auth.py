"""Authentication routes - register, login, refresh, logout, profile."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from hirehub.api.deps import (
    get_cache,
    get_current_identity,
    get_db_session,
    get_event_bus,
    get_revocations,
)
from hirehub.api.schemas.auth import (
    LoginRequest,
    MeResponse,
    RegisterRequest,
    RegisterResponse,
    TokenResponse,
)
from hirehub.api.schemas.common import MessageResponse
from hirehub.api.schemas.users import UserResponse
from hirehub.core.auth import extract_bearer_token
from hirehub.core.config import get_settings
from hirehub.domain import Identity
from hirehub.domain.events import EventBus
from hirehub.domain.services.auth_service import AuthService
from hirehub.infrastructure.cache import CacheAside
from hirehub.infrastructure.revocation import TokenRevocationStore

logger = structlog.get_logger()
router = APIRouter(prefix="/auth", tags=["authentication"])

REFRESH_COOKIE_PATH = "/auth"


def _set_refresh_cookie(response: Response, token: str) -> None:
    settings = get_settings()
    response.set_cookie(
        key=settings.refresh_cookie_name,
        value=token,
        max_age=settings.refresh_token_ttl_seconds,
        path=REFRESH_COOKIE_PATH,
        httponly=True,
        secure=settings.is_production,
        samesite="strict",
    )


def _clear_refresh_cookie(response: Response) -> None:
    settings = get_settings()
    response.delete_cookie(
        key=settings.refresh_cookie_name,
        path=REFRESH_COOKIE_PATH,
        httponly=True,
        secure=settings.is_production,
        samesite="strict",
    )


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register new user",
)
async def register(
    payload: RegisterRequest,
    session: AsyncSession = Depends(get_db_session),
    revocations: TokenRevocationStore = Depends(get_revocations),
    cache: CacheAside = Depends(get_cache),
    bus: EventBus = Depends(get_event_bus),
) -> RegisterResponse:
    """Create an account; a welcome email follows on a best-effort basis."""
    service = AuthService(session, revocations=revocations, cache=cache, bus=bus)
    user = await service.register_user(
        first_name=payload.first_name,
        last_name=payload.last_name,
        email=payload.email,
        password=payload.password,
        role=payload.role.value,
    )
    return RegisterResponse(message="User registered", user_id=user.id)


@router.post("/login", response_model=TokenResponse, summary="User login")
async def login(
    payload: LoginRequest,
    response: Response,
    session: AsyncSession = Depends(get_db_session),
    revocations: TokenRevocationStore = Depends(get_revocations),
) -> TokenResponse:
    """Authenticate with email and password; the refresh token is set as an httpOnly cookie."""
    service = AuthService(session, revocations=revocations)
    result = await service.login(email=payload.email, password=payload.password)

    _set_refresh_cookie(response, result["refresh_token"])
    return TokenResponse(
        message="Login successful",
        access_token=result["access_token"],
        expires_in=get_settings().access_token_ttl_seconds,
        user=UserResponse(**result["user"]),
    )


@router.post("/refresh", response_model=TokenResponse, summary="Refresh access token")
async def refresh(
    request: Request,
    session: AsyncSession = Depends(get_db_session),
    revocations: TokenRevocationStore = Depends(get_revocations),
) -> TokenResponse:
    """Mint a new access token from the refresh cookie."""
    service = AuthService(session, revocations=revocations)
    result = await service.refresh(request.cookies.get(get_settings().refresh_cookie_name))
    return TokenResponse(
        message="Token refreshed",
        access_token=result["access_token"],
        expires_in=get_settings().access_token_ttl_seconds,
        user=UserResponse(**result["user"]),
    )


@router.post("/logout", response_model=MessageResponse, summary="Logout")
async def logout(
    request: Request,
    response: Response,
    session: AsyncSession = Depends(get_db_session),
    revocations: TokenRevocationStore = Depends(get_revocations),
) -> MessageResponse:
    """Revoke the refresh cookie and any presented access token, then clear the cookie."""
    service = AuthService(session, revocations=revocations)
    await service.logout(
        refresh_token=request.cookies.get(get_settings().refresh_cookie_name),
        access_token=extract_bearer_token(request.headers.get("authorization")),
    )
    _clear_refresh_cookie(response)
    return MessageResponse(message="Logged out")


@router.get("/me", response_model=MeResponse, summary="Get current user")
async def get_me(
    identity: Identity = Depends(get_current_identity),
    session: AsyncSession = Depends(get_db_session),
    revocations: TokenRevocationStore = Depends(get_revocations),
) -> MeResponse:
    service = AuthService(session, revocations=revocations)
    return MeResponse(user=UserResponse(**await service.me(identity)))
