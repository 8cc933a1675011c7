"""Authentication service with password hashing, token issue and revocation."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

import structlog
from passlib.context import CryptContext
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from hirehub.core.auth import (
    TokenError,
    create_access_token,
    create_refresh_token,
    decode_access_token,
    decode_refresh_token,
    token_remaining_seconds,
)
from hirehub.core.errors import ConflictError, ForbiddenError, UnauthenticatedError
from hirehub.domain.events import DomainEvent, EventBus
from hirehub.domain.models import Identity
from hirehub.domain.services.serializers import user_to_dict
from hirehub.infrastructure.cache import CacheAside, CacheKeys
from hirehub.infrastructure.db.models import UserModel, UserRole
from hirehub.infrastructure.repositories import UserRepository
from hirehub.infrastructure.revocation import TokenRevocationStore

logger = structlog.get_logger()

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

INVALID_CREDENTIALS = "Invalid email or password"


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return pwd_context.verify(plain_password, hashed_password)


class AuthService:
    """Registration, login and the refresh-token lifecycle."""

    def __init__(
        self,
        session: AsyncSession,
        *,
        revocations: TokenRevocationStore,
        cache: CacheAside | None = None,
        bus: EventBus | None = None,
    ) -> None:
        self.session = session
        self.users = UserRepository(session)
        self.revocations = revocations
        self.cache = cache
        self.bus = bus

    async def register_user(
        self,
        *,
        first_name: str,
        last_name: str,
        email: str,
        password: str,
        role: str = UserRole.EMPLOYEE.value,
    ) -> UserModel:
        email = email.strip().lower()
        await logger.ainfo("register_attempt", email=email, role=role)

        if await self.users.email_taken(email):
            await logger.awarning("register_duplicate_email", email=email)
            raise ConflictError("Email already registered")

        user = UserModel(
            first_name=first_name,
            last_name=last_name,
            email=email,
            hashed_password=hash_password(password),
            role=UserRole(role),
        )
        try:
            await self.users.add(user)
            await self.session.commit()
        except IntegrityError as exc:
            await self.session.rollback()
            raise ConflictError("Email already registered") from exc

        await logger.ainfo("register_success", user_id=user.id, role=role)

        if self.cache is not None:
            await self.cache.invalidate(CacheKeys.USERS_ALL)
        if self.bus is not None:
            await self.bus.publish(
                DomainEvent(
                    action="register_user",
                    actor_id=user.id,
                    target_type="User",
                    target_id=user.id,
                    details={"role": role},
                    context={"email": user.email, "first_name": user.first_name},
                )
            )
        return user

    async def login(self, *, email: str, password: str) -> dict[str, Any]:
        email = email.strip().lower()
        await logger.ainfo("login_attempt", email=email)

        user = await self.users.get_by_email(email)
        if user is None or not verify_password(password, user.hashed_password):
            await logger.awarning("login_failed", email=email)
            raise UnauthenticatedError(INVALID_CREDENTIALS)

        if not user.is_active:
            await logger.awarning("login_inactive_user", user_id=user.id)
            raise ForbiddenError("Account is inactive")

        user.last_login_at = datetime.now(UTC)
        await self.session.commit()

        await logger.ainfo("login_success", user_id=user.id)
        return {
            "user": user_to_dict(user),
            "access_token": self._access_token_for(user),
            "refresh_token": self._refresh_token_for(user),
        }

    async def refresh(self, refresh_token: str | None) -> dict[str, Any]:
        """Mint a new access token from a valid, unrevoked refresh token."""
        if not refresh_token:
            raise UnauthenticatedError("Missing refresh token")

        try:
            payload = decode_refresh_token(refresh_token)
        except TokenError as exc:
            raise UnauthenticatedError(str(exc)) from exc

        if await self.revocations.is_revoked(refresh_token):
            raise UnauthenticatedError("Token revoked")

        user = await self.users.get(payload["sub"])
        if user is None or not user.is_active:
            raise UnauthenticatedError("Invalid token")

        await logger.ainfo("token_refreshed", user_id=user.id)
        return {"user": user_to_dict(user), "access_token": self._access_token_for(user)}

    async def logout(self, *, refresh_token: str | None, access_token: str | None) -> int:
        """Revoke whichever of the two tokens are present and still valid."""
        revoked = 0
        for token, decode in (
            (refresh_token, decode_refresh_token),
            (access_token, decode_access_token),
        ):
            if not token:
                continue
            try:
                payload = decode(token)
            except TokenError:
                continue
            if await self.revocations.revoke(token, token_remaining_seconds(payload)):
                revoked += 1

        await logger.ainfo("logout", revoked_tokens=revoked)
        return revoked

    async def me(self, identity: Identity) -> dict[str, Any]:
        user = await self.users.get(identity.user_id)
        if user is None:
            raise UnauthenticatedError("User no longer exists")
        return user_to_dict(user)

    def _access_token_for(self, user: UserModel) -> str:
        try:
            return create_access_token(
                user.id,
                role=user.role.value,
                email=user.email,
                name=user.full_name,
            )
        except TokenError as exc:
            raise UnauthenticatedError(str(exc)) from exc

    def _refresh_token_for(self, user: UserModel) -> str:
        try:
            return create_refresh_token(user.id)
        except TokenError as exc:
            raise UnauthenticatedError(str(exc)) from exc
