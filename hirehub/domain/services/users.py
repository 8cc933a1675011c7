from __future__ import annotations

from typing import Any

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from hirehub.core.config import get_settings
from hirehub.core.errors import ConflictError, ForbiddenError
from hirehub.domain.events import DomainEvent, EventBus
from hirehub.domain.models import Identity
from hirehub.domain.services.auth_service import hash_password
from hirehub.domain.services.serializers import page_to_dict, user_to_dict
from hirehub.infrastructure.cache import CacheAside, CacheKeys, listing_cache_key
from hirehub.infrastructure.db.models import UserModel, UserRole
from hirehub.infrastructure.repositories import UserRepository

logger = structlog.get_logger(__name__)

USER_LIST_DEFAULTS: dict[str, Any] = {"page": 1, "limit": 20, "sort": "-created_at"}

# Fields only an admin may change, even on their own record
ADMIN_ONLY_FIELDS = frozenset({"role", "is_active", "manager_id", "department"})


class UserService:
    def __init__(self, session: AsyncSession, cache: CacheAside, bus: EventBus) -> None:
        self.session = session
        self.repo = UserRepository(session)
        self.cache = cache
        self.bus = bus

    async def list_users(
        self,
        *,
        page: int = 1,
        limit: int = 20,
        sort: str | None = None,
        q: str | None = None,
        role: str | None = None,
        department: str | None = None,
    ) -> dict[str, Any]:
        params = {
            "page": page,
            "limit": limit,
            "sort": sort or USER_LIST_DEFAULTS["sort"],
            "q": q,
            "role": role,
            "department": department,
        }
        key = listing_cache_key(
            "users", params, defaults=USER_LIST_DEFAULTS, aggregate_key=CacheKeys.USERS_ALL
        )

        async def load() -> dict[str, Any]:
            stmt = self.repo.filtered(q=q, role=role, department=department)
            result = await self.repo.paginate(stmt, page=page, limit=limit, sort=sort)
            return page_to_dict(result, user_to_dict)

        return await self.cache.get_or_load(key, load, get_settings().cache_ttl_listing)

    async def get_user(self, user_id: str) -> dict[str, Any]:
        return user_to_dict(await self.repo.get_or_raise(user_id))

    async def create_user(self, actor: Identity, data: dict[str, Any]) -> dict[str, Any]:
        email = data["email"].strip().lower()
        if await self.repo.email_taken(email):
            raise ConflictError("Email already registered")

        user = UserModel(
            first_name=data["first_name"],
            last_name=data["last_name"],
            email=email,
            hashed_password=hash_password(data["password"]),
            role=UserRole(data.get("role") or UserRole.EMPLOYEE.value),
            department=data.get("department") or "",
            manager_id=data.get("manager_id"),
            profile_photo_url=data.get("profile_photo_url") or "",
        )
        try:
            await self.repo.add(user)
            await self.session.commit()
        except IntegrityError as exc:
            await self.session.rollback()
            raise ConflictError("Email already registered") from exc

        logger.info("user_created", user_id=user.id, role=user.role.value, actor_id=actor.user_id)
        await self._after_change("create_user", actor, user.id, {"role": user.role.value})
        return user_to_dict(user)

    async def update_user(
        self, actor: Identity, user_id: str, changes: dict[str, Any]
    ) -> dict[str, Any]:
        restricted = sorted(ADMIN_ONLY_FIELDS.intersection(changes))
        if restricted and actor.role != UserRole.ADMIN.value:
            raise ForbiddenError(f"Only an admin may change: {', '.join(restricted)}")

        user = await self.repo.get_or_raise(user_id)

        if "email" in changes:
            changes["email"] = changes["email"].strip().lower()
            if await self.repo.email_taken(changes["email"], exclude_id=user.id):
                raise ConflictError("Email already registered")

        audited = {k: v for k, v in changes.items() if k != "password"}
        if "password" in changes:
            user.hashed_password = hash_password(changes.pop("password"))
            audited["password_changed"] = True
        if "role" in changes:
            changes["role"] = UserRole(changes["role"])
        for field, value in changes.items():
            setattr(user, field, value)

        try:
            await self.session.commit()
        except IntegrityError as exc:
            await self.session.rollback()
            raise ConflictError("Email already registered") from exc

        logger.info("user_updated", user_id=user.id, fields=sorted(audited), actor_id=actor.user_id)
        await self._after_change("update_user", actor, user.id, audited)
        return user_to_dict(user)

    async def delete_user(self, actor: Identity, user_id: str) -> None:
        user = await self.repo.get_or_raise(user_id)
        await self.repo.soft_delete(user)
        await self.session.commit()

        logger.info("user_deleted", user_id=user_id, actor_id=actor.user_id)
        await self._after_change("delete_user", actor, user_id, {"email": user.email})

    async def _after_change(
        self, action: str, actor: Identity, user_id: str, details: dict[str, Any]
    ) -> None:
        await self.cache.invalidate(CacheKeys.USERS_ALL)
        await self.bus.publish(
            DomainEvent(
                action=action,
                actor_id=actor.user_id,
                target_type="User",
                target_id=user_id,
                details=details,
            )
        )
