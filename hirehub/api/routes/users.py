from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from hirehub.api.deps import (
    get_cache,
    get_db_session,
    get_event_bus,
    require_roles,
    require_self_or_roles,
)
from hirehub.api.schemas.common import PageResponse
from hirehub.api.schemas.users import RoleName, UserCreate, UserEnvelope, UserResponse, UserUpdate
from hirehub.core.errors import ValidationFailedError
from hirehub.domain import Identity
from hirehub.domain.events import EventBus
from hirehub.domain.services.users import UserService
from hirehub.infrastructure.cache import CacheAside

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("", response_model=PageResponse[UserResponse])
async def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    sort: str | None = Query(None, max_length=64),
    q: str | None = Query(None, max_length=200),
    role: RoleName | None = None,
    department: str | None = None,
    identity: Identity = Depends(require_roles(["admin", "hr"])),
    session: AsyncSession = Depends(get_db_session),
    cache: CacheAside = Depends(get_cache),
) -> dict:
    service = UserService(session, cache, EventBus())
    return await service.list_users(
        page=page,
        limit=limit,
        sort=sort,
        q=q,
        role=role.value if role else None,
        department=department,
    )


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: str,
    identity: Identity = Depends(require_self_or_roles()),
    session: AsyncSession = Depends(get_db_session),
    cache: CacheAside = Depends(get_cache),
) -> dict:
    return await UserService(session, cache, EventBus()).get_user(user_id)


@router.post("", response_model=UserEnvelope, status_code=status.HTTP_201_CREATED)
async def create_user(
    payload: UserCreate,
    identity: Identity = Depends(require_roles(["admin"])),
    session: AsyncSession = Depends(get_db_session),
    cache: CacheAside = Depends(get_cache),
    bus: EventBus = Depends(get_event_bus),
) -> UserEnvelope:
    """Create an account with any role (admin only)."""
    user = await UserService(session, cache, bus).create_user(
        identity, payload.model_dump(mode="json")
    )
    return UserEnvelope(message="User created", user=UserResponse(**user))


@router.put("/{user_id}", response_model=UserEnvelope)
async def update_user(
    user_id: str,
    payload: UserUpdate,
    identity: Identity = Depends(require_self_or_roles(["admin"])),
    session: AsyncSession = Depends(get_db_session),
    cache: CacheAside = Depends(get_cache),
    bus: EventBus = Depends(get_event_bus),
) -> UserEnvelope:
    """Update a profile; role, activation and reporting line are admin-only."""
    changes = payload.model_dump(mode="json", exclude_unset=True, exclude_none=True)
    if not changes:
        raise ValidationFailedError([{"field": "body", "message": "No fields to update"}])
    user = await UserService(session, cache, bus).update_user(identity, user_id, changes)
    return UserEnvelope(message="User updated", user=UserResponse(**user))


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT, response_model=None)
async def delete_user(
    user_id: str,
    identity: Identity = Depends(require_roles(["admin"])),
    session: AsyncSession = Depends(get_db_session),
    cache: CacheAside = Depends(get_cache),
    bus: EventBus = Depends(get_event_bus),
) -> None:
    await UserService(session, cache, bus).delete_user(identity, user_id)
