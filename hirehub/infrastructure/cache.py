"""
Cache-aside helpers over Redis.

List endpoints derive their key from a canonical form of the query parameters
(sorted, ``None`` dropped, values stringified, then hashed) so that the same
logical query always hits the same entry. A query equal to the collection's
defaults maps to the collection's well-known aggregate key, which is the key
mutations invalidate explicitly. Filtered pages expire with their TTL.
"""

from __future__ import annotations

import hashlib
import json
from collections.abc import Awaitable, Callable, Mapping
from enum import Enum
from typing import Any, Protocol

import structlog
from redis import asyncio as aioredis
from redis.exceptions import RedisError

logger = structlog.get_logger(__name__)


class CacheKeys:
    JOBS_ALL = "jobs:all"
    USERS_ALL = "users:all"
    APPLICATIONS_ALL = "applications:all"
    AUDIT_LOGS_ALL = "audit_logs:all"
    PIPELINE_METRICS = "reports:pipeline"

    @staticmethod
    def revoked_token(fingerprint: str) -> str:
        return f"revoked_token:{fingerprint}"

    @staticmethod
    def rate_limit(client: str, window: int) -> str:
        return f"rate_limit:{client}:{window}"


class CacheUnavailableError(Exception):
    """Raised when the cache store cannot be reached."""


class CacheStore(Protocol):
    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str, ttl: int) -> None: ...

    async def delete(self, *keys: str) -> None: ...

    async def exists(self, key: str) -> bool: ...

    async def incr(self, key: str, ttl: int) -> int: ...

    async def ping(self) -> bool: ...

    async def close(self) -> None: ...


class RedisCache:
    """CacheStore backed by ``redis.asyncio``; connection errors surface as CacheUnavailableError."""

    def __init__(self, url: str, *, socket_timeout: float = 2.0) -> None:
        self._client = aioredis.from_url(
            url,
            decode_responses=True,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_timeout,
        )

    async def get(self, key: str) -> str | None:
        try:
            return await self._client.get(key)
        except RedisError as exc:
            raise CacheUnavailableError(str(exc)) from exc

    async def set(self, key: str, value: str, ttl: int) -> None:
        try:
            await self._client.set(key, value, ex=ttl)
        except RedisError as exc:
            raise CacheUnavailableError(str(exc)) from exc

    async def delete(self, *keys: str) -> None:
        if not keys:
            return
        try:
            await self._client.delete(*keys)
        except RedisError as exc:
            raise CacheUnavailableError(str(exc)) from exc

    async def exists(self, key: str) -> bool:
        try:
            return bool(await self._client.exists(key))
        except RedisError as exc:
            raise CacheUnavailableError(str(exc)) from exc

    async def incr(self, key: str, ttl: int) -> int:
        """Increment a counter, starting its expiry on first use (fixed window)."""
        try:
            async with self._client.pipeline(transaction=True) as pipe:
                pipe.incr(key)
                pipe.expire(key, ttl, nx=True)
                count, _ = await pipe.execute()
        except RedisError as exc:
            raise CacheUnavailableError(str(exc)) from exc
        return int(count)

    async def ping(self) -> bool:
        try:
            return bool(await self._client.ping())
        except RedisError:
            return False

    async def close(self) -> None:
        await self._client.aclose()


def _normalize(value: Any) -> str:
    if isinstance(value, Enum):
        value = value.value
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value).strip()


def canonical_params(params: Mapping[str, Any]) -> dict[str, str]:
    """Sorted, stringified parameters with empty values dropped."""
    return {
        key: _normalize(value)
        for key, value in sorted(params.items())
        if value is not None and _normalize(value) != ""
    }


def query_cache_key(namespace: str, params: Mapping[str, Any]) -> str:
    canonical = json.dumps(canonical_params(params), separators=(",", ":"))
    digest = hashlib.sha256(canonical.encode()).hexdigest()[:16]
    return f"{namespace}:list:{digest}"


def listing_cache_key(
    namespace: str,
    params: Mapping[str, Any],
    *,
    defaults: Mapping[str, Any],
    aggregate_key: str,
) -> str:
    """Aggregate key for the default query, parameter-derived key for anything else."""
    if canonical_params(params) == canonical_params(defaults):
        return aggregate_key
    return query_cache_key(namespace, params)


class CacheAside:
    """Read-through / write-back access to a CacheStore; store failures degrade to misses."""

    def __init__(self, store: CacheStore) -> None:
        self.store = store

    async def read(self, key: str) -> Any | None:
        try:
            raw = await self.store.get(key)
        except CacheUnavailableError as exc:
            logger.warning("cache_read_failed", key=key, error=str(exc))
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning("cache_entry_corrupt", key=key)
            return None

    async def write(self, key: str, value: Any, ttl: int) -> None:
        try:
            await self.store.set(key, json.dumps(value, default=str), ttl)
        except CacheUnavailableError as exc:
            logger.warning("cache_write_failed", key=key, error=str(exc))

    async def invalidate(self, *keys: str) -> None:
        try:
            await self.store.delete(*keys)
        except CacheUnavailableError as exc:
            logger.warning("cache_invalidate_failed", keys=list(keys), error=str(exc))
            return
        logger.debug("cache_invalidated", keys=list(keys))

    async def get_or_load(
        self,
        key: str,
        loader: Callable[[], Awaitable[Any]],
        ttl: int,
    ) -> Any:
        cached = await self.read(key)
        if cached is not None:
            logger.info("cache_hit", key=key)
            return cached

        value = await loader()
        await self.write(key, value, ttl)
        logger.info("cache_miss", key=key, ttl=ttl)
        return value
