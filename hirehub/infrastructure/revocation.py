from __future__ import annotations

import structlog

from hirehub.core.auth import token_fingerprint

from .cache import CacheKeys, CacheStore, CacheUnavailableError

logger = structlog.get_logger(__name__)


class TokenRevocationStore:
    """Revoked-token set kept in the cache store until each token would have expired.

    Both operations fail open: an unreachable store means a token cannot be
    revoked or checked, which is logged and otherwise ignored.
    """

    def __init__(self, store: CacheStore) -> None:
        self.store = store

    async def revoke(self, token: str, ttl_seconds: int) -> bool:
        key = CacheKeys.revoked_token(token_fingerprint(token))
        try:
            await self.store.set(key, "1", max(ttl_seconds, 1))
        except CacheUnavailableError as exc:
            logger.warning("token_revoke_failed", error=str(exc))
            return False
        return True

    async def is_revoked(self, token: str) -> bool:
        key = CacheKeys.revoked_token(token_fingerprint(token))
        try:
            return await self.store.exists(key)
        except CacheUnavailableError as exc:
            logger.warning("revocation_check_unavailable", error=str(exc))
            return False
