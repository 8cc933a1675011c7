"""
Process-local registry of real-time connections.

Each user id is a room; a connection joins its owner's room after
authenticating and leaves every room on disconnect. The registry lives on
``app.state`` and is lost on restart, after which clients simply rejoin.
"""

from __future__ import annotations

import asyncio
from collections import defaultdict
from typing import Any, Protocol

import structlog

logger = structlog.get_logger(__name__)


class Connection(Protocol):
    async def send_json(self, data: Any) -> None: ...


class ConnectionRegistry:
    def __init__(self) -> None:
        self._rooms: dict[str, dict[int, Connection]] = defaultdict(dict)
        self._memberships: dict[int, set[str]] = defaultdict(set)
        self._lock = asyncio.Lock()

    async def join(self, user_id: str, connection: Connection) -> None:
        async with self._lock:
            self._rooms[user_id][id(connection)] = connection
            self._memberships[id(connection)].add(user_id)
        logger.info("realtime_joined", user_id=user_id, connections=self.count(user_id))

    async def on_disconnect(self, connection: Connection) -> None:
        async with self._lock:
            self._remove(connection)

    def _remove(self, connection: Connection) -> None:
        for user_id in self._memberships.pop(id(connection), set()):
            room = self._rooms.get(user_id)
            if room is None:
                continue
            room.pop(id(connection), None)
            if not room:
                del self._rooms[user_id]
            logger.info("realtime_left", user_id=user_id)

    def count(self, user_id: str) -> int:
        return len(self._rooms.get(user_id, {}))

    async def emit(self, user_id: str, event: str, payload: dict[str, Any]) -> int:
        """Send ``{"event", "data"}`` to every connection in the user's room.

        Returns the number of connections reached. A connection whose send
        fails is dropped from the registry.
        """
        async with self._lock:
            targets = list(self._rooms.get(user_id, {}).values())

        delivered = 0
        stale: list[Connection] = []
        for connection in targets:
            try:
                await connection.send_json({"event": event, "data": payload})
                delivered += 1
            except Exception as exc:  # noqa: BLE001
                logger.warning(
                    "realtime_send_failed", user_id=user_id, event_name=event, error=str(exc)
                )
                stale.append(connection)

        if stale:
            async with self._lock:
                for connection in stale:
                    self._remove(connection)

        logger.debug("realtime_emitted", user_id=user_id, event_name=event, delivered=delivered)
        return delivered
