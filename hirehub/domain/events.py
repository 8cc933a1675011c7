"""
Post-commit domain events.

Services publish one ``DomainEvent`` per successful mutation after their own
commit. Subscribers (the audit recorder, the notification dispatcher) run in
registration order; a failing subscriber is logged and skipped so it can
neither affect the others nor the response.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

import structlog

logger = structlog.get_logger(__name__)

ALL_ACTIONS = "*"


@dataclass(slots=True, frozen=True)
class DomainEvent:
    action: str
    actor_id: str
    target_type: str
    target_id: str
    details: dict[str, Any] = field(default_factory=dict)
    # Context for subscribers that is not part of the audit record
    context: dict[str, Any] = field(default_factory=dict)
    occurred_at: datetime = field(default_factory=lambda: datetime.now(UTC))


EventHandler = Callable[[DomainEvent], Awaitable[None]]


class EventBus:
    def __init__(self) -> None:
        self._handlers: dict[str, list[EventHandler]] = defaultdict(list)

    def subscribe(self, action: str, handler: EventHandler) -> None:
        self._handlers[action].append(handler)

    def handlers_for(self, action: str) -> list[EventHandler]:
        return [*self._handlers.get(ALL_ACTIONS, []), *self._handlers.get(action, [])]

    async def publish(self, event: DomainEvent) -> int:
        """Run every subscriber for ``event``; return how many succeeded."""
        succeeded = 0
        for handler in self.handlers_for(event.action):
            try:
                await handler(event)
            except Exception:  # noqa: BLE001
                logger.exception(
                    "event_handler_failed",
                    action=event.action,
                    target_type=event.target_type,
                    target_id=event.target_id,
                    handler=getattr(handler, "__qualname__", repr(handler)),
                )
                continue
            succeeded += 1
        return succeeded
