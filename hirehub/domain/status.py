"""Lifecycle status transition tables.

When ``strict_status_transitions`` is off, any enumeration value may be written
at any time; otherwise a change must appear in the entity's table.
"""

from __future__ import annotations

from collections.abc import Mapping

from hirehub.core.config import get_settings
from hirehub.core.errors import ConflictError

JOB_TRANSITIONS: Mapping[str, frozenset[str]] = {
    "draft": frozenset({"published"}),
    "published": frozenset({"closed"}),
    "closed": frozenset({"published"}),
}

APPLICATION_TRANSITIONS: Mapping[str, frozenset[str]] = {
    "pending": frozenset({"in_review", "interview", "rejected"}),
    "in_review": frozenset({"interview", "offer", "rejected"}),
    "interview": frozenset({"offer", "rejected"}),
    "offer": frozenset({"accepted", "rejected"}),
    "rejected": frozenset(),
    "accepted": frozenset(),
}

INTERVIEW_TRANSITIONS: Mapping[str, frozenset[str]] = {
    "scheduled": frozenset({"completed", "cancelled"}),
    "completed": frozenset(),
    "cancelled": frozenset(),
}

TRANSITION_TABLES: Mapping[str, Mapping[str, frozenset[str]]] = {
    "Job": JOB_TRANSITIONS,
    "Application": APPLICATION_TRANSITIONS,
    "Interview": INTERVIEW_TRANSITIONS,
}


def can_transition(entity: str, current: str, target: str) -> bool:
    table = TRANSITION_TABLES[entity]
    return target in table.get(current, frozenset())


def ensure_transition(entity: str, current: str, target: str, *, strict: bool | None = None) -> None:
    """Raise ConflictError if ``current -> target`` is not allowed for ``entity``."""
    if strict is None:
        strict = get_settings().strict_status_transitions
    if not strict:
        return
    if not can_transition(entity, current, target):
        raise ConflictError(f"{entity} cannot move from '{current}' to '{target}'")
