from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class Identity:
    """Authenticated actor, rebuilt from the access token on every request."""

    user_id: str
    role: str
    email: str = ""
    name: str = ""
