from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Any

from fastapi.testclient import TestClient
from sqlalchemy import text

from hirehub.api.deps import issue_smoke_token
from hirehub.core.auth import Role
from hirehub.domain.services.auth_service import hash_password
from hirehub.infrastructure.cache import CacheUnavailableError
from hirehub.infrastructure.db.models import UserModel, UserRole
from hirehub.libs.mailer import EmailMessage

TEST_PASSWORD = "password123"


def auth_headers(
    user_id: str = "applicant-1",
    role: Role = Role.APPLICANT,
    email: str = "applicant@example.com",
) -> dict[str, str]:
    token = issue_smoke_token(user_id, role=role, email=email)
    return {"Authorization": f"Bearer {token}"}


class InMemoryCache:
    """CacheStore double with TTLs, call counters and a switchable outage."""

    def __init__(self, *, available: bool = True) -> None:
        self.available = available
        self.entries: dict[str, tuple[str, float]] = {}
        self.hits = 0
        self.misses = 0
        self.deleted: list[str] = []

    def _check(self) -> None:
        if not self.available:
            raise CacheUnavailableError("cache offline")

    def _live(self, key: str) -> str | None:
        entry = self.entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at <= time.monotonic():
            del self.entries[key]
            return None
        return value

    async def get(self, key: str) -> str | None:
        self._check()
        value = self._live(key)
        if value is None:
            self.misses += 1
        else:
            self.hits += 1
        return value

    async def set(self, key: str, value: str, ttl: int) -> None:
        self._check()
        self.entries[key] = (value, time.monotonic() + ttl)

    async def delete(self, *keys: str) -> None:
        self._check()
        for key in keys:
            self.entries.pop(key, None)
            self.deleted.append(key)

    async def exists(self, key: str) -> bool:
        self._check()
        return self._live(key) is not None

    async def incr(self, key: str, ttl: int) -> int:
        self._check()
        current = self._live(key)
        if current is None:
            self.entries[key] = ("1", time.monotonic() + ttl)
            return 1
        _, expires_at = self.entries[key]
        count = int(current) + 1
        self.entries[key] = (str(count), expires_at)
        return count

    async def ping(self) -> bool:
        return self.available

    async def close(self) -> None:
        return None


class RecordingMailer:
    def __init__(self, *, fail: bool = False) -> None:
        self.fail = fail
        self.sent: list[EmailMessage] = []

    async def send(self, message: EmailMessage) -> None:
        if self.fail:
            raise RuntimeError("mail transport down")
        self.sent.append(message)

    def subjects(self) -> list[str]:
        return [message.subject for message in self.sent]


class FakeConnection:
    def __init__(self, *, broken: bool = False) -> None:
        self.broken = broken
        self.received: list[dict[str, Any]] = []

    async def send_json(self, data: Any) -> None:
        if self.broken:
            raise ConnectionError("socket closed")
        self.received.append(data)


@dataclass
class SeededUser:
    id: str
    email: str
    role: Role

    @property
    def headers(self) -> dict[str, str]:
        return auth_headers(self.id, role=self.role, email=self.email)


def seed_user(
    client: TestClient,
    role: Role,
    *,
    email: str | None = None,
    first_name: str = "Test",
    last_name: str = "User",
    is_active: bool = True,
) -> SeededUser:
    """Insert a user straight into the test database."""
    email = email or f"{role.value}@example.com"

    async def _insert() -> str:
        async with client.session_factory() as session:  # type: ignore[attr-defined]
            user = UserModel(
                first_name=first_name,
                last_name=last_name,
                email=email,
                hashed_password=hash_password(TEST_PASSWORD),
                role=UserRole(role.value),
                is_active=is_active,
            )
            session.add(user)
            await session.commit()
            return user.id

    return SeededUser(id=asyncio.run(_insert()), email=email, role=role)


def create_published_job(client: TestClient, headers: dict[str, str], **overrides: Any) -> dict:
    payload = {
        "title": "Backend Engineer",
        "description": "Build and operate the recruitment platform APIs.",
        "department": "Engineering",
        "tags": ["python", "fastapi"],
        **overrides,
    }
    created = client.post("/jobs", json=payload, headers=headers)
    assert created.status_code == 201, created.text
    published = client.post(f"/jobs/{created.json()['id']}/publish", headers=headers)
    assert published.status_code == 200, published.text
    return published.json()


def submit_application(
    client: TestClient,
    job_id: str,
    headers: dict[str, str],
    *,
    filename: str = "resume.pdf",
    content: bytes = b"%PDF-1.4 candidate resume",
    **fields: str,
):
    return client.post(
        f"/jobs/{job_id}/apply",
        headers=headers,
        files={"resume": (filename, content, "application/pdf")},
        data={"coverLetter": "I would love to join the team.", **fields},
    )


def count_rows(client: TestClient, table: str) -> int:
    """Row count straight from the test database, soft-deleted rows included."""

    async def _count() -> int:
        async with client.session_factory() as session:  # type: ignore[attr-defined]
            return (await session.execute(text(f"SELECT COUNT(*) FROM {table}"))).scalar_one()

    return asyncio.run(_count())


def drop_table(client: TestClient, table: str) -> None:
    """Break a table so every later write to it fails."""

    async def _drop() -> None:
        async with client.session_factory() as session:  # type: ignore[attr-defined]
            await session.execute(text(f"DROP TABLE {table}"))
            await session.commit()

    asyncio.run(_drop())
