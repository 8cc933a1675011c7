from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Iterator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from hirehub.api.deps import get_db_session, get_db_session_factory
from hirehub.api.main import app
from hirehub.core.auth import Role
from hirehub.infrastructure.db.base import Base
from hirehub.infrastructure.storage import ResumeStorage
from hirehub.realtime.registry import ConnectionRegistry
from tests.utils import InMemoryCache, RecordingMailer, SeededUser, seed_user


async def _create_schema(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


@pytest.fixture()
def cache() -> InMemoryCache:
    return InMemoryCache()


@pytest.fixture()
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture()
def test_client(
    tmp_path: Path, cache: InMemoryCache, mailer: RecordingMailer
) -> Iterator[TestClient]:
    # A file database with NullPool keeps every connection on the loop that opened it
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'hirehub.db'}", poolclass=NullPool
    )
    session_factory = async_sessionmaker(engine, expire_on_commit=False)
    asyncio.run(_create_schema(engine))

    async def override_db_session() -> AsyncIterator[AsyncSession]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = override_db_session
    app.dependency_overrides[get_db_session_factory] = lambda: session_factory
    app.state.cache = cache
    app.state.mailer = mailer
    app.state.registry = ConnectionRegistry()
    app.state.resume_storage = ResumeStorage(tmp_path / "resumes", max_bytes=1024 * 1024)

    with TestClient(app) as client:
        client.session_factory = session_factory  # type: ignore
        yield client
    app.dependency_overrides.pop(get_db_session, None)
    app.dependency_overrides.pop(get_db_session_factory, None)
    asyncio.run(engine.dispose())


@pytest.fixture()
def admin_user(test_client: TestClient) -> SeededUser:
    return seed_user(test_client, Role.ADMIN, first_name="Grace", last_name="Hopper")


@pytest.fixture()
def hr_user(test_client: TestClient) -> SeededUser:
    return seed_user(test_client, Role.HR, first_name="Helen", last_name="Recruiter")


@pytest.fixture()
def applicant_user(test_client: TestClient) -> SeededUser:
    return seed_user(test_client, Role.APPLICANT, first_name="Alan", last_name="Turing")


@pytest.fixture()
def employee_user(test_client: TestClient) -> SeededUser:
    return seed_user(test_client, Role.EMPLOYEE, first_name="Emma", last_name="Staff")
