"""Alembic environment for the HireHub schema (async engine, URL from settings)."""

from __future__ import annotations

import asyncio

import structlog
from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine import Connection, make_url
from sqlalchemy.ext.asyncio import create_async_engine

from hirehub.core.config import get_settings
from hirehub.core.logging import setup_logging
from hirehub.infrastructure.db import models  # noqa: F401
from hirehub.infrastructure.db.base import Base

config = context.config
target_metadata = Base.metadata

settings = get_settings()
setup_logging(settings.log_level, log_format=settings.log_format)
logger = structlog.get_logger("alembic")


def _migration_options(url: str) -> dict:
    # SQLite cannot ALTER most constraints in place
    return {
        "target_metadata": target_metadata,
        "compare_type": True,
        "render_as_batch": make_url(url).get_backend_name() == "sqlite",
    }


def run_migrations_offline() -> None:
    url = settings.async_database_url
    context.configure(
        url=url,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **_migration_options(url),
    )

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
    context.configure(connection=connection, **_migration_options(settings.async_database_url))

    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    url = settings.async_database_url
    logger.info("migrations_started", database=make_url(url).render_as_string(hide_password=True))

    engine = create_async_engine(url, poolclass=pool.NullPool)
    try:
        async with engine.connect() as connection:
            await connection.run_sync(do_run_migrations)
    finally:
        await engine.dispose()
    logger.info("migrations_finished")


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
