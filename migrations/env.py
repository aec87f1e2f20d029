"""Alembic environment script for async database migrations.

The database URL comes from the application settings rather than
``alembic.ini``, so migrations and the service always target the same
database. Importing the model modules registers every table on
``Base.metadata`` for autogenerate.
"""

import asyncio
import logging
from typing import Any

from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config

import src.domain.benefits.models  # noqa: F401
import src.domain.members.models  # noqa: F401
import src.domain.webhooks.models  # noqa: F401
from src.core.config import get_settings
from src.infrastructure.database.base import Base

config = context.config

logger = logging.getLogger(__name__)

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode, emitting SQL to the script output."""
    logger.info("Running migrations in offline mode")

    url = config.attributes.get("database_url") or (
        get_settings().database_config.database_url
    )

    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
        compare_server_default=True,
    )

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        compare_type=True,
        compare_server_default=True,
    )

    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations() -> None:
    """Run migrations in 'online' mode with an async engine."""
    logger.info("Running migrations in online mode with async engine")

    db_config = get_settings().database_config

    # Tests pass a per-worker database through the Alembic config
    configuration: dict[str, Any] = {
        "sqlalchemy.url": config.attributes.get("database_url")
        or db_config.database_url,
        "sqlalchemy.echo": db_config.echo,
    }

    connectable = async_engine_from_config(
        configuration,
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)

    await connectable.dispose()


def run_migrations_online() -> None:
    asyncio.run(run_async_migrations())


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
