"""Database fixtures for parallel test execution.

Each pytest-xdist worker gets its own database on the shared PostgreSQL
server, migrated to head with Alembic, so workers never see each other's
rows. Two ways to talk to it:

- ``db_session``: a session inside a connection-level transaction that is
  rolled back after the test. Repository and constraint tests use it.
- ``session_factory``: sessions that really commit, for tests that need
  several connections at once. Tables are truncated after the test.
"""

import asyncio
from collections.abc import AsyncGenerator
from pathlib import Path

import asyncpg
import pytest
import pytest_asyncio
from alembic import command as alembic_command
from alembic.config import Config
from loguru import logger
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

import src.domain.benefits.models  # noqa: F401
import src.domain.members.models  # noqa: F401
import src.domain.webhooks.models  # noqa: F401
from src.core.config import get_settings
from src.infrastructure.database.base import Base

ALEMBIC_INI = Path(__file__).parents[3] / "alembic.ini"


def _asyncpg_dsn(database_url: str) -> str:
    return database_url.replace("postgresql+asyncpg://", "postgresql://")


async def run_migrations_on_database(database_url: str) -> None:
    """Upgrade ``database_url`` to the latest Alembic revision."""
    alembic_cfg = Config(str(ALEMBIC_INI))
    alembic_cfg.attributes["database_url"] = database_url

    # env.py runs its own event loop
    loop = asyncio.get_running_loop()
    await loop.run_in_executor(None, alembic_command.upgrade, alembic_cfg, "head")
    logger.info("Migrations completed on {}", database_url.rsplit("/", 1)[-1])


@pytest.fixture(scope="session")
def admin_database_url() -> str:
    """The test database every worker database is created from."""
    return get_settings().database_config.get_test_database_url()


@pytest.fixture(scope="session")
def worker_database_name(admin_database_url: str, worker_id: str) -> str:
    admin_name = admin_database_url.rsplit("/", 1)[-1].partition("?")[0]
    if worker_id == "master":
        return f"{admin_name}_main"
    return f"{admin_name}_{worker_id}"


@pytest_asyncio.fixture(scope="session", loop_scope="session")
async def setup_worker_database(
    postgres_container: None,
    admin_database_url: str,
    worker_database_name: str,
) -> AsyncGenerator[str]:
    """Create and migrate this worker's database; drop it after the session."""
    admin_dsn = _asyncpg_dsn(admin_database_url)
    try:
        conn = await asyncpg.connect(admin_dsn)
    except (OSError, asyncpg.PostgresError) as e:
        pytest.skip(f"PostgreSQL test database is not reachable: {e}")

    try:
        await conn.execute(f'DROP DATABASE IF EXISTS "{worker_database_name}"')
        await conn.execute(f'CREATE DATABASE "{worker_database_name}"')
    finally:
        await conn.close()

    database_url = f"{admin_database_url.rsplit('/', 1)[0]}/{worker_database_name}"
    await run_migrations_on_database(database_url)

    yield database_url

    conn = await asyncpg.connect(admin_dsn)
    try:
        await conn.execute(
            "SELECT pg_terminate_backend(pid) FROM pg_stat_activity "
            "WHERE datname = $1 AND pid <> pg_backend_pid()",
            worker_database_name,
        )
        await conn.execute(f'DROP DATABASE IF EXISTS "{worker_database_name}"')
    finally:
        await conn.close()


@pytest.fixture
def database_url(setup_worker_database: str) -> str:
    return setup_worker_database


@pytest.fixture
async def db_engine(database_url: str) -> AsyncGenerator[AsyncEngine]:
    engine = create_async_engine(
        database_url,
        pool_size=10,
        max_overflow=0,
        pool_pre_ping=True,
    )
    yield engine
    await engine.dispose()


@pytest.fixture
async def db_session(db_engine: AsyncEngine) -> AsyncGenerator[AsyncSession]:
    """Session whose work is rolled back when the test ends.

    ``commit()`` inside the test releases a savepoint instead of committing.
    """
    async with db_engine.connect() as connection:
        transaction = await connection.begin()
        session = AsyncSession(
            bind=connection,
            expire_on_commit=False,
            join_transaction_mode="create_savepoint",
        )
        try:
            yield session
        finally:
            await session.close()
            await transaction.rollback()


@pytest.fixture
async def session_factory(
    db_engine: AsyncEngine,
) -> AsyncGenerator[async_sessionmaker[AsyncSession]]:
    """Factory for sessions that commit; every table is emptied afterwards."""
    yield async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)

    tables = ", ".join(table.name for table in Base.metadata.sorted_tables)
    async with db_engine.begin() as connection:
        await connection.execute(text(f"TRUNCATE {tables} RESTART IDENTITY CASCADE"))
