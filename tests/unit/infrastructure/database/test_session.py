"""Unit tests for session lifecycle and database health checks."""

import pytest
from pytest_mock import MockerFixture
from sqlalchemy.exc import OperationalError

from src.core.constants import REDACTED
from src.infrastructure.database import session as db_session
from src.infrastructure.database.session import (
    _sanitize_sql_params,
    check_database_connection,
    get_async_session,
)


@pytest.fixture
def fake_session(mocker: MockerFixture):
    session = mocker.AsyncMock()
    factory = mocker.MagicMock()
    factory.return_value.__aenter__.return_value = session
    mocker.patch.object(db_session, "get_session_factory", return_value=factory)
    return session


@pytest.mark.unit
class TestGetAsyncSession:
    async def test_commits_on_success(self, fake_session) -> None:
        async with get_async_session() as session:
            assert session is fake_session

        fake_session.commit.assert_awaited_once()
        fake_session.rollback.assert_not_awaited()

    async def test_rolls_back_on_error(self, fake_session) -> None:
        with pytest.raises(ValueError, match="boom"):
            async with get_async_session():
                raise ValueError("boom")

        fake_session.rollback.assert_awaited_once()
        fake_session.commit.assert_not_awaited()


@pytest.mark.unit
class TestCheckDatabaseConnection:
    async def test_healthy(self, mocker: MockerFixture) -> None:
        engine = mocker.MagicMock()
        engine.connect.return_value.__aenter__.return_value = mocker.AsyncMock()
        mocker.patch.object(db_session, "get_engine", return_value=engine)

        assert await check_database_connection() == (True, None)

    async def test_unreachable(self, mocker: MockerFixture) -> None:
        engine = mocker.MagicMock()
        engine.connect.return_value.__aenter__.side_effect = OperationalError(
            "SELECT 1", {}, Exception("connection refused")
        )
        mocker.patch.object(db_session, "get_engine", return_value=engine)

        healthy, error = await check_database_connection()

        assert not healthy
        assert error is not None
        assert "connection refused" in error


@pytest.mark.unit
class TestSanitizeSqlParams:
    def test_named_parameters_are_redacted_by_name(self) -> None:
        params = {"account_number": "0123", "member_id": 5}

        assert _sanitize_sql_params(params) == {
            "account_number": REDACTED,
            "member_id": 5,
        }

    def test_positional_parameters_are_redacted(self) -> None:
        assert _sanitize_sql_params(("s3cret", 1)) == REDACTED

    def test_none(self) -> None:
        assert _sanitize_sql_params(None) is None
