"""Unit tests for after-commit event publication.

The session is a real ``AsyncSession`` without a bind: transactions and
savepoints are tracked by the ORM and connections are only acquired when
SQL is emitted, so the commit and rollback hooks fire as in production.
Each test begins its transactions explicitly; the request session has
always executed SQL by the time a claim operation emits.
"""

from collections.abc import AsyncGenerator

import pytest
from pytest_mock import MockerFixture
from sqlalchemy.ext.asyncio import AsyncSession

from src.domain.events import EventType, TransactionalEventEmitter


@pytest.fixture
async def session() -> AsyncGenerator[AsyncSession]:
    async with AsyncSession() as session:
        await session.begin()
        yield session


@pytest.fixture
def publisher(mocker: MockerFixture):
    return mocker.MagicMock()


@pytest.fixture
def emitter(session: AsyncSession, publisher) -> TransactionalEventEmitter:
    return TransactionalEventEmitter(session, publisher)


def published(publisher) -> list[EventType]:
    return [c.args[0] for c in publisher.trigger.call_args_list]


@pytest.mark.unit
class TestTransactionalEventEmitter:
    async def test_events_wait_for_commit(
        self, emitter: TransactionalEventEmitter, publisher
    ) -> None:
        emitter.emit(EventType.BENEFIT_CREATED, {"claim_id": 1})
        emitter.emit(EventType.BENEFIT_APPROVED, {"claim_id": 1})

        publisher.trigger.assert_not_called()
        assert [e for e, _ in emitter.pending] == [
            EventType.BENEFIT_CREATED,
            EventType.BENEFIT_APPROVED,
        ]

    async def test_commit_publishes_in_order(
        self,
        session: AsyncSession,
        emitter: TransactionalEventEmitter,
        publisher,
        mocker: MockerFixture,
    ) -> None:
        emitter.emit(EventType.BENEFIT_CREATED, {"claim_id": 1})
        emitter.emit(EventType.BENEFIT_CANCELLED, {"claim_id": 1})

        await session.commit()

        assert publisher.trigger.call_args_list == [
            mocker.call(EventType.BENEFIT_CREATED, {"claim_id": 1}),
            mocker.call(EventType.BENEFIT_CANCELLED, {"claim_id": 1}),
        ]
        assert emitter.pending == []

    async def test_rollback_drops_events(
        self, session: AsyncSession, emitter: TransactionalEventEmitter, publisher
    ) -> None:
        emitter.emit(EventType.BENEFIT_REJECTED, {"claim_id": 3})

        await session.rollback()
        await session.begin()
        await session.commit()

        publisher.trigger.assert_not_called()
        assert emitter.pending == []

    async def test_savepoint_release_does_not_publish(
        self, session: AsyncSession, emitter: TransactionalEventEmitter, publisher
    ) -> None:
        emitter.emit(EventType.BENEFIT_CREATED, {"claim_id": 1})

        async with session.begin_nested():
            pass

        publisher.trigger.assert_not_called()

        await session.commit()

        assert published(publisher) == [EventType.BENEFIT_CREATED]

    async def test_savepoint_then_outer_rollback_publishes_nothing(
        self, session: AsyncSession, emitter: TransactionalEventEmitter, publisher
    ) -> None:
        emitter.emit(EventType.BENEFIT_APPROVED, {"claim_id": 2})
        async with session.begin_nested():
            pass

        await session.rollback()

        publisher.trigger.assert_not_called()
        assert emitter.pending == []

    async def test_event_emitted_inside_savepoint_waits_for_outer_commit(
        self, session: AsyncSession, emitter: TransactionalEventEmitter, publisher
    ) -> None:
        async with session.begin_nested():
            emitter.emit(EventType.BENEFIT_PAID, {"claim_id": 4})

        publisher.trigger.assert_not_called()

        await session.commit()

        assert published(publisher) == [EventType.BENEFIT_PAID]

    async def test_emitter_keeps_working_across_transactions(
        self, session: AsyncSession, emitter: TransactionalEventEmitter, publisher
    ) -> None:
        emitter.emit(EventType.BENEFIT_CREATED, {"claim_id": 1})
        await session.commit()
        await session.begin()
        emitter.emit(EventType.BENEFIT_REJECTED, {"claim_id": 1})
        await session.rollback()
        await session.begin()
        emitter.emit(EventType.BENEFIT_CANCELLED, {"claim_id": 1})
        await session.commit()

        assert published(publisher) == [
            EventType.BENEFIT_CREATED,
            EventType.BENEFIT_CANCELLED,
        ]
