"""Domain event names and after-commit publication.

Claim operations register events on a ``TransactionalEventEmitter`` bound to
their session. The events are handed to the publisher (the webhook
dispatcher) once the outermost transaction commits, so a rolled back
operation never notifies subscribers and a committed one never waits for
delivery.
"""

from enum import StrEnum
from typing import Protocol

from loguru import logger
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session, SessionTransaction

from src.core.types import EventPayload


class EventType(StrEnum):
    MEMBER_CREATED = "MEMBER_CREATED"
    MEMBER_UPDATED = "MEMBER_UPDATED"
    MEMBER_DELETED = "MEMBER_DELETED"
    CONTRIBUTION_CREATED = "CONTRIBUTION_CREATED"
    CONTRIBUTION_UPDATED = "CONTRIBUTION_UPDATED"
    PAYMENT_INITIATED = "PAYMENT_INITIATED"
    PAYMENT_SUCCESS = "PAYMENT_SUCCESS"
    PAYMENT_FAILED = "PAYMENT_FAILED"
    BENEFIT_CREATED = "BENEFIT_CREATED"
    BENEFIT_UNDER_REVIEW = "BENEFIT_UNDER_REVIEW"
    BENEFIT_APPROVED = "BENEFIT_APPROVED"
    BENEFIT_REJECTED = "BENEFIT_REJECTED"
    BENEFIT_PAID = "BENEFIT_PAID"
    BENEFIT_CANCELLED = "BENEFIT_CANCELLED"
    SYSTEM_ALERT = "SYSTEM_ALERT"
    FRAUD_DETECTED = "FRAUD_DETECTED"


class EventPublisher(Protocol):
    def trigger(self, event_type: EventType, payload: EventPayload) -> None:
        """Schedule notification of ``event_type``; must not block or raise."""
        ...


class EventSink(Protocol):
    def emit(self, event_type: EventType, payload: EventPayload) -> None: ...


class TransactionalEventEmitter:
    """Buffers events until the bound session's outermost transaction commits.

    Releasing a savepoint also fires ``after_commit`` on the session; those
    are skipped so nothing is published before the real COMMIT. Events still
    pending when the outermost transaction ends without committing are
    dropped.
    """

    def __init__(self, session: AsyncSession, publisher: EventPublisher) -> None:
        self._session = session
        self._publisher = publisher
        self._pending: list[tuple[EventType, EventPayload]] = []
        self._listening = False

    @property
    def pending(self) -> list[tuple[EventType, EventPayload]]:
        return list(self._pending)

    def emit(self, event_type: EventType, payload: EventPayload) -> None:
        self._pending.append((event_type, payload))
        if not self._listening:
            sync_session = self._session.sync_session
            event.listen(sync_session, "after_commit", self._on_commit)
            event.listen(
                sync_session, "after_transaction_end", self._on_transaction_end
            )
            self._listening = True

    def _on_commit(self, session: Session) -> None:
        if session.in_nested_transaction():
            return
        self._publish()

    def _on_transaction_end(
        self, _session: Session, transaction: SessionTransaction
    ) -> None:
        if transaction.parent is not None or not self._pending:
            return
        logger.debug(
            "Dropping {} events of a transaction that did not commit",
            len(self._pending),
            event_types=[event_type for event_type, _ in self._pending],
        )
        self._pending = []

    def _publish(self) -> None:
        events, self._pending = self._pending, []
        for event_type, payload in events:
            logger.debug(
                "Publishing committed event {}", event_type, event_type=event_type
            )
            self._publisher.trigger(event_type, payload)
