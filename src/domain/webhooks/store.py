"""Storage used by the webhook dispatcher.

The dispatcher runs outside any request, so it never holds ORM objects
across awaits. It reads immutable ``SubscriptionTarget`` snapshots and
writes each finished delivery batch through ``record_outcome``, which opens
a short transaction of its own and locks the subscription row while the
failure counter is updated.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.domain.webhooks.models import (
    DeliveryStatus,
    WebhookDelivery,
    WebhookSubscription,
)


@dataclass(frozen=True, slots=True)
class SubscriptionTarget:
    webhook_id: int
    url: str
    secret: str
    retry_count: int
    timeout_seconds: int

    @classmethod
    def from_model(cls, webhook: WebhookSubscription) -> "SubscriptionTarget":
        return cls(
            webhook_id=webhook.id,
            url=webhook.url,
            secret=webhook.secret,
            retry_count=webhook.retry_count,
            timeout_seconds=webhook.timeout_seconds,
        )


@dataclass(frozen=True, slots=True)
class DeliveryOutcome:
    """Result of one delivery batch for one subscriber."""

    webhook_id: int
    event_type: str
    payload: str
    status: DeliveryStatus
    attempt_count: int
    duration_ms: int
    response_status: int | None = None
    response_body: str | None = None
    error_message: str | None = None

    def to_record(self) -> WebhookDelivery:
        return WebhookDelivery(
            webhook_id=self.webhook_id,
            event_type=self.event_type,
            payload=self.payload,
            status=self.status,
            attempt_count=self.attempt_count,
            duration_ms=self.duration_ms,
            response_status=self.response_status,
            response_body=self.response_body,
            error_message=self.error_message,
        )


@dataclass(frozen=True, slots=True)
class RecordedOutcome:
    failure_count: int
    active: bool
    just_disabled: bool


def apply_outcome(
    webhook: WebhookSubscription,
    status: DeliveryStatus,
    *,
    now: datetime,
    failure_threshold: int,
) -> RecordedOutcome:
    """Update the subscription's counters for a finished delivery batch.

    Cancelled batches leave the counters untouched.
    """
    just_disabled = False
    if status is DeliveryStatus.SUCCESS:
        webhook.record_success(now)
    elif status is DeliveryStatus.FAILED:
        just_disabled = webhook.record_failure(now, failure_threshold)
    return RecordedOutcome(
        failure_count=webhook.failure_count,
        active=webhook.active,
        just_disabled=just_disabled,
    )


class WebhookStore(Protocol):
    async def active_subscribers(self, event_type: str) -> list[SubscriptionTarget]:
        ...

    async def record_outcome(
        self, outcome: DeliveryOutcome, *, now: datetime, failure_threshold: int
    ) -> RecordedOutcome | None:
        """Persist the delivery record; None when the webhook no longer exists."""
        ...


class SqlWebhookStore:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory

    async def active_subscribers(self, event_type: str) -> list[SubscriptionTarget]:
        stmt = (
            select(WebhookSubscription)
            .where(
                WebhookSubscription.active.is_(True),
                WebhookSubscription.events.contains([event_type]),
            )
            .order_by(WebhookSubscription.id)
        )
        async with self.session_factory() as session:
            result = await session.execute(stmt)
            return [SubscriptionTarget.from_model(w) for w in result.scalars()]

    async def record_outcome(
        self, outcome: DeliveryOutcome, *, now: datetime, failure_threshold: int
    ) -> RecordedOutcome | None:
        async with self.session_factory() as session, session.begin():
            webhook = await session.get(
                WebhookSubscription, outcome.webhook_id, with_for_update=True
            )
            if webhook is None:
                logger.info(
                    "Webhook {} was deleted during delivery; outcome dropped",
                    outcome.webhook_id,
                    webhook_id=outcome.webhook_id,
                )
                return None

            session.add(outcome.to_record())
            return apply_outcome(
                webhook, outcome.status, now=now, failure_threshold=failure_threshold
            )
