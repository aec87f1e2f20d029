"""Webhook subscription management.

Subscriptions accept HTTPS endpoints only. The shared secret is generated
here and returned once, on registration; later reads expose everything but
the secret.
"""

import secrets
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Final
from urllib.parse import urlsplit

from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.exceptions import NotFoundError, ValidationError
from src.domain.events import EventType
from src.domain.webhooks import signing
from src.domain.webhooks.models import (
    DEFAULT_RETRY_COUNT,
    DEFAULT_TIMEOUT_SECONDS,
    WebhookDelivery,
    WebhookSubscription,
)
from src.infrastructure.database.repository import (
    DEFAULT_PAGINATION_LIMIT,
    BaseRepository,
)

SECRET_BYTES: Final[int] = 32
MIN_RETRY_COUNT: Final[int] = 1
MAX_RETRY_COUNT: Final[int] = 10
MIN_TIMEOUT_SECONDS: Final[int] = 1
MAX_TIMEOUT_SECONDS: Final[int] = 120
DEFAULT_DELIVERY_LOG_LIMIT: Final[int] = 50


def generate_secret() -> str:
    return secrets.token_hex(SECRET_BYTES)


def validate_url(url: str) -> str:
    """Return the stripped URL, rejecting anything but ``https://host/...``."""
    candidate = (url or "").strip()
    parts = urlsplit(candidate)
    if parts.scheme.lower() != "https":
        raise ValidationError(
            "Webhook URL must use HTTPS", context={"field": "url", "url": candidate}
        )
    if not parts.hostname:
        raise ValidationError(
            "Webhook URL must include a host",
            context={"field": "url", "url": candidate},
        )
    return candidate


def validate_events(events: Iterable[str]) -> list[str]:
    """Normalize event names, keeping first-seen order and dropping repeats."""
    known = {e.value for e in EventType}
    normalized: list[str] = []
    for name in events:
        value = str(name).strip().upper()
        if value not in known:
            raise ValidationError(
                f"Unknown event type: {name}",
                context={"field": "events", "event": name},
            )
        if value not in normalized:
            normalized.append(value)
    if not normalized:
        raise ValidationError(
            "At least one event type is required", context={"field": "events"}
        )
    return normalized


def _validate_range(value: int, field_name: str, low: int, high: int) -> int:
    if not low <= value <= high:
        raise ValidationError(
            f"{field_name} must be between {low} and {high}",
            context={"field": field_name, "value": value},
        )
    return value


@dataclass(frozen=True, slots=True)
class RegisteredWebhook:
    """A new subscription together with its secret, shown only once."""

    webhook: WebhookSubscription
    secret: str


class WebhookRepository(BaseRepository[WebhookSubscription]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, WebhookSubscription)

    async def recent_deliveries(
        self, webhook_id: int, limit: int
    ) -> Sequence[WebhookDelivery]:
        stmt = (
            select(WebhookDelivery)
            .where(WebhookDelivery.webhook_id == webhook_id)
            .order_by(WebhookDelivery.created_at.desc(), WebhookDelivery.id.desc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return result.scalars().all()


class WebhookRegistry:
    """Register, inspect and retire webhook subscriptions.

    Args:
        session: Request session; committing is left to its owner.
        default_retry_count: Attempts per delivery when none is given.
        default_timeout_seconds: Per-attempt timeout when none is given.
    """

    def __init__(
        self,
        session: AsyncSession,
        *,
        default_retry_count: int = DEFAULT_RETRY_COUNT,
        default_timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self.repository = WebhookRepository(session)
        self.default_retry_count = default_retry_count
        self.default_timeout_seconds = default_timeout_seconds

    async def register(
        self,
        url: str,
        events: Iterable[str],
        *,
        description: str | None = None,
        retry_count: int | None = None,
        timeout_seconds: int | None = None,
        created_by: str | None = None,
    ) -> RegisteredWebhook:
        """Create an active subscription with a fresh secret.

        Raises:
            ValidationError: Non-HTTPS URL, no or unknown event types, or
                retry/timeout settings out of range.
        """
        webhook = WebhookSubscription(
            url=validate_url(url),
            events=validate_events(events),
            secret=generate_secret(),
            active=True,
            description=description,
            created_by=created_by,
            retry_count=_validate_range(
                self.default_retry_count if retry_count is None else retry_count,
                "retry_count",
                MIN_RETRY_COUNT,
                MAX_RETRY_COUNT,
            ),
            timeout_seconds=_validate_range(
                self.default_timeout_seconds
                if timeout_seconds is None
                else timeout_seconds,
                "timeout_seconds",
                MIN_TIMEOUT_SECONDS,
                MAX_TIMEOUT_SECONDS,
            ),
            failure_count=0,
        )
        webhook = await self.repository.create(webhook)

        logger.info(
            "Registered webhook {} for {} event(s)",
            webhook.id,
            len(webhook.events),
            webhook_id=webhook.id,
            events=webhook.events,
        )
        return RegisteredWebhook(webhook=webhook, secret=webhook.secret)

    async def get_webhook(self, webhook_id: int) -> WebhookSubscription:
        webhook = await self.repository.get_by_id(webhook_id)
        if webhook is None:
            raise NotFoundError(
                f"Webhook {webhook_id} not found", context={"webhook_id": webhook_id}
            )
        return webhook

    async def list_webhooks(
        self,
        *,
        active: bool | None = None,
        skip: int = 0,
        limit: int = DEFAULT_PAGINATION_LIMIT,
    ) -> Sequence[WebhookSubscription]:
        conditions = []
        if active is not None:
            conditions.append(WebhookSubscription.active.is_(active))
        return await self.repository.find_all(*conditions, skip=skip, limit=limit)

    async def set_active(self, webhook_id: int, active: bool) -> WebhookSubscription:
        """Enable or disable a subscription.

        Enabling also clears the failure counter, so a subscription that was
        switched off automatically gets a full budget of failures again.
        """
        webhook = await self.get_webhook(webhook_id)
        if active:
            webhook.reactivate()
        else:
            webhook.active = False
        webhook = await self.repository.save(webhook)

        logger.info(
            "Webhook {} {}",
            webhook_id,
            "activated" if active else "deactivated",
            webhook_id=webhook_id,
            active=active,
        )
        return webhook

    async def delete(self, webhook_id: int) -> None:
        """Remove a subscription and its delivery log."""
        webhook = await self.get_webhook(webhook_id)
        await self.repository.delete(webhook)

    async def list_deliveries(
        self, webhook_id: int, limit: int = DEFAULT_DELIVERY_LOG_LIMIT
    ) -> Sequence[WebhookDelivery]:
        """Most recent delivery records first."""
        await self.get_webhook(webhook_id)
        return await self.repository.recent_deliveries(webhook_id, limit)

    async def verify_signature(
        self, webhook_id: int, raw_payload: bytes, signature: str
    ) -> bool:
        """Check a signature against this subscription's secret."""
        webhook = await self.get_webhook(webhook_id)
        return signing.verify_signature(raw_payload, signature, webhook.secret)
