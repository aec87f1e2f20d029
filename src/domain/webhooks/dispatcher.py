"""Signed webhook delivery with bounded retries and auto-disable.

``trigger`` is what business code calls: it hands the event to the
background runner and returns at once. ``dispatch`` does the work for one
event:

1. load active subscriptions for the event type,
2. serialize the payload once (sorted keys, Decimals as strings),
3. deliver to every subscriber concurrently,
4. per subscriber, retry up to ``retry_count`` attempts with a fixed pause,
5. write one delivery record per subscriber and update its failure counter.

Delivery problems are logged and recorded; nothing raised here reaches the
operation that produced the event.
"""

import asyncio
import time
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from decimal import Decimal

import orjson
from loguru import logger

from src.core.config import WebhookConfig
from src.core.constants import MILLISECONDS_PER_SECOND
from src.core.exceptions import DeliveryError, SignatureError
from src.core.observability import trace_operation
from src.core.types import EventPayload
from src.domain.events import EventType
from src.domain.webhooks.models import DeliveryStatus
from src.domain.webhooks.signing import sign_payload
from src.domain.webhooks.store import DeliveryOutcome, SubscriptionTarget, WebhookStore
from src.infrastructure.http.client import (
    HttpResponse,
    TransportError,
    WebhookHttpClient,
)
from src.infrastructure.tasks import BackgroundTaskRunner

type Sleep = Callable[[float], Awaitable[None]]
type Clock = Callable[[], datetime]

SIGNATURE_HEADER = "X-Webhook-Signature"
EVENT_TYPE_HEADER = "X-Event-Type"
ERROR_BODY_EXCERPT = 500


def _encode_default(value: object) -> str:
    if isinstance(value, Decimal):
        return str(value)
    msg = f"Type is not JSON serializable: {type(value).__name__}"
    raise TypeError(msg)


def serialize_payload(payload: EventPayload) -> bytes:
    """Canonical JSON body: sorted keys, no whitespace, Decimals as strings."""
    return orjson.dumps(payload, default=_encode_default, option=orjson.OPT_SORT_KEYS)


def _truncate(text: str | None, limit: int) -> str | None:
    if text is None or len(text) <= limit:
        return text
    return text[:limit]


class WebhookDispatcher:
    """Delivers domain events to subscribed webhooks.

    Args:
        store: Subscription lookup and outcome persistence.
        http_client: Outbound POST with timeout.
        runner: Background runner that executes ``dispatch`` for ``trigger``.
        config: Backoff, threshold and header settings.
        clock: Source of the current time for counters and records.
        sleep: Awaitable used for the pause between attempts.
    """

    def __init__(
        self,
        store: WebhookStore,
        http_client: WebhookHttpClient,
        runner: BackgroundTaskRunner,
        *,
        config: WebhookConfig,
        clock: Clock = lambda: datetime.now(UTC),
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.store = store
        self.http_client = http_client
        self.runner = runner
        self.config = config
        self.clock = clock
        self.sleep = sleep

    def trigger(self, event_type: EventType | str, payload: EventPayload) -> None:
        """Schedule delivery of an event without waiting for it."""
        event_name = str(event_type)
        try:
            self.runner.submit(
                lambda: self._dispatch_quietly(event_name, payload),
                name=f"webhook-dispatch:{event_name}",
            )
        except RuntimeError:
            logger.exception(
                "Could not schedule webhook dispatch for {}",
                event_name,
                event_type=event_name,
            )

    async def _dispatch_quietly(self, event_type: str, payload: EventPayload) -> None:
        try:
            await self.dispatch(event_type, payload)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception(
                "Webhook dispatch for {} failed", event_type, event_type=event_type
            )

    async def dispatch(
        self, event_type: EventType | str, payload: EventPayload
    ) -> list[DeliveryOutcome]:
        """Deliver one event to all active subscribers and wait for the results."""
        event_name = str(event_type)
        with trace_operation("webhooks.dispatch", event_type=event_name):
            targets = await self.store.active_subscribers(event_name)
            if not targets:
                logger.debug(
                    "No active webhooks for {}", event_name, event_type=event_name
                )
                return []

            body = serialize_payload(payload)
            results = await asyncio.gather(
                *(self._deliver_and_record(t, event_name, body) for t in targets),
                return_exceptions=True,
            )

        outcomes: list[DeliveryOutcome] = []
        for target, result in zip(targets, results, strict=True):
            if isinstance(result, DeliveryOutcome):
                outcomes.append(result)
            elif isinstance(result, Exception):
                logger.opt(exception=result).error(
                    "Recording delivery for webhook {} failed",
                    target.webhook_id,
                    webhook_id=target.webhook_id,
                    event_type=event_name,
                )
        return outcomes

    async def _deliver_and_record(
        self, target: SubscriptionTarget, event_type: str, body: bytes
    ) -> DeliveryOutcome:
        with logger.contextualize(webhook_id=target.webhook_id, event_type=event_type):
            started = time.perf_counter()

            def outcome(
                status: DeliveryStatus,
                attempts: int,
                *,
                response_status: int | None = None,
                response_body: str | None = None,
                error_message: str | None = None,
            ) -> DeliveryOutcome:
                elapsed = (time.perf_counter() - started) * MILLISECONDS_PER_SECOND
                return DeliveryOutcome(
                    webhook_id=target.webhook_id,
                    event_type=event_type,
                    payload=body.decode("utf-8"),
                    status=status,
                    attempt_count=attempts,
                    duration_ms=int(elapsed),
                    response_status=response_status,
                    response_body=_truncate(
                        response_body, self.config.response_body_limit
                    ),
                    error_message=error_message,
                )

            try:
                signature = sign_payload(body, target.secret)
            except SignatureError as exc:
                logger.error("Cannot sign payload: {}", exc.message)
                result = outcome(DeliveryStatus.FAILED, 0, error_message=exc.message)
                await self._record(result)
                return result

            headers = {
                "Content-Type": "application/json",
                SIGNATURE_HEADER: signature,
                EVENT_TYPE_HEADER: event_type,
                "User-Agent": self.config.user_agent,
            }
            max_attempts = max(target.retry_count, 1)
            attempt = 0
            last_error: DeliveryError | None = None

            try:
                while attempt < max_attempts:
                    attempt += 1
                    try:
                        response = await self._attempt(target, body, headers)
                    except DeliveryError as exc:
                        last_error = exc
                        logger.warning(
                            "Delivery attempt {}/{} failed: {}",
                            attempt,
                            max_attempts,
                            exc.message,
                            attempt=attempt,
                        )
                        if attempt < max_attempts:
                            await self.sleep(self.config.retry_backoff_seconds)
                        continue

                    result = outcome(
                        DeliveryStatus.SUCCESS,
                        attempt,
                        response_status=response.status_code,
                        response_body=response.body,
                    )
                    break
                else:
                    result = outcome(
                        DeliveryStatus.FAILED,
                        attempt,
                        response_status=last_error.status_code if last_error else None,
                        response_body=last_error.body if last_error else None,
                        error_message=last_error.message if last_error else None,
                    )
            except asyncio.CancelledError:
                cancelled = outcome(
                    DeliveryStatus.CANCELLED,
                    attempt,
                    error_message="Delivery cancelled during shutdown",
                )
                await asyncio.shield(self._record(cancelled))
                raise

            await self._record(result)
            return result

    async def _attempt(
        self,
        target: SubscriptionTarget,
        body: bytes,
        headers: dict[str, str],
    ) -> HttpResponse:
        """POST once; raise DeliveryError for anything but a 2xx response."""
        try:
            response = await self.http_client.post(
                target.url, body, headers, float(target.timeout_seconds)
            )
        except TransportError as exc:
            if exc.timed_out:
                raise DeliveryError(
                    "timeout", f"timeout after {target.timeout_seconds}s", cause=exc
                ) from exc
            raise DeliveryError(
                "transport", f"transport error: {exc}", cause=exc
            ) from exc

        if not response.is_success:
            raise DeliveryError(
                "http_status",
                f"HTTP {response.status_code}: {response.body[:ERROR_BODY_EXCERPT]}",
                status_code=response.status_code,
                body=response.body,
            )
        return response

    async def _record(self, outcome: DeliveryOutcome) -> None:
        recorded = await self.store.record_outcome(
            outcome,
            now=self.clock(),
            failure_threshold=self.config.failure_threshold,
        )
        logger.info(
            "Webhook delivery {} after {} attempt(s)",
            outcome.status,
            outcome.attempt_count,
            duration_ms=outcome.duration_ms,
            status_code=outcome.response_status,
        )
        if recorded is not None and recorded.just_disabled:
            logger.warning(
                "Webhook {} disabled after {} consecutive failed deliveries",
                outcome.webhook_id,
                recorded.failure_count,
                webhook_id=outcome.webhook_id,
                failure_count=recorded.failure_count,
            )
