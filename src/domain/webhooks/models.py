"""Webhook subscription and delivery tables.

The failure counter rules live on ``WebhookSubscription`` so every writer
applies them the same way: a success resets the counter, a failed delivery
batch increments it, and reaching the threshold deactivates the subscription.
"""

from datetime import datetime
from enum import StrEnum

from sqlalchemy import (
    BigInteger,
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.infrastructure.database.base import BaseModel

DEFAULT_RETRY_COUNT = 3
DEFAULT_TIMEOUT_SECONDS = 30


class DeliveryStatus(StrEnum):
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    RETRYING = "RETRYING"
    CANCELLED = "CANCELLED"


class WebhookSubscription(BaseModel):
    __tablename__ = "webhooks"

    url: Mapped[str] = mapped_column(String(500))
    secret: Mapped[str] = mapped_column(String(128))
    events: Mapped[list[str]] = mapped_column(ARRAY(String(50)))
    active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)
    description: Mapped[str | None] = mapped_column(String(500))
    created_by: Mapped[str | None] = mapped_column(String(100))
    retry_count: Mapped[int] = mapped_column(Integer, default=DEFAULT_RETRY_COUNT)
    timeout_seconds: Mapped[int] = mapped_column(
        Integer, default=DEFAULT_TIMEOUT_SECONDS
    )
    failure_count: Mapped[int] = mapped_column(Integer, default=0)
    last_triggered_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    deliveries: Mapped[list["WebhookDelivery"]] = relationship(
        back_populates="webhook",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def record_success(self, now: datetime) -> None:
        self.failure_count = 0
        self.last_triggered_at = now

    def record_failure(self, now: datetime, threshold: int) -> bool:
        """Count a failed delivery batch.

        Returns:
            bool: True when this failure deactivated the subscription.
        """
        self.failure_count = (self.failure_count or 0) + 1
        self.last_triggered_at = now
        if self.active and self.failure_count >= threshold:
            self.active = False
            return True
        return False

    def reactivate(self) -> None:
        self.active = True
        self.failure_count = 0

    def __repr__(self) -> str:
        return (
            f"<WebhookSubscription(id={self.id}, url={self.url}, "
            f"active={self.active})>"
        )


class WebhookDelivery(BaseModel):
    __tablename__ = "webhook_deliveries"

    webhook_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("webhooks.id", ondelete="CASCADE"), index=True
    )
    event_type: Mapped[str] = mapped_column(String(50), index=True)
    payload: Mapped[str] = mapped_column(Text)
    response_status: Mapped[int | None] = mapped_column(Integer)
    response_body: Mapped[str | None] = mapped_column(Text)
    error_message: Mapped[str | None] = mapped_column(Text)
    status: Mapped[DeliveryStatus] = mapped_column(
        Enum(DeliveryStatus, native_enum=False, length=20)
    )
    attempt_count: Mapped[int] = mapped_column(Integer, default=0)
    duration_ms: Mapped[int | None] = mapped_column(Integer)
    next_retry_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    webhook: Mapped[WebhookSubscription] = relationship(back_populates="deliveries")
