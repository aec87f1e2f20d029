"""Request and response models for webhook subscriptions.

The subscription secret appears only in ``WebhookCreatedResponse``.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from src.domain.events import EventType
from src.domain.webhooks.models import DeliveryStatus


class WebhookCreateRequest(BaseModel):
    url: str = Field(
        ..., max_length=500, examples=["https://hooks.example.com/pension"]
    )
    events: list[EventType] = Field(..., min_length=1, examples=[["BENEFIT_PAID"]])
    description: str | None = Field(default=None, max_length=500)
    retry_count: int | None = Field(default=None, ge=1, le=10)
    timeout_seconds: int | None = Field(default=None, ge=1, le=120)
    created_by: str | None = Field(default=None, max_length=100)


class WebhookUpdateRequest(BaseModel):
    active: bool


class WebhookResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    url: str
    events: list[str]
    active: bool
    description: str | None = None
    created_by: str | None = None
    retry_count: int
    timeout_seconds: int
    failure_count: int
    last_triggered_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class WebhookCreatedResponse(WebhookResponse):
    secret: str = Field(
        ..., description="HMAC signing secret; returned only on registration"
    )


class DeliveryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    webhook_id: int
    event_type: str
    status: DeliveryStatus
    attempt_count: int
    response_status: int | None = None
    response_body: str | None = None
    error_message: str | None = None
    duration_ms: int | None = None
    created_at: datetime


class WebhookListResponse(BaseModel):
    items: list[WebhookResponse]
    skip: int
    limit: int
