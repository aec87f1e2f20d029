"""Webhook subscription endpoints."""

from typing import Annotated

from fastapi import APIRouter, Query, Response, status

from src.api.constants import (
    DEFAULT_PAGINATION_LIMIT,
    MAX_DELIVERY_LOG_LIMIT,
    MAX_PAGINATION_LIMIT,
)
from src.api.dependencies import WebhookRegistryDep
from src.api.schemas.webhooks import (
    DeliveryResponse,
    WebhookCreatedResponse,
    WebhookCreateRequest,
    WebhookListResponse,
    WebhookResponse,
    WebhookUpdateRequest,
)
from src.domain.webhooks.registry import DEFAULT_DELIVERY_LOG_LIMIT

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def register_webhook(
    body: WebhookCreateRequest, registry: WebhookRegistryDep
) -> WebhookCreatedResponse:
    """Register a subscription. The response is the only place the secret appears."""
    registered = await registry.register(
        body.url,
        [event.value for event in body.events],
        description=body.description,
        retry_count=body.retry_count,
        timeout_seconds=body.timeout_seconds,
        created_by=body.created_by,
    )
    return WebhookCreatedResponse.model_validate(registered.webhook)


@router.get("")
async def list_webhooks(
    registry: WebhookRegistryDep,
    active: bool | None = None,
    skip: Annotated[int, Query(ge=0)] = 0,
    limit: Annotated[
        int, Query(ge=1, le=MAX_PAGINATION_LIMIT)
    ] = DEFAULT_PAGINATION_LIMIT,
) -> WebhookListResponse:
    webhooks = await registry.list_webhooks(active=active, skip=skip, limit=limit)
    return WebhookListResponse(
        items=[WebhookResponse.model_validate(w) for w in webhooks],
        skip=skip,
        limit=limit,
    )


@router.get("/{webhook_id}")
async def get_webhook(
    webhook_id: int, registry: WebhookRegistryDep
) -> WebhookResponse:
    return WebhookResponse.model_validate(await registry.get_webhook(webhook_id))


@router.patch("/{webhook_id}")
async def update_webhook(
    webhook_id: int, body: WebhookUpdateRequest, registry: WebhookRegistryDep
) -> WebhookResponse:
    webhook = await registry.set_active(webhook_id, body.active)
    return WebhookResponse.model_validate(webhook)


@router.delete("/{webhook_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_webhook(webhook_id: int, registry: WebhookRegistryDep) -> Response:
    await registry.delete(webhook_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{webhook_id}/deliveries")
async def list_deliveries(
    webhook_id: int,
    registry: WebhookRegistryDep,
    limit: Annotated[
        int, Query(ge=1, le=MAX_DELIVERY_LOG_LIMIT)
    ] = DEFAULT_DELIVERY_LOG_LIMIT,
) -> list[DeliveryResponse]:
    deliveries = await registry.list_deliveries(webhook_id, limit)
    return [DeliveryResponse.model_validate(d) for d in deliveries]
