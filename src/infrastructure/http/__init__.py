"""Outbound HTTP client for webhook deliveries."""

from src.infrastructure.http.client import (
    HttpResponse,
    HttpxWebhookClient,
    TransportError,
    WebhookHttpClient,
)

__all__ = [
    "HttpResponse",
    "HttpxWebhookClient",
    "TransportError",
    "WebhookHttpClient",
]
