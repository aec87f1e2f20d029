"""Outbound HTTP for webhook deliveries.

The dispatcher depends on the ``WebhookHttpClient`` protocol only. A
response of any status is returned as ``HttpResponse``; failures to get a
response at all raise ``TransportError`` so the two cases stay
distinguishable in delivery records.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Protocol

import httpx

from src.infrastructure.constants import (
    HTTP_MAX_CONNECTIONS,
    HTTP_MAX_KEEPALIVE_CONNECTIONS,
)


@dataclass(frozen=True, slots=True)
class HttpResponse:
    status_code: int
    body: str

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300


class TransportError(Exception):
    """No HTTP response was received.

    Args:
        message: Description of the failure.
        timed_out: Whether the request exceeded its timeout.
    """

    def __init__(self, message: str, *, timed_out: bool = False) -> None:
        super().__init__(message)
        self.timed_out = timed_out


class WebhookHttpClient(Protocol):
    async def post(
        self,
        url: str,
        body: bytes,
        headers: Mapping[str, str],
        timeout: float,
    ) -> HttpResponse: ...


class HttpxWebhookClient:
    """``WebhookHttpClient`` backed by a shared ``httpx.AsyncClient``."""

    def __init__(self, client: httpx.AsyncClient | None = None) -> None:
        self._client = client or httpx.AsyncClient(
            follow_redirects=False,
            limits=httpx.Limits(
                max_connections=HTTP_MAX_CONNECTIONS,
                max_keepalive_connections=HTTP_MAX_KEEPALIVE_CONNECTIONS,
            ),
        )

    async def post(
        self,
        url: str,
        body: bytes,
        headers: Mapping[str, str],
        timeout: float,
    ) -> HttpResponse:
        try:
            response = await self._client.post(
                url, content=body, headers=dict(headers), timeout=timeout
            )
        except httpx.TimeoutException as exc:
            raise TransportError(
                f"{type(exc).__name__}: {exc}", timed_out=True
            ) from exc
        except httpx.HTTPError as exc:
            raise TransportError(f"{type(exc).__name__}: {exc}") from exc
        return HttpResponse(status_code=response.status_code, body=response.text)

    async def aclose(self) -> None:
        await self._client.aclose()
