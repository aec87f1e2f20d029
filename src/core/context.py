"""Request context management for correlation and request IDs.

Both values live in context variables, so they follow a request through
awaits and into tasks created while handling it. Webhook dispatch tasks are
created from request handlers and therefore log with the correlation ID of
the claim operation that produced the event.
"""

import uuid
from contextvars import ContextVar

_correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)
_request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)


class RequestContext:
    """Async-safe storage for request-scoped identifiers."""

    @staticmethod
    def set_correlation_id(correlation_id: str) -> None:
        _correlation_id_var.set(correlation_id)

    @staticmethod
    def get_correlation_id() -> str | None:
        return _correlation_id_var.get()

    @staticmethod
    def set_request_id(request_id: str) -> None:
        _request_id_var.set(request_id)

    @staticmethod
    def get_request_id() -> str | None:
        return _request_id_var.get()

    @staticmethod
    def clear() -> None:
        """Reset both identifiers for the current context."""
        _correlation_id_var.set(None)
        _request_id_var.set(None)


def generate_correlation_id() -> str:
    """Generate a UUID4 correlation ID.

    Examples:
        >>> len(generate_correlation_id())
        36
    """
    return str(uuid.uuid4())


def generate_request_id() -> str:
    """Generate a request ID in the format ``req-<uuid4>``.

    Examples:
        >>> generate_request_id().startswith("req-")
        True
    """
    return f"req-{uuid.uuid4()}"
