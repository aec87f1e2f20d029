"""Type aliases for dynamic data structures throughout the application.

All types defined here should be JSON-serializable to support logging,
API responses and webhook payloads.
"""

from typing import Any

# Values must be JSON-serializable for structured logging
type LogContext = dict[str, Any]

# Values must be JSON-serializable for API responses
type ErrorContext = dict[str, Any]

# Webhook event body before serialization; Decimal and datetime values are
# converted by the dispatcher's encoder
type EventPayload = dict[str, Any]
