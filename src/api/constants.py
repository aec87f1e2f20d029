"""API-related constants."""

# HTTP Status Codes
HTTP_500_INTERNAL_SERVER_ERROR = 500

# HTTP Headers
CORRELATION_ID_HEADER = "X-Correlation-ID"

# Pagination
DEFAULT_PAGINATION_LIMIT = 100
MAX_PAGINATION_LIMIT = 500
MAX_DELIVERY_LOG_LIMIT = 200

API_V1_PREFIX = "/api/v1"
