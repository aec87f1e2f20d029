"""FastAPI middleware for cross-cutting request/response concerns.

- **RequestContextMiddleware**: correlation and request IDs
- **RequestLoggingMiddleware**: structured request logging with timing
- **error_handler**: exception handlers rendering ``ErrorResponse``

Middleware run in reverse order of registration; request context is
registered last so its IDs are bound before request logging runs.
"""
