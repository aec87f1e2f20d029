"""Core infrastructure package for shared application functionality.

- **config**: Settings for the API, database, benefit policy and webhooks
- **context**: Request context and correlation ID management
- **exceptions**: Structured exception hierarchy with error codes
- **error_context**: Sensitive data sanitization for safe logging
- **logging**: Loguru setup with console and JSON formatters
- **observability**: Distributed tracing with OpenTelemetry
- **types**: Type aliases for dynamic data
"""
