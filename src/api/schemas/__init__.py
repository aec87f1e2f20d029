"""Pydantic models for API requests and responses.

- **errors**: the uniform error response
- **claims**: benefit applications, transitions and calculation previews
- **webhooks**: subscriptions and delivery log entries
"""
