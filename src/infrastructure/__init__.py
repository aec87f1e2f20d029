"""Infrastructure layer: persistence, outbound HTTP and background work.

- **database**: Async PostgreSQL with SQLAlchemy 2.0 and repositories
- **http**: httpx client used for webhook deliveries
- **tasks**: Bounded runner for fire-and-forget background tasks

The domain layer defines the protocols (webhook HTTP client, stores,
collaborators); this package provides their concrete implementations.
"""
