"""Pension back office service.

Benefit claims, eligibility calculation and signed webhook notifications for a
pension administration platform, built on FastAPI and async SQLAlchemy.

Architecture Overview:
- **API Layer**: FastAPI routers, middleware and error handlers
- **Core Layer**: Configuration, exceptions, logging and tracing
- **Domain Layer**: Benefit engine, claim lifecycle and webhook delivery
- **Infrastructure Layer**: PostgreSQL access, outbound HTTP and background tasks

Claim operations are synchronous and transactional; webhook delivery runs in
the background and never affects the outcome of the operation that produced
the event.
"""
