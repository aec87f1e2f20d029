"""FastAPI application initialization and configuration module.

The lifespan owns the process-wide resources:

- verifies the database connection on startup,
- creates the shared httpx client, the background task runner and the
  webhook dispatcher (stored on ``app.state.dispatcher``),
- on shutdown drains in-flight webhook deliveries for up to
  ``WEBHOOK__SHUTDOWN_GRACE_SECONDS``, cancels the rest, then closes the
  HTTP client and the database engine.

Middleware execute in reverse order of registration.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Annotated, Any, cast

from fastapi import Depends, FastAPI
from loguru import logger

from src.api.constants import API_V1_PREFIX
from src.api.middleware.error_handler import register_exception_handlers
from src.api.middleware.request_context import RequestContextMiddleware
from src.api.middleware.request_logging import RequestLoggingMiddleware
from src.api.routes import claims, webhooks
from src.api.utils.responses import ORJSONResponse
from src.core.config import Settings, get_settings
from src.core.logging import setup_logging
from src.core.observability import instrument_app, setup_tracing
from src.domain.webhooks.dispatcher import WebhookDispatcher
from src.domain.webhooks.store import SqlWebhookStore
from src.infrastructure.database.session import (
    check_database_connection,
    close_database,
    get_engine,
    get_session_factory,
)
from src.infrastructure.http.client import HttpxWebhookClient
from src.infrastructure.tasks import BackgroundTaskRunner


@asynccontextmanager
async def lifespan(app_instance: FastAPI) -> AsyncGenerator[None]:
    """Manage application lifespan events.

    Raises:
        RuntimeError: If database connection fails during startup.
    """
    settings = get_settings()

    is_healthy, error_msg = await check_database_connection()
    if is_healthy:
        logger.info("Database connection successful")
    else:
        logger.error("Database connection failed during startup: {}", error_msg)
        msg = f"Database connection failed: {error_msg}"
        raise RuntimeError(msg)

    http_client = HttpxWebhookClient()
    runner = BackgroundTaskRunner(settings.webhook.max_concurrent_deliveries)
    app_instance.state.dispatcher = WebhookDispatcher(
        SqlWebhookStore(get_session_factory()),
        http_client,
        runner,
        config=settings.webhook,
    )

    logger.info(
        "Application startup complete - {} v{}",
        app_instance.title,
        app_instance.version,
    )

    try:
        yield
    finally:
        logger.info("Application shutdown initiated")
        await runner.shutdown(settings.webhook.shutdown_grace_seconds)
        await http_client.aclose()
        await close_database()
        logger.info("Application shutdown complete")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Optional settings instance. If not provided, will use get_settings().

    Returns:
        FastAPI: Configured FastAPI application instance.
    """
    if settings is None:
        settings = get_settings()

    setup_logging(settings)
    setup_tracing(settings)

    application = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        docs_url=settings.docs_url,
        redoc_url=settings.redoc_url,
        openapi_url=settings.openapi_url,
        default_response_class=ORJSONResponse,
        lifespan=lifespan,
    )

    register_exception_handlers(application)

    # 2. Request logging runs inside the request context
    application.add_middleware(RequestLoggingMiddleware, log_config=settings.log_config)
    # 1. Request context (correlation and request IDs)
    application.add_middleware(RequestContextMiddleware)

    application.include_router(claims.router, prefix=API_V1_PREFIX)
    application.include_router(webhooks.router, prefix=API_V1_PREFIX)

    @application.get("/health")
    async def health() -> dict[str, object]:
        """Health check endpoint for load balancers and orchestrators."""
        health_status: dict[str, object] = {"status": "healthy", "database": False}

        is_healthy, error_msg = await check_database_connection()
        health_status["database"] = is_healthy

        if is_healthy:
            pool = get_engine().pool
            logger.bind(
                metric_type="db.pool.health",
                checked_out=cast("Any", pool).checkedout(),
                size=cast("Any", pool).size(),
                overflow=cast("Any", pool).overflow(),
            ).info("Database pool health check")
        else:
            # Reported as degraded rather than down
            logger.warning("Database health check failed: {}", error_msg)
            health_status["status"] = "degraded"

        return health_status

    @application.get("/info")
    async def info(
        app_settings: Annotated[Settings, Depends(get_settings)],
    ) -> dict[str, Any]:
        """Application name, version and environment."""
        return {
            "app_name": app_settings.app_name,
            "version": app_settings.app_version,
            "environment": app_settings.environment,
            "debug": app_settings.debug,
        }

    instrument_app(application, settings)

    return application


app = create_app()
