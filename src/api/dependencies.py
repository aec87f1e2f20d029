"""FastAPI dependencies that assemble domain services per request.

Services share the request's ``DatabaseSession``, so everything a handler
does commits or rolls back together. The webhook dispatcher is created once
in the application lifespan and read from ``app.state``.
"""

from typing import Annotated

from fastapi import Depends, Request

from src.core.config import Settings, get_settings
from src.domain.benefits.calculation import BenefitPolicy, standard_eligibility_rules
from src.domain.benefits.repository import ClaimRepository
from src.domain.benefits.service import ClaimService
from src.domain.events import EventPublisher, TransactionalEventEmitter
from src.domain.members.repository import SqlContributionTotals, SqlMemberDirectory
from src.domain.webhooks.registry import WebhookRegistry
from src.infrastructure.database.dependencies import DatabaseSession


def get_event_publisher(request: Request) -> EventPublisher:
    """The application's webhook dispatcher."""
    return request.app.state.dispatcher


def get_claim_service(
    session: DatabaseSession,
    publisher: Annotated[EventPublisher, Depends(get_event_publisher)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> ClaimService:
    return ClaimService(
        ClaimRepository(session),
        SqlMemberDirectory(session),
        SqlContributionTotals(session),
        TransactionalEventEmitter(session, publisher),
        policy=BenefitPolicy.from_config(settings.benefit_policy),
        rules=standard_eligibility_rules(),
    )


def get_webhook_registry(
    session: DatabaseSession,
    settings: Annotated[Settings, Depends(get_settings)],
) -> WebhookRegistry:
    return WebhookRegistry(
        session,
        default_retry_count=settings.webhook.default_retry_count,
        default_timeout_seconds=settings.webhook.default_timeout_seconds,
    )


ClaimServiceDep = Annotated[ClaimService, Depends(get_claim_service)]
WebhookRegistryDep = Annotated[WebhookRegistry, Depends(get_webhook_registry)]
