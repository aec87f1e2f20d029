"""Shared fixtures for API integration tests.

The application is assembled with ``create_app`` and exercised through
httpx's ASGI transport. Claim and webhook services are wired to the
in-memory collaborators from ``tests.fakes`` through dependency overrides,
so requests run the real routes, schemas, middleware and exception
handlers without a database. The lifespan is not run.
"""

from collections.abc import AsyncGenerator, Generator
from decimal import Decimal

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from pytest_mock import MockerFixture

from src.api.dependencies import get_claim_service, get_webhook_registry
from src.api.main import create_app
from src.core.config import ObservabilityConfig, Settings, get_settings
from src.core.context import RequestContext
from src.domain.benefits.calculation import BenefitPolicy, standard_eligibility_rules
from src.domain.benefits.service import ClaimService
from src.domain.members.models import ContributionType
from src.domain.webhooks.registry import WebhookRegistry
from tests.fakes import (
    FIXED_NOW,
    FakeClaimRepository,
    FakeContributionTotals,
    FakeMemberDirectory,
    FakeWebhookRepository,
    RecordingEventSink,
    member_profile,
)


@pytest.fixture(autouse=True)
def clear_settings_cache() -> Generator[None]:
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def clean_request_context() -> Generator[None]:
    RequestContext.clear()
    yield
    RequestContext.clear()


@pytest.fixture
def settings() -> Settings:
    return Settings(observability_config=ObservabilityConfig(enable_tracing=False))


@pytest.fixture
def events() -> RecordingEventSink:
    return RecordingEventSink()


@pytest.fixture
def claim_repository() -> FakeClaimRepository:
    return FakeClaimRepository()


@pytest.fixture
def claim_service(
    claim_repository: FakeClaimRepository, events: RecordingEventSink
) -> ClaimService:
    members = FakeMemberDirectory(
        {
            1: member_profile(1),
            2: member_profile(2),
            3: member_profile(3, date_of_birth=FIXED_NOW.date().replace(year=1980)),
        }
    )
    contributions = FakeContributionTotals(
        {
            (1, ContributionType.MONTHLY): Decimal("400000.00"),
            (1, ContributionType.VOLUNTARY): Decimal("100000.00"),
            (2, ContributionType.MONTHLY): Decimal("12000.00"),
            (3, ContributionType.MONTHLY): Decimal("5000.00"),
        }
    )
    references = iter(f"BEN{n:04d}" for n in range(1, 1000))
    return ClaimService(
        claim_repository,
        members,
        contributions,
        events,
        policy=BenefitPolicy(),
        rules=standard_eligibility_rules(),
        clock=lambda: FIXED_NOW,
        reference_factory=lambda _now: next(references),
    )


@pytest.fixture
def webhook_repository() -> FakeWebhookRepository:
    return FakeWebhookRepository()


@pytest.fixture
def webhook_registry(
    mocker: MockerFixture, webhook_repository: FakeWebhookRepository
) -> WebhookRegistry:
    registry = WebhookRegistry(mocker.MagicMock())
    registry.repository = webhook_repository
    return registry


@pytest.fixture
def app(
    settings: Settings,
    claim_service: ClaimService,
    webhook_registry: WebhookRegistry,
) -> FastAPI:
    application = create_app(settings)
    application.dependency_overrides[get_settings] = lambda: settings
    application.dependency_overrides[get_claim_service] = lambda: claim_service
    application.dependency_overrides[get_webhook_registry] = lambda: webhook_registry
    return application


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
