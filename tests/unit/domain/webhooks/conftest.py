"""Fixtures for webhook dispatch tests."""

import pytest

from src.core.config import WebhookConfig
from src.domain.webhooks.dispatcher import WebhookDispatcher
from src.infrastructure.tasks import BackgroundTaskRunner
from tests.fakes import FIXED_NOW, FakeWebhookStore, ScriptedHttpClient, no_sleep


@pytest.fixture
def store() -> FakeWebhookStore:
    return FakeWebhookStore()


@pytest.fixture
def http_client() -> ScriptedHttpClient:
    return ScriptedHttpClient()


@pytest.fixture
def runner() -> BackgroundTaskRunner:
    return BackgroundTaskRunner(4)


@pytest.fixture
def make_dispatcher(
    store: FakeWebhookStore,
    runner: BackgroundTaskRunner,
    webhook_config: WebhookConfig,
):
    def factory(client) -> WebhookDispatcher:
        return WebhookDispatcher(
            store,
            client,
            runner,
            config=webhook_config,
            clock=lambda: FIXED_NOW,
            sleep=no_sleep,
        )

    return factory


@pytest.fixture
def dispatcher(make_dispatcher, http_client: ScriptedHttpClient) -> WebhookDispatcher:
    return make_dispatcher(http_client)
