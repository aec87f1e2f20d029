"""Webhook subscription endpoints end to end through the ASGI app."""

import pytest
import pytest_check as check
from httpx import AsyncClient

from src.domain.webhooks.models import DeliveryStatus
from src.domain.webhooks.store import DeliveryOutcome
from tests.fakes import FakeWebhookRepository

WEBHOOKS = "/api/v1/webhooks"
URL = "https://hooks.example.com/pension"


async def register(client: AsyncClient, **overrides: object) -> dict:
    body = {"url": URL, "events": ["BENEFIT_PAID", "BENEFIT_APPROVED"], **overrides}
    response = await client.post(WEBHOOKS, json=body)
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.integration
class TestRegister:
    async def test_registration_returns_secret_once(self, client: AsyncClient) -> None:
        created = await register(client, description="Payments", created_by="ops")

        check.equal(created["url"], URL)
        check.equal(created["events"], ["BENEFIT_PAID", "BENEFIT_APPROVED"])
        check.equal(len(created["secret"]), 64)
        check.is_true(created["active"])
        check.equal(created["retry_count"], 3)
        check.equal(created["timeout_seconds"], 30)
        check.equal(created["failure_count"], 0)

        fetched = (await client.get(f"{WEBHOOKS}/{created['id']}")).json()
        listed = (await client.get(WEBHOOKS)).json()
        check.is_not_in("secret", fetched)
        check.is_not_in("secret", listed["items"][0])

    async def test_http_url_is_rejected(self, client: AsyncClient) -> None:
        response = await client.post(
            WEBHOOKS,
            json={"url": "http://hooks.example.com", "events": ["BENEFIT_PAID"]},
        )

        body = response.json()
        assert response.status_code == 400
        assert body["error_code"] == "VALIDATION_ERROR"
        assert body["message"] == "Webhook URL must use HTTPS"

    async def test_unknown_event_is_rejected(self, client: AsyncClient) -> None:
        response = await client.post(
            WEBHOOKS, json={"url": URL, "events": ["CLAIM_EATEN"]}
        )

        assert response.status_code == 422

    async def test_empty_event_list_is_rejected(self, client: AsyncClient) -> None:
        response = await client.post(WEBHOOKS, json={"url": URL, "events": []})

        assert response.status_code == 422

    async def test_out_of_range_retry_count(self, client: AsyncClient) -> None:
        response = await client.post(
            WEBHOOKS, json={"url": URL, "events": ["BENEFIT_PAID"], "retry_count": 11}
        )

        assert response.status_code == 422


@pytest.mark.integration
class TestList:
    async def test_list_is_paged(self, client: AsyncClient) -> None:
        ids = [(await register(client))["id"] for _ in range(3)]

        first = (await client.get(WEBHOOKS, params={"limit": 2})).json()
        rest = (await client.get(WEBHOOKS, params={"skip": 2, "limit": 2})).json()

        check.equal([w["id"] for w in first["items"]], ids[:2])
        check.equal((first["skip"], first["limit"]), (0, 2))
        check.equal([w["id"] for w in rest["items"]], ids[2:])
        check.equal(rest["skip"], 2)

    async def test_default_page(self, client: AsyncClient) -> None:
        await register(client)

        body = (await client.get(WEBHOOKS)).json()

        assert body["skip"] == 0
        assert body["limit"] == 100
        assert len(body["items"]) == 1

    @pytest.mark.parametrize(
        "params", [{"limit": 0}, {"limit": 501}, {"skip": -1}]
    )
    async def test_paging_bounds(
        self, client: AsyncClient, params: dict[str, int]
    ) -> None:
        response = await client.get(WEBHOOKS, params=params)

        assert response.status_code == 422


@pytest.mark.integration
class TestManage:
    async def test_deactivate_and_reactivate(
        self, client: AsyncClient, webhook_repository: FakeWebhookRepository
    ) -> None:
        webhook_id = (await register(client))["id"]
        webhook_repository.webhooks[webhook_id].failure_count = 10

        off = await client.patch(f"{WEBHOOKS}/{webhook_id}", json={"active": False})
        on = await client.patch(f"{WEBHOOKS}/{webhook_id}", json={"active": True})

        check.is_false(off.json()["active"])
        check.equal(off.json()["failure_count"], 10)
        check.is_true(on.json()["active"])
        check.equal(on.json()["failure_count"], 0)

    async def test_delete(self, client: AsyncClient) -> None:
        webhook_id = (await register(client))["id"]

        deleted = await client.delete(f"{WEBHOOKS}/{webhook_id}")
        missing = await client.get(f"{WEBHOOKS}/{webhook_id}")

        assert deleted.status_code == 204
        assert deleted.content == b""
        assert missing.status_code == 404

    async def test_unknown_webhook(self, client: AsyncClient) -> None:
        response = await client.patch(f"{WEBHOOKS}/77", json={"active": True})

        assert response.status_code == 404
        assert response.json()["message"] == "Webhook 77 not found"

    async def test_delivery_log_newest_first(
        self, client: AsyncClient, webhook_repository: FakeWebhookRepository
    ) -> None:
        webhook_id = (await register(client))["id"]
        for status in (DeliveryStatus.FAILED, DeliveryStatus.SUCCESS):
            webhook_repository.add_delivery(
                DeliveryOutcome(
                    webhook_id=webhook_id,
                    event_type="BENEFIT_PAID",
                    payload="{}",
                    status=status,
                    attempt_count=3 if status is DeliveryStatus.FAILED else 1,
                    duration_ms=15,
                    response_status=500 if status is DeliveryStatus.FAILED else 200,
                )
            )

        response = await client.get(
            f"{WEBHOOKS}/{webhook_id}/deliveries", params={"limit": 1}
        )

        body = response.json()
        assert response.status_code == 200
        assert len(body) == 1
        assert body[0]["status"] == "SUCCESS"
        assert body[0]["attempt_count"] == 1

    async def test_delivery_log_limit_is_bounded(self, client: AsyncClient) -> None:
        webhook_id = (await register(client))["id"]

        response = await client.get(
            f"{WEBHOOKS}/{webhook_id}/deliveries", params={"limit": 1000}
        )

        assert response.status_code == 422
