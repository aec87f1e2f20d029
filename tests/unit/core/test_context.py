"""Unit tests for src/core/context.py module."""

import asyncio
import uuid

import pytest

from src.core.context import (
    RequestContext,
    generate_correlation_id,
    generate_request_id,
)


@pytest.mark.unit
class TestRequestContext:
    def test_defaults_are_none(self) -> None:
        assert RequestContext.get_correlation_id() is None
        assert RequestContext.get_request_id() is None

    def test_set_get_and_clear(self) -> None:
        RequestContext.set_correlation_id("corr-1")
        RequestContext.set_request_id("req-1")

        assert RequestContext.get_correlation_id() == "corr-1"
        assert RequestContext.get_request_id() == "req-1"

        RequestContext.clear()
        assert RequestContext.get_correlation_id() is None
        assert RequestContext.get_request_id() is None

    async def test_tasks_inherit_but_do_not_leak(self) -> None:
        """Tasks see the creator's IDs; their own changes stay local."""
        RequestContext.set_correlation_id("parent")

        async def child() -> str | None:
            seen = RequestContext.get_correlation_id()
            RequestContext.set_correlation_id("child")
            return seen

        assert await asyncio.create_task(child()) == "parent"
        assert RequestContext.get_correlation_id() == "parent"


@pytest.mark.unit
class TestGenerators:
    def test_correlation_id_is_uuid4(self) -> None:
        assert uuid.UUID(generate_correlation_id()).version == 4

    def test_request_id_format(self) -> None:
        request_id = generate_request_id()

        assert request_id.startswith("req-")
        assert uuid.UUID(request_id.removeprefix("req-")).version == 4
        assert generate_request_id() != request_id
