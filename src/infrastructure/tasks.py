"""Bounded runner for fire-and-forget background work.

Tasks are created on the running event loop and tracked until they finish,
so they are not garbage collected mid-flight and can be drained on shutdown.
A semaphore caps how many run at once; extra submissions wait their turn.
"""

import asyncio
from collections.abc import Callable, Coroutine
from typing import Any

from loguru import logger

type TaskFactory = Callable[[], Coroutine[Any, Any, None]]


class BackgroundTaskRunner:
    """Runs coroutines in the background with a concurrency limit.

    Args:
        max_concurrency: Maximum number of tasks executing at the same time.
    """

    def __init__(self, max_concurrency: int) -> None:
        self._semaphore = asyncio.Semaphore(max_concurrency)
        self._tasks: set[asyncio.Task[None]] = set()
        self._closing = False

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    def submit(self, factory: TaskFactory, *, name: str) -> asyncio.Task[None] | None:
        """Schedule ``factory()`` and return immediately.

        Returns:
            asyncio.Task[None] | None: The scheduled task, or None when the
                runner is shutting down and the work was dropped.
        """
        if self._closing:
            logger.warning("Runner is shutting down; dropped task {}", name)
            return None

        task = asyncio.get_running_loop().create_task(
            self._run(factory, name), name=name
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run(self, factory: TaskFactory, name: str) -> None:
        async with self._semaphore:
            try:
                await factory()
            except asyncio.CancelledError:
                logger.info("Background task {} cancelled", name)
                raise
            except Exception:
                logger.exception("Background task {} failed", name)

    async def join(self) -> None:
        """Wait until every task submitted so far has finished."""
        while self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    async def shutdown(self, timeout: float) -> None:
        """Stop accepting work, wait up to ``timeout`` seconds, cancel the rest."""
        self._closing = True
        if not self.in_flight:
            return

        logger.info("Draining {} background tasks", self.in_flight)
        drain = asyncio.ensure_future(self.join())
        await asyncio.wait({drain}, timeout=timeout)
        if drain.done():
            return

        pending = set(self._tasks)
        for task in pending:
            task.cancel()
        await drain
        logger.warning("Cancelled {} background tasks on shutdown", len(pending))
