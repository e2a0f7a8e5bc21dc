"""Delayed, fire-and-forget task scheduling on the running event loop."""

import asyncio
from collections.abc import Awaitable, Callable

from lecture_pipeline.logging import setup_logging

logger = setup_logging(__name__)


class ScheduledTask:
    """Handle for one delayed task."""

    def __init__(self, name: str, delay: float, task: asyncio.Task):
        self.name = name
        self.delay = delay
        self._task = task

    @property
    def done(self) -> bool:
        return self._task.done()

    def cancel(self) -> bool:
        """Cancels the task if it has not finished. Returns True if it was cancelled."""
        return self._task.cancel()


class TaskScheduler:
    """
    Runs coroutine factories after a delay, outside the caller's control flow.

    Failures are logged and never propagate to whoever scheduled the task.
    Outstanding tasks are tracked so they can be cancelled or awaited on
    shutdown and in tests.
    """

    def __init__(self, sleep: Callable[[float], Awaitable[None]] = asyncio.sleep):
        self._sleep = sleep
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def schedule(
        self,
        delay: float,
        factory: Callable[[], Awaitable[object]],
        name: str = "scheduled-task",
    ) -> ScheduledTask:
        """
        Schedules `factory()` to run after `delay` seconds.

        Must be called from a running event loop.
        """
        task = asyncio.get_running_loop().create_task(
            self._run(delay, factory, name), name=name
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        logger.info("Task scheduled", extra={"task": name, "delay_seconds": delay})
        return ScheduledTask(name, delay, task)

    def cancel_all(self) -> int:
        """Cancels every outstanding task and returns how many were cancelled."""
        cancelled = sum(1 for task in list(self._tasks) if task.cancel())
        if cancelled:
            logger.info("Scheduled tasks cancelled", extra={"count": cancelled})
        return cancelled

    async def join(self) -> None:
        """Waits until no scheduled task is outstanding."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _run(
        self, delay: float, factory: Callable[[], Awaitable[object]], name: str
    ) -> None:
        if delay > 0:
            await self._sleep(delay)
        try:
            await factory()
        except Exception:
            logger.exception("Scheduled task failed", extra={"task": name})
