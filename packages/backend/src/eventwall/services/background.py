"""Detached background work (cloud backup).

Learn: asyncio only keeps a weak reference to running tasks, so a task
that nobody awaits can be garbage-collected mid-flight. DetachedTasks
holds a strong reference until each task finishes, logs anything that
escaped it, and lets shutdown (and tests) wait for stragglers. The
request that spawned a task never joins it.
"""

import asyncio
from typing import Coroutine

import structlog

logger = structlog.get_logger()


class DetachedTasks:
    def __init__(self):
        self._tasks: set[asyncio.Task] = set()

    def __len__(self) -> int:
        return len(self._tasks)

    def spawn(self, coro: Coroutine, *, name: str) -> asyncio.Task:
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._finished)
        return task

    def _finished(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            logger.warning("background.task_cancelled", task=task.get_name())
            return
        error = task.exception()
        if error is not None:
            logger.error(
                "background.task_failed",
                task=task.get_name(),
                error=str(error),
                exc_info=error,
            )

    async def wait(self) -> None:
        """Wait for every task running now (and any they spawn) to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
