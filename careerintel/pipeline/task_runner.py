"""Explicit background task abstraction.

# ─── DESIGN ────────────────────────────────────────────────────────────
#
# Request handlers never call asyncio.create_task themselves.  They hand a
# coroutine to TaskRunner.submit() and get a TaskHandle back:
#
#   handle = runner.submit("jobs:execute:abc123", manager.execute(...))
#
# The runner keeps a strong reference to every running task (the event
# loop only holds weak ones), logs failures, and drops the reference when
# the task finishes.  Tests call drain() to wait for all submitted work;
# the FastAPI lifespan calls shutdown() to cancel whatever is still in
# flight.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from typing import Any
from uuid import uuid4

import structlog

logger = structlog.get_logger(logger_name=__name__)


class TaskHandle:
    """Reference to one submitted background task."""

    def __init__(self, task_id: str, name: str, task: asyncio.Task[Any]) -> None:
        self._task_id = task_id
        self._name = name
        self._task = task

    @property
    def task_id(self) -> str:
        return self._task_id

    @property
    def name(self) -> str:
        return self._name

    def done(self) -> bool:
        return self._task.done()

    async def wait(self) -> Any:
        """Wait for the task and return its result (or raise its error)."""
        return await self._task


class TaskRunner:
    """Runs fire-and-forget coroutines with tracked lifetimes."""

    def __init__(self) -> None:
        self._tasks: dict[str, asyncio.Task[Any]] = {}

    @property
    def active_count(self) -> int:
        return len(self._tasks)

    def submit(self, name: str, coro: Coroutine[Any, Any, Any]) -> TaskHandle:
        """Schedule *coro* on the running loop and return a handle.

        Must be called from inside a running event loop.
        """
        task_id = uuid4().hex
        task = asyncio.create_task(coro, name=name)
        self._tasks[task_id] = task
        task.add_done_callback(lambda t: self._on_done(task_id, name, t))
        logger.debug("task_submitted", task=name, task_id=task_id)
        return TaskHandle(task_id, name, task)

    async def drain(self) -> None:
        """Wait until every submitted task (including ones submitted while
        waiting) has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks.values()), return_exceptions=True)

    async def shutdown(self) -> None:
        """Cancel all running tasks and wait for them to unwind."""
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        logger.info("task_runner_shutdown", cancelled=len(tasks))

    def _on_done(self, task_id: str, name: str, task: asyncio.Task[Any]) -> None:
        self._tasks.pop(task_id, None)
        if task.cancelled():
            logger.info("task_cancelled", task=name, task_id=task_id)
            return
        exc = task.exception()
        if exc is not None:
            logger.error("task_failed", task=name, task_id=task_id, error=str(exc), error_type=type(exc).__name__)
