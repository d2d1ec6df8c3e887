"""Named periodic jobs run as asyncio loops inside the API process.

The FastAPI lifespan starts the runner after the store is initialized and
stops it on shutdown.  Each job sleeps for its interval and then ticks.
A failed tick is logged and the loop carries on; nothing short of
``stop()`` ends a loop.

Job names follow ``<collection>:<operation>``::

    profiles:process-unprocessed   every 10 min   batch 5
    profiles:refresh-stale         every 24 h     batch 3,  max age 90 days
    jobs:process-unprocessed       every 10 min   batch 50
    jobs:refresh-stale             every 24 h     batch 50, max age 90 days
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Awaitable, Callable

import structlog

from careerintel.models.lifecycle import BatchSummary
from careerintel.pipeline.scheduler import EnrichmentScheduler
from careerintel.utils.errors import ConfigurationError

logger = structlog.get_logger(logger_name=__name__)

JobAction = Callable[[], Awaitable[BatchSummary]]


@dataclass(frozen=True)
class PeriodicJob:
    name: str
    interval_seconds: float
    batch_size: int
    action: JobAction


class PeriodicRunner:
    """Runs each :class:`PeriodicJob` in its own asyncio loop.

    Parameters
    ----------
    jobs:
        Jobs to run.  Names must be unique.
    enabled:
        When ``False``, :meth:`start` is a no-op but :meth:`run_now` still
        works for manual triggers.
    """

    def __init__(self, jobs: list[PeriodicJob], enabled: bool = True) -> None:
        self._jobs = {job.name: job for job in jobs}
        self._enabled = enabled
        self._tasks: dict[str, asyncio.Task[None]] = {}
        self._last_run: dict[str, dict[str, Any]] = {}

    @property
    def running(self) -> bool:
        return bool(self._tasks)

    @property
    def job_names(self) -> list[str]:
        return list(self._jobs)

    def start(self) -> None:
        if not self._enabled:
            logger.info("periodic_runner_disabled")
            return
        for name, job in self._jobs.items():
            if name not in self._tasks:
                self._tasks[name] = asyncio.create_task(self._loop(job), name=f"periodic:{name}")
        logger.info("periodic_runner_started", jobs=list(self._tasks))

    async def stop(self) -> None:
        tasks = list(self._tasks.values())
        self._tasks.clear()
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        logger.info("periodic_runner_stopped", jobs=len(tasks))

    async def run_now(self, name: str) -> BatchSummary:
        """Run one tick of *name* immediately and return its summary."""
        job = self._jobs.get(name)
        if job is None:
            raise ConfigurationError(message=f"Unknown periodic job: {name}")
        return await self._tick(job)

    def describe(self) -> list[dict[str, Any]]:
        """Job table for the health endpoint."""
        return [
            {
                "name": job.name,
                "interval_seconds": job.interval_seconds,
                "batch_size": job.batch_size,
                "running": job.name in self._tasks,
                "last_run": self._last_run.get(job.name),
            }
            for job in self._jobs.values()
        ]

    async def _loop(self, job: PeriodicJob) -> None:
        while True:
            await asyncio.sleep(job.interval_seconds)
            try:
                await self._tick(job)
            except Exception as exc:
                logger.exception("periodic_job_failed", job=job.name, error=str(exc))

    async def _tick(self, job: PeriodicJob) -> BatchSummary:
        summary = await job.action()
        self._last_run[job.name] = {
            "processed": summary.processed,
            "failed": summary.failed,
            "skipped": summary.skipped,
            "message": summary.message,
        }
        logger.info("periodic_job_ran", job=job.name, message=summary.message)
        return summary


def build_periodic_jobs(
    job_table: dict[str, dict[str, Any]],
    schedulers: dict[str, EnrichmentScheduler],
    record_stale_after_days: int = 90,
) -> list[PeriodicJob]:
    """Bind the configured job table to the record schedulers.

    Parameters
    ----------
    job_table:
        ``scheduler.jobs`` from ``config/config.yaml``, keyed by
        ``<collection>:<operation>``.
    schedulers:
        Scheduler per record collection (``jobs``, ``profiles``).
    record_stale_after_days:
        ``max_age`` for the refresh-stale operation.

    Raises
    ------
    ConfigurationError
        If a job names an unknown collection or operation.
    """
    max_age = timedelta(days=record_stale_after_days)
    jobs: list[PeriodicJob] = []
    for name, spec in job_table.items():
        collection, _, operation = name.partition(":")
        scheduler = schedulers.get(collection)
        if scheduler is None:
            raise ConfigurationError(message=f"Periodic job {name} names unknown collection {collection!r}")
        batch_size = int(spec["batch_size"])

        if operation == "process-unprocessed":
            action = _bind_batch(scheduler, batch_size)
        elif operation == "refresh-stale":
            action = _bind_refresh(scheduler, batch_size, max_age)
        else:
            raise ConfigurationError(message=f"Periodic job {name} names unknown operation {operation!r}")

        jobs.append(
            PeriodicJob(
                name=name,
                interval_seconds=float(spec["interval_seconds"]),
                batch_size=batch_size,
                action=action,
            )
        )
    return jobs


def _bind_batch(scheduler: EnrichmentScheduler, batch_size: int) -> JobAction:
    async def action() -> BatchSummary:
        return await scheduler.run_batch(batch_size)

    return action


def _bind_refresh(scheduler: EnrichmentScheduler, batch_size: int, max_age: timedelta) -> JobAction:
    async def action() -> BatchSummary:
        return await scheduler.refresh_stale(batch_size, max_age)

    return action
