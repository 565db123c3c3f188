"""
Periodic job scheduler.

Each job waits a one-time initial delay, then fires every ``interval`` seconds.
A tick launches the job as its own task and does not wait for it, so a slow
run never delays the timer; overlap is handled by the jobs' own reentrancy
guards, which drop the extra run.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from cockpit_relay.utils.logger import get_logger

logger = get_logger(__name__)

# Initial delays (seconds), staggered: feeds first, then processing, then publishing.
FEED_POLL_INITIAL_DELAY: float = 5.0
PUBLISH_INITIAL_DELAY: float = 30.0


@dataclass(frozen=True)
class PeriodicJob:
    name: str
    func: Callable[[], Awaitable[Any]]
    initial_delay: float
    interval: float


class Scheduler:
    """Runs independent periodic jobs on the current event loop."""

    def __init__(self) -> None:
        self._jobs: list[PeriodicJob] = []
        self._timers: list[asyncio.Task] = []
        self._inflight: set[asyncio.Task] = set()
        self._started = False

    @property
    def started(self) -> bool:
        return self._started

    @property
    def jobs(self) -> list[PeriodicJob]:
        return list(self._jobs)

    def add_job(
        self,
        name: str,
        func: Callable[[], Awaitable[Any]],
        *,
        initial_delay: float,
        interval: float,
    ) -> None:
        """Register a job. Jobs added after ``start`` are not scheduled."""
        if interval <= 0:
            raise ValueError(f"interval must be positive for job {name!r}")
        self._jobs.append(PeriodicJob(name, func, initial_delay, interval))

    def start(self) -> None:
        """Start one timer per job. Later calls are ignored."""
        if self._started:
            return
        self._started = True
        for job in self._jobs:
            self._timers.append(asyncio.create_task(self._run_timer(job), name=f"timer:{job.name}"))
            logger.info(
                "Scheduled %s: first run in %.0fs, then every %.0fs",
                job.name, job.initial_delay, job.interval,
            )

    async def stop(self) -> None:
        """Cancel all timers and in-flight runs."""
        tasks = [*self._timers, *self._inflight]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._timers.clear()
        self._inflight.clear()
        self._started = False

    async def _run_timer(self, job: PeriodicJob) -> None:
        await asyncio.sleep(job.initial_delay)
        while True:
            self._fire(job)
            await asyncio.sleep(job.interval)

    def _fire(self, job: PeriodicJob) -> None:
        task = asyncio.create_task(self._run_job(job), name=f"job:{job.name}")
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)

    @staticmethod
    async def _run_job(job: PeriodicJob) -> None:
        try:
            await job.func()
        except Exception as exc:
            logger.error("Scheduled job %s failed: %s", job.name, exc, exc_info=True)
