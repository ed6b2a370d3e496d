"""
Periodic Task Scheduler

Runs named async jobs on independent intervals (local sweep, stats report,
warmup drain).

Architecture:
    TaskScheduler
    ├── PeriodicJob("sweep", 60s)
    ├── PeriodicJob("stats", 300s)
    └── PeriodicJob("warmup", 30s)

    run_pending()  → runs every job whose next_run <= clock.now()
    start()/stop() → asyncio loop calling run_pending() every tick

Tests call run_pending() directly after advancing a ManualClock; production
code calls start() once and stop() on shutdown.
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from layercache.core.config.constants import Stage
from layercache.core.logging.logger import get_logger, log_stage
from layercache.core.scheduling.clock import Clock, SystemClock

logger = get_logger(__name__)

JobFunc = Callable[[], Awaitable[Any]]


@dataclass
class PeriodicJob:
    """A named job and its bookkeeping."""

    name: str
    interval: float
    func: JobFunc
    next_run: float
    runs: int = 0
    failures: int = 0
    last_error: str | None = None


class TaskScheduler:
    """
    Cooperative scheduler for periodic async jobs.

    A job that raises is logged and counted; other jobs and later runs of the
    same job are unaffected.
    """

    def __init__(self, clock: Clock | None = None, tick_interval: float = 1.0):
        self._clock = clock or SystemClock()
        self._tick_interval = tick_interval
        self._jobs: dict[str, PeriodicJob] = {}
        self._task: asyncio.Task | None = None
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def add_job(self, name: str, interval: float, func: JobFunc) -> PeriodicJob:
        """
        Register a periodic job. First run happens one interval from now.

        Raises:
            ValueError: If the name is taken or the interval is not positive
        """
        if interval <= 0:
            raise ValueError(f"Job interval must be positive, got {interval}")
        if name in self._jobs:
            raise ValueError(f"Job '{name}' already registered")

        job = PeriodicJob(
            name=name, interval=interval, func=func, next_run=self._clock.now() + interval
        )
        self._jobs[name] = job
        return job

    def remove_job(self, name: str) -> bool:
        return self._jobs.pop(name, None) is not None

    def get_job(self, name: str) -> PeriodicJob | None:
        return self._jobs.get(name)

    @property
    def jobs(self) -> list[PeriodicJob]:
        return list(self._jobs.values())

    async def run_pending(self) -> list[str]:
        """
        Run every job that is due.

        A job that fell several intervals behind runs once and is rescheduled
        one interval from now.

        Returns:
            Names of the jobs that ran (including ones that failed)
        """
        now = self._clock.now()
        ran: list[str] = []

        for job in list(self._jobs.values()):
            if job.next_run > now:
                continue

            ran.append(job.name)
            job.next_run = now + job.interval
            try:
                await job.func()
                job.runs += 1
            except asyncio.CancelledError:
                raise
            except Exception as e:
                job.failures += 1
                job.last_error = str(e)
                log_stage(
                    logger,
                    Stage.SCHEDULER,
                    "Periodic job failed",
                    level="error",
                    job=job.name,
                    error=str(e),
                    error_type=type(e).__name__,
                )

        return ran

    async def run_job(self, name: str) -> None:
        """Run a job immediately regardless of its schedule. Errors propagate."""
        job = self._jobs[name]
        await job.func()
        job.runs += 1

    async def _run_loop(self) -> None:
        log_stage(logger, Stage.SCHEDULER, "Scheduler loop started", jobs=list(self._jobs))
        while self._running:
            await self.run_pending()
            await asyncio.sleep(self._tick_interval)

    def start(self) -> None:
        """Start the background loop on the running event loop. Idempotent."""
        if self._task is not None and not self._task.done():
            return
        self._running = True
        self._task = asyncio.create_task(self._run_loop())

    async def stop(self) -> None:
        """Stop the background loop and wait for it to exit."""
        self._running = False
        if self._task is None:
            return

        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        log_stage(logger, Stage.SCHEDULER, "Scheduler loop stopped")
