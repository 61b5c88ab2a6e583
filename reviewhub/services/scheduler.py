"""
Background Jobs

In-process periodic jobs driven by the FastAPI lifespan:

- view-count-flush: drains Redis view counters into reviews.view_count
  every settings.view_count_flush_interval_seconds.
- ranking-refresh: rebuilds the hot/cold snapshots once at startup, then
  at every local midnight (or every ranking_refresh_interval_seconds if
  that is shorter).

Job functions are synchronous (they use the sync SQLAlchemy session and
Redis client), so each run happens in a worker thread via
asyncio.to_thread and never blocks the event loop. A failing run is
logged and the job keeps its schedule.

Only one application instance should run the scheduler; there is no
cross-instance coordination.
"""

import asyncio
import logging
from collections.abc import Callable
from contextlib import suppress
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from reviewhub.config import Settings
from reviewhub.services.ranking import refresh_rankings
from reviewhub.services.view_counts import flush_view_counts

logger = logging.getLogger(__name__)


def seconds_until_midnight(now: datetime | None = None) -> float:
    """Seconds from now until the next local midnight."""
    now = now or datetime.now().astimezone()
    tomorrow = (now + timedelta(days=1)).replace(hour=0, minute=0, second=0, microsecond=0)
    return (tomorrow - now).total_seconds()


class PeriodicJob:
    """
    Run `func` repeatedly on an asyncio task.

    Args:
        name: Job name used in logs
        func: Synchronous callable, run in a worker thread
        interval: Seconds between runs, or a callable returning them
        first_delay: Seconds before the first run
    """

    def __init__(
        self,
        name: str,
        func: Callable[[], object],
        interval: float | Callable[[], float],
        first_delay: float = 0.0,
    ):
        self.name = name
        self.func = func
        self.interval = interval
        self.first_delay = first_delay
        self.runs = 0
        self.failures = 0
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def next_delay(self) -> float:
        return self.interval() if callable(self.interval) else float(self.interval)

    async def run_once(self) -> bool:
        """Run the job once. Returns False if it raised."""
        self.runs += 1
        try:
            await asyncio.to_thread(self.func)
        except Exception:
            self.failures += 1
            logger.exception(f"Job {self.name} failed")
            return False
        return True

    async def _loop(self) -> None:
        delay = self.first_delay
        while True:
            await asyncio.sleep(delay)
            await self.run_once()
            delay = self.next_delay()
            logger.debug(f"Job {self.name} next run in {delay:.0f}s")

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._loop(), name=f"job:{self.name}")
        logger.info(f"Job {self.name} started")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info(f"Job {self.name} stopped")


class Scheduler:
    def __init__(self, jobs: list[PeriodicJob] | None = None):
        self.jobs: list[PeriodicJob] = list(jobs or [])

    def add(self, job: PeriodicJob) -> PeriodicJob:
        self.jobs.append(job)
        return job

    def start(self) -> None:
        for job in self.jobs:
            job.start()

    async def stop(self) -> None:
        for job in self.jobs:
            await job.stop()


def build_scheduler(settings: Settings, session_factory: Callable[[], Session]) -> Scheduler:
    """Register the view-count flush and ranking refresh jobs."""

    def flush() -> None:
        with session_factory() as db:
            flush_view_counts(db, settings.view_count_flush_batch_size)

    def rank() -> None:
        with session_factory() as db:
            refresh_rankings(db)

    def until_next_ranking() -> float:
        return min(seconds_until_midnight(), settings.ranking_refresh_interval_seconds)

    scheduler = Scheduler()
    scheduler.add(
        PeriodicJob(
            "view-count-flush",
            flush,
            interval=settings.view_count_flush_interval_seconds,
            first_delay=settings.view_count_flush_interval_seconds,
        )
    )
    scheduler.add(PeriodicJob("ranking-refresh", rank, interval=until_next_ranking))
    return scheduler
