"""
Tests for the Background Job Scheduler

PeriodicJob runs a synchronous function in a worker thread on a fixed or
computed interval; build_scheduler() wires the view-count flush and the
ranking refresh.
"""

import asyncio
import json
from contextlib import nullcontext
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.orm import Session

from reviewhub.config import get_settings
from reviewhub.services.cache import view_count_key
from reviewhub.services.scheduler import (
    PeriodicJob,
    Scheduler,
    build_scheduler,
    seconds_until_midnight,
)


class TestSecondsUntilMidnight:

    def test_one_hour_before(self):
        now = datetime(2024, 5, 10, 23, 0, tzinfo=timezone(timedelta(hours=9)))
        assert seconds_until_midnight(now) == 3600

    def test_at_midnight_waits_a_full_day(self):
        now = datetime(2024, 5, 10, 0, 0, tzinfo=timezone.utc)
        assert seconds_until_midnight(now) == 86400

    def test_month_end(self):
        now = datetime(2024, 1, 31, 12, 0, tzinfo=timezone.utc)
        assert seconds_until_midnight(now) == 12 * 3600


class TestPeriodicJob:

    @pytest.mark.asyncio
    async def test_run_once_success(self):
        calls = []
        job = PeriodicJob("record", lambda: calls.append(1), interval=60)

        assert await job.run_once() is True
        assert calls == [1]
        assert job.runs == 1
        assert job.failures == 0

    @pytest.mark.asyncio
    async def test_run_once_failure_is_contained(self):
        def boom():
            raise RuntimeError("boom")

        job = PeriodicJob("boom", boom, interval=60)

        assert await job.run_once() is False
        assert job.failures == 1

    def test_callable_interval(self):
        job = PeriodicJob("dynamic", lambda: None, interval=lambda: 42.0)
        assert job.next_delay() == 42.0

    @pytest.mark.asyncio
    async def test_loop_keeps_running_after_failure(self):
        outcomes = iter([RuntimeError("first run fails"), None, None, None, None])

        def flaky():
            outcome = next(outcomes, None)
            if outcome is not None:
                raise outcome

        job = PeriodicJob("flaky", flaky, interval=0.01)
        job.start()
        await asyncio.sleep(0.2)
        await job.stop()

        assert job.failures == 1
        assert job.runs >= 2
        assert job.running is False

    @pytest.mark.asyncio
    async def test_first_delay(self):
        calls = []
        job = PeriodicJob("later", lambda: calls.append(1), interval=60, first_delay=60)
        job.start()
        await asyncio.sleep(0.05)
        await job.stop()

        assert calls == []

    @pytest.mark.asyncio
    async def test_stop_without_start(self):
        job = PeriodicJob("idle", lambda: None, interval=60)
        await job.stop()
        assert job.running is False


class TestScheduler:

    @pytest.mark.asyncio
    async def test_start_and_stop_all_jobs(self):
        scheduler = Scheduler([
            PeriodicJob("a", lambda: None, interval=60, first_delay=60),
            PeriodicJob("b", lambda: None, interval=60, first_delay=60),
        ])

        scheduler.start()
        assert all(job.running for job in scheduler.jobs)

        await scheduler.stop()
        assert not any(job.running for job in scheduler.jobs)

    def test_build_scheduler_jobs(self, db_session: Session):
        settings = get_settings()

        scheduler = build_scheduler(settings, lambda: nullcontext(db_session))

        flush, rank = scheduler.jobs
        assert flush.name == "view-count-flush"
        assert flush.first_delay == settings.view_count_flush_interval_seconds
        assert flush.next_delay() == settings.view_count_flush_interval_seconds
        assert rank.name == "ranking-refresh"
        assert rank.first_delay == 0
        assert 0 < rank.next_delay() <= settings.ranking_refresh_interval_seconds

    def test_flush_job_drains_counters(
        self, db_session: Session, sample_review, fake_redis
    ):
        fake_redis.store[view_count_key(sample_review.id)] = "6"
        scheduler = build_scheduler(get_settings(), lambda: nullcontext(db_session))

        scheduler.jobs[0].func()

        db_session.refresh(sample_review)
        assert sample_review.view_count == 6
        assert view_count_key(sample_review.id) not in fake_redis.store

    def test_ranking_job_writes_snapshots(self, db_session: Session, fake_redis):
        scheduler = build_scheduler(get_settings(), lambda: nullcontext(db_session))

        scheduler.jobs[1].func()

        assert json.loads(fake_redis.store["hotReviews7Day"]) == []
        assert "coldReviews30Day" in fake_redis.store
