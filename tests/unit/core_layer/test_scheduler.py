"""
Unit Tests for Clock and TaskScheduler

Periodic jobs run on independent intervals measured on a ManualClock; a
failing job does not stop the others.
"""

import asyncio

import pytest

from layercache.core.scheduling.clock import Clock, ManualClock, SystemClock
from layercache.core.scheduling.scheduler import TaskScheduler


@pytest.mark.unit
class TestClocks:
    def test_manual_clock_advances(self):
        clock = ManualClock(start=10.0)
        assert clock.now() == 10.0
        assert clock.advance(2.5) == 12.5
        assert clock.now() == 12.5

    def test_manual_clock_rejects_negative(self):
        with pytest.raises(ValueError):
            ManualClock().advance(-1)

    def test_system_clock_is_monotonic(self):
        clock = SystemClock()
        first = clock.now()
        assert clock.now() >= first

    def test_clocks_satisfy_protocol(self):
        assert isinstance(ManualClock(), Clock)
        assert isinstance(SystemClock(), Clock)


@pytest.mark.unit
class TestTaskScheduler:
    async def test_job_not_run_before_interval(self, manual_clock):
        scheduler = TaskScheduler(clock=manual_clock)
        calls = []

        async def job():
            calls.append(manual_clock.now())

        scheduler.add_job("sweep", 60, job)
        manual_clock.advance(59)
        assert await scheduler.run_pending() == []
        assert calls == []

    async def test_independent_intervals(self, manual_clock):
        scheduler = TaskScheduler(clock=manual_clock)
        counts = {"sweep": 0, "warmup": 0, "stats": 0}

        def counter(name):
            async def job():
                counts[name] += 1

            return job

        scheduler.add_job("sweep", 60, counter("sweep"))
        scheduler.add_job("warmup", 30, counter("warmup"))
        scheduler.add_job("stats", 300, counter("stats"))

        for _ in range(10):
            manual_clock.advance(30)
            await scheduler.run_pending()

        assert counts == {"sweep": 5, "warmup": 10, "stats": 1}

    async def test_failing_job_does_not_stop_others(self, manual_clock):
        scheduler = TaskScheduler(clock=manual_clock)
        ran = []

        async def broken():
            raise RuntimeError("nope")

        async def healthy():
            ran.append(True)

        scheduler.add_job("broken", 10, broken)
        scheduler.add_job("healthy", 10, healthy)

        manual_clock.advance(10)
        assert await scheduler.run_pending() == ["broken", "healthy"]
        assert ran == [True]

        job = scheduler.get_job("broken")
        assert job.failures == 1
        assert job.last_error == "nope"

        manual_clock.advance(10)
        await scheduler.run_pending()
        assert scheduler.get_job("broken").failures == 2
        assert len(ran) == 2

    async def test_behind_schedule_runs_once(self, manual_clock):
        scheduler = TaskScheduler(clock=manual_clock)
        calls = []

        async def job():
            calls.append(1)

        scheduler.add_job("sweep", 10, job)
        manual_clock.advance(100)
        await scheduler.run_pending()
        await scheduler.run_pending()
        assert calls == [1]

    def test_duplicate_and_invalid_jobs_rejected(self, manual_clock):
        scheduler = TaskScheduler(clock=manual_clock)

        async def job():
            return None

        scheduler.add_job("a", 1, job)
        with pytest.raises(ValueError):
            scheduler.add_job("a", 1, job)
        with pytest.raises(ValueError):
            scheduler.add_job("b", 0, job)

        assert scheduler.remove_job("a") is True
        assert scheduler.remove_job("a") is False

    async def test_start_and_stop_loop(self):
        scheduler = TaskScheduler(tick_interval=0.01)
        ran = asyncio.Event()

        async def job():
            ran.set()

        scheduler.add_job("tick", 0.01, job)
        scheduler.start()
        assert scheduler.running

        await asyncio.wait_for(ran.wait(), timeout=2.0)
        await scheduler.stop()
        assert not scheduler.running
