# tests/services/test_scheduler.py
"""
Tests for the in-process scheduler.

Jobs are run synchronously through Job.run(); Scheduler.tick() is driven
with explicit timestamps, the background loop is never started.
"""

import threading
import time
from datetime import datetime, timedelta, timezone

import pytest

from app.services.scheduler import Job, Scheduler, build_scheduler

START = datetime(2026, 10, 17, 12, 0, tzinfo=timezone.utc)


class RecordingJob(Job):
    """Job whose run() only records the call (tick() runs jobs on threads)."""

    def __init__(self, name: str) -> None:
        super().__init__(name, lambda db: None, session_factory=lambda: None)
        self.ran = threading.Event()

    def run(self) -> bool:
        self.ran.set()
        return True


class SlowJob(RecordingJob):
    """Job that is still writing for a moment after it starts."""

    def __init__(self, name: str, seconds: float = 0.2) -> None:
        super().__init__(name)
        self.seconds = seconds
        self.finished = threading.Event()

    def run(self) -> bool:
        self.ran.set()
        time.sleep(self.seconds)
        self.finished.set()
        return True


@pytest.fixture
def scheduler() -> Scheduler:
    return Scheduler(
        scrape_job=RecordingJob("scrape"),
        history_job=RecordingJob("history"),
        interval_minutes=15,
        snapshot_at=(23, 59),
        clock=lambda: START,
    )


# =============================================================================
# JOB
# =============================================================================

class TestJob:

    def test_runs_with_session(self, session_factory):
        seen = []
        job = Job("probe", lambda db: seen.append(db), session_factory=session_factory)

        assert job.run() is True
        assert len(seen) == 1
        assert not job.running

    def test_failure_is_contained(self, session_factory):
        def boom(db):
            raise RuntimeError("scrape exploded")

        job = Job("boom", boom, session_factory=session_factory)

        assert job.run() is True
        assert not job.running

    def test_overlapping_run_skipped(self, session_factory):
        started = threading.Event()
        release = threading.Event()

        def slow(db):
            started.set()
            release.wait(timeout=5)

        job = Job("slow", slow, session_factory=session_factory)
        worker = threading.Thread(target=job.run)
        worker.start()
        try:
            assert started.wait(timeout=5)
            assert job.running
            assert job.run() is False
        finally:
            release.set()
            worker.join(timeout=5)

        assert not job.running


# =============================================================================
# SCHEDULER
# =============================================================================

class TestScheduler:

    def test_first_scrape_one_interval_after_start(self, scheduler):
        assert scheduler.next_scrape_at == START + timedelta(minutes=15)

    def test_history_scheduled_today(self, scheduler):
        assert scheduler.next_history_at == START.replace(hour=23, minute=59)

    def test_history_rolls_to_tomorrow_when_past(self):
        late = START.replace(hour=23, minute=59, second=30)
        scheduler = Scheduler(
            RecordingJob("scrape"), RecordingJob("history"),
            interval_minutes=15, snapshot_at=(23, 59), clock=lambda: late,
        )

        assert scheduler.next_history_at == START.replace(hour=23, minute=59) + timedelta(days=1)

    def test_nothing_due(self, scheduler):
        assert scheduler.tick(START + timedelta(minutes=5)) == []

    def test_scrape_due(self, scheduler):
        now = START + timedelta(minutes=15)

        assert scheduler.tick(now) == ["scrape"]
        assert scheduler.scrape_job.ran.wait(timeout=5)
        assert scheduler.next_scrape_at == now + timedelta(minutes=15)

    def test_both_due(self, scheduler):
        now = START.replace(hour=23, minute=59)

        assert scheduler.tick(now) == ["scrape", "history"]
        assert scheduler.history_job.ran.wait(timeout=5)
        assert scheduler.next_history_at == now + timedelta(days=1)

    def test_stop_without_start(self, scheduler):
        scheduler.stop()

        assert not scheduler.is_running

    def test_stop_waits_for_running_job(self):
        job = SlowJob("scrape")
        scheduler = Scheduler(
            job, RecordingJob("history"),
            interval_minutes=15, snapshot_at=(23, 59), clock=lambda: START,
        )
        scheduler.tick(START + timedelta(minutes=15))
        assert job.ran.wait(timeout=5)

        scheduler.stop(timeout=5)

        assert job.finished.is_set()

    def test_build_scheduler(self, rate_provider):
        scheduler = build_scheduler(rate_provider)

        assert scheduler.scrape_job.name == "scrape"
        assert scheduler.history_job.name == "history"
        assert not scheduler.is_running
