# backend/app/services/scheduler.py
"""
In-process periodic jobs.

Two jobs run on a daemon thread started from the FastAPI lifespan:
    scrape   every settings.scrape_interval_minutes
    history  once a day at settings.history_snapshot_time (UTC)

Overlap:
    Each job carries a "running" flag. A job still busy when its next tick
    comes is skipped, not queued. Jobs run on their own threads so a slow
    scrape never delays the history snapshot; stop() waits for them.

Errors:
    A failing job is logged with its traceback and the scheduler keeps
    going; nothing propagates out of the scheduler thread.

Usage:
    scheduler = build_scheduler(rate_provider)
    scheduler.start()
    ...
    scheduler.stop()
"""

import logging
import threading
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from sqlalchemy.orm import Session

from app.config import settings
from app.database import SessionLocal
from app.services.currency.rates import RateProvider
from app.services.history import snapshot_histories
from app.services.market_sync import MarketSyncService
from app.utils.context import job_context

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Job:
    """
    A named unit of work with an overlap guard.

    Args:
        name: Used in logs and job correlation IDs
        func: Called with a fresh database session
        session_factory: Session constructor (SessionLocal by default)
    """

    def __init__(
            self,
            name: str,
            func: Callable[[Session], object],
            session_factory: Callable[[], Session] = SessionLocal,
    ) -> None:
        self.name = name
        self._func = func
        self._session_factory = session_factory
        self._lock = threading.Lock()
        self._running = False

    @property
    def running(self) -> bool:
        with self._lock:
            return self._running

    def run(self) -> bool:
        """
        Run once unless already running.

        Returns:
            False when the run was skipped because of an overlap
        """
        with self._lock:
            if self._running:
                logger.warning(f"Job '{self.name}' is still running, skipping this tick")
                return False
            self._running = True

        try:
            with job_context(self.name):
                logger.info(f"Job '{self.name}' started")
                db = self._session_factory()
                try:
                    outcome = self._func(db)
                finally:
                    db.close()
                logger.info(f"Job '{self.name}' finished: {outcome}")
        except Exception:
            logger.exception(f"Job '{self.name}' failed")
        finally:
            with self._lock:
                self._running = False
        return True


class Scheduler:
    """
    Args:
        scrape_job / history_job: Jobs to schedule
        interval_minutes: Scrape period (settings.scrape_interval_minutes)
        snapshot_at: (hour, minute) of the daily history job in UTC
        tick_seconds: How often the loop checks the clock
        clock: Returns the current aware UTC datetime
    """

    def __init__(
            self,
            scrape_job: Job,
            history_job: Job,
            interval_minutes: int | None = None,
            snapshot_at: tuple[int, int] | None = None,
            tick_seconds: float = 30.0,
            clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.scrape_job = scrape_job
        self.history_job = history_job
        self.interval = timedelta(minutes=interval_minutes or settings.scrape_interval_minutes)
        self.snapshot_at = snapshot_at or settings.history_snapshot_hour_minute
        self.tick_seconds = tick_seconds
        self._clock = clock

        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self._workers: list[threading.Thread] = []
        self._workers_lock = threading.Lock()

        now = self._clock()
        self.next_scrape_at = now + self.interval
        self.next_history_at = self._next_daily(now)

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.is_running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name="scheduler", daemon=True)
        self._thread.start()
        logger.info(
            f"Scheduler started: scrape every {self.interval}, "
            f"history daily at {self.snapshot_at[0]:02d}:{self.snapshot_at[1]:02d} UTC"
        )

    def stop(self, timeout: float = 5.0) -> None:
        """Stop the loop, then wait up to `timeout` seconds for each running job."""
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None

        with self._workers_lock:
            workers, self._workers = self._workers, []
        for worker in workers:
            worker.join(timeout=timeout)
            if worker.is_alive():
                logger.warning(f"Job thread {worker.name} still running after {timeout}s")
        logger.info("Scheduler stopped")

    def tick(self, now: datetime | None = None) -> list[str]:
        """
        Dispatch the jobs that are due.

        Returns:
            Names of the jobs dispatched
        """
        now = now or self._clock()
        due: list[Job] = []

        if now >= self.next_scrape_at:
            due.append(self.scrape_job)
            self.next_scrape_at = now + self.interval
        if now >= self.next_history_at:
            due.append(self.history_job)
            self.next_history_at = self._next_daily(now)

        for job in due:
            worker = threading.Thread(target=job.run, name=f"job-{job.name}", daemon=True)
            with self._workers_lock:
                self._workers = [w for w in self._workers if w.is_alive()]
                self._workers.append(worker)
            worker.start()
        return [job.name for job in due]

    def _loop(self) -> None:
        while not self._stop.wait(self.tick_seconds):
            self.tick()

    def _next_daily(self, now: datetime) -> datetime:
        hour, minute = self.snapshot_at
        candidate = now.replace(hour=hour, minute=minute, second=0, microsecond=0)
        if candidate <= now:
            candidate += timedelta(days=1)
        return candidate


def build_scheduler(rate_provider: RateProvider, sync: MarketSyncService | None = None) -> Scheduler:
    """Scheduler wired to the market sync and history snapshot."""
    sync = sync or MarketSyncService(rate_provider)
    return Scheduler(
        scrape_job=Job("scrape", lambda db: sync.fetch_market_data(db).status),
        history_job=Job("history", snapshot_histories),
    )
