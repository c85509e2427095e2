# backend/app/services/scrapers/session_pool.py
"""
Shared HTTP session for all scrapers.

One requests.Session (and therefore one connection pool and cookie jar) is
reused across scraper calls. A background reaper thread closes it after it
has been idle for `idle_timeout` seconds; the next get() transparently
creates a fresh one.

Thread Safety:
    All state changes happen under a lock. Scrapers of one sync run call
    get() from several worker threads at once.

Usage:
    from app.services.scrapers.session_pool import get_session_pool

    session = get_session_pool().get()
    response = session.get(url, timeout=30)
"""

import logging
import threading
import time
from collections.abc import Callable
from functools import lru_cache

import requests

from app.config import settings

logger = logging.getLogger(__name__)


class SessionPool:
    """
    Lazily created, idle-closed requests.Session singleton.

    Args:
        idle_timeout: Seconds without get() before the session is closed
        check_interval: Seconds between reaper checks
        session_factory: Builds a new session (overridable in tests)
        clock: Monotonic time source (overridable in tests)
    """

    def __init__(
            self,
            idle_timeout: float,
            check_interval: float,
            session_factory: Callable[[], requests.Session] | None = None,
            clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.idle_timeout = idle_timeout
        self.check_interval = check_interval
        self._session_factory = session_factory or self._default_session
        self._clock = clock

        self._lock = threading.Lock()
        self._session: requests.Session | None = None
        self._last_used: float = 0.0
        self._stop = threading.Event()
        self._reaper: threading.Thread | None = None

    @staticmethod
    def _default_session() -> requests.Session:
        session = requests.Session()
        session.headers.update({
            "User-Agent": settings.scraper_user_agent,
            "Accept-Language": "en-US,en;q=0.9,tr;q=0.8",
        })
        return session

    @property
    def is_open(self) -> bool:
        with self._lock:
            return self._session is not None

    def get(self) -> requests.Session:
        """Return the shared session, creating it (and the reaper) on demand."""
        with self._lock:
            if self._session is None:
                self._session = self._session_factory()
                logger.debug("Opened shared scraper session")
            self._last_used = self._clock()
            self._ensure_reaper()
            return self._session

    def close_if_idle(self) -> bool:
        """Close the session when idle long enough. Returns True if it was closed."""
        with self._lock:
            if self._session is None:
                return False
            idle_for = self._clock() - self._last_used
            if idle_for < self.idle_timeout:
                return False
            self._close_locked()
            logger.info(f"Closed scraper session after {idle_for:.0f}s idle")
            return True

    def close(self) -> None:
        with self._lock:
            self._close_locked()

    def cleanup(self) -> None:
        """Close the session and stop the reaper. Called on application shutdown."""
        self._stop.set()
        self.close()
        reaper = self._reaper
        if reaper is not None and reaper.is_alive() and reaper is not threading.current_thread():
            reaper.join(timeout=self.check_interval + 1)
        self._reaper = None
        self._stop = threading.Event()

    def _close_locked(self) -> None:
        if self._session is not None:
            self._session.close()
            self._session = None

    def _ensure_reaper(self) -> None:
        if self._reaper is not None and self._reaper.is_alive():
            return
        self._reaper = threading.Thread(
            target=self._reap_loop,
            name="scraper-session-reaper",
            daemon=True,
        )
        self._reaper.start()

    def _reap_loop(self) -> None:
        while not self._stop.wait(self.check_interval):
            self.close_if_idle()


@lru_cache(maxsize=1)
def get_session_pool() -> SessionPool:
    """Process-wide pool shared by every scraper."""
    return SessionPool(
        idle_timeout=settings.session_idle_timeout_seconds,
        check_interval=settings.session_check_interval_seconds,
    )
