"""Refresh Scheduler - Imperative Shell.

Runs a refresh callback on a fixed interval on a background thread.
"""

import logging
import threading
from typing import Callable


logger = logging.getLogger(__name__)


class RefreshScheduler:
    """Calls refresh_fn every interval_seconds until stopped.

    A failing refresh is logged and the schedule keeps going.
    """

    def __init__(
        self,
        refresh_fn: Callable[[], object],
        interval_seconds: float = 60,
    ) -> None:
        """Initialize scheduler.

        Args:
            refresh_fn: Callback run on every tick
            interval_seconds: Seconds between ticks
        """
        if interval_seconds <= 0:
            raise ValueError(f"interval_seconds must be positive, got {interval_seconds}")
        self.refresh_fn = refresh_fn
        self.interval_seconds = interval_seconds
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start ticking on a daemon thread. Does nothing if already running."""
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._run,
            name="refresh-scheduler",
            daemon=True,
        )
        self._thread.start()
        logger.info("Refresh scheduler started (every %ss)", self.interval_seconds)

    def stop(self, timeout: float | None = 5) -> None:
        """Stop ticking and wait for the thread to exit."""
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        logger.info("Refresh scheduler stopped")

    def tick(self) -> None:
        """Run the callback once, logging any failure."""
        try:
            self.refresh_fn()
        except Exception:
            logger.exception("Scheduled refresh failed")

    def _run(self) -> None:
        while not self._stop.wait(self.interval_seconds):
            self.tick()
