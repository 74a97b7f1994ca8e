"""Periodic background runner for catalog synchronisation."""

from __future__ import annotations

import logging
import threading
from typing import Optional

from libassist.sync.catalog import CatalogSync

LOGGER = logging.getLogger(__name__)

DEFAULT_INTERVAL = 6 * 60 * 60.0


class SyncScheduler:
    """Runs ``CatalogSync.run_sync`` on a daemon thread at a fixed interval.

    Each started loop owns its own stop event; a loop that outlives a
    timed-out ``stop()`` exits after its current run.
    """

    def __init__(self, sync: CatalogSync, interval: float = DEFAULT_INTERVAL) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.sync = sync
        self.interval = interval
        self._stop: Optional[threading.Event] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self, *, run_immediately: bool = True) -> None:
        if self.is_running:
            return
        self._stop = threading.Event()
        self._thread = threading.Thread(
            target=self._loop,
            args=(self._stop, run_immediately),
            name="catalog-sync",
            daemon=True,
        )
        self._thread.start()
        LOGGER.info("Sync scheduler started (interval=%ss)", self.interval)

    def stop(self, timeout: Optional[float] = None) -> None:
        thread, stop = self._thread, self._stop
        if thread is None or stop is None:
            return
        stop.set()
        thread.join(timeout)
        self._thread = None
        self._stop = None
        if thread.is_alive():
            LOGGER.warning("Sync scheduler stopping; the run in progress will finish first")
        else:
            LOGGER.info("Sync scheduler stopped")

    def _loop(self, stop: threading.Event, run_immediately: bool) -> None:
        if run_immediately and not stop.is_set():
            self._run_once()
        while not stop.wait(self.interval):
            self._run_once()

    def _run_once(self) -> None:
        try:
            self.sync.run_sync()
        except Exception:
            LOGGER.exception("Scheduled catalog sync failed")
