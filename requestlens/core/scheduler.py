"""Timer-driven flushing, independent of request volume."""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from requestlens.core.coordinator import FlushCoordinator

log = structlog.get_logger()


class FlushScheduler:
    """Background thread that asks the coordinator to flush every interval."""

    def __init__(self, coordinator: FlushCoordinator, flush_interval_ms: int = 5000) -> None:
        self._coordinator = coordinator
        self._interval = flush_interval_ms / 1000
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self.ticks = 0

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._run, name="requestlens-scheduler", daemon=True,
        )
        self._thread.start()

    def stop(self, timeout: float | None = 5.0) -> None:
        """Stop the loop. An in-flight flush is allowed to finish."""
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def _run(self) -> None:
        while not self._stop.wait(self._interval):
            self.ticks += 1
            try:
                self._coordinator.try_flush()
            except Exception:
                log.error("scheduled_flush_failed", exc_info=True)
