"""Pipeline statistics.

In-memory counters for the buffer/flush pipeline. No framework
dependencies; safe to update from request handlers, the scheduler and
delivery threads at once.
"""

from __future__ import annotations

import threading
import time


class PipelineStats:
    """Thread-safe counters describing what the pipeline has done."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._started_at = time.time()

        # Counters
        self.records_enqueued: int = 0
        self.records_sent: int = 0
        self.records_requeued: int = 0
        self.records_dropped: int = 0
        self.batches_sent: int = 0
        self.batches_failed: int = 0
        self.flushes_skipped: int = 0
        self.buffer_depth: int = 0
        self.buffer_max_depth: int = 0
        self.last_flush_ms: int = 0

    def record_enqueued(self, depth: int) -> None:
        with self._lock:
            self.records_enqueued += 1
            self._update_depth(depth)

    def record_sent(self, count: int) -> None:
        with self._lock:
            self.batches_sent += 1
            self.records_sent += count
            self.last_flush_ms = int(time.time() * 1000)

    def record_failed(self, count: int, dropped: int) -> None:
        """Record a failed batch; ``dropped`` of its records were evicted."""
        with self._lock:
            self.batches_failed += 1
            self.records_requeued += count - dropped
            self.records_dropped += dropped

    def record_skipped(self) -> None:
        with self._lock:
            self.flushes_skipped += 1

    def update_buffer_depth(self, depth: int) -> None:
        with self._lock:
            self._update_depth(depth)

    def _update_depth(self, depth: int) -> None:
        """Caller holds lock."""
        self.buffer_depth = depth
        if depth > self.buffer_max_depth:
            self.buffer_max_depth = depth

    def snapshot(self) -> dict:
        """Return a JSON-serializable snapshot of all counters."""
        with self._lock:
            return {
                "uptime_seconds": round(time.time() - self._started_at, 1),
                "records_enqueued": self.records_enqueued,
                "records_sent": self.records_sent,
                "records_requeued": self.records_requeued,
                "records_dropped": self.records_dropped,
                "batches_sent": self.batches_sent,
                "batches_failed": self.batches_failed,
                "flushes_skipped": self.flushes_skipped,
                "buffer_depth": self.buffer_depth,
                "buffer_max_depth_ever": self.buffer_max_depth,
                "last_flush_ms": self.last_flush_ms,
            }
