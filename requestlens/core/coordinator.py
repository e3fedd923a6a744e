"""Flush coordinator: decides when buffered records go to the collector.

Two triggers feed the same flush path: the buffer reaching ``flush_size``
on enqueue, and the scheduler's timer. At most one flush runs at a time;
a trigger that finds one in progress is dropped and the next trigger picks
up whatever has accumulated. A failed batch is put back in front of the
buffer, trimmed oldest-first to ``max_buffer_size``.

Depends on the Deliverer protocol, not a concrete transport.
"""

from __future__ import annotations

import enum
import threading
from typing import Callable, TYPE_CHECKING

import structlog

from requestlens.core.buffer import RecordBuffer
from requestlens.core.stats import PipelineStats
from requestlens.logs import developer_logger

if TYPE_CHECKING:
    from requestlens.core.models import RequestRecord
    from requestlens.delivery.base import Deliverer

log = structlog.get_logger()

Spawner = Callable[[Callable[[], object]], None]


class FlushOutcome(enum.Enum):
    SKIPPED_BUSY = "skipped_busy"
    SKIPPED_EMPTY = "skipped_empty"
    DELIVERED = "delivered"
    FAILED = "failed"


def spawn_thread(fn: Callable[[], object]) -> None:
    """Run ``fn`` on a short-lived daemon thread."""
    threading.Thread(target=fn, name="requestlens-flush", daemon=True).start()


class FlushCoordinator:
    """Owns the buffer and the deliverer; runs one flush at a time."""

    def __init__(
        self,
        deliverer: Deliverer,
        flush_size: int = 50,
        max_buffer_size: int = 1000,
        *,
        buffer: RecordBuffer | None = None,
        stats: PipelineStats | None = None,
        spawn: Spawner | None = None,
        developer_mode: bool = False,
    ) -> None:
        self._deliverer = deliverer
        self._flush_size = flush_size
        self._max_buffer_size = max_buffer_size
        self._buffer = buffer if buffer is not None else RecordBuffer()
        self.stats = stats if stats is not None else PipelineStats()
        self._spawn = spawn or spawn_thread
        self._dev_log = developer_logger() if developer_mode else None
        # Held for the whole flush attempt; acquired without blocking.
        self._flushing = threading.Lock()

    @property
    def buffer(self) -> RecordBuffer:
        return self._buffer

    @property
    def flush_in_progress(self) -> bool:
        return self._flushing.locked()

    def enqueue(self, record: RequestRecord) -> None:
        """Buffer a record; kick off a background flush at the threshold."""
        depth = self._buffer.enqueue(record)
        self.stats.record_enqueued(depth)

        if depth < self._flush_size or self._flushing.locked():
            return
        try:
            self._spawn(self.try_flush)
        except Exception:
            log.error("flush_spawn_failed", depth=depth, exc_info=True)

    def try_flush(self) -> FlushOutcome:
        """Drain the buffer and deliver it, unless a flush is already running."""
        if not self._flushing.acquire(blocking=False):
            self.stats.record_skipped()
            return FlushOutcome.SKIPPED_BUSY

        try:
            batch = self._buffer.drain_all()
            if not batch:
                return FlushOutcome.SKIPPED_EMPTY
            return self._deliver(batch)
        finally:
            self._flushing.release()

    def _deliver(self, batch: list[RequestRecord]) -> FlushOutcome:
        """Send one batch. Caller holds the flush lock."""
        if self._dev_log is not None:
            self._dev_log.info("flush_sending", count=len(batch))

        try:
            delivered = self._deliverer.send(batch)
        except Exception:
            log.error("deliverer_raised", count=len(batch), exc_info=True)
            delivered = False

        if delivered:
            self.stats.record_sent(len(batch))
            self.stats.update_buffer_depth(len(self._buffer))
            if self._dev_log is not None:
                self._dev_log.info("flush_delivered", count=len(batch))
            return FlushOutcome.DELIVERED

        dropped = self._buffer.requeue(batch, self._max_buffer_size)
        self.stats.record_failed(len(batch), dropped)
        self.stats.update_buffer_depth(len(self._buffer))
        if dropped:
            log.warning("buffer_overflow", dropped=dropped,
                        max_buffer_size=self._max_buffer_size)
        log.warning("flush_failed", count=len(batch),
                    requeued=len(batch) - dropped)
        return FlushOutcome.FAILED
