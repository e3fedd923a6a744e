"""In-memory record buffer shared by request handlers and the flusher."""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from requestlens.core.models import RequestRecord


class RecordBuffer:
    """Thread-safe ordered buffer of pending records.

    Normal enqueues are never refused. Capacity is only enforced when a
    failed batch is put back, and then the oldest records go first.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._records: list[RequestRecord] = []

    def enqueue(self, record: RequestRecord) -> int:
        """Append a record and return the new size."""
        with self._lock:
            self._records.append(record)
            return len(self._records)

    def drain_all(self) -> list[RequestRecord]:
        """Remove and return everything currently buffered."""
        with self._lock:
            batch = self._records
            self._records = []
            return batch

    def requeue(self, batch: list[RequestRecord], max_capacity: int) -> int:
        """Put a failed batch back in front of newer records.

        Returns the number of records evicted to stay within
        ``max_capacity``.
        """
        with self._lock:
            merged = list(batch) + self._records
            overflow = max(len(merged) - max_capacity, 0)
            self._records = merged[overflow:]
            return overflow

    def snapshot(self) -> list[RequestRecord]:
        with self._lock:
            return list(self._records)

    @property
    def is_empty(self) -> bool:
        with self._lock:
            return not self._records

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
