"""In-memory record store for the development collector.

Keeps the most recent ``max_records`` wire records in a bounded deque.
Nothing is persisted.
"""

from __future__ import annotations

import threading
import time
from collections import deque


class MemoryRecordStore:
    """Thread-safe bounded store of received wire records."""

    def __init__(self, max_records: int = 10_000) -> None:
        self._lock = threading.Lock()
        self._records: deque[dict] = deque(maxlen=max_records)
        self._started_at = time.time()

        self.records_received: int = 0
        self.batches_received: int = 0
        self.batches_rejected: int = 0
        self._services: dict[str, int] = {}

    def store_batch(self, records: list[dict]) -> int:
        with self._lock:
            for record in records:
                self._records.append(record)
                service = str(record.get("serviceName", ""))
                self._services[service] = self._services.get(service, 0) + 1
            self.records_received += len(records)
            self.batches_received += 1
            return len(records)

    def record_rejected(self) -> None:
        with self._lock:
            self.batches_rejected += 1

    def recent(self, limit: int = 100) -> list[dict]:
        """Most recent records first."""
        with self._lock:
            items = list(self._records)
        items.reverse()
        return items[:limit]

    def snapshot(self) -> dict:
        with self._lock:
            return {
                "uptime_seconds": round(time.time() - self._started_at, 1),
                "records_received": self.records_received,
                "records_held": len(self._records),
                "batches_received": self.batches_received,
                "batches_rejected": self.batches_rejected,
                "services": dict(self._services),
            }
