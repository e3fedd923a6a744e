"""requestlens connector, the object an instrumented service holds.

This is the only module that knows about concrete implementations. It
wires the buffer, coordinator, deliverer and scheduler together from a
ConnectorConfig and exposes the capture entry points.
"""

from __future__ import annotations

from typing import Any, TYPE_CHECKING

import structlog

from requestlens.api.middleware import Middleware, capture_middleware
from requestlens.core.coordinator import FlushCoordinator, FlushOutcome
from requestlens.core.models import RequestRecord
from requestlens.core.scheduler import FlushScheduler
from requestlens.delivery.http_deliverer import HttpDeliverer, collector_endpoint
from requestlens.logs import developer_logger

if TYPE_CHECKING:
    from requestlens.config import ConnectorConfig
    from requestlens.core.coordinator import Spawner
    from requestlens.delivery.base import Deliverer

log = structlog.get_logger()


class Connector:
    """Captures request records and ships them to the collector in batches.

    Build one per process at startup and share it with the capture hook.
    ``start()`` begins timer-driven flushing; size-driven flushing works as
    soon as the connector exists.
    """

    def __init__(
        self,
        config: ConnectorConfig,
        deliverer: Deliverer | None = None,
        spawn: Spawner | None = None,
    ) -> None:
        config.validate()
        self.config = config

        self._owns_deliverer = deliverer is None
        if deliverer is None:
            deliverer = HttpDeliverer(
                base_url=config.base_url,
                api_key=config.api_key,
                developer_mode=config.developer_mode,
                timeout=config.timeout_seconds,
            )
        self._deliverer = deliverer

        self.coordinator = FlushCoordinator(
            deliverer=deliverer,
            flush_size=config.flush_size,
            max_buffer_size=config.max_buffer_size,
            spawn=spawn,
            developer_mode=config.developer_mode,
        )
        self.scheduler = FlushScheduler(self.coordinator, config.flush_interval_ms)

    @property
    def service_name(self) -> str:
        return self.config.service_name

    def start(self) -> None:
        if self.config.developer_mode:
            developer_logger().info(
                "developer_mode_on",
                service=self.service_name,
                endpoint=collector_endpoint(self.config.base_url, True),
            )
        self.scheduler.start()

    def stop(self, final_flush: bool = False) -> None:
        """Stop timer flushing and release the HTTP client.

        Records still buffered are lost unless ``final_flush`` is set, in
        which case one last delivery is attempted synchronously.
        """
        self.scheduler.stop()
        if final_flush:
            self.flush()
        if self._owns_deliverer:
            self._deliverer.close()

    def record(self, record: RequestRecord) -> None:
        """Buffer a prebuilt record."""
        self.coordinator.enqueue(record)

    def enqueue(
        self,
        service_name: str,
        timestamp: int,
        method: str,
        url: str,
        status_code: int,
        duration_ms: float,
        client_addr: str | None,
        user_agent: str,
        query: dict[str, str] | None = None,
        route_params: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
        body: Any = None,
    ) -> None:
        """Capture entry point for hooks that do their own request parsing.

        Never raises; a record that cannot be built is logged and dropped.
        """
        try:
            record = RequestRecord(
                service_name=service_name,
                timestamp=int(timestamp),
                method=method,
                url=url,
                status_code=int(status_code),
                duration=float(duration_ms),
                ip=client_addr or "unknown",
                user_agent=user_agent or "",
                query=dict(query or {}),
                params=dict(route_params or {}),
                headers=dict(headers or {}),
                body=body,
            )
            self.coordinator.enqueue(record)
        except Exception:
            log.error("enqueue_failed", service=service_name, url=url,
                      exc_info=True)

    def watcher(self) -> Middleware:
        """Middleware function for ``app.middleware("http")``."""
        return capture_middleware(self)

    def flush(self) -> FlushOutcome:
        return self.coordinator.try_flush()

    def stats(self) -> dict:
        snapshot = self.coordinator.stats.snapshot()
        snapshot["buffer_depth"] = len(self.coordinator.buffer)
        snapshot["flush_in_progress"] = self.coordinator.flush_in_progress
        return snapshot
