"""Shared test fixtures."""

from __future__ import annotations

import itertools
import threading

import pytest
from httpx import ASGITransport, AsyncClient

import requestlens.main as main_module
from requestlens.config import AppConfig, ConnectorConfig
from requestlens.core.models import RequestRecord
from requestlens.storage.memory_store import MemoryRecordStore


class RecordingDeliverer:
    """Deliverer double that remembers every batch.

    ``results`` is consumed one entry per send; once exhausted every send
    succeeds.
    """

    def __init__(self, results: list[bool] | None = None) -> None:
        self.batches: list[list[RequestRecord]] = []
        self._results = list(results or [])
        self._lock = threading.Lock()

    def send(self, batch: list[RequestRecord]) -> bool:
        with self._lock:
            self.batches.append(list(batch))
            return self._results.pop(0) if self._results else True


class BlockingDeliverer(RecordingDeliverer):
    """Holds each send open until the test releases it."""

    def __init__(self, results: list[bool] | None = None) -> None:
        super().__init__(results)
        self.started = threading.Event()
        self.release = threading.Event()

    def send(self, batch: list[RequestRecord]) -> bool:
        self.started.set()
        assert self.release.wait(5), "deliverer was never released"
        return super().send(batch)


def inline_spawn(fn) -> None:
    """Run size-triggered flushes on the calling thread."""
    fn()


@pytest.fixture
def make_record():
    counter = itertools.count(1)

    def _make(label: str | None = None, **overrides) -> RequestRecord:
        n = next(counter)
        fields = {
            "service_name": "orders-api",
            "timestamp": 1_700_000_000_000 + n,
            "method": "GET",
            "url": f"http://test/items/{label or n}",
            "status_code": 200,
            "duration": 1.5,
            "ip": "10.0.0.1",
            "user_agent": "pytest",
        }
        fields.update(overrides)
        return RequestRecord(**fields)

    return _make


@pytest.fixture
def deliverer():
    return RecordingDeliverer()


@pytest.fixture
def connector_config():
    return ConnectorConfig(
        service_name="orders-api",
        base_url="http://collector.local",
        api_key="secret",
        flush_interval_ms=60_000,
        flush_size=100,
    )


@pytest.fixture
def collector():
    """Initialize collector singletons, as the lifespan would."""
    config = AppConfig()
    config.logging.level = "warning"
    store = MemoryRecordStore(max_records=config.collector.max_records)

    # Patch module-level singletons
    main_module._config = config
    main_module._store = store

    yield config, store

    # Cleanup
    main_module._config = None
    main_module._store = None


@pytest.fixture
async def client(collector):
    from requestlens.main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
