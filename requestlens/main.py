"""requestlens development collector: main entry point.

A local stand-in for the remote collector. Point a connector in developer
mode at it:

    uvicorn requestlens.main:app --port 8000
    REQUESTLENS_BASE_URL=http://localhost:8000 REQUESTLENS_DEVELOPER_MODE=1 ...
"""

from __future__ import annotations

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from requestlens.api.collector import router as collector_router
from requestlens.api.monitoring import router as monitoring_router
from requestlens.config import AppConfig, load_config
from requestlens.logs import setup_logging
from requestlens.storage.memory_store import MemoryRecordStore

log = structlog.get_logger()

# Module-level singletons (set during startup)
_store: MemoryRecordStore | None = None
_config: AppConfig | None = None


def get_store() -> MemoryRecordStore:
    assert _store is not None, "Collector not initialized"
    return _store


def get_config() -> AppConfig:
    assert _config is not None, "Collector not initialized"
    return _config


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown."""
    global _store, _config

    _config = load_config()
    setup_logging(_config.logging)

    _store = MemoryRecordStore(max_records=_config.collector.max_records)

    log.info("collector_started",
             max_records=_config.collector.max_records,
             auth=bool(_config.collector.api_key))

    yield

    log.info("collector_stopped", **_store.snapshot())


app = FastAPI(
    title="requestlens collector",
    description="Development collector for request telemetry",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(collector_router)
app.include_router(monitoring_router)
