"""Health check and monitoring endpoints for the development collector."""

from __future__ import annotations

from fastapi import APIRouter

router = APIRouter()


@router.get("/health")
async def health() -> dict:
    """Basic health check."""
    from requestlens.main import get_store

    snapshot = get_store().snapshot()
    return {
        "status": "ok",
        "version": "0.1.0",
        "uptime_seconds": snapshot["uptime_seconds"],
        "records_held": snapshot["records_held"],
    }


@router.get("/stats")
async def stats() -> dict:
    """Counters for everything the collector has received.

    ``services`` maps each reporting service name to its record count.
    """
    from requestlens.main import get_store

    return get_store().snapshot()
