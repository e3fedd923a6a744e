"""Development collector endpoints.

Accepts the batches HttpDeliverer sends, so a connector in developer mode
can point its base URL straight at this app. ``/api/requests`` is served
too, for connectors running with the production path suffix.
"""

from __future__ import annotations

import json

import structlog
from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse

from requestlens.delivery.http_deliverer import API_KEY_HEADER

router = APIRouter()

log = structlog.get_logger()


@router.post("/requests")
@router.post("/api/requests")
async def receive_requests(request: Request) -> JSONResponse:
    """Receive a JSON array of request records."""
    from requestlens.main import get_config, get_store

    store = get_store()
    expected_key = get_config().collector.api_key
    if expected_key and request.headers.get(API_KEY_HEADER) != expected_key:
        store.record_rejected()
        return JSONResponse(content={"error": "invalid api key"}, status_code=401)

    try:
        body = json.loads(await request.body())
    except (json.JSONDecodeError, UnicodeDecodeError):
        store.record_rejected()
        return JSONResponse(content={"error": "invalid JSON"}, status_code=400)

    if not isinstance(body, list) or not all(isinstance(r, dict) for r in body):
        store.record_rejected()
        return JSONResponse(content={"error": "expected a JSON array of records"},
                            status_code=400)

    accepted = store.store_batch(body)
    log.info("batch_received", count=accepted)
    return JSONResponse(content={"accepted": accepted})


@router.get("/requests/recent")
async def get_recent_requests(
    limit: int = Query(default=100, ge=1, le=1000),
) -> JSONResponse:
    """Return the most recently received records, newest first."""
    from requestlens.main import get_store

    records = get_store().recent(limit)
    return JSONResponse(content={"requests": records, "total": len(records)})
