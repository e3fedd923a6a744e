"""Request capture middleware.

This is the thin FastAPI/Starlette adapter. It times the downstream
handler, converts the request/response pair into a RequestRecord and hands
it to the connector. Nothing here waits on the collector, and a failure to
capture never reaches the response.
"""

from __future__ import annotations

import json
import time
from typing import Any, Awaitable, Callable, Iterable, TYPE_CHECKING

import structlog
from fastapi import Request, Response

from requestlens.core.models import RequestRecord

if TYPE_CHECKING:
    from requestlens.connector import Connector

log = structlog.get_logger()

CallNext = Callable[[Request], Awaitable[Response]]
Middleware = Callable[[Request, CallNext], Awaitable[Response]]


def _reject_constant(name: str) -> Any:
    raise ValueError(f"non-standard JSON constant {name}")


def parse_body(raw: bytes | None) -> Any:
    """Parsed JSON when possible, raw text otherwise, None when empty.

    NaN and Infinity are not JSON; bodies using them are kept as text.
    """
    if not raw:
        return None
    text = raw.decode("utf-8", errors="replace")
    if not text.strip():
        return None
    try:
        return json.loads(text, parse_constant=_reject_constant)
    except ValueError:
        return text


def _join_values(pairs: Iterable[tuple[str, str]]) -> dict[str, str]:
    """Collapse repeated keys into one comma-joined value, keeping order."""
    merged: dict[str, list[str]] = {}
    for key, value in pairs:
        merged.setdefault(key, []).append(value)
    return {key: ",".join(values) for key, values in merged.items()}


def record_from_request(
    service_name: str,
    request: Request,
    status_code: int,
    duration_ms: float,
    body: bytes | None = None,
) -> RequestRecord:
    """Build a record from a request whose handler has completed."""
    url = request.url
    return RequestRecord(
        service_name=service_name,
        timestamp=int(time.time() * 1000),
        method=request.method,
        url=f"{url.scheme}://{url.netloc}{url.path}",
        status_code=status_code,
        duration=duration_ms,
        ip=request.client.host if request.client else "unknown",
        user_agent=request.headers.get("user-agent", ""),
        query=_join_values(request.query_params.multi_items()),
        params={k: "" if v is None else str(v) for k, v in request.path_params.items()},
        headers=_join_values(request.headers.items()),
        body=parse_body(body),
    )


async def _read_body(request: Request) -> bytes | None:
    length = request.headers.get("content-length")
    if not length or length.strip() == "0":
        return None
    try:
        return await request.body()
    except Exception:
        log.debug("request_body_unreadable", path=request.url.path, exc_info=True)
        return None


def capture_middleware(connector: Connector) -> Middleware:
    """Return an ``http`` middleware function bound to ``connector``.

    Usage::

        app.middleware("http")(capture_middleware(connector))
    """

    async def watcher(request: Request, call_next: CallNext) -> Response:
        body = await _read_body(request)
        start = time.perf_counter()

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start) * 1000
        try:
            record = record_from_request(
                connector.service_name, request, response.status_code,
                duration_ms, body,
            )
            connector.record(record)
        except Exception:
            log.error("request_capture_failed", path=request.url.path,
                      exc_info=True)
        return response

    return watcher
