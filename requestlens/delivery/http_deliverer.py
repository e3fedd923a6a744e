"""HTTP implementation of Deliverer.

Posts each batch as a JSON array to the collector's ``/requests`` endpoint,
authenticated with a static ``X-API-KEY`` header. There is no retry here:
a failed batch goes back to the buffer and rides the next flush.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import httpx
import structlog

if TYPE_CHECKING:
    from requestlens.core.models import RequestRecord

log = structlog.get_logger()

API_KEY_HEADER = "X-API-KEY"


def collector_endpoint(base_url: str, developer_mode: bool = False) -> str:
    """Return the batch endpoint for a collector base URL.

    Production collectors live under ``/api``; in developer mode the base
    URL is taken verbatim.
    """
    base = base_url.rstrip("/")
    if not developer_mode:
        base += "/api"
    return f"{base}/requests"


def _dumps(payload: dict) -> str:
    return json.dumps(payload, separators=(",", ":"), allow_nan=False)


def encode_record(record: RequestRecord) -> str | None:
    """Serialize one record as strict JSON.

    A body the encoder rejects (arbitrary objects, dates, NaN) is sent as
    its ``str()`` form instead, or as null if even that fails. Returns None
    when the record cannot be encoded at all, e.g. a NaN duration.
    """
    payload = record.to_payload()
    try:
        return _dumps(payload)
    except (TypeError, ValueError):
        pass

    body = payload["body"]
    try:
        payload["body"] = str(body)
        encoded = _dumps(payload)
    except Exception:
        payload["body"] = None
        try:
            encoded = _dumps(payload)
        except (TypeError, ValueError):
            return None
    log.warning("record_body_substituted", url=record.url,
                body_type=type(body).__name__, sent_as=type(payload["body"]).__name__)
    return encoded


class HttpDeliverer:
    """Deliverer backed by a long-lived httpx.Client."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        developer_mode: bool = False,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.endpoint = collector_endpoint(base_url, developer_mode)
        self._client = httpx.Client(
            timeout=timeout,
            transport=transport,
            headers={API_KEY_HEADER: api_key},
        )

    def _encode(self, batch: list[RequestRecord]) -> bytes | None:
        """Encode records one at a time so one bad body cannot sink the batch."""
        parts = []
        for record in batch:
            encoded = encode_record(record)
            if encoded is None:
                log.warning("record_unencodable", url=record.url)
                continue
            parts.append(encoded)
        if not parts:
            return None
        return ("[" + ",".join(parts) + "]").encode("utf-8")

    def send(self, batch: list[RequestRecord]) -> bool:
        """POST the batch. Any non-2xx or transport error is a failure."""
        content = self._encode(batch)
        if content is None:
            return True

        try:
            resp = self._client.post(
                self.endpoint,
                content=content,
                headers={"content-type": "application/json"},
            )
        except httpx.HTTPError as exc:
            log.warning("delivery_error", endpoint=self.endpoint,
                        count=len(batch), error=str(exc))
            return False

        if not resp.is_success:
            log.warning("delivery_rejected", endpoint=self.endpoint,
                        count=len(batch), status=resp.status_code)
            return False
        return True

    def close(self) -> None:
        self._client.close()
