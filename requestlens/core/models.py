"""requestlens core internal data models.

Plain dataclasses with no framework dependencies. HTTP requests are
converted to these at the capture boundary and back to wire dicts at the
delivery boundary.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class RequestRecord:
    """One captured request, created after the handler completes."""
    service_name: str
    timestamp: int            # epoch milliseconds
    method: str
    url: str
    status_code: int
    duration: float           # milliseconds
    ip: str = "unknown"
    user_agent: str = ""
    query: dict[str, str] = field(default_factory=dict)
    params: dict[str, str] = field(default_factory=dict)
    headers: dict[str, str] = field(default_factory=dict)
    body: Any = None

    def to_payload(self) -> dict:
        """Return the collector's wire representation."""
        return {
            "serviceName": self.service_name,
            "timestamp": self.timestamp,
            "method": self.method,
            "url": self.url,
            "statusCode": self.status_code,
            "duration": self.duration,
            "ip": self.ip,
            "userAgent": self.user_agent,
            "query": dict(self.query),
            "params": dict(self.params),
            "headers": dict(self.headers),
            "body": self.body,
        }
