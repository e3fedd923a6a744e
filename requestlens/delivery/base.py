"""Delivery interface (port) for shipping record batches."""

from __future__ import annotations

from typing import Protocol, TYPE_CHECKING

if TYPE_CHECKING:
    from requestlens.core.models import RequestRecord


class Deliverer(Protocol):
    """Port: sends one batch to the collector, reports success."""

    def send(self, batch: list[RequestRecord]) -> bool: ...
