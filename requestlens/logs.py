"""structlog setup shared by the collector app, the connector and the tools."""

from __future__ import annotations

import logging
from typing import TextIO, TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from requestlens.config import LoggingConfig


def setup_logging(config: LoggingConfig) -> None:
    """Configure structlog based on the logging config."""
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if config.format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(config.level.upper()),
        ),
    )


def developer_logger(file: TextIO | None = None) -> structlog.typing.FilteringBoundLogger:
    """Logger for developer-mode diagnostics.

    Writes straight to ``file`` (stdout by default) with its own processor
    chain, so the host's structlog level and renderer do not apply.
    """
    return structlog.wrap_logger(
        structlog.PrintLogger(file),
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG),
        context_class=dict,
    ).bind(component="requestlens")
