"""Connector configuration.

Loads from requestlens.yaml if present, with environment variable overrides.
Environment variables use the pattern: REQUESTLENS_<KEY> (uppercase).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml


class ConfigError(ValueError):
    """Raised when the connector cannot be built from the given settings."""


@dataclass
class ConnectorConfig:
    service_name: str = ""
    base_url: str = ""
    api_key: str = ""
    flush_interval_ms: int = 5000
    flush_size: int = 50
    max_buffer_size: int = 1000  # enforced only when a failed batch is requeued
    developer_mode: bool = False
    timeout_seconds: float = 10.0

    def validate(self) -> None:
        missing = [name for name in ("service_name", "base_url", "api_key")
                   if not getattr(self, name)]
        if missing:
            raise ConfigError(f"missing required setting(s): {', '.join(missing)}")
        if self.flush_interval_ms <= 0:
            raise ConfigError("flush_interval_ms must be positive")
        if self.flush_size < 1:
            raise ConfigError("flush_size must be at least 1")
        if self.max_buffer_size < 1:
            raise ConfigError("max_buffer_size must be at least 1")
        if self.timeout_seconds <= 0:
            raise ConfigError("timeout_seconds must be positive")


@dataclass
class LoggingConfig:
    level: str = "info"
    format: str = "console"  # "console" or "json"


@dataclass
class CollectorConfig:
    api_key: str = ""  # empty accepts any key
    max_records: int = 10_000


@dataclass
class AppConfig:
    connector: ConnectorConfig = field(default_factory=ConnectorConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    collector: CollectorConfig = field(default_factory=CollectorConfig)


def _as_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _apply_env_overrides(config: AppConfig) -> None:
    """Override config values from environment variables."""
    mapping = {
        "REQUESTLENS_SERVICE_NAME": lambda v: setattr(config.connector, "service_name", v),
        "REQUESTLENS_BASE_URL": lambda v: setattr(config.connector, "base_url", v),
        "REQUESTLENS_API_KEY": lambda v: setattr(config.connector, "api_key", v),
        "REQUESTLENS_FLUSH_INTERVAL_MS": lambda v: setattr(config.connector, "flush_interval_ms", int(v)),
        "REQUESTLENS_FLUSH_SIZE": lambda v: setattr(config.connector, "flush_size", int(v)),
        "REQUESTLENS_MAX_BUFFER_SIZE": lambda v: setattr(config.connector, "max_buffer_size", int(v)),
        "REQUESTLENS_DEVELOPER_MODE": lambda v: setattr(config.connector, "developer_mode", _as_bool(v)),
        "REQUESTLENS_TIMEOUT": lambda v: setattr(config.connector, "timeout_seconds", float(v)),
        "REQUESTLENS_LOG_LEVEL": lambda v: setattr(config.logging, "level", v),
        "REQUESTLENS_LOG_FORMAT": lambda v: setattr(config.logging, "format", v),
        "REQUESTLENS_COLLECTOR_API_KEY": lambda v: setattr(config.collector, "api_key", v),
        "REQUESTLENS_COLLECTOR_MAX_RECORDS": lambda v: setattr(config.collector, "max_records", int(v)),
    }
    for env_key, setter in mapping.items():
        val = os.environ.get(env_key)
        if val is not None:
            try:
                setter(val)
            except ValueError as exc:
                raise ConfigError(f"{env_key}={val!r}: {exc}") from exc


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load configuration from YAML file + environment overrides."""
    config = AppConfig()

    if config_path is None:
        config_path = Path("requestlens.yaml")
    else:
        config_path = Path(config_path)

    if config_path.exists():
        with open(config_path) as f:
            raw = yaml.safe_load(f) or {}

        for section in ("connector", "logging", "collector"):
            target = getattr(config, section)
            for k, v in (raw.get(section) or {}).items():
                if hasattr(target, k):
                    setattr(target, k, v)

    # Environment overrides always win
    _apply_env_overrides(config)
    return config
