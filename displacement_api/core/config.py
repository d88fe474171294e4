"""Service configuration from environment variables."""

import logging
import os
from dataclasses import dataclass

from displacement_api.domain.constants import (
    DEFAULT_PERSIST_EVERY_TICKS,
    DEFAULT_REFRESH_INTERVAL_SECONDS,
    DEFAULT_TICK_INTERVAL_SECONDS,
)
from displacement_api.domain.exceptions import ConfigurationError

# Environment variable names
ENV_FRED_API_KEY = "FRED_API_KEY"
ENV_FRED_BASE_URL = "FRED_BASE_URL"
ENV_REDIS_URL = "REDIS_URL"
ENV_REFRESH_INTERVAL = "REFRESH_INTERVAL_SECONDS"
ENV_TICK_INTERVAL = "TICK_INTERVAL_SECONDS"
ENV_PERSIST_EVERY_TICKS = "PERSIST_EVERY_TICKS"
ENV_NOWCAST_JITTER = "NOWCAST_JITTER"
ENV_LOG_LEVEL = "LOG_LEVEL"
ENV_HOST = "HOST"
ENV_PORT = "PORT"

# Defaults
DEFAULT_FRED_BASE_URL = "https://api.stlouisfed.org/fred"
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8000


def _read_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "")
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}", field=name, value=raw) from e
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive, got {raw!r}", field=name, value=raw)
    return value


def _read_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "")
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}", field=name, value=raw) from e
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive, got {raw!r}", field=name, value=raw)
    return value


def get_fred_api_key() -> str | None:
    """Get the FRED API key from environment."""
    return os.environ.get(ENV_FRED_API_KEY) or None


def get_fred_base_url() -> str:
    """Get the FRED API base URL from environment."""
    return os.environ.get(ENV_FRED_BASE_URL, DEFAULT_FRED_BASE_URL).rstrip("/")


def get_redis_url() -> str | None:
    """Get the Redis URL from environment (None = in-memory state store)."""
    return os.environ.get(ENV_REDIS_URL) or None


def get_refresh_interval_seconds() -> float:
    """Seconds between measurement refreshes (default: 6 hours)."""
    return _read_float(ENV_REFRESH_INTERVAL, DEFAULT_REFRESH_INTERVAL_SECONDS)


def get_tick_interval_seconds() -> float:
    """Seconds between counter ticks (default: 0.1)."""
    return _read_float(ENV_TICK_INTERVAL, DEFAULT_TICK_INTERVAL_SECONDS)


def get_persist_every_ticks() -> int:
    """Number of ticks between counter persists (default: 100)."""
    return _read_int(ENV_PERSIST_EVERY_TICKS, DEFAULT_PERSIST_EVERY_TICKS)


def is_jitter_enabled() -> bool:
    """Whether the cosmetic tick jitter is on (default: on)."""
    return os.environ.get(ENV_NOWCAST_JITTER, "on").strip().lower() not in ("off", "0", "false", "no")


def get_log_level() -> int:
    """Resolve LOG_LEVEL to a logging level (default: INFO)."""
    name = os.environ.get(ENV_LOG_LEVEL, DEFAULT_LOG_LEVEL).upper()
    level = logging.getLevelName(name)
    if not isinstance(level, int):
        raise ConfigurationError(f"Unknown LOG_LEVEL {name!r}", field=ENV_LOG_LEVEL, value=name)
    return level


@dataclass(frozen=True)
class Settings:
    """Resolved service settings."""

    fred_api_key: str | None
    fred_base_url: str
    redis_url: str | None
    refresh_interval_seconds: float
    tick_interval_seconds: float
    persist_every_ticks: int
    jitter_enabled: bool
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT


def load_settings() -> Settings:
    """Read all settings from the environment.

    Raises:
        ConfigurationError: if a numeric value is malformed
    """
    return Settings(
        fred_api_key=get_fred_api_key(),
        fred_base_url=get_fred_base_url(),
        redis_url=get_redis_url(),
        refresh_interval_seconds=get_refresh_interval_seconds(),
        tick_interval_seconds=get_tick_interval_seconds(),
        persist_every_ticks=get_persist_every_ticks(),
        jitter_enabled=is_jitter_enabled(),
        host=os.environ.get(ENV_HOST, DEFAULT_HOST),
        port=_read_int(ENV_PORT, DEFAULT_PORT),
    )
