"""Pytest configuration and fixtures for all tests.

This module ensures tests run in isolation from production environment variables.
"""

from datetime import date

import pytest

from displacement_api.core.exposure_model import TRACKED_SERIES
from displacement_api.core.jitter import NoJitter
from displacement_api.core.measurements import SeriesStore
from displacement_api.core.nowcast_engine import NowcastEngine
from displacement_api.domain.entities import FetchOutcome, SeriesObservation

# Service environment variables that should not affect tests
SERVICE_ENV_VARS = [
    "FRED_API_KEY",
    "FRED_BASE_URL",
    "REDIS_URL",
    "REFRESH_INTERVAL_SECONDS",
    "TICK_INTERVAL_SECONDS",
    "PERSIST_EVERY_TICKS",
    "NOWCAST_JITTER",
    "LOG_LEVEL",
    "HOST",
    "PORT",
]

# Realistic monthly JOLTS layoffs
JOLTS_VALUES = {
    "total": 1_700_000.0,
    "information": 50_000.0,
    "professional": 300_000.0,
    "manufacturing": 100_000.0,
    "finance": 40_000.0,
    "retail": 200_000.0,
}

FIXED_TODAY = date(2025, 1, 1)


@pytest.fixture(autouse=True)
def isolate_from_env(monkeypatch):
    """Clear service env vars so tests never call FRED or Redis."""
    for var in SERVICE_ENV_VARS:
        monkeypatch.delenv(var, raising=False)


def _make_outcomes(values: dict[str, float | None], as_of: str = "2024-10-01") -> dict[str, FetchOutcome]:
    """Fetch outcomes per category; a None value becomes an error outcome."""
    outcomes = {}
    for category, value in values.items():
        if value is None:
            outcomes[category] = FetchOutcome(category=category, error="HTTP 500")
        else:
            outcomes[category] = FetchOutcome(
                category=category,
                observation=SeriesObservation(
                    latest_value=value,
                    as_of_date=as_of,
                    trailing_values=[value],
                    average=value,
                ),
            )
    return outcomes


def _all_failed() -> dict[str, FetchOutcome]:
    return _make_outcomes({s.category: None for s in TRACKED_SERIES})


class FakeFetcher:
    """Returns queued outcome rounds; repeats the last one when exhausted."""

    def __init__(self, *rounds: dict[str, FetchOutcome]):
        self.rounds = list(rounds) or [_make_outcomes(JOLTS_VALUES)]
        self.calls = 0

    async def fetch_all(self) -> dict[str, FetchOutcome]:
        index = min(self.calls, len(self.rounds) - 1)
        self.calls += 1
        return self.rounds[index]


@pytest.fixture()
def engine() -> NowcastEngine:
    return NowcastEngine(series=SeriesStore(), jitter=NoJitter(), today=lambda: FIXED_TODAY)


@pytest.fixture()
def jolts_values() -> dict[str, float]:
    return dict(JOLTS_VALUES)


@pytest.fixture()
def make_outcomes():
    """Factory: category -> value (None = failed fetch) into fetch outcomes."""
    return _make_outcomes


@pytest.fixture()
def failed_outcomes() -> dict[str, FetchOutcome]:
    """Every tracked series failed."""
    return _all_failed()


@pytest.fixture()
def fake_fetcher():
    """The FakeFetcher class, for building fetchers with queued rounds."""
    return FakeFetcher
