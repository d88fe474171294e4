"""Measurement fetching and the last-known-good series store.

A refresh issues one request per tracked series concurrently and waits
for all of them to settle. A failed request never fails the refresh; the
series keeps its last good value and is marked stale.
"""

import asyncio
import logging
from datetime import datetime, timezone

from displacement_api.core.exposure_model import TRACKED_SERIES
from displacement_api.core.fred_client import FredClient
from displacement_api.core.utils import known_fields
from displacement_api.domain.entities import (
    ExternalSeries,
    FetchOutcome,
    SeriesObservation,
    TrackedSeries,
)
from displacement_api.domain.exceptions import UpstreamFetchError

logger = logging.getLogger(__name__)


class MeasurementFetcher:
    """Fetches every tracked series concurrently."""

    def __init__(
        self,
        client: FredClient,
        series: tuple[TrackedSeries, ...] = TRACKED_SERIES,
    ):
        self.client = client
        self.series = series

    async def _fetch_one(self, tracked: TrackedSeries, http_client) -> FetchOutcome:
        try:
            observation = await self.client.fetch_series(tracked.series_id, client=http_client)
        except UpstreamFetchError as e:
            e.category = tracked.category
            raise
        return FetchOutcome(category=tracked.category, observation=observation)

    async def fetch_all(self) -> dict[str, FetchOutcome]:
        """Fetch all tracked series.

        Returns:
            Dict mapping category -> FetchOutcome (error outcomes for failures)
        """
        logger.info(f"[FRED] Fetching {len(self.series)} JOLTS series...")
        async with self.client.client() as http_client:
            results = await asyncio.gather(
                *(self._fetch_one(tracked, http_client) for tracked in self.series),
                return_exceptions=True,
            )

        outcomes: dict[str, FetchOutcome] = {}
        for tracked, result in zip(self.series, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                logger.warning(f"[FRED] {tracked.category} ({tracked.series_id}) failed: {result}")
                outcomes[tracked.category] = FetchOutcome(category=tracked.category, error=str(result))
            else:
                logger.info(
                    f"[FRED]   {tracked.category}: {result.observation.latest_value:,.0f} "
                    f"({result.observation.as_of_date})"
                )
                outcomes[tracked.category] = result
        return outcomes


class SeriesStore:
    """Latest known value of each tracked series.

    Mutated only through `merge`; error outcomes never overwrite good data.
    """

    def __init__(self, categories: list[str] | None = None):
        categories = categories or [s.category for s in TRACKED_SERIES]
        self.series: dict[str, ExternalSeries] = {c: ExternalSeries(category=c) for c in categories}
        self.fetched_at: str | None = None
        self.errors: list[str] = []

    def get(self, category: str) -> ExternalSeries | None:
        return self.series.get(category)

    def value(self, category: str) -> float | None:
        series = self.series.get(category)
        return series.latest_value if series else None

    def merge(self, outcomes: dict[str, FetchOutcome], now: datetime | None = None) -> list[str]:
        """Apply a round of fetch outcomes.

        Returns:
            Error messages of this round, as "category: message"
        """
        now = now or datetime.now(timezone.utc)
        errors = []
        for category, outcome in outcomes.items():
            current = self.series.setdefault(category, ExternalSeries(category=category))
            if outcome.ok:
                obs: SeriesObservation = outcome.observation
                self.series[category] = ExternalSeries(
                    category=category,
                    latest_value=obs.latest_value,
                    trailing_values=list(obs.trailing_values),
                    average=obs.average,
                    as_of_date=obs.as_of_date,
                    fetched_at=now.isoformat(),
                )
            else:
                current.error = outcome.error
                current.stale = current.latest_value is not None
                errors.append(f"{category}: {outcome.error}")

        self.fetched_at = now.isoformat()
        self.errors = errors
        return errors

    @property
    def has_data(self) -> bool:
        return any(s.latest_value is not None for s in self.series.values())

    @property
    def all_failed(self) -> bool:
        return bool(self.series) and all(s.error is not None for s in self.series.values())

    def to_dict(self) -> dict:
        return {
            "series": {c: vars(s).copy() for c, s in self.series.items()},
            "fetched_at": self.fetched_at,
            "errors": list(self.errors),
        }

    def restore(self, data: dict) -> None:
        """Load previously persisted series (last good values only).

        Nothing is replaced unless every record reads cleanly.

        Raises:
            TypeError / ValueError: if a record is malformed
        """
        if not isinstance(data, dict):
            raise TypeError(f"Expected a dict for series, got {type(data).__name__}")
        raw_series = data.get("series") or {}
        if not isinstance(raw_series, dict):
            raise TypeError(f"Expected a dict of series, got {type(raw_series).__name__}")
        restored = {category: _series_from_record(raw) for category, raw in raw_series.items()}
        errors = list(data.get("errors") or [])
        self.series.update(restored)
        self.fetched_at = data.get("fetched_at")
        self.errors = errors


def _series_from_record(raw: dict) -> ExternalSeries:
    values = known_fields(ExternalSeries, raw)
    for name in ("latest_value", "average"):
        if values.get(name) is not None:
            values[name] = float(values[name])
    values["trailing_values"] = [float(v) for v in values.get("trailing_values") or []]
    return ExternalSeries(**values)
