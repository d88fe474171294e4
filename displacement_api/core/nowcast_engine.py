"""Nowcasting engine: owns the live counter and the rates behind it.

State changes come from exactly two places, both on the event loop:
- `refresh` / `recompute` after each measurement fetch
- `tick` from the broadcast timer

Recompute builds a complete NowcastRates and swaps it in with a single
assignment, so a tick never sees half-updated rates.
"""

import logging
import time
from dataclasses import asdict, replace
from datetime import date, datetime, timezone
from typing import Callable

from displacement_api.core.exposure_model import (
    EXPOSURE_MODEL,
    TOTAL_CATEGORY,
    exposure_table,
    sector_categories,
)
from displacement_api.core.jitter import JitterStrategy, NoJitter
from displacement_api.core.measurements import SeriesStore
from displacement_api.core.utils import known_fields
from displacement_api.domain.constants import DATA_SOURCE_NAME, MODEL_NAME, NOWCAST_EPOCH
from displacement_api.domain.entities import (
    ExposureRate,
    FetchOutcome,
    NowcastRates,
    NowcastState,
)
from displacement_api.domain.services.nowcast import (
    advance_counter,
    aggregate_exposure,
    compute_rates,
)

logger = logging.getLogger(__name__)

# Data status values
STATUS_EMPTY = "empty"
STATUS_OK = "ok"
STATUS_PARTIAL = "partial"
STATUS_STALE = "stale"


class NowcastEngine:
    """Turns periodic JOLTS measurements into a smoothly rising counter."""

    def __init__(
        self,
        model: dict[str, ExposureRate] | None = None,
        series: SeriesStore | None = None,
        jitter: JitterStrategy | None = None,
        epoch: date = NOWCAST_EPOCH,
        clock: Callable[[], float] = time.monotonic,
        today: Callable[[], date] = date.today,
    ):
        self.model = model or EXPOSURE_MODEL
        self.series = series or SeriesStore()
        self.jitter = jitter or NoJitter()
        self.epoch = epoch
        self.clock = clock
        self.today = today
        self.state = NowcastState()
        self.rates = NowcastRates()

    # ------------------------------------------------------------------
    # Measurements
    # ------------------------------------------------------------------

    def refresh(self, outcomes: dict[str, FetchOutcome]) -> NowcastRates:
        """Merge a round of fetch outcomes and recompute rates."""
        errors = self.series.merge(outcomes)
        if errors and len(errors) == len(outcomes):
            logger.warning("[Nowcast] All series failed; ticking on last known rate")
        elif errors:
            logger.warning(f"[Nowcast] Partial data: {'; '.join(errors)}")
        return self.recompute()

    def recompute(self, as_of: date | None = None) -> NowcastRates:
        """Recompute rates from the latest good series values.

        With no usable total, the previous rates are kept as they are.
        """
        total = self.series.value(TOTAL_CATEGORY)
        if not total:
            logger.warning("[Nowcast] No total layoffs available; keeping previous rates")
            return self.rates

        as_of = as_of or self.today()
        sectors = {c: self.series.value(c) for c in sector_categories(self.model)}
        aggregate = aggregate_exposure(sectors, total, self.model)
        total_series = self.series.get(TOTAL_CATEGORY)
        rates = compute_rates(
            aggregate,
            as_of=as_of,
            epoch=self.epoch,
            data_as_of=total_series.as_of_date if total_series else None,
        )

        self.rates = rates
        self.state = replace(
            self.state,
            per_second_rate=rates.per_second,
            per_day_low=rates.per_day_low,
            per_day_mid=rates.per_day_mid,
            per_day_high=rates.per_day_high,
        )
        self._seed_once(rates)

        logger.info(
            f"[Nowcast] Total monthly layoffs: {rates.total_monthly:,.0f}; "
            f"AI-attributed {rates.ai_low:,.0f}-{rates.ai_high:,.0f} "
            f"({rates.ai_rate_low}%-{rates.ai_rate_high}%); "
            f"per day (mid) {rates.per_day_mid:,.0f}; "
            f"since {self.epoch}: {rates.historical_mid:,}"
        )
        return rates

    def _seed_once(self, rates: NowcastRates) -> None:
        if self.state.seeded or rates.historical_mid <= 0:
            return
        self.state = replace(
            self.state,
            integer_value=max(self.state.integer_value, rates.historical_mid),
            seeded=True,
        )
        logger.info(f"[Nowcast] Counter seeded at {self.state.integer_value:,}")

    # ------------------------------------------------------------------
    # Counter
    # ------------------------------------------------------------------

    def tick(self, elapsed_seconds: float, now: float | None = None) -> NowcastState:
        """Advance the counter by `elapsed_seconds` at the current rate."""
        self.state = advance_counter(self.state, elapsed_seconds, self.jitter())
        if now is not None:
            self.state = replace(self.state, last_tick_timestamp=now)
        return self.state

    def tick_now(self) -> NowcastState:
        """Advance by the real time elapsed since the previous call."""
        now = self.clock()
        last = self.state.last_tick_timestamp
        elapsed = now - last if last is not None else 0.0
        return self.tick(elapsed, now=now)

    # ------------------------------------------------------------------
    # Status and views
    # ------------------------------------------------------------------

    @property
    def data_status(self) -> str:
        if not self.series.has_data:
            return STATUS_EMPTY
        if self.series.all_failed:
            return STATUS_STALE
        if self.series.errors:
            return STATUS_PARTIAL
        return STATUS_OK

    @property
    def is_fresh(self) -> bool:
        return self.data_status == STATUS_OK

    def public_view(self) -> dict:
        """State shape pushed to viewers and returned by the snapshot API."""
        rates = self.rates
        return {
            "counter": self.state.integer_value,
            "counter_decimal": self.state.decimal_value,
            "counter_low": rates.historical_low,
            "counter_high": rates.historical_high,
            "per_second": rates.per_second,
            "per_day": round(rates.per_day_mid),
            "per_day_low": round(rates.per_day_low),
            "per_day_high": round(rates.per_day_high),
            "methodology": {
                "source": DATA_SOURCE_NAME,
                "data_period": rates.data_as_of,
                "total_monthly_layoffs": round(rates.total_monthly),
                "ai_rate": rates.ai_rate_mid,
                "ai_rate_range": f"{rates.ai_rate_low}%-{rates.ai_rate_high}%",
                "model": MODEL_NAME,
                "start_date": self.epoch.isoformat(),
            },
            "data_status": self.data_status,
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }

    def calculated(self) -> dict:
        """Computed aggregates, rounded the way they are reported."""
        rates = self.rates
        return {
            "total_monthly": round(rates.total_monthly),
            "ai_low": round(rates.ai_low),
            "ai_mid": round(rates.ai_mid),
            "ai_high": round(rates.ai_high),
            "ai_rate_low": rates.ai_rate_low,
            "ai_rate_mid": rates.ai_rate_mid,
            "ai_rate_high": rates.ai_rate_high,
            "per_day_low": round(rates.per_day_low),
            "per_day_mid": round(rates.per_day_mid),
            "per_day_high": round(rates.per_day_high),
            "per_second": rates.per_second,
            "historical_low": rates.historical_low,
            "historical_mid": rates.historical_mid,
            "historical_high": rates.historical_high,
            "days_since_start": rates.days_since_epoch,
            "start_date": self.epoch.isoformat(),
        }

    def raw_dump(self) -> dict:
        """Series, aggregates and the exposure table, for auditing."""
        return {
            "series": self.series.to_dict(),
            "calculated": self.calculated(),
            "model": exposure_table(self.model),
            "data_status": self.data_status,
        }

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def counters_snapshot(self) -> dict:
        return {
            "value": self.state.integer_value,
            "fraction": self.state.fractional_remainder,
        }

    def rates_snapshot(self) -> dict:
        return asdict(self.rates)

    def restore(
        self,
        counters: dict | None = None,
        rates: dict | None = None,
        series: dict | None = None,
    ) -> None:
        """Restore persisted state; a restored counter is never reseeded.

        Records are checked before anything is applied. If any of them is
        unreadable the whole restore is skipped and the engine starts fresh.
        """
        try:
            restored_rates = _rates_from_record(rates) if rates else None
            restored_counter = _counter_from_record(counters) if counters else None
            if series:
                self.series.restore(series)
        except (TypeError, ValueError) as e:
            logger.warning(f"[Store] Ignoring unreadable persisted state, starting fresh: {e}")
            return

        if restored_rates is not None:
            self.rates = restored_rates
            self.state = replace(
                self.state,
                per_second_rate=self.rates.per_second,
                per_day_low=self.rates.per_day_low,
                per_day_mid=self.rates.per_day_mid,
                per_day_high=self.rates.per_day_high,
            )
        if restored_counter is not None and restored_counter[0] > 0:
            value, fraction = restored_counter
            self.state = replace(
                self.state,
                integer_value=max(self.state.integer_value, value),
                fractional_remainder=fraction if 0 <= fraction < 1 else 0.0,
                seeded=True,
            )
            logger.info(f"[Nowcast] Restored counter at {self.state.integer_value:,}")


_INTEGER_RATE_FIELDS = {"historical_low", "historical_mid", "historical_high", "days_since_epoch"}


def _rates_from_record(record: dict) -> NowcastRates:
    """Rebuild NowcastRates from a persisted record, coercing numeric fields."""
    values = known_fields(NowcastRates, record)
    for name, value in values.items():
        if name == "data_as_of":
            continue
        values[name] = int(value) if name in _INTEGER_RATE_FIELDS else float(value)
    return NowcastRates(**values)


def _counter_from_record(record: dict) -> tuple[int, float]:
    if not isinstance(record, dict):
        raise TypeError(f"Expected a dict for counters, got {type(record).__name__}")
    return int(record.get("value", 0)), float(record.get("fraction", 0.0))
