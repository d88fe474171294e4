"""Nowcast computations: exposure aggregation, rates, counter advance.

Pure functions; the engine in core/nowcast_engine.py owns the state.
"""

import math
from dataclasses import replace
from datetime import date

from displacement_api.domain.constants import (
    DAYS_PER_MONTH,
    NOWCAST_EPOCH,
    SECONDS_PER_DAY,
)
from displacement_api.domain.entities.nowcast import (
    ExposureAggregate,
    ExposureRate,
    NowcastRates,
    NowcastState,
)

RESIDUAL_KEY = "other"


def aggregate_exposure(
    sector_values: dict[str, float | None],
    total_monthly: float,
    model: dict[str, ExposureRate],
    residual_key: str = RESIDUAL_KEY,
) -> ExposureAggregate:
    """Apply exposure rates to sector layoffs and the uncovered remainder.

    Sectors with a None (or zero) value are skipped; their layoffs fall into
    the residual and get the residual rate.

    Args:
        sector_values: Monthly layoffs per tracked sector
        total_monthly: Monthly layoffs across all sectors
        model: Exposure rates keyed by sector, including `residual_key`

    Returns:
        ExposureAggregate with low/mid/high AI-attributed monthly layoffs
    """
    ai_low = ai_mid = ai_high = 0.0
    known_total = 0.0

    for sector, value in sector_values.items():
        if not value or sector not in model:
            continue
        rate = model[sector]
        ai_low += value * rate.low
        ai_mid += value * rate.mid
        ai_high += value * rate.high
        known_total += value

    residual = max(0.0, total_monthly - known_total)
    other = model[residual_key]
    ai_low += residual * other.low
    ai_mid += residual * other.mid
    ai_high += residual * other.high

    return ExposureAggregate(
        total_monthly=total_monthly,
        known_total=known_total,
        residual=residual,
        ai_low=ai_low,
        ai_mid=ai_mid,
        ai_high=ai_high,
    )


def compute_rates(
    aggregate: ExposureAggregate,
    as_of: date,
    epoch: date = NOWCAST_EPOCH,
    data_as_of: str | None = None,
) -> NowcastRates:
    """Derive daily/per-second rates and historical totals since the epoch."""
    days_since_epoch = max(0, (as_of - epoch).days)
    per_day_low = aggregate.ai_low / DAYS_PER_MONTH
    per_day_mid = aggregate.ai_mid / DAYS_PER_MONTH
    per_day_high = aggregate.ai_high / DAYS_PER_MONTH

    return NowcastRates(
        total_monthly=aggregate.total_monthly,
        ai_low=aggregate.ai_low,
        ai_mid=aggregate.ai_mid,
        ai_high=aggregate.ai_high,
        per_day_low=per_day_low,
        per_day_mid=per_day_mid,
        per_day_high=per_day_high,
        per_second=per_day_mid / SECONDS_PER_DAY,
        historical_low=math.floor(days_since_epoch * per_day_low),
        historical_mid=math.floor(days_since_epoch * per_day_mid),
        historical_high=math.floor(days_since_epoch * per_day_high),
        days_since_epoch=days_since_epoch,
        data_as_of=data_as_of,
    )


def advance_counter(
    state: NowcastState,
    elapsed_seconds: float,
    jitter: float = 1.0,
) -> NowcastState:
    """Advance the counter by rate x elapsed x jitter.

    Whole units move from the remainder into the integer value, so the
    remainder stays in [0, 1). Negative elapsed time counts as zero.
    """
    increment = state.per_second_rate * max(0.0, elapsed_seconds) * jitter
    if increment <= 0:
        return state

    fraction = state.fractional_remainder + increment
    whole = math.floor(fraction)
    return replace(
        state,
        integer_value=state.integer_value + whole,
        fractional_remainder=fraction - whole,
    )
