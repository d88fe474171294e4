"""Unit tests for the nowcast domain service (pure functions)."""

import random
from datetime import date, timedelta

import pytest

from displacement_api.domain.entities import ExposureAggregate, ExposureRate, NowcastState
from displacement_api.domain.services.nowcast import (
    advance_counter,
    aggregate_exposure,
    compute_rates,
)

MODEL = {
    "information": ExposureRate(0.1, 0.2, 0.3),
    "retail": ExposureRate(0.05, 0.1, 0.15),
    "other": ExposureRate(0.01, 0.02, 0.03),
}
EPOCH = date(2023, 1, 1)


class TestAggregateExposure:
    """Tests for aggregate_exposure."""

    def test_sectors_plus_residual(self):
        result = aggregate_exposure({"information": 100.0, "retail": 200.0}, 1000.0, MODEL)

        assert result.known_total == 300.0
        assert result.residual == 700.0
        assert result.ai_low == pytest.approx(100 * 0.1 + 200 * 0.05 + 700 * 0.01)
        assert result.ai_mid == pytest.approx(100 * 0.2 + 200 * 0.1 + 700 * 0.02)
        assert result.ai_high == pytest.approx(100 * 0.3 + 200 * 0.15 + 700 * 0.03)

    def test_missing_sector_falls_into_residual(self):
        result = aggregate_exposure({"information": None, "retail": 200.0}, 1000.0, MODEL)

        assert result.known_total == 200.0
        assert result.residual == 800.0
        assert result.ai_mid == pytest.approx(200 * 0.1 + 800 * 0.02)

    def test_residual_never_negative(self):
        result = aggregate_exposure({"information": 900.0, "retail": 300.0}, 1000.0, MODEL)

        assert result.residual == 0.0
        assert result.ai_mid == pytest.approx(900 * 0.2 + 300 * 0.1)

    def test_untracked_sector_ignored(self):
        result = aggregate_exposure({"mining": 500.0}, 1000.0, MODEL)

        assert result.known_total == 0.0
        assert result.ai_mid == pytest.approx(1000 * 0.02)


class TestComputeRates:
    """Tests for compute_rates."""

    @pytest.fixture()
    def aggregate(self) -> ExposureAggregate:
        return ExposureAggregate(
            total_monthly=30_000.0,
            known_total=10_000.0,
            residual=20_000.0,
            ai_low=1_500.0,
            ai_mid=3_000.0,
            ai_high=4_500.0,
        )

    def test_daily_and_per_second(self, aggregate):
        rates = compute_rates(aggregate, as_of=EPOCH, epoch=EPOCH)

        assert rates.per_day_mid == pytest.approx(100.0)
        assert rates.per_day_low == pytest.approx(50.0)
        assert rates.per_day_high == pytest.approx(150.0)
        assert rates.per_second == pytest.approx(100.0 / 86400)

    def test_historical_totals_since_epoch(self, aggregate):
        rates = compute_rates(aggregate, as_of=EPOCH + timedelta(days=10), epoch=EPOCH)

        assert rates.days_since_epoch == 10
        assert rates.historical_mid == 1000
        assert rates.historical_low == 500
        assert rates.historical_high == 1500

    def test_as_of_before_epoch_has_no_history(self, aggregate):
        rates = compute_rates(aggregate, as_of=date(2022, 6, 1), epoch=EPOCH)

        assert rates.days_since_epoch == 0
        assert rates.historical_mid == 0

    def test_rate_percentages(self, aggregate):
        rates = compute_rates(aggregate, as_of=EPOCH, epoch=EPOCH, data_as_of="2024-10-01")

        assert rates.ai_rate_low == 5.0
        assert rates.ai_rate_mid == 10.0
        assert rates.ai_rate_high == 15.0
        assert rates.data_as_of == "2024-10-01"


class TestAdvanceCounter:
    """Tests for advance_counter."""

    def test_fraction_carries_into_integer(self):
        state = NowcastState(integer_value=10, fractional_remainder=0.75, per_second_rate=0.5)
        result = advance_counter(state, 1.0)

        assert result.integer_value == 11
        assert result.fractional_remainder == pytest.approx(0.25)

    def test_multiple_units_in_one_step(self):
        state = NowcastState(integer_value=0, per_second_rate=2.0)
        result = advance_counter(state, 10.25)

        assert result.integer_value == 20
        assert result.fractional_remainder == pytest.approx(0.5)

    def test_zero_elapsed_changes_nothing(self):
        state = NowcastState(integer_value=42, fractional_remainder=0.3, per_second_rate=5.0)
        for _ in range(100):
            state = advance_counter(state, 0.0, jitter=1.1)

        assert state.integer_value == 42
        assert state.fractional_remainder == 0.3

    def test_negative_elapsed_treated_as_zero(self):
        state = NowcastState(integer_value=42, fractional_remainder=0.3, per_second_rate=5.0)
        result = advance_counter(state, -3.0)

        assert result == state

    def test_jitter_scales_increment(self):
        state = NowcastState(per_second_rate=1.0)
        result = advance_counter(state, 0.5, jitter=1.1)

        assert result.fractional_remainder == pytest.approx(0.55)

    def test_invariants_hold_over_many_ticks(self):
        rng = random.Random(7)
        state = NowcastState(integer_value=1000, per_second_rate=3.3)
        previous = state.integer_value
        for _ in range(2000):
            state = advance_counter(state, rng.uniform(0, 0.3), jitter=rng.uniform(0.9, 1.1))
            assert 0 <= state.fractional_remainder < 1
            assert state.integer_value >= previous
            previous = state.integer_value
