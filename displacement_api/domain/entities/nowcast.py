"""Nowcast-related domain entities."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class ExposureRate:
    """Share of a sector's layoffs assumed attributable to AI."""

    low: float
    mid: float
    high: float
    rationale: str = ""


@dataclass(frozen=True)
class TrackedSeries:
    """An upstream series tracked for one statistical category."""

    category: str
    series_id: str
    label: str


@dataclass
class SeriesObservation:
    """Successfully fetched values for a series."""

    latest_value: float
    as_of_date: str  # ISO date of the latest observation
    trailing_values: list[float]
    average: float


@dataclass
class FetchOutcome:
    """Outcome of one series request: an observation or an error message."""

    category: str
    observation: SeriesObservation | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.observation is not None


@dataclass
class ExternalSeries:
    """Latest known state of a tracked series.

    On a failed fetch the previous good values are kept and `stale` is set.
    """

    category: str
    latest_value: float | None = None
    trailing_values: list[float] = field(default_factory=list)
    average: float | None = None
    as_of_date: str | None = None
    error: str | None = None
    stale: bool = False
    fetched_at: str | None = None


@dataclass(frozen=True)
class ExposureAggregate:
    """AI-attributed monthly layoffs summed over sectors."""

    total_monthly: float
    known_total: float
    residual: float
    ai_low: float
    ai_mid: float
    ai_high: float


@dataclass(frozen=True)
class NowcastRates:
    """Rates derived from one aggregate; replaced as a whole on recompute."""

    total_monthly: float = 0.0
    ai_low: float = 0.0
    ai_mid: float = 0.0
    ai_high: float = 0.0
    per_day_low: float = 0.0
    per_day_mid: float = 0.0
    per_day_high: float = 0.0
    per_second: float = 0.0
    historical_low: int = 0
    historical_mid: int = 0
    historical_high: int = 0
    days_since_epoch: int = 0
    data_as_of: str | None = None

    @property
    def ai_rate_low(self) -> float:
        return _percent(self.ai_low, self.total_monthly)

    @property
    def ai_rate_mid(self) -> float:
        return _percent(self.ai_mid, self.total_monthly)

    @property
    def ai_rate_high(self) -> float:
        return _percent(self.ai_high, self.total_monthly)


@dataclass
class NowcastState:
    """Counter state owned by the nowcasting engine.

    `integer_value` never decreases; `fractional_remainder` stays in [0, 1).
    """

    integer_value: int = 0
    fractional_remainder: float = 0.0
    per_second_rate: float = 0.0
    per_day_low: float = 0.0
    per_day_mid: float = 0.0
    per_day_high: float = 0.0
    last_tick_timestamp: float | None = None
    seeded: bool = False

    @property
    def decimal_value(self) -> float:
        return self.integer_value + self.fractional_remainder


def _percent(part: float, whole: float) -> float:
    if whole <= 0:
        return 0.0
    return round(part / whole * 100, 1)
