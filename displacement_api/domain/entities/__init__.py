"""Domain entities - pure dataclasses with no external dependencies.

These entities represent the core business objects in the domain model.
"""

from displacement_api.domain.entities.attribution import (
    AttributionResult,
    Category,
    DisplacementType,
    Entity,
    MarketTier,
    RosterConfig,
    ScoredEntity,
)
from displacement_api.domain.entities.nowcast import (
    ExposureAggregate,
    ExposureRate,
    ExternalSeries,
    FetchOutcome,
    NowcastRates,
    NowcastState,
    SeriesObservation,
    TrackedSeries,
)

__all__ = [
    # Attribution
    "AttributionResult",
    "Category",
    "DisplacementType",
    "Entity",
    "MarketTier",
    "RosterConfig",
    "ScoredEntity",
    # Nowcast
    "ExposureAggregate",
    "ExposureRate",
    "ExternalSeries",
    "FetchOutcome",
    "NowcastRates",
    "NowcastState",
    "SeriesObservation",
    "TrackedSeries",
]
