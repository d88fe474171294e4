"""Attribution-related domain entities."""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum


class DisplacementType(str, Enum):
    """How a product displaces work."""

    DIRECT = "direct"
    AUGMENTATION = "augmentation"
    INFRASTRUCTURE = "infrastructure"


class MarketTier(str, Enum):
    """Who a product is sold to."""

    ENTERPRISE = "enterprise"
    PROSUMER = "prosumer"
    CONSUMER = "consumer"


@dataclass(frozen=True)
class Category:
    """A bucket of displacement with a fixed share of total attribution."""

    id: str
    name: str
    allocation_weight: float
    jobs_affected: tuple[str, ...] = ()


@dataclass(frozen=True)
class Entity:
    """A company on the attribution roster."""

    name: str
    category: str
    relative_scale: float  # Valuation proxy in $B
    launch_date: date | None  # None = no deployed product
    displacement_type: DisplacementType
    operational_factor: float  # 0-1
    market_tier: MarketTier
    industry: str = ""
    founded: int | None = None
    notes: str = ""


@dataclass(frozen=True)
class RosterConfig:
    """Immutable static configuration, built once at process start."""

    categories: dict[str, Category]
    entities: tuple[Entity, ...]
    inflection_date: date
    warnings: tuple[str, ...] = ()


@dataclass
class ScoredEntity:
    """An entity with its computed attribution. Never persisted."""

    entity: Entity
    category_allocation: float
    category_share: float
    maturity: float
    type_multiplier: float
    tier_multiplier: float
    raw_score: float
    normalized_share: float = 0.0
    attributed_amount: int = 0
    rank: int = 0


@dataclass
class AttributionResult:
    """Result of distributing a total across the roster."""

    # Ranked, highest attribution first
    entities: list[ScoredEntity]

    # Total that was distributed and what the rounded shares add up to
    total: int
    distributed: int

    as_of_date: str  # ISO format

    # Entities skipped, e.g. unknown category
    excluded: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
