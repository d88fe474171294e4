"""Static category table and company roster.

Loaded once at process start from data/roster.json into a frozen
RosterConfig that is passed by reference into attribution.
"""

import json
import logging
import warnings
from datetime import date
from pathlib import Path

from displacement_api.domain.constants import AI_INFLECTION_DATE, ALLOCATION_SUM_TOLERANCE
from displacement_api.domain.entities import (
    Category,
    DisplacementType,
    Entity,
    MarketTier,
    RosterConfig,
)
from displacement_api.domain.exceptions import (
    ConfigurationError,
    ConfigurationInvariantViolation,
)

logger = logging.getLogger(__name__)

DEFAULT_ROSTER_PATH = Path(__file__).parent.parent / "data" / "roster.json"


def _warn(message: str) -> None:
    logger.warning(f"[Roster] {message}")
    warnings.warn(message, ConfigurationInvariantViolation, stacklevel=3)


def check_allocation_sum(categories: dict[str, Category]) -> str | None:
    """Return a warning message if allocation weights don't sum to ~1.0."""
    total = sum(c.allocation_weight for c in categories.values())
    if abs(total - 1.0) > ALLOCATION_SUM_TOLERANCE:
        return f"Category allocations sum to {total:.4f}, expected 1.0"
    return None


def parse_category(raw: dict) -> Category:
    try:
        weight = float(raw["allocation_weight"])
        category = Category(
            id=raw["id"],
            name=raw.get("name", raw["id"]),
            allocation_weight=weight,
            jobs_affected=tuple(raw.get("jobs_affected", [])),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise ConfigurationError(f"Malformed category entry {raw!r}: {e}") from e

    if not 0 < weight <= 1:
        raise ConfigurationError(
            f"Category {category.id} allocation weight must be in (0, 1]",
            field="allocation_weight",
            value=weight,
        )
    return category


def parse_entity(raw: dict) -> Entity:
    try:
        launch = raw.get("launch_date")
        entity = Entity(
            name=raw["name"],
            category=raw["category"],
            relative_scale=float(raw["relative_scale"]),
            launch_date=date.fromisoformat(launch) if launch else None,
            displacement_type=DisplacementType(raw["displacement_type"]),
            operational_factor=float(raw["operational_factor"]),
            market_tier=MarketTier(raw["market_tier"]),
            industry=raw.get("industry", ""),
            founded=raw.get("founded"),
            notes=raw.get("notes", ""),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise ConfigurationError(f"Malformed roster entry {raw.get('name', raw)!r}: {e}") from e

    if entity.relative_scale < 0:
        raise ConfigurationError(
            f"{entity.name}: relative_scale must be >= 0",
            field="relative_scale",
            value=entity.relative_scale,
        )
    if not 0 <= entity.operational_factor <= 1:
        raise ConfigurationError(
            f"{entity.name}: operational_factor must be in [0, 1]",
            field="operational_factor",
            value=entity.operational_factor,
        )
    return entity


def build_roster(data: dict) -> RosterConfig:
    """Build and validate a RosterConfig from its JSON document.

    Invariant violations (weights not summing to 1, unknown categories)
    are warned about with ConfigurationInvariantViolation, not raised.

    Raises:
        ConfigurationError: if an entry is malformed
    """
    categories = {c.id: c for c in (parse_category(raw) for raw in data.get("categories", []))}
    entities = tuple(parse_entity(raw) for raw in data.get("entities", []))

    problems: list[str] = []
    sum_problem = check_allocation_sum(categories)
    if sum_problem:
        problems.append(sum_problem)
    for entity in entities:
        if entity.category not in categories:
            problems.append(f"Entity {entity.name} references undefined category '{entity.category}'")

    for problem in problems:
        _warn(problem)

    inflection = data.get("inflection_date")
    return RosterConfig(
        categories=categories,
        entities=entities,
        inflection_date=date.fromisoformat(inflection) if inflection else AI_INFLECTION_DATE,
        warnings=tuple(problems),
    )


def load_roster(path: Path | None = None) -> RosterConfig:
    """Load the roster document from disk.

    Args:
        path: JSON file (defaults to the packaged data/roster.json)

    Raises:
        ConfigurationError: if the file is missing, unreadable or malformed
    """
    path = path or DEFAULT_ROSTER_PATH
    try:
        data = json.loads(path.read_text())
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Cannot load roster from {path}: {e}") from e

    roster = build_roster(data)
    logger.info(
        f"[Roster] Loaded {len(roster.categories)} categories, {len(roster.entities)} entities"
    )
    return roster
