"""Attribution of an aggregate displacement figure to individual companies.

Raw score for an entity e in category c:

    allocation(c) x log-share(e in c) x maturity(e) x type(e)
    x operational(e) x tier(e)

Scores are normalized across all scored entities and multiplied by the
total to distribute. Log-scaling the relative scale keeps a single very
large entity from capturing its whole category.

Pure module: "now" is the explicit `as_of` argument.
"""

import logging
import math
from datetime import date

from dateutil.relativedelta import relativedelta

from displacement_api.domain.constants import (
    AI_INFLECTION_DATE,
    DISPLACEMENT_TYPE_MULTIPLIERS,
    MARKET_TIER_MULTIPLIERS,
    MATURITY_BREAKPOINTS,
)
from displacement_api.domain.entities.attribution import (
    AttributionResult,
    Category,
    Entity,
    ScoredEntity,
)

logger = logging.getLogger(__name__)


def months_elapsed(start: date, end: date) -> int:
    """Whole calendar months from start to end (negative if end < start)."""
    delta = relativedelta(end, start)
    return delta.years * 12 + delta.months


def deployment_maturity(
    launch_date: date | None,
    as_of: date,
    inflection_date: date = AI_INFLECTION_DATE,
) -> float:
    """How ramped-up a product's deployment is, from 0 to 1.

    Products launched before the inflection date are only credited for the
    months after it. The ramp is piecewise linear through the breakpoints
    (0 -> 0.2, 6 -> 0.5, 12 -> 0.75, 24 -> 1.0) and flat at 1.0 afterwards.

    Args:
        launch_date: Product launch date, or None if nothing is deployed
        as_of: Reference date ("now")
        inflection_date: Date adoption is assumed to have started

    Returns:
        Maturity factor in [0, 1]
    """
    if launch_date is None or launch_date > as_of:
        return 0.0

    months = months_elapsed(launch_date, as_of)
    if launch_date < inflection_date:
        months = min(months, max(0, months_elapsed(inflection_date, as_of)))

    prev_months, prev_value = MATURITY_BREAKPOINTS[0]
    if months <= prev_months:
        return prev_value

    for bp_months, bp_value in MATURITY_BREAKPOINTS[1:]:
        if months == bp_months:
            return bp_value
        if months < bp_months:
            progress = (months - prev_months) / (bp_months - prev_months)
            return prev_value + progress * (bp_value - prev_value)
        prev_months, prev_value = bp_months, bp_value

    return MATURITY_BREAKPOINTS[-1][1]


def compute_category_shares(entities: list[Entity]) -> list[float]:
    """Log-scaled share of each entity within its own category.

    Args:
        entities: Entities to share out (all must have a known category)

    Returns:
        Shares aligned with `entities` by position, so repeated names never
        collide (0 if the category's log-scale sum is 0)
    """
    log_sums: dict[str, float] = {}
    for entity in entities:
        log_sums[entity.category] = log_sums.get(entity.category, 0.0) + math.log10(
            entity.relative_scale + 1
        )

    shares = []
    for entity in entities:
        denominator = log_sums[entity.category]
        shares.append(
            math.log10(entity.relative_scale + 1) / denominator if denominator > 0 else 0.0
        )
    return shares


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return int(math.floor(value + 0.5))


def attribute(
    entities: list[Entity] | tuple[Entity, ...],
    categories: dict[str, Category],
    total_to_distribute: int,
    as_of: date | None = None,
    inflection_date: date = AI_INFLECTION_DATE,
) -> AttributionResult:
    """Distribute a total across entities and rank them.

    Entities whose category is not in `categories` are excluded and
    reported in `warnings`; every other entity is still scored.

    Args:
        entities: Roster in input order (ties keep this order)
        categories: Category table keyed by id
        total_to_distribute: Aggregate figure to attribute
        as_of: Reference date for maturity (defaults to today)
        inflection_date: Date adoption is assumed to have started

    Returns:
        AttributionResult with entities sorted by attributed amount, descending
    """
    as_of = as_of or date.today()
    warnings: list[str] = []
    excluded: list[str] = []

    valid: list[Entity] = []
    for entity in entities:
        if entity.category not in categories:
            message = f"Unknown category '{entity.category}' for {entity.name}"
            logger.warning(f"[Attribution] {message}; excluded from scoring")
            warnings.append(message)
            excluded.append(entity.name)
            continue
        valid.append(entity)

    shares = compute_category_shares(valid)

    scored: list[ScoredEntity] = []
    for entity, category_share in zip(valid, shares):
        category_allocation = categories[entity.category].allocation_weight
        maturity = deployment_maturity(entity.launch_date, as_of, inflection_date)
        type_multiplier = DISPLACEMENT_TYPE_MULTIPLIERS[entity.displacement_type.value]
        tier_multiplier = MARKET_TIER_MULTIPLIERS[entity.market_tier.value]

        raw_score = (
            category_allocation
            * category_share
            * maturity
            * type_multiplier
            * entity.operational_factor
            * tier_multiplier
        )

        scored.append(
            ScoredEntity(
                entity=entity,
                category_allocation=category_allocation,
                category_share=category_share,
                maturity=maturity,
                type_multiplier=type_multiplier,
                tier_multiplier=tier_multiplier,
                raw_score=raw_score,
            )
        )

    total_raw = sum(s.raw_score for s in scored)
    for s in scored:
        s.normalized_share = s.raw_score / total_raw if total_raw > 0 else 0.0
        s.attributed_amount = round_half_up(total_to_distribute * s.normalized_share)

    # sorted() is stable, so ties keep input order
    ranked = sorted(scored, key=lambda s: s.attributed_amount, reverse=True)
    for index, s in enumerate(ranked):
        s.rank = index + 1

    return AttributionResult(
        entities=ranked,
        total=total_to_distribute,
        distributed=sum(s.attributed_amount for s in ranked),
        as_of_date=as_of.isoformat(),
        excluded=excluded,
        warnings=warnings,
    )
