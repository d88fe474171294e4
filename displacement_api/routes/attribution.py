"""Company attribution endpoints."""

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from displacement_api.core.runtime import NowcastRuntime
from displacement_api.domain.entities import AttributionResult, RosterConfig, ScoredEntity
from displacement_api.domain.services import attribute
from displacement_api.routes.dependencies import get_roster, get_runtime

router = APIRouter(prefix="/api", tags=["attribution"])


# ============================================================================
# Response models
# ============================================================================


class AttributionFactors(BaseModel):
    """The multiplied factors behind a raw score."""

    category_allocation: float
    category_share: float
    maturity: float
    type_multiplier: float
    operational_factor: float
    tier_multiplier: float
    displacement_type: str
    market_tier: str


class AttributedCompany(BaseModel):
    """One ranked company."""

    rank: int
    name: str
    category: str
    category_name: str
    industry: str
    relative_scale: float
    attributed: int = Field(..., description="Jobs attributed to this company")
    percentage: float = Field(..., description="Share of the total, percent (2 dp)")
    raw_score: float
    factors: AttributionFactors
    notes: str


class AttributionResponse(BaseModel):
    """Response model for the attribution endpoint."""

    total: int = Field(..., description="Figure that was distributed")
    distributed: int = Field(..., description="Sum of rounded per-company amounts")
    as_of_date: str
    companies: list[AttributedCompany]
    excluded: list[str]
    warnings: list[str]


class CategoryView(BaseModel):
    id: str
    name: str
    allocation_weight: float
    jobs_affected: list[str]
    companies: int


def _company_view(scored: ScoredEntity, roster: RosterConfig) -> AttributedCompany:
    entity = scored.entity
    category = roster.categories[entity.category]
    return AttributedCompany(
        rank=scored.rank,
        name=entity.name,
        category=entity.category,
        category_name=category.name,
        industry=entity.industry,
        relative_scale=entity.relative_scale,
        attributed=scored.attributed_amount,
        percentage=round(scored.normalized_share * 100, 2),
        raw_score=scored.raw_score,
        factors=AttributionFactors(
            category_allocation=scored.category_allocation,
            category_share=scored.category_share,
            maturity=scored.maturity,
            type_multiplier=scored.type_multiplier,
            operational_factor=entity.operational_factor,
            tier_multiplier=scored.tier_multiplier,
            displacement_type=entity.displacement_type.value,
            market_tier=entity.market_tier.value,
        ),
        notes=entity.notes,
    )


# ============================================================================
# Endpoints
# ============================================================================


@router.get("/attribution", response_model=AttributionResponse)
def attribution(
    total: int | None = Query(None, ge=0, description="Total to distribute. Defaults to the live counter."),
    limit: int | None = Query(None, ge=1, description="Return only the top N companies"),
    as_of_date: str | None = Query(None, description="Reference date (YYYY-MM-DD). Defaults to today."),
    roster: RosterConfig = Depends(get_roster),
    runtime: NowcastRuntime = Depends(get_runtime),
) -> AttributionResponse:
    """Attribute the displacement total to companies on the roster.

    Each company's raw score multiplies its category allocation, its
    log-scaled share of the category, deployment maturity, displacement
    type, operational status and market tier. Scores are normalized and
    the total is split accordingly, highest first.

    Raises:
        HTTPException 400: if as_of_date is not a valid date
    """
    try:
        as_of = date.fromisoformat(as_of_date) if as_of_date else date.today()
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Invalid as_of_date: {e}") from e

    if total is None:
        total = runtime.engine.state.integer_value

    result: AttributionResult = attribute(
        roster.entities,
        roster.categories,
        total,
        as_of=as_of,
        inflection_date=roster.inflection_date,
    )

    companies = result.entities[:limit] if limit else result.entities
    return AttributionResponse(
        total=result.total,
        distributed=result.distributed,
        as_of_date=result.as_of_date,
        companies=[_company_view(s, roster) for s in companies],
        excluded=result.excluded,
        warnings=list(roster.warnings) + result.warnings,
    )


@router.get("/categories", response_model=list[CategoryView])
def categories(roster: RosterConfig = Depends(get_roster)) -> list[CategoryView]:
    """Category table with allocation weights."""
    counts: dict[str, int] = {}
    for entity in roster.entities:
        counts[entity.category] = counts.get(entity.category, 0) + 1
    return [
        CategoryView(
            id=c.id,
            name=c.name,
            allocation_weight=c.allocation_weight,
            jobs_affected=list(c.jobs_affected),
            companies=counts.get(c.id, 0),
        )
        for c in roster.categories.values()
    ]
