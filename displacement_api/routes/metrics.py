"""Nowcast snapshot and diagnostic endpoints."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from displacement_api.core.exposure_model import build_methodology
from displacement_api.core.runtime import NowcastRuntime
from displacement_api.routes.dependencies import get_runtime

router = APIRouter(prefix="/api", tags=["metrics"])


# ============================================================================
# Response models
# ============================================================================


class MethodologySummary(BaseModel):
    """Methodology metadata attached to every state payload."""

    source: str
    data_period: str | None = Field(None, description="As-of date of the latest total")
    total_monthly_layoffs: int
    ai_rate: float = Field(..., description="Overall AI-attributed share of layoffs, percent")
    ai_rate_range: str
    model: str
    start_date: str


class NowcastStateView(BaseModel):
    """Public view of the counter, same shape as a "tick" payload."""

    counter: int
    counter_decimal: float
    counter_low: int
    counter_high: int
    per_second: float
    per_day: int
    per_day_low: int
    per_day_high: int
    methodology: MethodologySummary
    data_status: str
    updated_at: str


# ============================================================================
# Endpoints
# ============================================================================


@router.get("/metrics/current", response_model=NowcastStateView)
def current_metrics(runtime: NowcastRuntime = Depends(get_runtime)) -> dict:
    """Current counter snapshot."""
    return runtime.engine.public_view()


@router.get("/methodology")
def methodology(runtime: NowcastRuntime = Depends(get_runtime)) -> dict:
    """Methodology document derived from the exposure model in use."""
    return build_methodology(runtime.engine.model)


@router.get("/data/raw")
def raw_data(runtime: NowcastRuntime = Depends(get_runtime)) -> dict:
    """Latest fetched series, computed aggregates and the exposure table."""
    return runtime.engine.raw_dump()
