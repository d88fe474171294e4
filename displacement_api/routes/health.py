"""Health check endpoints."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from displacement_api.core.runtime import NowcastRuntime
from displacement_api.routes.dependencies import get_runtime

router = APIRouter()


class HealthResponse(BaseModel):
    """Response model for the health check."""

    status: str = Field(..., description="Always 'ok' while the process serves requests")
    counter: int = Field(..., description="Current integer counter value")
    clients: int = Field(..., description="Connected viewers")
    data_status: str = Field(..., description="empty, ok, partial or stale")
    data_fresh: bool = Field(..., description="True when the last refresh had no errors")
    store: str = Field(..., description="State store backend")
    store_connected: bool


@router.get("/api/health", response_model=HealthResponse)
async def health_check(runtime: NowcastRuntime = Depends(get_runtime)) -> HealthResponse:
    """Process-alive flag, counter, viewer count and data freshness."""
    return HealthResponse(
        status="ok",
        counter=runtime.engine.state.integer_value,
        clients=runtime.manager.count,
        data_status=runtime.engine.data_status,
        data_fresh=runtime.engine.is_fresh,
        store=runtime.store.backend,
        store_connected=await runtime.store.ping(),
    )


@router.get("/health/live")
def liveness() -> dict:
    """Liveness check - is the process running?"""
    return {"status": "alive"}
