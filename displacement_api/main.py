"""FastAPI application entrypoint."""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from displacement_api import __version__
from displacement_api.core.config import get_log_level, load_settings
from displacement_api.core.runtime import build_runtime
from displacement_api.routes import attribution, health, metrics, root, stream
from displacement_api.routes.dependencies import get_roster
from displacement_api.storage import create_state_store

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = load_settings()
    get_roster()
    store = await create_state_store(settings.redis_url)
    runtime = build_runtime(settings, store)
    await runtime.start()
    app.state.runtime = runtime
    logger.info("[Nowcast] Counter service ready")
    try:
        yield
    finally:
        await runtime.stop()
        app.state.runtime = None


app = FastAPI(
    title="Displacement API",
    description="Live AI job displacement nowcast with company attribution",
    version=__version__,
    lifespan=lifespan,
)

app.include_router(root.router)
app.include_router(health.router, tags=["health"])
app.include_router(metrics.router)
app.include_router(attribution.router)
app.include_router(stream.router)


def run() -> None:
    """Console entry point: configure logging and serve with uvicorn."""
    logging.basicConfig(
        level=get_log_level(),
        format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    settings = load_settings()
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=logging.getLevelName(get_log_level()).lower())


if __name__ == "__main__":
    run()
