"""Root endpoint."""

from fastapi import APIRouter

from displacement_api import __version__

router = APIRouter(tags=["root"])


@router.get("/")
def read_root() -> dict:
    """Service banner."""
    return {
        "message": "AI Job Displacement Counter",
        "service": "displacement-api",
        "version": __version__,
        "stream": "/ws",
        "methodology": "/api/methodology",
    }
