"""Shared route dependencies, overridable in tests."""

from functools import lru_cache

from fastapi import HTTPException
from fastapi.requests import HTTPConnection

from displacement_api.core.roster import load_roster
from displacement_api.core.runtime import NowcastRuntime
from displacement_api.domain.entities import RosterConfig


def get_runtime(connection: HTTPConnection) -> NowcastRuntime:
    """Runtime created by the application lifespan."""
    runtime = getattr(connection.app.state, "runtime", None)
    if runtime is None:
        raise HTTPException(status_code=503, detail="Nowcast runtime not started")
    return runtime


@lru_cache(maxsize=1)
def get_roster() -> RosterConfig:
    """Category table and roster, loaded once per process."""
    return load_roster()
