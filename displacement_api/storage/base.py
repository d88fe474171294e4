"""State store interface for nowcast persistence.

Values are JSON-serializable dicts stored under fixed keys:
    nowcast:counters   integer counter value + fractional remainder
    nowcast:state      last computed rates
    nowcast:series     last good series values
"""

from abc import ABC, abstractmethod
from typing import Any

COUNTERS_KEY = "nowcast:counters"
STATE_KEY = "nowcast:state"
SERIES_KEY = "nowcast:series"


class StateStore(ABC):
    """Get/set contract shared by the durable and ephemeral backends."""

    @property
    @abstractmethod
    def backend(self) -> str:
        """Backend identifier (e.g., 'memory', 'redis')."""
        pass

    @abstractmethod
    async def get(self, key: str) -> dict[str, Any] | None:
        """Return the stored value, or None if absent."""
        pass

    @abstractmethod
    async def set(self, key: str, value: dict[str, Any]) -> None:
        """Store a value, replacing any previous one."""
        pass

    @abstractmethod
    async def ping(self) -> bool:
        """Whether the backend is reachable."""
        pass

    async def close(self) -> None:
        """Release backend resources."""
        return None
