"""State store backends for nowcast persistence.

- memory.py       - ephemeral in-process store (default)
- redis_store.py  - durable Redis store, used when REDIS_URL is set

`create_state_store` picks the backend at startup and falls back to
memory when Redis is configured but unreachable.
"""

import logging

from redis.exceptions import RedisError

from displacement_api.storage.base import (
    COUNTERS_KEY,
    SERIES_KEY,
    STATE_KEY,
    StateStore,
)
from displacement_api.storage.memory import MemoryStateStore
from displacement_api.storage.redis_store import RedisStateStore

logger = logging.getLogger(__name__)


async def create_state_store(redis_url: str | None) -> StateStore:
    """Select the state store backend.

    Args:
        redis_url: Redis URL, or None for the in-memory store

    Returns:
        A connected RedisStateStore, or a MemoryStateStore
    """
    if not redis_url:
        logger.info("[Store] Using in-memory state store")
        return MemoryStateStore()

    store = RedisStateStore(redis_url)
    try:
        await store.connect()
    except (RedisError, OSError, ValueError) as e:
        logger.warning(f"[Store] Redis connection failed, falling back to in-memory store: {e}")
        await store.close()
        return MemoryStateStore()

    logger.info("[Store] Redis connected")
    return store


__all__ = [
    "COUNTERS_KEY",
    "SERIES_KEY",
    "STATE_KEY",
    "MemoryStateStore",
    "RedisStateStore",
    "StateStore",
    "create_state_store",
]
