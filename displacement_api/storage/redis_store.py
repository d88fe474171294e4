"""Durable Redis-backed state store."""

import json
import logging
from typing import Any

import redis.asyncio as redis
from redis.exceptions import RedisError

from displacement_api.domain.exceptions import StorageReadError, StorageWriteError
from displacement_api.storage.base import StateStore

logger = logging.getLogger(__name__)


class RedisStateStore(StateStore):
    """Stores each key as a JSON string in Redis."""

    def __init__(self, redis_url: str, client: redis.Redis | None = None):
        self.redis_url = redis_url
        self.redis = client

    @property
    def backend(self) -> str:
        return "redis"

    async def connect(self) -> None:
        """Open the connection and verify it with PING.

        Raises:
            RedisError / OSError: if Redis is unreachable
            ValueError: if the URL is malformed
        """
        if self.redis is None:
            self.redis = redis.from_url(self.redis_url, decode_responses=True)
        await self.redis.ping()

    async def get(self, key: str) -> dict[str, Any] | None:
        try:
            raw = await self.redis.get(key)
        except RedisError as e:
            raise StorageReadError(f"Redis GET failed: {e}", key=key) from e
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise StorageReadError(f"Corrupt value: {e}", key=key) from e

    async def set(self, key: str, value: dict[str, Any]) -> None:
        try:
            await self.redis.set(key, json.dumps(value))
        except RedisError as e:
            raise StorageWriteError(f"Redis SET failed: {e}", key=key) from e

    async def ping(self) -> bool:
        try:
            return bool(await self.redis.ping())
        except (RedisError, OSError):
            return False

    async def close(self) -> None:
        if self.redis is not None:
            await self.redis.aclose()
