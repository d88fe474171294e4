"""Ephemeral in-process state store."""

import copy
from typing import Any

from displacement_api.storage.base import StateStore


class MemoryStateStore(StateStore):
    """Dict-backed store; contents are lost on restart."""

    def __init__(self):
        self._data: dict[str, dict[str, Any]] = {}

    @property
    def backend(self) -> str:
        return "memory"

    async def get(self, key: str) -> dict[str, Any] | None:
        value = self._data.get(key)
        return copy.deepcopy(value) if value is not None else None

    async def set(self, key: str, value: dict[str, Any]) -> None:
        self._data[key] = copy.deepcopy(value)

    async def ping(self) -> bool:
        return True
