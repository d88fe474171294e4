"""Helpers for rebuilding dataclasses from persisted JSON records."""

from dataclasses import fields
from typing import Any


def known_fields(cls: type, record: Any) -> dict[str, Any]:
    """Keep only the keys of `record` that are fields of dataclass `cls`.

    Keys written by other versions of the service are dropped.

    Raises:
        TypeError: if the record is not a dict
    """
    if not isinstance(record, dict):
        raise TypeError(f"Expected a dict for {cls.__name__}, got {type(record).__name__}")
    names = {f.name for f in fields(cls)}
    return {key: value for key, value in record.items() if key in names}
