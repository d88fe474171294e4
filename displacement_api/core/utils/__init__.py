"""Shared utility functions for displacement_api core modules."""

from displacement_api.core.utils.records import known_fields

__all__ = [
    "known_fields",
]
