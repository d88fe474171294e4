"""Cosmetic tick jitter strategies.

Jitter only makes the counter look less mechanical; it has no bearing on
the estimate. Tests use NoJitter.
"""

import random
from typing import Protocol

from displacement_api.domain.constants import JITTER_HIGH, JITTER_LOW


class JitterStrategy(Protocol):
    def __call__(self) -> float: ...


class NoJitter:
    """Always 1.0."""

    def __call__(self) -> float:
        return 1.0


class UniformJitter:
    """Multiplier drawn uniformly from [low, high]."""

    def __init__(
        self,
        low: float = JITTER_LOW,
        high: float = JITTER_HIGH,
        rng: random.Random | None = None,
    ):
        if not 0 <= low <= high:
            raise ValueError(f"Invalid jitter bounds [{low}, {high}]")
        self.low = low
        self.high = high
        self.rng = rng or random.Random()

    def __call__(self) -> float:
        return self.rng.uniform(self.low, self.high)


def make_jitter(enabled: bool) -> JitterStrategy:
    return UniformJitter() if enabled else NoJitter()
