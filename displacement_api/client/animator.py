"""Client-side counter animation.

The server pushes an authoritative value a few times a second. The
animator keeps its own decimal value that eases toward the latest target
on every frame and, when updates are late, extrapolates from the last
known rate. The displayed value never goes down.
"""

import math
import time
from dataclasses import dataclass
from typing import Callable

from displacement_api.domain.constants import (
    ANIMATOR_EXTRAPOLATION_DAMPING,
    ANIMATOR_SMOOTHING,
    ANIMATOR_UPDATE_INTERVAL_SECONDS,
)

# Differences below this are treated as converged
CONVERGENCE_EPSILON = 1e-4


@dataclass
class Frame:
    """What to draw for one animation frame."""

    value: float
    integer: int
    hundredths: int
    pulse: bool  # Integer boundary crossed on this frame


class ClientAnimator:
    """Eases a displayed counter toward server updates."""

    def __init__(
        self,
        smoothing: float = ANIMATOR_SMOOTHING,
        update_interval: float = ANIMATOR_UPDATE_INTERVAL_SECONDS,
        extrapolation_damping: float = ANIMATOR_EXTRAPOLATION_DAMPING,
        clock: Callable[[], float] = time.monotonic,
    ):
        if not 0 < smoothing <= 1:
            raise ValueError(f"smoothing must be in (0, 1], got {smoothing}")
        self.smoothing = smoothing
        self.update_interval = update_interval
        self.extrapolation_damping = extrapolation_damping
        self.clock = clock

        self.displayed = 0.0
        self.target = 0.0
        self.per_second = 0.0
        self.per_day = 0
        self.per_day_low = 0
        self.per_day_high = 0
        self.last_update: float | None = None
        self.last_integer = 0
        self.initialized = False

    def on_update(self, data: dict) -> None:
        """Take a server "init" or "tick" payload as the new target."""
        counter = data.get("counter", 0)
        self.target = data.get("counter_decimal") or counter
        self.per_second = data.get("per_second") or 0.0
        self.per_day = data.get("per_day") or 0
        self.per_day_low = data.get("per_day_low") or 0
        self.per_day_high = data.get("per_day_high") or 0
        self.last_update = self.clock()

        # First real value: jump straight to it instead of easing up from 0
        if not self.initialized and counter > 0:
            self.displayed = self.target
            self.last_integer = math.floor(self.displayed)
            self.initialized = True

    def frame(self) -> Frame:
        """Advance one animation frame."""
        previous = self.displayed
        value = previous

        diff = self.target - value
        if abs(diff) > CONVERGENCE_EPSILON:
            value += diff * self.smoothing

        if self.last_update is not None and self.per_second > 0:
            elapsed = self.clock() - self.last_update
            if elapsed > self.update_interval:
                extrapolated = self.target + self.per_second * elapsed * self.extrapolation_damping
                value = max(value, extrapolated)

        self.displayed = max(previous, value)

        integer = math.floor(self.displayed)
        pulse = self.initialized and integer > self.last_integer
        if integer > self.last_integer:
            self.last_integer = integer

        return Frame(
            value=self.displayed,
            integer=integer,
            hundredths=int((self.displayed - integer) * 100),
            pulse=pulse,
        )
