"""Domain constants for displacement_api.

This module centralizes all magic numbers and configuration constants
to improve maintainability and make the codebase more self-documenting.
"""

from datetime import date

# ============================================================================
# Attribution Constants
# ============================================================================

# ChatGPT launch; products launched earlier are only credited from here on
AI_INFLECTION_DATE = date(2022, 11, 30)

# Multiplier per displacement type
DISPLACEMENT_TYPE_MULTIPLIERS = {
    "direct": 1.0,  # Directly replaces workers
    "augmentation": 0.4,  # Makes workers more productive
    "infrastructure": 0.25,  # Enables others to build AI
}

# Multiplier per market tier
MARKET_TIER_MULTIPLIERS = {
    "enterprise": 1.0,  # Enterprise sales = large deployments
    "prosumer": 0.6,  # Individual professionals
    "consumer": 0.15,  # Consumer apps = minimal job impact
}

# Deployment maturity ramp: (months, maturity) breakpoints, linear in between
MATURITY_BREAKPOINTS = (
    (0, 0.2),
    (6, 0.5),
    (12, 0.75),
    (24, 1.0),
)

# Tolerance on the sum of category allocation weights
ALLOCATION_SUM_TOLERANCE = 0.01


# ============================================================================
# Nowcast Constants
# ============================================================================

# Start of the historical running total
NOWCAST_EPOCH = date(2023, 1, 1)

DAYS_PER_MONTH = 30
SECONDS_PER_DAY = 86400

# JOLTS series are reported in thousands
JOLTS_UNIT_SCALE = 1000

# Observations requested per series
FRED_OBSERVATION_LIMIT = 12

# Cosmetic jitter bounds applied to each tick advance
JITTER_LOW = 0.9
JITTER_HIGH = 1.1

MODEL_NAME = "Industry-weighted AI exposure model"
DATA_SOURCE_NAME = "BLS JOLTS via FRED"


# ============================================================================
# Runtime Defaults
# ============================================================================

DEFAULT_REFRESH_INTERVAL_SECONDS = 6 * 60 * 60
DEFAULT_TICK_INTERVAL_SECONDS = 0.1
DEFAULT_PERSIST_EVERY_TICKS = 100

# Client animator
ANIMATOR_SMOOTHING = 0.12
ANIMATOR_UPDATE_INTERVAL_SECONDS = 0.2
ANIMATOR_EXTRAPOLATION_DAMPING = 0.5
ANIMATOR_FRAME_INTERVAL_SECONDS = 1 / 60
VIEWER_RECONNECT_DELAY_SECONDS = 2.0
