"""Domain services - pure business logic with no external dependencies.

These services contain the core algorithms and business logic.
They depend only on domain entities and standard library types.
"""

from displacement_api.domain.services.attribution import (
    attribute,
    compute_category_shares,
    deployment_maturity,
    months_elapsed,
    round_half_up,
)
from displacement_api.domain.services.nowcast import (
    RESIDUAL_KEY,
    advance_counter,
    aggregate_exposure,
    compute_rates,
)

__all__ = [
    # Attribution
    "attribute",
    "compute_category_shares",
    "deployment_maturity",
    "months_elapsed",
    "round_half_up",
    # Nowcast
    "RESIDUAL_KEY",
    "advance_counter",
    "aggregate_exposure",
    "compute_rates",
]
