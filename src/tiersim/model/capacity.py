"""Capacity model: congestion -> admission capacity and queue entry.

Both functions are pure and monotonic in congestion. Effective congestion
is congestion * competition_sensitivity, so diseases that compete harder
for beds feel the same system load more strongly.
"""

import numpy as np
from scipy.special import expit


def _validate(congestion: float, competition_sensitivity: float) -> None:
    if not 0.0 <= congestion <= 1.0:
        raise ValueError(f"congestion must be in [0, 1], got {congestion}")
    if competition_sensitivity < 0.0:
        raise ValueError(
            f"competition_sensitivity must be >= 0, got {competition_sensitivity}"
        )


def capacity_multiplier(congestion: float, competition_sensitivity: float = 1.0) -> float:
    """Share of desired admissions a level can absorb this week.

    exp(-2 * congestion * competition_sensitivity); 1.0 at zero congestion.
    """
    _validate(congestion, competition_sensitivity)
    return float(np.exp(-2.0 * congestion * competition_sensitivity))


def queue_entry_rate(congestion: float, competition_sensitivity: float = 1.0) -> float:
    """Probability that a patient turned away joins the queue.

    Logistic in effective congestion, centred at 0.5. At zero congestion
    this is 1/(1+e) ~= 0.27, but the shortfall it applies to is zero.
    """
    _validate(congestion, competition_sensitivity)
    effective = congestion * competition_sensitivity
    return float(expit(2.0 * (effective - 0.5)))
