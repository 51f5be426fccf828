"""Compartment state: one snapshot of the population per simulated week."""

from dataclasses import asdict, dataclass, fields
from typing import Dict, Tuple

import numpy as np

from tiersim.core.entities import CareLevel, Compartment


# Column order used by as_array() and SimulationResults.to_dataframe()
STOCK_FIELDS: Tuple[str, ...] = (
    "u", "i", "l0", "l1", "l2", "l3", "q0", "q1", "q2", "q3", "r", "d",
)


@dataclass(frozen=True)
class CompartmentState:
    """Population stocks at the end of one week.

    R and D are cumulative. The per-week fields (new_cases,
    resolved_this_week, deaths_this_week) describe the step that produced
    this state and are zero for the initial state.
    """

    week: int = 0

    # Ill and in care
    u: float = 0.0      # Untreated
    i: float = 0.0      # Informal care
    l0: float = 0.0     # CHW
    l1: float = 0.0     # Primary care
    l2: float = 0.0     # District hospital
    l3: float = 0.0     # Tertiary hospital

    # Queues for entry into L0..L3
    q0: float = 0.0
    q1: float = 0.0
    q2: float = 0.0
    q3: float = 0.0

    # Cumulative outcomes
    r: float = 0.0
    d: float = 0.0

    # Bookkeeping
    new_cases: float = 0.0
    resolved_this_week: float = 0.0
    deaths_this_week: float = 0.0
    queue_deaths: float = 0.0           # Cumulative deaths while queueing
    shortfall_dropped: float = 0.0      # Cumulative turned away and not queued
    episodes_touched: float = 0.0       # Cumulative episodes touched by AI tools

    def level(self, level: CareLevel) -> float:
        return getattr(self, f"l{int(level)}")

    def queue(self, level: CareLevel) -> float:
        return getattr(self, f"q{int(level)}")

    def compartment(self, compartment: Compartment) -> float:
        return getattr(self, compartment.value.lower())

    @property
    def ill(self) -> float:
        """Patients still ill and in a care compartment (excludes queues)."""
        return self.u + self.i + self.l0 + self.l1 + self.l2 + self.l3

    @property
    def queued(self) -> float:
        return self.q0 + self.q1 + self.q2 + self.q3

    @property
    def total_population(self) -> float:
        """All tracked stocks plus cumulative R, D and dropped shortfall.

        Grows by exactly the week's new cases at every step.
        """
        return self.ill + self.queued + self.r + self.d + self.shortfall_dropped

    def as_array(self) -> np.ndarray:
        """Stocks in STOCK_FIELDS order."""
        return np.array([getattr(self, name) for name in STOCK_FIELDS], dtype=float)

    def min_value(self) -> float:
        """Smallest numeric field (used to check non-negativity)."""
        return min(getattr(self, f.name) for f in fields(self) if f.name != "week")

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)
