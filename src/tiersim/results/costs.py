"""Cost modelling from simulated weekly trajectories.

Costs are a POST-HOC calculation over the weekly states - they do not
change simulation behaviour. Care costs are occupancy x per-diem x 7 days
for every simulated week; untreated and queued patients cost nothing.
AI costs are the one-time fixed cost plus the variable cost for every
episode an active AI tool touched.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Sequence

from tiersim.core.entities import Compartment
from tiersim.core.parameters import ResolvedParameters
from tiersim.model.state import CompartmentState


DAYS_PER_WEEK = 7

# Compartments that incur a per-diem cost -> CostBreakdown field
COSTED_COMPARTMENTS = {
    Compartment.INFORMAL: "informal_costs",
    Compartment.L0: "l0_costs",
    Compartment.L1: "l1_costs",
    Compartment.L2: "l2_costs",
    Compartment.L3: "l3_costs",
}


@dataclass
class CostBreakdown:
    """Detailed cost breakdown for one run (undiscounted)."""

    currency: str = "USD"

    # Care costs by setting
    informal_costs: float = 0.0
    l0_costs: float = 0.0
    l1_costs: float = 0.0
    l2_costs: float = 0.0
    l3_costs: float = 0.0

    # AI implementation
    ai_fixed_costs: float = 0.0
    ai_variable_costs: float = 0.0
    episodes_touched: float = 0.0

    @property
    def total_facility_costs(self) -> float:
        """Formal care costs (L0-L3)."""
        return self.l0_costs + self.l1_costs + self.l2_costs + self.l3_costs

    @property
    def total_care_costs(self) -> float:
        return self.informal_costs + self.total_facility_costs

    @property
    def total_ai_costs(self) -> float:
        return self.ai_fixed_costs + self.ai_variable_costs

    @property
    def grand_total(self) -> float:
        """Grand total of all costs."""
        return self.total_care_costs + self.total_ai_costs

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "currency": self.currency,
            "informal_costs": self.informal_costs,
            "l0_costs": self.l0_costs,
            "l1_costs": self.l1_costs,
            "l2_costs": self.l2_costs,
            "l3_costs": self.l3_costs,
            "ai_fixed_costs": self.ai_fixed_costs,
            "ai_variable_costs": self.ai_variable_costs,
            "episodes_touched": self.episodes_touched,
            "total_care_costs": self.total_care_costs,
            "total_ai_costs": self.total_ai_costs,
            "grand_total": self.grand_total,
        }


def calculate_costs(
    states: Sequence[CompartmentState],
    params: ResolvedParameters,
    currency: str = "USD",
) -> CostBreakdown:
    """Calculate the cost breakdown of a weekly trajectory.

    Args:
        states: Weekly states, week 0 first. Week 0 is the initial state and
            is not itself a simulated week, so it is not costed.
        params: Resolved parameters used for the run.
        currency: Currency code for display.

    Returns:
        CostBreakdown with per-setting and AI costs.
    """
    simulated = states[1:]
    costs = CostBreakdown(currency=currency)

    for compartment, attr in COSTED_COMPARTMENTS.items():
        occupancy = sum(s.compartment(compartment) for s in simulated)
        amount = occupancy * params.per_diem_costs.for_compartment(compartment) * DAYS_PER_WEEK
        setattr(costs, attr, amount)

    episodes = states[-1].episodes_touched if states else 0.0
    if params.ai_active:
        costs.ai_fixed_costs = params.ai_fixed_cost
        costs.ai_variable_costs = params.ai_variable_cost * episodes
    costs.episodes_touched = episodes
    return costs


def combine_costs(
    breakdowns: List[CostBreakdown],
    ai_fixed_cost: float,
) -> CostBreakdown:
    """Sum per-disease breakdowns, counting the shared AI fixed cost once."""
    combined = CostBreakdown(currency=breakdowns[0].currency if breakdowns else "USD")
    for b in breakdowns:
        combined.informal_costs += b.informal_costs
        combined.l0_costs += b.l0_costs
        combined.l1_costs += b.l1_costs
        combined.l2_costs += b.l2_costs
        combined.l3_costs += b.l3_costs
        combined.ai_variable_costs += b.ai_variable_costs
        combined.episodes_touched += b.episodes_touched
    combined.ai_fixed_costs = ai_fixed_cost
    return combined


def format_currency(value: float, symbol: str = "$", decimals: int = 0) -> str:
    """Format a value as currency string.

    Args:
        value: The monetary value.
        symbol: Currency symbol (default $).
        decimals: Decimal places (default 0 for whole numbers).

    Returns:
        Formatted currency string (e.g., "$1,234").
    """
    if decimals == 0:
        return f"{symbol}{value:,.0f}"
    return f"{symbol}{value:,.{decimals}f}"
