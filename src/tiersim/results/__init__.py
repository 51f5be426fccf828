"""Results layer: cost modelling, DALYs, ICER and simulation results."""

from tiersim.results.costs import (
    CostBreakdown,
    calculate_costs,
    format_currency,
)
from tiersim.results.outcomes import (
    IcerResult,
    SimulationResults,
    aggregate,
    calculate_dalys,
    calculate_icer,
)

__all__ = [
    "CostBreakdown",
    "calculate_costs",
    "format_currency",
    "IcerResult",
    "SimulationResults",
    "aggregate",
    "calculate_dalys",
    "calculate_icer",
]
