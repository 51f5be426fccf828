"""Outcome aggregation: deaths, DALYs, cost, ICER and queue metrics.

aggregate() turns a weekly trajectory into a SimulationResults. When a
baseline SimulationResults is supplied the incremental cost-effectiveness
ratio is computed against it:

    ICER = (cost - baseline_cost) / (baseline_dalys - dalys)

The ratio is only meaningful in the north-east quadrant of the
cost-effectiveness plane (costs more, averts DALYs). The other quadrants
are reported through IcerStatus, and the raw ratio is always kept for
transparency. Equal DALYs give UNDEFINED, never inf or NaN.
"""

import math
from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional, Sequence

import numpy as np
import pandas as pd

from tiersim.core.entities import CareLevel, IcerStatus
from tiersim.core.parameters import ResolvedParameters
from tiersim.model.state import CompartmentState
from tiersim.results.costs import CostBreakdown, calculate_costs, combine_costs


DAYS_PER_WEEK = 7
DAYS_PER_YEAR = 365.25
WEEKS_PER_YEAR = 52


@dataclass(frozen=True)
class IcerResult:
    """Incremental cost-effectiveness against a baseline.

    Attributes:
        status: Quadrant of the cost-effectiveness plane.
        value: Cost per DALY averted; None when DOMINANT or UNDEFINED.
        raw_value: The unfiltered ratio; None only when UNDEFINED.
        cost_difference: Intervention cost minus baseline cost.
        dalys_averted: Baseline DALYs minus intervention DALYs.
    """
    status: IcerStatus
    value: Optional[float]
    raw_value: Optional[float]
    cost_difference: float
    dalys_averted: float

    @property
    def is_dominant(self) -> bool:
        return self.status == IcerStatus.DOMINANT

    @property
    def is_cost_effective_candidate(self) -> bool:
        """True when the intervention improves health (dominant or positive ICER)."""
        return self.status in (IcerStatus.DOMINANT, IcerStatus.INCREMENTAL)

    def describe(self) -> str:
        """Plain-language label for display ("N/A" style values included)."""
        if self.status == IcerStatus.DOMINANT:
            return "Dominant (saves money and improves health)"
        if self.status == IcerStatus.UNDEFINED:
            return "N/A (no difference in DALYs)"
        if self.status == IcerStatus.DOMINATED:
            return f"Dominated (not cost-effective): {self.value:,.0f} per DALY"
        if self.status == IcerStatus.COST_SAVING_LESS_EFFECTIVE:
            return f"Cost-saving but less effective: {self.value:,.0f} saved per DALY lost"
        return f"{self.value:,.0f} per DALY averted"


def calculate_icer(
    cost: float,
    dalys: float,
    baseline_cost: float,
    baseline_dalys: float,
) -> IcerResult:
    """Classify and compute the ICER of an intervention against a baseline."""
    cost_difference = cost - baseline_cost
    dalys_averted = baseline_dalys - dalys

    if math.isclose(dalys, baseline_dalys, rel_tol=1e-12, abs_tol=1e-12):
        return IcerResult(IcerStatus.UNDEFINED, None, None, cost_difference, 0.0)

    raw = cost_difference / dalys_averted

    if dalys_averted > 0:
        if cost_difference <= 0:
            return IcerResult(IcerStatus.DOMINANT, None, raw, cost_difference, dalys_averted)
        return IcerResult(IcerStatus.INCREMENTAL, raw, raw, cost_difference, dalys_averted)

    if cost_difference >= 0:
        return IcerResult(IcerStatus.DOMINATED, raw, raw, cost_difference, dalys_averted)
    return IcerResult(
        IcerStatus.COST_SAVING_LESS_EFFECTIVE, raw, raw, cost_difference, dalys_averted
    )


@dataclass(frozen=True)
class DalyBreakdown:
    """Discounted DALYs split into mortality and morbidity."""
    years_of_life_lost: float
    years_lived_with_disability: float

    @property
    def total(self) -> float:
        return self.years_of_life_lost + self.years_lived_with_disability


def discount_factor(week: int, annual_rate: float) -> float:
    """Discount factor for a simulated week: (1 + r) ^ -(week / 52)."""
    return (1.0 + annual_rate) ** (-week / WEEKS_PER_YEAR)


def calculate_dalys(states: Sequence[CompartmentState], params: ResolvedParameters) -> DalyBreakdown:
    """DALYs over the simulated weeks.

    Mortality: deaths in the week x max(0, life expectancy - mean age).
    Morbidity: patient-days ill (including queued) / 365.25 x disability weight.
    Both terms are discounted per week.
    """
    yll_per_death = params.years_of_life_lost_per_death
    yll = 0.0
    yld = 0.0
    for state in states[1:]:
        factor = discount_factor(state.week, params.discount_rate)
        yll += state.deaths_this_week * yll_per_death * factor
        patient_days = (state.ill + state.queued) * DAYS_PER_WEEK
        yld += patient_days / DAYS_PER_YEAR * params.disability_weight * factor
    return DalyBreakdown(years_of_life_lost=yll, years_lived_with_disability=yld)


def average_time_to_resolution(states: Sequence[CompartmentState]) -> float:
    """Resolved-weighted mean of the weekly time-to-resolution, in weeks.

    Each week's time-to-resolution is estimated by Little's law as the
    number still ill divided by the number leaving illness that week.
    Returns 0.0 when nobody resolved.
    """
    weights = []
    durations = []
    for state in states[1:]:
        exits = state.resolved_this_week + state.deaths_this_week
        if state.resolved_this_week <= 0 or exits <= 0:
            continue
        weights.append(state.resolved_this_week)
        durations.append((state.ill + state.queued) / exits)

    if not weights:
        return 0.0
    return float(np.average(durations, weights=weights))


@dataclass(frozen=True)
class QueueMetrics:
    """Queue summary for one care level."""
    level: CareLevel
    mean_length: float
    peak_length: float
    peak_week: int


def calculate_queue_metrics(states: Sequence[CompartmentState]) -> Dict[CareLevel, QueueMetrics]:
    simulated = states[1:] or states
    metrics = {}
    for level in CareLevel:
        lengths = np.array([s.queue(level) for s in simulated])
        peak_index = int(np.argmax(lengths)) if len(lengths) else 0
        metrics[level] = QueueMetrics(
            level=level,
            mean_length=float(lengths.mean()) if len(lengths) else 0.0,
            peak_length=float(lengths.max()) if len(lengths) else 0.0,
            peak_week=simulated[peak_index].week if len(lengths) else 0,
        )
    return metrics


@dataclass
class SimulationResults:
    """Results of one run (or the sum of several disease runs).

    Attributes:
        label: Display label, usually the disease or scenario name.
        states: Weekly states, week 0 to the horizon.
        params: Resolved parameters (None for multi-disease aggregates).
        cumulative_deaths: Deaths by the final week.
        cumulative_resolved: Resolutions by the final week.
        total_cost: Care costs plus AI costs.
        dalys: Discounted DALYs.
        icer: ICER against the baseline; None without a baseline.
        average_time_to_resolution: Weeks, resolved-weighted.
        costs: Cost breakdown.
        daly_breakdown: YLL / YLD split.
        queue_metrics: Mean and peak queue per level.
        warnings: Clamp, fallback and substitution notes.
    """
    label: str
    states: List[CompartmentState]
    params: Optional[ResolvedParameters]
    cumulative_deaths: float
    cumulative_resolved: float
    total_cost: float
    dalys: float
    icer: Optional[IcerResult]
    average_time_to_resolution: float
    costs: CostBreakdown
    daly_breakdown: DalyBreakdown
    queue_metrics: Dict[CareLevel, QueueMetrics] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)

    @property
    def final_state(self) -> CompartmentState:
        return self.states[-1]

    @property
    def icer_value(self) -> Optional[float]:
        return self.icer.value if self.icer else None

    @property
    def raw_icer_value(self) -> Optional[float]:
        return self.icer.raw_value if self.icer else None

    @property
    def is_dominant(self) -> bool:
        return bool(self.icer and self.icer.is_dominant)

    @property
    def queue_deaths(self) -> float:
        return self.final_state.queue_deaths

    @property
    def shortfall_dropped(self) -> float:
        return self.final_state.shortfall_dropped

    def to_dataframe(self) -> pd.DataFrame:
        """Weekly trajectory, one row per week."""
        return pd.DataFrame([s.to_dict() for s in self.states]).set_index("week")

    def summary(self) -> Dict[str, Any]:
        """Flat summary dictionary for export."""
        return {
            "label": self.label,
            "weeks": self.final_state.week,
            "cumulative_deaths": self.cumulative_deaths,
            "cumulative_resolved": self.cumulative_resolved,
            "queue_deaths": self.queue_deaths,
            "shortfall_dropped": self.shortfall_dropped,
            "total_cost": self.total_cost,
            "dalys": self.dalys,
            "icer": self.icer_value,
            "raw_icer": self.raw_icer_value,
            "icer_status": self.icer.status.value if self.icer else None,
            "average_time_to_resolution": self.average_time_to_resolution,
            "costs": self.costs.to_dict(),
            "warnings": list(self.warnings),
        }


def aggregate(
    states: Sequence[CompartmentState],
    params: ResolvedParameters,
    baseline: Optional[SimulationResults] = None,
    label: str = "",
) -> SimulationResults:
    """Aggregate a weekly trajectory into SimulationResults.

    Args:
        states: Weekly states, week 0 first.
        params: Resolved parameters used for the run.
        baseline: Optional baseline results for the ICER.
        label: Display label (defaults to the disease key).
    """
    states = list(states)
    costs = calculate_costs(states, params)
    dalys = calculate_dalys(states, params)
    final = states[-1]

    icer = None
    if baseline is not None:
        icer = calculate_icer(costs.grand_total, dalys.total, baseline.total_cost, baseline.dalys)

    return SimulationResults(
        label=label or params.disease,
        states=states,
        params=params,
        cumulative_deaths=final.d,
        cumulative_resolved=final.r,
        total_cost=costs.grand_total,
        dalys=dalys.total,
        icer=icer,
        average_time_to_resolution=average_time_to_resolution(states),
        costs=costs,
        daly_breakdown=dalys,
        queue_metrics=calculate_queue_metrics(states),
        warnings=list(params.warnings),
    )


def sum_states(trajectories: Sequence[Sequence[CompartmentState]]) -> List[CompartmentState]:
    """Element-wise sum of equally long trajectories, week by week."""
    numeric = [f.name for f in fields(CompartmentState) if f.name != "week"]
    summed = []
    for week_states in zip(*trajectories):
        totals = {name: sum(getattr(s, name) for s in week_states) for name in numeric}
        summed.append(CompartmentState(week=week_states[0].week, **totals))
    return summed


def combine_results(
    results: Sequence[SimulationResults],
    ai_fixed_cost: float,
    baseline: Optional[SimulationResults] = None,
    label: str = "All diseases",
    warnings: Optional[List[str]] = None,
) -> SimulationResults:
    """Sum per-disease results into one aggregate.

    Deaths, resolutions, DALYs and care costs add up; the AI fixed cost is
    shared across diseases and counted once.
    """
    costs = combine_costs([r.costs for r in results], ai_fixed_cost)
    states = sum_states([r.states for r in results])
    daly_breakdown = DalyBreakdown(
        years_of_life_lost=sum(r.daly_breakdown.years_of_life_lost for r in results),
        years_lived_with_disability=sum(r.daly_breakdown.years_lived_with_disability for r in results),
    )

    icer = None
    if baseline is not None:
        icer = calculate_icer(costs.grand_total, daly_breakdown.total, baseline.total_cost, baseline.dalys)

    all_warnings = list(warnings or [])
    for r in results:
        all_warnings.extend(f"{r.label}: {w}" for w in r.warnings)

    # Time-to-resolution weighted by each disease's resolved count
    resolved = [r.cumulative_resolved for r in results]
    ttr = (
        float(np.average([r.average_time_to_resolution for r in results], weights=resolved))
        if sum(resolved) > 0
        else 0.0
    )

    return SimulationResults(
        label=label,
        states=states,
        params=None,
        cumulative_deaths=sum(r.cumulative_deaths for r in results),
        cumulative_resolved=sum(resolved),
        total_cost=costs.grand_total,
        dalys=daly_breakdown.total,
        icer=icer,
        average_time_to_resolution=ttr,
        costs=costs,
        daly_breakdown=daly_breakdown,
        queue_metrics=calculate_queue_metrics(states),
        warnings=all_warnings,
    )
