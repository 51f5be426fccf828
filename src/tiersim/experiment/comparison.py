"""Incremental comparison of intervention runs against a baseline.

The model is deterministic, so a comparison is a direct difference of two
runs: deaths averted, DALYs averted, cost difference and the ICER. No
replications or significance tests are involved.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

import pandas as pd

from tiersim.core.entities import IcerStatus
from tiersim.results.costs import format_currency
from tiersim.results.outcomes import IcerResult, SimulationResults, calculate_icer


@dataclass(frozen=True)
class IncrementalComparison:
    """Incremental outcomes of one intervention run against a baseline.

    All incremental fields are None when no baseline was supplied, so
    callers render "N/A" instead of a computed value.
    """
    intervention_label: str
    baseline_label: Optional[str]
    deaths_averted: Optional[float]
    dalys_averted: Optional[float]
    cost_difference: Optional[float]
    resolved_gained: Optional[float]
    icer: Optional[IcerResult]

    @property
    def has_baseline(self) -> bool:
        return self.baseline_label is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "intervention": self.intervention_label,
            "baseline": self.baseline_label,
            "deaths_averted": self.deaths_averted,
            "dalys_averted": self.dalys_averted,
            "cost_difference": self.cost_difference,
            "resolved_gained": self.resolved_gained,
            "icer": self.icer.value if self.icer else None,
            "raw_icer": self.icer.raw_value if self.icer else None,
            "icer_status": self.icer.status.value if self.icer else None,
        }


def compare_results(
    intervention: SimulationResults,
    baseline: Optional[SimulationResults],
) -> IncrementalComparison:
    """Deaths averted, DALYs averted, cost difference and ICER vs a baseline."""
    if baseline is None:
        return IncrementalComparison(
            intervention_label=intervention.label,
            baseline_label=None,
            deaths_averted=None,
            dalys_averted=None,
            cost_difference=None,
            resolved_gained=None,
            icer=None,
        )

    return IncrementalComparison(
        intervention_label=intervention.label,
        baseline_label=baseline.label,
        deaths_averted=baseline.cumulative_deaths - intervention.cumulative_deaths,
        dalys_averted=baseline.dalys - intervention.dalys,
        cost_difference=intervention.total_cost - baseline.total_cost,
        resolved_gained=intervention.cumulative_resolved - baseline.cumulative_resolved,
        icer=calculate_icer(
            intervention.total_cost, intervention.dalys, baseline.total_cost, baseline.dalys
        ),
    )


@dataclass
class ComparisonResult:
    """Comparison of several named runs against one baseline.

    Attributes:
        baseline_name: Display name for the baseline.
        metrics: DataFrame with one row per scenario.
        summary: Plain language summary of the comparison.
    """
    baseline_name: str
    metrics: pd.DataFrame
    summary: str

    def cost_effective(self, threshold: float) -> pd.DataFrame:
        """Rows that are dominant or have an ICER at or below threshold."""
        df = self.metrics
        dominant = df["icer_status"] == IcerStatus.DOMINANT.value
        icer = pd.to_numeric(df["icer"], errors="coerce")
        affordable = (df["icer_status"] == IcerStatus.INCREMENTAL.value) & (icer <= threshold)
        return df[dominant | affordable]


def _generate_summary(df: pd.DataFrame, baseline_name: str) -> str:
    """Generate plain language summary of comparison.

    Returns:
        Markdown-formatted summary string.
    """
    lines = [f"## Comparison against {baseline_name}\n"]

    dominant = df[df["icer_status"] == IcerStatus.DOMINANT.value]
    if len(dominant) > 0:
        lines.append("### Dominant (cheaper and healthier):\n")
        for _, row in dominant.iterrows():
            lines.append(
                f"- **{row['scenario']}**: {row['deaths_averted']:,.0f} deaths averted, "
                f"saves {format_currency(-row['cost_difference'])}\n"
            )

    incremental = df[df["icer_status"] == IcerStatus.INCREMENTAL.value]
    if len(incremental) > 0:
        lines.append("\n### Improves health at extra cost:\n")
        for _, row in incremental.sort_values("icer").iterrows():
            lines.append(
                f"- **{row['scenario']}**: {format_currency(row['icer'])} per DALY averted "
                f"({row['dalys_averted']:,.1f} DALYs averted)\n"
            )

    worse = df[df["icer_status"].isin([
        IcerStatus.DOMINATED.value, IcerStatus.COST_SAVING_LESS_EFFECTIVE.value,
    ])]
    if len(worse) > 0:
        lines.append("\n### Worse health outcomes (not cost-effective):\n")
        for _, row in worse.iterrows():
            lines.append(f"- **{row['scenario']}**: {-row['dalys_averted']:,.1f} extra DALYs\n")

    no_change = df[df["icer_status"] == IcerStatus.UNDEFINED.value]
    if len(no_change) > 0:
        lines.append("\n### No Change in DALYs:\n")
        for _, row in no_change.iterrows():
            lines.append(f"- {row['scenario']}\n")

    return "".join(lines)


def compare_runs(
    named_results: Dict[str, SimulationResults],
    baseline: SimulationResults,
    baseline_name: str = "Baseline",
) -> ComparisonResult:
    """Compare several runs against a single baseline.

    Args:
        named_results: Display name -> results of an intervention run.
        baseline: Baseline results.
        baseline_name: Display name for the baseline.

    Returns:
        ComparisonResult with a metrics table and a plain language summary.

    Example:
        >>> result = compare_runs({"CHW AI": chw.results, "All AI": all_ai.results}, base.results)
        >>> print(result.summary)
    """
    rows = []
    for name, results in named_results.items():
        comparison = compare_results(results, baseline)
        pct_deaths = (
            -comparison.deaths_averted / baseline.cumulative_deaths * 100
            if baseline.cumulative_deaths > 0
            else 0.0
        )
        rows.append({
            "scenario": name,
            "deaths": results.cumulative_deaths,
            "deaths_averted": comparison.deaths_averted,
            "pct_deaths_change": pct_deaths,
            "dalys": results.dalys,
            "dalys_averted": comparison.dalys_averted,
            "total_cost": results.total_cost,
            "cost_difference": comparison.cost_difference,
            "icer": comparison.icer.value,
            "raw_icer": comparison.icer.raw_value,
            "icer_status": comparison.icer.status.value,
        })

    df = pd.DataFrame(rows)
    summary = _generate_summary(df, baseline_name) if len(df) else f"## Comparison against {baseline_name}\n"
    return ComparisonResult(baseline_name=baseline_name, metrics=df, summary=summary)
