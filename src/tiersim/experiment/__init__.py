"""Experimentation layer: scenario runner, incremental comparison, sensitivity analysis."""

from tiersim.experiment.runner import (
    MultiDiseaseRun,
    SimulationRun,
    run,
    run_baseline,
    run_multi,
    run_simulation,
)
from tiersim.experiment.comparison import (
    ComparisonResult,
    IncrementalComparison,
    compare_results,
    compare_runs,
)
from tiersim.experiment.analysis import (
    SensitivityGrid,
    SweepResult,
    one_way_sensitivity,
    two_way_sensitivity,
)

__all__ = [
    "MultiDiseaseRun",
    "SimulationRun",
    "run",
    "run_baseline",
    "run_multi",
    "run_simulation",
    "ComparisonResult",
    "IncrementalComparison",
    "compare_results",
    "compare_runs",
    "SensitivityGrid",
    "SweepResult",
    "one_way_sensitivity",
    "two_way_sensitivity",
]
