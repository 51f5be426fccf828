"""Sensitivity analysis: one-way sweeps and two-way grids.

A parameter path uses dotted notation on ScenarioConfig:
    'system_congestion', 'population', 'discount_rate',
    'parameter_overrides.mu0', 'parameter_overrides.per_diem_costs.l2'

Values under 'parameter_overrides.' vary the resolved pre-AI parameter;
AI effects are applied on top. At each point the intervention run is
compared against a baseline: either the fixed baseline supplied, or the
same perturbed configuration with every AI intervention off (paired).
"""

import copy
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from tiersim.core.scenario import ScenarioConfig
from tiersim.experiment.runner import run_baseline, run_simulation
from tiersim.model.resolver import resolve_config
from tiersim.results.outcomes import SimulationResults

logger = logging.getLogger(__name__)


OVERRIDE_PREFIX = "parameter_overrides."

ONE_WAY_VARIATION = 0.25
ONE_WAY_STEPS = 10
TWO_WAY_VARIATION = 0.20
TWO_WAY_STEPS = 5


@dataclass
class SweepResult:
    """Result of a one-way sensitivity sweep.

    Attributes:
        parameter: Path of the parameter that was varied.
        base_value: Unperturbed value of the parameter.
        values: Parameter values tested.
        results: DataFrame with columns: value, pct_change, deaths, cost,
            dalys, icer, raw_icer, icer_status, success.
    """
    parameter: str
    base_value: float
    values: List[float]
    results: pd.DataFrame

    def to_dataframe(self) -> pd.DataFrame:
        """Return results as DataFrame."""
        return self.results

    def swing(self, metric: str = "deaths") -> float:
        """Range of a metric across the sweep (max - min)."""
        column = self.results[metric].dropna()
        return float(column.max() - column.min()) if len(column) else 0.0


@dataclass
class SensitivityGrid:
    """Result of a two-way sensitivity analysis.

    Attributes:
        primary: Path of the first parameter (grid rows).
        secondary: Path of the second parameter (grid columns).
        primary_values: Values of the first parameter.
        secondary_values: Values of the second parameter.
        results: Long-format DataFrame, one row per grid point.
    """
    primary: str
    secondary: str
    primary_values: List[float]
    secondary_values: List[float]
    results: pd.DataFrame

    def to_dataframe(self) -> pd.DataFrame:
        return self.results

    def pivot(self, metric: str = "deaths") -> pd.DataFrame:
        """Metric as a primary x secondary table."""
        return self.results.pivot(index="primary_value", columns="secondary_value", values=metric)


def set_nested_param(config: ScenarioConfig, param_path: str, value: Any) -> ScenarioConfig:
    """Set a parameter on a scenario, supporting nested paths.

    Creates a deep copy of the scenario and sets the specified parameter.
    Keys below 'parameter_overrides.' are taken whole, so
    'parameter_overrides.per_diem_costs.l2' sets the override key
    'per_diem_costs.l2'.

    Raises:
        ValueError: If the parameter path cannot be navigated or set.
    """
    config = copy.deepcopy(config)

    if param_path.startswith(OVERRIDE_PREFIX):
        config.parameter_overrides[param_path[len(OVERRIDE_PREFIX):]] = value
        config.__post_init__()
        return config

    parts = param_path.split('.')
    obj = config

    for part in parts[:-1]:
        if hasattr(obj, part):
            obj = getattr(obj, part)
        elif isinstance(obj, dict):
            obj = obj[part]
        else:
            raise ValueError(f"Cannot navigate to {part} in {param_path}")

    final_attr = parts[-1]
    if hasattr(obj, final_attr):
        setattr(obj, final_attr, value)
    elif isinstance(obj, dict):
        obj[final_attr] = value
    else:
        raise ValueError(f"Cannot set {final_attr} in {param_path}")

    # Re-validate after mutation
    config.__post_init__()
    return config


def get_base_value(config: ScenarioConfig, param_path: str) -> float:
    """Unperturbed value of a parameter path.

    Override paths return the resolved value with AI switched off.
    """
    if param_path.startswith(OVERRIDE_PREFIX):
        name = param_path[len(OVERRIDE_PREFIX):]
        value = resolve_config(config.baseline()).get(name)
        if value is None:
            raise ValueError(f"Unknown resolved parameter: {name}")
        return float(value)

    obj: Any = config
    for part in param_path.split('.'):
        if hasattr(obj, part):
            obj = getattr(obj, part)
        elif isinstance(obj, dict) and part in obj:
            obj = obj[part]
        else:
            raise ValueError(f"Cannot navigate to {part} in {param_path}")
    return float(obj)


def variation_values(base_value: float, variation: float, steps: int) -> List[float]:
    """steps + 1 evenly spaced values from base*(1-variation) to base*(1+variation)."""
    return [float(v) for v in np.linspace(base_value * (1 - variation), base_value * (1 + variation), steps + 1)]


def _failed_point() -> Dict[str, Any]:
    return {
        "deaths": np.nan, "cost": np.nan, "dalys": np.nan,
        "icer": np.nan, "raw_icer": np.nan, "icer_status": None,
        "success": False,
    }


def _perturb(config: ScenarioConfig, changes: Sequence[Tuple[str, float]]) -> Optional[ScenarioConfig]:
    """Apply (path, value) changes; None if the result is not a valid scenario."""
    try:
        for param_path, value in changes:
            config = set_nested_param(config, param_path, value)
    except ValueError as e:
        logger.warning(f"Sensitivity point skipped: {e}")
        return None
    return config


def _evaluate(
    config: ScenarioConfig,
    baseline: Optional[SimulationResults],
) -> Dict[str, Any]:
    """Run one perturbed scenario and extract the tracked metrics."""
    if baseline is None:
        paired = run_baseline(config)
        baseline = paired.results if paired.success else None

    run = run_simulation(config, baseline=baseline)
    if not run.success:
        logger.warning(f"Sensitivity point failed: {run.error_message}")
        return _failed_point()

    results = run.results
    icer = results.icer
    return {
        "deaths": results.cumulative_deaths,
        "cost": results.total_cost,
        "dalys": results.dalys,
        "icer": icer.value if icer and icer.value is not None else np.nan,
        "raw_icer": icer.raw_value if icer and icer.raw_value is not None else np.nan,
        "icer_status": icer.status.value if icer else None,
        "success": True,
    }


def _map(func, items: Sequence, parallel: bool) -> List:
    if parallel and len(items) > 1:
        with ThreadPoolExecutor() as executor:
            return list(executor.map(func, items))
    return [func(item) for item in items]


def one_way_sensitivity(
    config: ScenarioConfig,
    param_path: str,
    baseline: Optional[SimulationResults] = None,
    variation: float = ONE_WAY_VARIATION,
    steps: int = ONE_WAY_STEPS,
    values: Optional[List[float]] = None,
    parallel: bool = False,
) -> SweepResult:
    """Vary one parameter around its base value and record the outcomes.

    Args:
        config: Scenario (usually with AI interventions on).
        param_path: Parameter to vary (see module docstring).
        baseline: Fixed baseline for the ICER; None pairs every point with
            its own AI-off run.
        variation: Relative half-width of the range (0.25 -> -25%..+25%).
        steps: Number of intervals; steps + 1 points are run.
        values: Explicit values, overriding variation/steps.
        parallel: Run points on a thread pool.

    Returns:
        SweepResult with one row per value.

    Plain Language:
        Answers "what if this number were a quarter lower or higher?" for
        deaths, cost, DALYs and cost-effectiveness.
    """
    base_value = get_base_value(config, param_path)
    if values is None:
        values = variation_values(base_value, variation, steps)

    def _point(value: float) -> Dict[str, Any]:
        row = {
            "value": value,
            "pct_change": (value - base_value) / base_value * 100 if base_value else 0.0,
        }
        perturbed = _perturb(config, [(param_path, value)])
        row.update(_evaluate(perturbed, baseline) if perturbed is not None else _failed_point())
        return row

    rows = _map(_point, values, parallel)
    return SweepResult(
        parameter=param_path,
        base_value=base_value,
        values=list(values),
        results=pd.DataFrame(rows),
    )


def two_way_sensitivity(
    config: ScenarioConfig,
    primary_path: str,
    secondary_path: str,
    baseline: Optional[SimulationResults] = None,
    variation: float = TWO_WAY_VARIATION,
    steps: int = TWO_WAY_STEPS,
    parallel: bool = False,
) -> SensitivityGrid:
    """Vary two parameters jointly over a grid and record the outcomes.

    Args:
        config: Scenario (usually with AI interventions on).
        primary_path: First parameter (grid rows).
        secondary_path: Second parameter (grid columns).
        baseline: Fixed baseline for the ICER; None pairs each grid point.
        variation: Relative half-width of both ranges (0.20 -> -20%..+20%).
        steps: Intervals per parameter; (steps + 1)^2 points are run.
        parallel: Run grid points on a thread pool.
    """
    if primary_path == secondary_path:
        raise ValueError("Two-way sensitivity needs two different parameters")

    primary_values = variation_values(get_base_value(config, primary_path), variation, steps)
    secondary_values = variation_values(get_base_value(config, secondary_path), variation, steps)
    grid: List[Tuple[float, float]] = [(p, s) for p in primary_values for s in secondary_values]

    def _point(pair: Tuple[float, float]) -> Dict[str, Any]:
        primary_value, secondary_value = pair
        perturbed = _perturb(config, [(primary_path, primary_value), (secondary_path, secondary_value)])
        row = {"primary_value": primary_value, "secondary_value": secondary_value}
        row.update(_evaluate(perturbed, baseline) if perturbed is not None else _failed_point())
        return row

    rows = _map(_point, grid, parallel)
    return SensitivityGrid(
        primary=primary_path,
        secondary=secondary_path,
        primary_values=primary_values,
        secondary_values=secondary_values,
        results=pd.DataFrame(rows),
    )
