"""Scenario runners: single runs, baselines and multi-disease runs.

The runner is the error boundary of the engine. run_simulation() and
run_multi() never raise for a bad scenario; failures are logged and
returned as SimulationRun(success=False, error_message=...).

Example usage:
    from tiersim.core.scenario import AIInterventionSet, ScenarioConfig
    from tiersim.experiment.runner import run_baseline, run_simulation

    config = ScenarioConfig(disease="malaria", interventions=AIInterventionSet(chw_ai=True))
    baseline = run_baseline(config)
    run = run_simulation(config, baseline=baseline.results)
    print(run.results.icer.describe())
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Sequence

from tiersim.core.catalog import GENERIC_DISEASE
from tiersim.core.parameters import ResolvedParameters
from tiersim.core.scenario import ScenarioConfig
from tiersim.model.resolver import resolve_config
from tiersim.model.state import CompartmentState
from tiersim.model.stepper import step
from tiersim.results.outcomes import SimulationResults, aggregate, combine_results

logger = logging.getLogger(__name__)


DEFAULT_WEEKS = 52


@dataclass
class SimulationRun:
    """Result-or-diagnostic for one run.

    Attributes:
        config: Scenario that was run.
        results: SimulationResults when success is True, else None.
        success: Whether the run completed.
        error_message: Failure description when success is False.
        execution_time_ms: Wall-clock time of the run.
    """
    config: ScenarioConfig
    results: Optional[SimulationResults] = None
    success: bool = True
    error_message: Optional[str] = None
    execution_time_ms: float = 0.0

    @property
    def warnings(self) -> List[str]:
        return list(self.results.warnings) if self.results else []


@dataclass
class MultiDiseaseRun:
    """Per-disease runs plus their summed aggregate.

    Attributes:
        runs: SimulationRun per disease, in request order.
        aggregate: Sum over the successful disease runs (None if none succeeded).
        baseline_substitutions: Disease -> baseline actually used, for every
            disease whose own baseline was missing.
        warnings: Substitution and failure notes.
    """
    runs: Dict[str, SimulationRun]
    aggregate: Optional[SimulationResults] = None
    baseline_substitutions: Dict[str, str] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return bool(self.runs) and all(r.success for r in self.runs.values())

    @property
    def results(self) -> Dict[str, SimulationResults]:
        """Results of the successful disease runs."""
        return {d: r.results for d, r in self.runs.items() if r.success}

    @property
    def failed(self) -> List[str]:
        return [d for d, r in self.runs.items() if not r.success]


def initial_state() -> CompartmentState:
    """Week-0 state: nobody ill yet, no carry-over."""
    return CompartmentState(week=0)


def run(
    start: CompartmentState,
    params: ResolvedParameters,
    weeks: int = DEFAULT_WEEKS,
    baseline: Optional[SimulationResults] = None,
    label: str = "",
) -> SimulationResults:
    """Step the model for a number of weeks and aggregate the trajectory.

    Args:
        start: Initial state (week 0).
        params: Resolved parameters, fixed for the whole run.
        weeks: Number of weekly steps.
        baseline: Optional baseline results for the ICER.
        label: Display label for the results.

    Returns:
        SimulationResults with weeks + 1 states.
    """
    if weeks < 1:
        raise ValueError("weeks must be at least 1")

    states = [start]
    for week_index in range(start.week, start.week + weeks):
        states.append(step(states[-1], params, week_index))

    return aggregate(states, params, baseline=baseline, label=label)


def run_simulation(
    config: ScenarioConfig,
    baseline: Optional[SimulationResults] = None,
) -> SimulationRun:
    """Resolve parameters for a scenario and run it.

    Args:
        config: Scenario configuration.
        baseline: Optional baseline results; enables the ICER.

    Returns:
        SimulationRun. Never raises for scenario errors.
    """
    start_time = time.perf_counter()

    try:
        params = resolve_config(config)
        results = run(initial_state(), params, config.weeks, baseline=baseline, label=config.name)
    except Exception as e:
        execution_time = (time.perf_counter() - start_time) * 1000
        logger.error(f"Simulation '{config.name}' ({config.disease}) failed: {e}")
        return SimulationRun(
            config=config,
            success=False,
            error_message=f"{type(e).__name__}: {e}",
            execution_time_ms=execution_time,
        )

    execution_time = (time.perf_counter() - start_time) * 1000
    logger.debug(
        f"Simulation '{config.name}' ({config.disease}) completed in "
        f"{execution_time:.1f}ms with {len(results.warnings)} warnings"
    )
    return SimulationRun(config=config, results=results, execution_time_ms=execution_time)


def run_baseline(config: ScenarioConfig) -> SimulationRun:
    """Run the scenario with every AI intervention switched off."""
    return run_simulation(config.baseline())


def _select_baseline(
    disease: str,
    baselines: Dict[str, SimulationResults],
) -> Optional[str]:
    """Key of the baseline to use for a disease: own, generic, then first available."""
    if disease in baselines:
        return disease
    if GENERIC_DISEASE in baselines:
        return GENERIC_DISEASE
    return next(iter(baselines), None)


def run_multi(
    diseases: Sequence[str],
    shared_config: ScenarioConfig,
    baselines: Optional[Dict[str, SimulationResults]] = None,
    compute_baselines: bool = False,
    parallel: bool = True,
    max_workers: Optional[int] = None,
) -> MultiDiseaseRun:
    """Run one independent simulation per disease and sum the results.

    Every disease shares the health-system, AI and setting configuration
    of shared_config; only the disease key differs.

    Args:
        diseases: Disease catalog keys.
        shared_config: Configuration shared by every disease.
        baselines: Optional baseline results per disease. A missing entry
            falls back to the generic (or first available) baseline and the
            substitution is recorded.
        compute_baselines: Run each disease's baseline first when no
            baselines are given.
        parallel: Run diseases on a thread pool.
        max_workers: Thread pool size (default: executor default).

    Returns:
        MultiDiseaseRun with per-disease runs and the aggregate. An empty
        disease list gives an unsuccessful run with no results and a warning.
    """
    diseases = list(dict.fromkeys(diseases))
    if not diseases:
        message = "run_multi needs at least one disease"
        logger.warning(message)
        return MultiDiseaseRun(runs={}, aggregate=None, warnings=[message])

    configs = {
        d: replace(shared_config, disease=d, name=f"{shared_config.name} - {d}")
        for d in diseases
    }

    if baselines is None and compute_baselines:
        baseline_runs = _run_all(
            {d: c.baseline() for d, c in configs.items()}, {}, parallel, max_workers
        )
        baselines = {d: r.results for d, r in baseline_runs.items() if r.success}

    warnings: List[str] = []
    substitutions: Dict[str, str] = {}
    chosen: Dict[str, SimulationResults] = {}
    if baselines is not None:
        for d in diseases:
            key = _select_baseline(d, baselines)
            if key is None:
                message = f"No baseline available for {d}; ICER not computed"
                logger.warning(message)
                warnings.append(message)
                continue
            if key != d:
                message = f"Baseline for {d} missing; substituted baseline of {key}"
                logger.warning(message)
                warnings.append(message)
                substitutions[d] = key
            chosen[d] = baselines[key]

    runs = _run_all(configs, chosen, parallel, max_workers)

    for d, r in runs.items():
        if not r.success:
            warnings.append(f"{d} failed: {r.error_message}")

    succeeded = [d for d in diseases if runs[d].success]
    combined = None
    if succeeded:
        per_disease = [runs[d].results for d in succeeded]
        ai_fixed_cost = max(r.costs.ai_fixed_costs for r in per_disease)

        combined_baseline = None
        if chosen and all(d in chosen for d in succeeded):
            combined_baseline = combine_results([chosen[d] for d in succeeded], ai_fixed_cost=0.0)

        combined = combine_results(
            per_disease,
            ai_fixed_cost=ai_fixed_cost,
            baseline=combined_baseline,
            label=shared_config.name,
            warnings=warnings,
        )

    return MultiDiseaseRun(
        runs=runs,
        aggregate=combined,
        baseline_substitutions=substitutions,
        warnings=warnings,
    )


def _run_all(
    configs: Dict[str, ScenarioConfig],
    baselines: Dict[str, SimulationResults],
    parallel: bool,
    max_workers: Optional[int],
) -> Dict[str, SimulationRun]:
    keys = list(configs)

    def _one(key: str) -> SimulationRun:
        return run_simulation(configs[key], baseline=baselines.get(key))

    if parallel and len(keys) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            runs = list(executor.map(_one, keys))
    else:
        runs = [_one(k) for k in keys]

    return dict(zip(keys, runs))
