"""
tiersim - tiered health system simulation of AI-enabled interventions.

A deterministic weekly stock-and-flow model of patients moving through
informal care, community health workers, primary care, district and
tertiary hospitals, with congestion, queues, DALYs and ICERs.
"""

__version__ = "0.1.0"

from tiersim.core.scenario import AIInterventionSet, ScenarioConfig
from tiersim.experiment.comparison import compare_results
from tiersim.experiment.runner import run_baseline, run_multi, run_simulation

__all__ = [
    "AIInterventionSet",
    "ScenarioConfig",
    "compare_results",
    "run_baseline",
    "run_multi",
    "run_simulation",
    "__version__",
]
