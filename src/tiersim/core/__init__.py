"""Core foundation layer: entities, parameter records, catalogs, scenario configuration."""

from tiersim.core.entities import (
    CareLevel,
    Compartment,
    EffectKey,
    Intervention,
    ModelParameter,
    ParameterError,
    UnknownProfileError,
)
from tiersim.core.parameters import ResolvedParameters
from tiersim.core.scenario import (
    AIInterventionSet,
    ComorbidityAdjustment,
    ScenarioConfig,
    load_scenario_file,
    save_scenario_file,
)

__all__ = [
    "CareLevel",
    "Compartment",
    "EffectKey",
    "Intervention",
    "ModelParameter",
    "ParameterError",
    "UnknownProfileError",
    "ResolvedParameters",
    "AIInterventionSet",
    "ComorbidityAdjustment",
    "ScenarioConfig",
    "load_scenario_file",
    "save_scenario_file",
]
