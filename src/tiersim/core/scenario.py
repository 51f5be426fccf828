"""Scenario configuration dataclasses and scenario file I/O.

A ScenarioConfig holds everything needed to reproduce a run: the disease
and health-system keys, the AI intervention toggles, per-effect magnitude
overrides, optional country/comorbidity adjustments and the horizon.

Scenario documents can be loaded from:
1. YAML/JSON files in a scenario directory
2. The TIERSIM_SCENARIO_DIR environment variable (directory override)

Example usage:
    from tiersim.core.scenario import load_scenario_file

    config = load_scenario_file(Path("config/scenarios/malaria_chw.yaml"))
    run = run_simulation(config)
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from tiersim.core.catalog import (
    AI_UPTAKE,
    DEFAULT_HEALTH_SYSTEM,
    GENERIC_DISEASE,
    RURAL_UPTAKE_MULTIPLIER,
    URBAN_UPTAKE_MULTIPLIER,
)
from tiersim.core.entities import EffectKey, Intervention


MAX_EFFECT_MAGNITUDE = 2.0


@dataclass
class AIInterventionSet:
    """The six AI intervention toggles (all off by default)."""
    triage_ai: bool = False
    chw_ai: bool = False
    diagnostic_ai: bool = False
    bed_management_ai: bool = False
    hospital_decision_ai: bool = False
    self_care_ai: bool = False

    def is_active(self, intervention: Intervention) -> bool:
        return getattr(self, intervention.name.lower())

    def active(self) -> List[Intervention]:
        """Active interventions in catalog order."""
        return [i for i in Intervention if self.is_active(i)]

    @property
    def any_active(self) -> bool:
        return bool(self.active())

    @classmethod
    def from_interventions(cls, interventions: Iterable[Intervention]) -> "AIInterventionSet":
        return cls(**{i.name.lower(): True for i in interventions})

    @classmethod
    def all_on(cls) -> "AIInterventionSet":
        return cls.from_interventions(Intervention)

    def to_dict(self) -> Dict[str, bool]:
        """Serialise keyed by the document keys ("triageAI", ...)."""
        return {i.value: self.is_active(i) for i in Intervention}

    @classmethod
    def from_dict(cls, data: Dict[str, bool]) -> "AIInterventionSet":
        return cls.from_interventions(
            Intervention.from_key(key) for key, enabled in data.items() if enabled
        )


@dataclass
class ComorbidityAdjustment:
    """Multi-condition adjustment applied uniformly across rates.

    Attributes:
        mortality_multiplier: Scales every death probability (>= 1).
        resolution_reduction: Scales every resolution probability (0-1].
        care_seeking_boost: Scales phi0 (>= 1); sicker patients seek care.
    """
    mortality_multiplier: float = 1.0
    resolution_reduction: float = 1.0
    care_seeking_boost: float = 1.0

    def __post_init__(self):
        if self.mortality_multiplier < 1.0:
            raise ValueError("mortality_multiplier must be >= 1")
        if not 0.0 < self.resolution_reduction <= 1.0:
            raise ValueError("resolution_reduction must be in (0, 1]")
        if self.care_seeking_boost < 1.0:
            raise ValueError("care_seeking_boost must be >= 1")

    def to_dict(self) -> Dict[str, float]:
        return {
            "mortality_multiplier": self.mortality_multiplier,
            "resolution_reduction": self.resolution_reduction,
            "care_seeking_boost": self.care_seeking_boost,
        }


def default_uptake(is_urban: bool = True) -> Dict[Intervention, float]:
    """Catalog uptake fractions adjusted for setting, capped at 1."""
    setting = URBAN_UPTAKE_MULTIPLIER if is_urban else RURAL_UPTAKE_MULTIPLIER
    return {i: min(1.0, rate * setting) for i, rate in AI_UPTAKE.items()}


@dataclass
class ScenarioConfig:
    """Configuration for one simulation run.

    Attributes:
        name: Display name.
        disease: Disease catalog key.
        health_system: Health-system preset key.
        population: Population at risk.
        weeks: Simulation horizon in weeks.
        interventions: AI intervention toggles.
        effect_magnitudes: Per-effect scale factor in [0, 2]; missing keys mean 1.0.
        uptake: Fraction of episodes using each tool; missing keys mean 1.0.
        system_congestion: System-wide demand/capacity imbalance in [0, 1].
        country: Optional country key ("kenya") or ISO3 code.
        is_urban: Urban (True) or rural (False) setting for country adjustment.
        comorbidity: Optional multi-condition adjustment.
        parameter_overrides: Resolved-parameter values set before AI effects
            are applied (e.g. {"mu0": 0.6, "per_diem_costs.l2": 90}).
        discount_rate: Annual discount rate for DALYs.
    """
    name: str = "Scenario"
    disease: str = GENERIC_DISEASE
    health_system: str = DEFAULT_HEALTH_SYSTEM
    population: float = 100_000
    weeks: int = 52
    interventions: AIInterventionSet = field(default_factory=AIInterventionSet)
    effect_magnitudes: Dict[EffectKey, float] = field(default_factory=dict)
    uptake: Dict[Intervention, float] = field(default_factory=dict)
    system_congestion: float = 0.0
    country: Optional[str] = None
    is_urban: bool = True
    comorbidity: Optional[ComorbidityAdjustment] = None
    parameter_overrides: Dict[str, float] = field(default_factory=dict)
    discount_rate: float = 0.03

    def __post_init__(self):
        # Accept document-style keys ("chwAI:mu0", "chwAI")
        self.effect_magnitudes = {
            (EffectKey.from_string(k) if isinstance(k, str) else k): float(v)
            for k, v in self.effect_magnitudes.items()
        }
        self.uptake = {
            (Intervention.from_key(k) if isinstance(k, str) else k): float(v)
            for k, v in self.uptake.items()
        }

        if self.population <= 0:
            raise ValueError("population must be positive")
        if self.weeks < 1:
            raise ValueError("weeks must be at least 1")
        if not 0.0 <= self.system_congestion <= 1.0:
            raise ValueError("system_congestion must be in [0, 1]")
        if self.discount_rate < 0:
            raise ValueError("discount_rate must be >= 0")
        for key, magnitude in self.effect_magnitudes.items():
            if not 0.0 <= magnitude <= MAX_EFFECT_MAGNITUDE:
                raise ValueError(
                    f"Effect magnitude for {key.to_string()} must be in "
                    f"[0, {MAX_EFFECT_MAGNITUDE}], got {magnitude}"
                )
        for intervention, fraction in self.uptake.items():
            if not 0.0 <= fraction <= 1.0:
                raise ValueError(f"Uptake for {intervention.value} must be in [0, 1]")

    def magnitude(self, key: EffectKey) -> float:
        return self.effect_magnitudes.get(key, 1.0)

    def uptake_for(self, intervention: Intervention) -> float:
        return self.uptake.get(intervention, 1.0)

    def with_interventions(self, interventions: AIInterventionSet, name: Optional[str] = None) -> "ScenarioConfig":
        """Copy of this config with a different intervention set."""
        data = self.to_dict()
        data["interventions"] = interventions.to_dict()
        if name is not None:
            data["name"] = name
        return ScenarioConfig.from_dict(data)

    def baseline(self) -> "ScenarioConfig":
        """Same configuration with every AI intervention switched off."""
        return self.with_interventions(AIInterventionSet(), name=f"{self.name} (baseline)")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the exported scenario document shape."""
        return {
            "name": self.name,
            "disease": self.disease,
            "health_system": self.health_system,
            "population": self.population,
            "weeks": self.weeks,
            "interventions": self.interventions.to_dict(),
            "effect_magnitudes": {k.to_string(): v for k, v in self.effect_magnitudes.items()},
            "uptake": {k.value: v for k, v in self.uptake.items()},
            "system_congestion": self.system_congestion,
            "country": self.country,
            "is_urban": self.is_urban,
            "comorbidity": self.comorbidity.to_dict() if self.comorbidity else None,
            "parameter_overrides": dict(self.parameter_overrides),
            "discount_rate": self.discount_rate,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScenarioConfig":
        """Build from a scenario document; unknown keys (e.g. "results") are ignored."""
        data = dict(data)
        interventions = data.pop("interventions", None) or {}
        comorbidity = data.pop("comorbidity", None)
        # A key present with a null value ("uptake:" in YAML) means empty
        for name in ("effect_magnitudes", "uptake", "parameter_overrides"):
            data[name] = data.get(name) or {}
        known = {name for name in cls.__dataclass_fields__}
        kwargs = {k: v for k, v in data.items() if k in known}

        return cls(
            interventions=(
                interventions
                if isinstance(interventions, AIInterventionSet)
                else AIInterventionSet.from_dict(interventions)
            ),
            comorbidity=ComorbidityAdjustment(**comorbidity) if comorbidity else None,
            **kwargs,
        )


def load_scenario_file(path: Path) -> ScenarioConfig:
    """Load a scenario from a YAML or JSON document.

    Args:
        path: Path to scenario file (.yaml, .yml, or .json)

    Returns:
        ScenarioConfig instance

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file format is not supported
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Scenario file not found: {path}")

    with open(path) as f:
        if path.suffix in (".yaml", ".yml"):
            try:
                import yaml

                data = yaml.safe_load(f)
            except ImportError:
                raise ImportError(
                    "PyYAML is required to load YAML scenario files. "
                    "Install with: pip install pyyaml"
                )
        elif path.suffix == ".json":
            data = json.load(f)
        else:
            raise ValueError(
                f"Unsupported scenario format: {path.suffix}. "
                "Use .yaml, .yml, or .json"
            )

    return ScenarioConfig.from_dict(data or {})


def save_scenario_file(
    config: ScenarioConfig,
    path: Path,
    results: Optional[Dict[str, Any]] = None,
) -> None:
    """Save a scenario (and optionally its results summary) to YAML or JSON.

    Args:
        config: Configuration to save
        path: Path to save to (.yaml, .yml, or .json)
        results: Optional summary dict stored under "results"

    Raises:
        ValueError: If the file format is not supported
    """
    path = Path(path)
    data = config.to_dict()
    if results is not None:
        data["results"] = results

    if path.suffix not in (".yaml", ".yml", ".json"):
        raise ValueError(
            f"Unsupported scenario format: {path.suffix}. "
            "Use .yaml, .yml, or .json"
        )

    # Ensure parent directory exists
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w") as f:
        if path.suffix in (".yaml", ".yml"):
            try:
                import yaml

                yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
            except ImportError:
                raise ImportError(
                    "PyYAML is required to save YAML scenario files. "
                    "Install with: pip install pyyaml"
                )
        else:
            json.dump(data, f, indent=2)


def get_default_scenario_dir() -> Path:
    """Get default scenario directory.

    Checks in order:
    1. TIERSIM_SCENARIO_DIR environment variable
    2. ./config/scenarios directory
    3. Package data directory (fallback)
    """
    if env_dir := os.environ.get("TIERSIM_SCENARIO_DIR"):
        return Path(env_dir)

    cwd_config = Path.cwd() / "config" / "scenarios"
    if cwd_config.exists():
        return cwd_config

    return Path(__file__).parent / "default_scenarios"


def list_available_scenarios(scenario_dir: Optional[Path] = None) -> List[Path]:
    """List all scenario files in a directory (default directory if None)."""
    if scenario_dir is None:
        scenario_dir = get_default_scenario_dir()

    if not scenario_dir.exists():
        return []

    scenarios = []
    for suffix in (".yaml", ".yml", ".json"):
        scenarios.extend(scenario_dir.glob(f"*{suffix}"))

    return sorted(scenarios)
