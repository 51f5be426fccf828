"""Parameter records: catalog profiles and the fully resolved parameter set.

Profiles (DiseaseProfile, HealthSystemProfile) describe the data contracts
of the external catalogs. ResolvedParameters is the single flat record the
weekly stepper consumes; it is produced by the resolver and is immutable for
the duration of a run.

All probabilities are WEEKLY. Use annual_risk() to convert to an
annual-equivalent risk.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, FrozenSet, Optional, Tuple

from tiersim.core.entities import CareLevel, Compartment, Intervention


# Weekly probability fields validated after resolution
PROBABILITY_FIELDS: Tuple[str, ...] = (
    "phi0", "sigma_i", "informal_care_ratio",
    "mu_u", "delta_u",
    "mu_i", "delta_i",
    "mu0", "delta0", "rho0",
    "mu1", "delta1", "rho1",
    "mu2", "delta2", "rho2",
    "mu3", "delta3",
    "queue_abandonment_rate", "queue_bypass_rate", "queue_clearance_rate",
    "queue_prevention_rate", "visit_reduction", "direct_routing_improvement",
)

# Fields leaving each compartment in one week. Their sum must not exceed 1.
OUTFLOW_FIELDS: Dict[Compartment, Tuple[str, ...]] = {
    Compartment.UNTREATED: ("mu_u", "delta_u"),
    Compartment.INFORMAL: ("mu_i", "delta_i", "sigma_i"),
    Compartment.L0: ("mu0", "delta0", "rho0"),
    Compartment.L1: ("mu1", "delta1", "rho1"),
    Compartment.L2: ("mu2", "delta2", "rho2"),
    Compartment.L3: ("mu3", "delta3"),
}


def annual_risk(weekly_probability: float, weeks: int = 52) -> float:
    """Annual-equivalent risk of a weekly probability: 1 - (1 - p)^52."""
    return 1.0 - (1.0 - weekly_probability) ** weeks


@dataclass(frozen=True)
class PerDiemCosts:
    """Cost per patient-day at each care setting (USD).

    Untreated patients and queued patients incur no per-diem cost.
    """

    informal: float = 10.0
    l0: float = 15.0
    l1: float = 35.0
    l2: float = 100.0
    l3: float = 200.0

    def for_compartment(self, compartment: Compartment) -> float:
        """Per-diem rate for a compartment (0.0 where no care is delivered)."""
        return {
            Compartment.INFORMAL: self.informal,
            Compartment.L0: self.l0,
            Compartment.L1: self.l1,
            Compartment.L2: self.l2,
            Compartment.L3: self.l3,
        }.get(compartment, 0.0)

    def to_dict(self) -> Dict[str, float]:
        """Convert to dictionary for serialization."""
        return asdict(self)


@dataclass(frozen=True)
class DiseaseProfile:
    """Disease base rates per care level (one catalog entry).

    Attributes:
        name: Catalog key (e.g. "childhood_pneumonia").
        incidence: Annual incidence per person (lambda).
        disability_weight: GBD disability weight while ill.
        mean_age_of_infection: Mean age at onset, years.
        mu_*/delta_*/rho*: Weekly resolution, death and referral probabilities.
        competition_sensitivity: How strongly congestion affects this disease.
        queue_*_rate: Weekly queue abandonment, bypass and clearance rates.
        congestion_mortality_multiplier: Excess mortality while queueing.
    """

    name: str
    incidence: float
    disability_weight: float
    mean_age_of_infection: float
    mu_u: float
    mu_i: float
    mu0: float
    mu1: float
    mu2: float
    mu3: float
    delta_u: float
    delta_i: float
    delta0: float
    delta1: float
    delta2: float
    delta3: float
    rho0: float
    rho1: float
    rho2: float
    competition_sensitivity: float = 1.0
    queue_abandonment_rate: float = 0.15
    queue_bypass_rate: float = 0.20
    queue_clearance_rate: float = 0.30
    congestion_mortality_multiplier: float = 1.5


@dataclass(frozen=True)
class HealthSystemProfile:
    """Named health-system preset (e.g. weak rural, strong urban).

    Direct values replace the resolver defaults; the multipliers scale the
    disease base rates of the compartment they are keyed by. Missing keys
    mean 1.0 (no change).
    """

    name: str
    phi0: float
    sigma_i: float
    informal_care_ratio: float
    regional_life_expectancy: float
    per_diem_costs: PerDiemCosts = field(default_factory=PerDiemCosts)
    mu_multipliers: Dict[Compartment, float] = field(default_factory=dict)
    delta_multipliers: Dict[Compartment, float] = field(default_factory=dict)
    rho_multipliers: Dict[Compartment, float] = field(default_factory=dict)


@dataclass(frozen=True)
class ResolvedParameters:
    """Fully resolved parameter set consumed by the weekly stepper.

    Produced once per run by resolve_parameters(); never mutated.
    """

    # Population and disease
    population: float
    incidence: float
    disability_weight: float
    mean_age_of_infection: float
    regional_life_expectancy: float

    # Care seeking
    phi0: float
    informal_care_ratio: float
    sigma_i: float

    # Weekly resolution / death / referral probabilities
    mu_u: float
    delta_u: float
    mu_i: float
    delta_i: float
    mu0: float
    delta0: float
    rho0: float
    mu1: float
    delta1: float
    rho1: float
    mu2: float
    delta2: float
    rho2: float
    mu3: float
    delta3: float

    # Economics
    per_diem_costs: PerDiemCosts = field(default_factory=PerDiemCosts)
    ai_fixed_cost: float = 0.0
    ai_variable_cost: float = 0.0
    discount_rate: float = 0.0

    # Congestion and queues
    system_congestion: float = 0.0
    competition_sensitivity: float = 1.0
    queue_abandonment_rate: float = 0.15
    queue_bypass_rate: float = 0.20
    queue_clearance_rate: float = 0.30
    congestion_mortality_multiplier: float = 1.5
    queue_prevention_rate: float = 0.0
    throughput_boost_l0: float = 0.0
    throughput_boost_l1: float = 0.0
    throughput_boost_l2: float = 0.0
    throughput_boost_l3: float = 0.0

    # Self-care AI
    visit_reduction: float = 0.0
    direct_routing_improvement: float = 0.0

    # Provenance
    disease: str = ""
    active_interventions: FrozenSet[Intervention] = frozenset()
    warnings: Tuple[str, ...] = ()

    @property
    def weekly_incidence(self) -> float:
        """New cases per week: lambda * population / 52."""
        return self.incidence * self.population / 52.0

    @property
    def ai_active(self) -> bool:
        """True if any AI intervention contributed to these parameters."""
        return bool(self.active_interventions)

    @property
    def self_care_active(self) -> bool:
        return Intervention.SELF_CARE_AI in self.active_interventions

    @property
    def years_of_life_lost_per_death(self) -> float:
        """Life-years lost per death, never negative."""
        return max(0.0, self.regional_life_expectancy - self.mean_age_of_infection)

    def resolution_rate(self, level: CareLevel) -> float:
        return getattr(self, f"mu{int(level)}")

    def death_rate(self, level: CareLevel) -> float:
        return getattr(self, f"delta{int(level)}")

    def referral_rate(self, level: CareLevel) -> float:
        """Referral probability to the next level (0.0 at the top level)."""
        if level == CareLevel.L3:
            return 0.0
        return getattr(self, f"rho{int(level)}")

    def throughput_boost(self, level: CareLevel) -> float:
        return getattr(self, f"throughput_boost_l{int(level)}")

    def outflow_total(self, compartment: Compartment) -> float:
        """Sum of the weekly probabilities leaving a compartment."""
        return sum(getattr(self, name) for name in OUTFLOW_FIELDS[compartment])

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        data = asdict(self)
        data["active_interventions"] = sorted(i.value for i in self.active_interventions)
        data["warnings"] = list(self.warnings)
        return data

    def get(self, name: str, default: Optional[float] = None) -> Optional[float]:
        """Read a field by name; supports "per_diem_costs.l2" paths."""
        if name.startswith("per_diem_costs."):
            return getattr(self.per_diem_costs, name.split(".", 1)[1], default)
        return getattr(self, name, default)
