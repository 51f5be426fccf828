"""Default catalogs: diseases, health systems and AI interventions.

These tables stand in for the external parameter catalogs. Values are
weekly probabilities calibrated against LMIC literature (GBD disability
weights, WHO/IHME mortality, public-sector per-diem costs 2019-2024).
Callers may supply their own profiles; the resolver only relies on the
record types in tiersim.core.parameters.
"""

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from tiersim.core.entities import (
    Compartment,
    EffectOperation,
    Intervention,
    ModelParameter,
    UnknownProfileError,
)
from tiersim.core.parameters import DiseaseProfile, HealthSystemProfile, PerDiemCosts


ADD = EffectOperation.ADDITIVE
MUL = EffectOperation.MULTIPLICATIVE

GENERIC_DISEASE = "generic"
DEFAULT_HEALTH_SYSTEM = "moderate_urban_system"


# =============================================================================
# Diseases
# =============================================================================

DISEASE_PROFILES: Dict[str, DiseaseProfile] = {
    GENERIC_DISEASE: DiseaseProfile(
        name=GENERIC_DISEASE,
        incidence=0.20, disability_weight=0.20, mean_age_of_infection=30,
        mu_u=0.05, mu_i=0.30, mu0=0.50, mu1=0.60, mu2=0.70, mu3=0.80,
        delta_u=0.015, delta_i=0.012, delta0=0.008, delta1=0.005, delta2=0.003, delta3=0.002,
        rho0=0.30, rho1=0.25, rho2=0.15,
    ),
    "congestive_heart_failure": DiseaseProfile(
        name="congestive_heart_failure",
        incidence=0.002, disability_weight=0.42, mean_age_of_infection=67,
        mu_u=0.004, mu_i=0.01, mu0=0.03, mu1=0.35, mu2=0.55, mu3=0.75,
        delta_u=0.09, delta_i=0.08, delta0=0.04, delta1=0.025, delta2=0.015, delta3=0.01,
        rho0=0.70, rho1=0.55, rho2=0.35,
        competition_sensitivity=1.3,
        queue_abandonment_rate=0.02, queue_bypass_rate=0.03, queue_clearance_rate=0.20,
    ),
    "tuberculosis": DiseaseProfile(
        name="tuberculosis",
        incidence=0.003, disability_weight=0.333, mean_age_of_infection=35,
        mu_u=0.005, mu_i=0.02, mu0=0.03, mu1=0.04, mu2=0.05, mu3=0.06,
        delta_u=0.004, delta_i=0.0035, delta0=0.0025, delta1=0.002, delta2=0.0015, delta3=0.001,
        rho0=0.85, rho1=0.45, rho2=0.30,
        competition_sensitivity=0.9,
        queue_abandonment_rate=0.04, queue_bypass_rate=0.05, queue_clearance_rate=0.25,
    ),
    "childhood_pneumonia": DiseaseProfile(
        name="childhood_pneumonia",
        incidence=0.05, disability_weight=0.28, mean_age_of_infection=3,
        mu_u=0.06, mu_i=0.10, mu0=0.70, mu1=0.80, mu2=0.85, mu3=0.90,
        delta_u=0.05, delta_i=0.045, delta0=0.02, delta1=0.015, delta2=0.01, delta3=0.008,
        rho0=0.60, rho1=0.30, rho2=0.20,
        competition_sensitivity=1.5,
        queue_abandonment_rate=0.03, queue_bypass_rate=0.08, queue_clearance_rate=0.25,
    ),
    "malaria": DiseaseProfile(
        name="malaria",
        incidence=0.20, disability_weight=0.186, mean_age_of_infection=7,
        mu_u=0.08, mu_i=0.15, mu0=0.75, mu1=0.80, mu2=0.90, mu3=0.95,
        delta_u=0.03, delta_i=0.025, delta0=0.005, delta1=0.003, delta2=0.002, delta3=0.0015,
        rho0=0.25, rho1=0.20, rho2=0.10,
        competition_sensitivity=1.2,
        queue_abandonment_rate=0.06, queue_bypass_rate=0.15, queue_clearance_rate=0.40,
    ),
    "fever": DiseaseProfile(
        name="fever",
        incidence=0.60, disability_weight=0.10, mean_age_of_infection=15,
        mu_u=0.25, mu_i=0.30, mu0=0.55, mu1=0.70, mu2=0.80, mu3=0.90,
        delta_u=0.015, delta_i=0.012, delta0=0.008, delta1=0.005, delta2=0.003, delta3=0.002,
        rho0=0.30, rho1=0.20, rho2=0.10,
        competition_sensitivity=1.0,
        queue_abandonment_rate=0.12, queue_bypass_rate=0.25, queue_clearance_rate=0.45,
    ),
    "diarrhea": DiseaseProfile(
        name="diarrhea",
        incidence=0.30, disability_weight=0.15, mean_age_of_infection=2,
        mu_u=0.20, mu_i=0.35, mu0=0.85, mu1=0.90, mu2=0.80, mu3=0.85,
        delta_u=0.025, delta_i=0.02, delta0=0.003, delta1=0.002, delta2=0.0015, delta3=0.001,
        rho0=0.50, rho1=0.30, rho2=0.10,
        competition_sensitivity=1.4,
        queue_abandonment_rate=0.08, queue_bypass_rate=0.18, queue_clearance_rate=0.40,
    ),
    "anemia": DiseaseProfile(
        name="anemia",
        incidence=0.05, disability_weight=0.06, mean_age_of_infection=15,
        mu_u=0.01, mu_i=0.05, mu0=0.15, mu1=0.20, mu2=0.25, mu3=0.30,
        delta_u=0.001, delta_i=0.0005, delta0=0.0003, delta1=0.0002, delta2=0.001, delta3=0.0008,
        rho0=0.40, rho1=0.30, rho2=0.15,
        competition_sensitivity=0.8,
        queue_abandonment_rate=0.10, queue_bypass_rate=0.12, queue_clearance_rate=0.35,
    ),
    "hiv_management_chronic": DiseaseProfile(
        name="hiv_management_chronic",
        incidence=0.01, disability_weight=0.078, mean_age_of_infection=30,
        mu_u=0.0, mu_i=0.0, mu0=0.05, mu1=0.10, mu2=0.12, mu3=0.15,
        delta_u=0.007, delta_i=0.0065, delta0=0.004, delta1=0.002, delta2=0.0015, delta3=0.001,
        rho0=0.90, rho1=0.18, rho2=0.50,
        competition_sensitivity=0.7,
        queue_abandonment_rate=0.02, queue_bypass_rate=0.02, queue_clearance_rate=0.30,
    ),
    "high_risk_pregnancy_low_anc": DiseaseProfile(
        name="high_risk_pregnancy_low_anc",
        incidence=0.02, disability_weight=0.30, mean_age_of_infection=28,
        mu_u=0.005, mu_i=0.01, mu0=0.02, mu1=0.10, mu2=0.50, mu3=0.60,
        delta_u=0.02, delta_i=0.015, delta0=0.01, delta1=0.005, delta2=0.002, delta3=0.001,
        rho0=0.90, rho1=0.70, rho2=0.40,
        competition_sensitivity=2.0,
        queue_abandonment_rate=0.01, queue_bypass_rate=0.02, queue_clearance_rate=0.15,
    ),
    "urti": DiseaseProfile(
        name="urti",
        incidence=0.80, disability_weight=0.01, mean_age_of_infection=10,
        mu_u=0.65, mu_i=0.70, mu0=0.75, mu1=0.80, mu2=0.85, mu3=0.90,
        delta_u=0.00002, delta_i=0.00001, delta0=0.00001, delta1=0.000005,
        delta2=0.000001, delta3=0.000001,
        rho0=0.05, rho1=0.02, rho2=0.01,
        competition_sensitivity=0.6,
        queue_abandonment_rate=0.15, queue_bypass_rate=0.20, queue_clearance_rate=0.50,
    ),
    "hiv_opportunistic": DiseaseProfile(
        name="hiv_opportunistic",
        incidence=0.005, disability_weight=0.582, mean_age_of_infection=32,
        mu_u=0.0, mu_i=0.0, mu0=0.08, mu1=0.30, mu2=0.55, mu3=0.70,
        delta_u=0.002, delta_i=0.002, delta0=0.0015, delta1=0.0001, delta2=0.0005, delta3=0.02,
        rho0=0.90, rho1=0.60, rho2=0.50,
        competition_sensitivity=1.6,
        queue_abandonment_rate=0.01, queue_bypass_rate=0.01, queue_clearance_rate=0.15,
    ),
}


# =============================================================================
# Health systems
# =============================================================================

def _levels(i, l0, l1, l2, l3, u=None) -> Dict[Compartment, float]:
    values = {
        Compartment.INFORMAL: i,
        Compartment.L0: l0,
        Compartment.L1: l1,
        Compartment.L2: l2,
        Compartment.L3: l3,
    }
    if u is not None:
        values[Compartment.UNTREATED] = u
    return values


def _referrals(l0, l1, l2) -> Dict[Compartment, float]:
    return {Compartment.L0: l0, Compartment.L1: l1, Compartment.L2: l2}


HEALTH_SYSTEM_PROFILES: Dict[str, HealthSystemProfile] = {
    "moderate_urban_system": HealthSystemProfile(
        name="moderate_urban_system",
        phi0=0.65, sigma_i=0.25, informal_care_ratio=0.15, regional_life_expectancy=70,
        per_diem_costs=PerDiemCosts(informal=12, l0=20, l1=40, l2=120, l3=250),
    ),
    "weak_rural_system": HealthSystemProfile(
        name="weak_rural_system",
        phi0=0.30, sigma_i=0.10, informal_care_ratio=0.40, regional_life_expectancy=55,
        per_diem_costs=PerDiemCosts(informal=5, l0=8, l1=20, l2=80, l3=200),
        mu_multipliers=_levels(0.6, 0.5, 0.5, 0.6, 0.7),
        delta_multipliers=_levels(1.8, 2.0, 2.0, 1.8, 1.5, u=1.5),
        rho_multipliers=_referrals(0.7, 0.6, 0.5),
    ),
    "strong_urban_system_lmic": HealthSystemProfile(
        name="strong_urban_system_lmic",
        phi0=0.80, sigma_i=0.35, informal_care_ratio=0.10, regional_life_expectancy=75,
        per_diem_costs=PerDiemCosts(informal=15, l0=25, l1=50, l2=180, l3=350),
        mu_multipliers=_levels(1.2, 1.3, 1.3, 1.2, 1.1),
        delta_multipliers=_levels(0.7, 0.6, 0.6, 0.7, 0.8, u=0.8),
        rho_multipliers=_referrals(1.1, 1.1, 1.1),
    ),
    "fragile_conflict_system": HealthSystemProfile(
        name="fragile_conflict_system",
        phi0=0.20, sigma_i=0.08, informal_care_ratio=0.60, regional_life_expectancy=50,
        per_diem_costs=PerDiemCosts(informal=4, l0=20, l1=40, l2=150, l3=400),
        mu_multipliers=_levels(0.4, 0.3, 0.4, 0.5, 0.6),
        delta_multipliers=_levels(2.3, 2.0, 2.0, 1.7, 1.5, u=2.5),
        rho_multipliers=_referrals(0.4, 0.3, 0.2),
    ),
    "high_income_system": HealthSystemProfile(
        name="high_income_system",
        phi0=0.90, sigma_i=0.70, informal_care_ratio=0.05, regional_life_expectancy=82,
        per_diem_costs=PerDiemCosts(informal=30, l0=100, l1=250, l2=1000, l3=2500),
        mu_multipliers=_levels(1.5, 1.6, 1.7, 1.6, 1.5),
        delta_multipliers=_levels(0.4, 0.3, 0.3, 0.4, 0.5, u=0.5),
        rho_multipliers=_referrals(1.2, 1.2, 1.2),
    ),
    "rwanda_health_system": HealthSystemProfile(
        name="rwanda_health_system",
        phi0=0.92, sigma_i=0.65, informal_care_ratio=0.02, regional_life_expectancy=68,
        per_diem_costs=PerDiemCosts(informal=8, l0=10, l1=20, l2=80, l3=160),
        mu_multipliers=_levels(0.8, 0.35, 0.3, 0.35, 0.6),
        delta_multipliers=_levels(1.2, 1.4, 1.6, 1.5, 1.2, u=1.1),
        rho_multipliers=_referrals(0.6, 0.5, 0.6),
    ),
}


# =============================================================================
# AI interventions
# =============================================================================

@dataclass(frozen=True)
class AIEffect:
    """One parameter effect of an AI intervention at magnitude 1.0."""
    parameter: ModelParameter
    operation: EffectOperation
    base: float


@dataclass(frozen=True)
class AICost:
    """Implementation cost of an AI intervention (USD)."""
    fixed: float
    variable: float  # per episode touched


P = ModelParameter

AI_BASE_EFFECTS: Dict[Intervention, Tuple[AIEffect, ...]] = {
    Intervention.TRIAGE_AI: (
        AIEffect(P.PHI0, ADD, 0.15),                     # More formal care seeking
        AIEffect(P.SIGMA_I, MUL, 1.25),                  # Faster informal -> formal
        AIEffect(P.QUEUE_PREVENTION_RATE, ADD, 0.35),    # Fewer inappropriate visits queue
    ),
    Intervention.CHW_AI: (
        AIEffect(P.MU0, ADD, 0.10),
        AIEffect(P.DELTA0, MUL, 0.85),
        AIEffect(P.RHO0, MUL, 0.85),                     # Fewer unnecessary referrals
        AIEffect(P.THROUGHPUT_BOOST_L0, ADD, 0.20),
    ),
    Intervention.DIAGNOSTIC_AI: (
        AIEffect(P.MU1, ADD, 0.10),
        AIEffect(P.DELTA1, MUL, 0.85),
        AIEffect(P.RHO1, MUL, 0.85),
        AIEffect(P.THROUGHPUT_BOOST_L1, ADD, 0.35),
    ),
    Intervention.BED_MANAGEMENT_AI: (
        AIEffect(P.MU2, ADD, 0.05),                      # Faster discharge
        AIEffect(P.MU3, ADD, 0.05),
        AIEffect(P.THROUGHPUT_BOOST_L2, ADD, 0.35),
        AIEffect(P.THROUGHPUT_BOOST_L3, ADD, 0.35),
    ),
    Intervention.HOSPITAL_DECISION_AI: (
        AIEffect(P.DELTA2, MUL, 0.80),
        AIEffect(P.DELTA3, MUL, 0.80),
        AIEffect(P.THROUGHPUT_BOOST_L2, ADD, 0.30),
        AIEffect(P.THROUGHPUT_BOOST_L3, ADD, 0.40),
    ),
    Intervention.SELF_CARE_AI: (
        AIEffect(P.MU_I, ADD, 0.15),
        AIEffect(P.DELTA_I, MUL, 0.90),
        AIEffect(P.QUEUE_PREVENTION_RATE, ADD, 0.40),
        AIEffect(P.VISIT_REDUCTION, ADD, 0.20),
        AIEffect(P.DIRECT_ROUTING_IMPROVEMENT, ADD, 0.25),
    ),
}

# Disease-specific replacements for base effects (same parameter -> replaced)
DISEASE_AI_EFFECTS: Dict[str, Dict[Intervention, Tuple[AIEffect, ...]]] = {
    "childhood_pneumonia": {
        Intervention.DIAGNOSTIC_AI: (
            AIEffect(P.MU1, ADD, 0.30),                  # X-ray AI confidence
            AIEffect(P.DELTA1, MUL, 0.85),
            AIEffect(P.RHO1, MUL, 0.75),
        ),
        Intervention.CHW_AI: (
            AIEffect(P.MU0, ADD, 0.20),                  # Respiratory rate counting
            AIEffect(P.DELTA0, MUL, 0.85),
            AIEffect(P.RHO0, MUL, 0.80),
        ),
        Intervention.SELF_CARE_AI: (
            AIEffect(P.MU_I, ADD, 0.02),
            AIEffect(P.DELTA_I, MUL, 0.98),
        ),
    },
    "malaria": {
        Intervention.DIAGNOSTIC_AI: (
            AIEffect(P.MU1, ADD, 0.30),                  # AI microscopy, RDT reading
            AIEffect(P.DELTA1, MUL, 0.80),
            AIEffect(P.RHO1, MUL, 0.75),
        ),
        Intervention.CHW_AI: (
            AIEffect(P.MU0, ADD, 0.25),                  # RDT guidance, ACT dosing
            AIEffect(P.DELTA0, MUL, 0.85),
            AIEffect(P.RHO0, MUL, 0.75),
        ),
    },
    "tuberculosis": {
        Intervention.CHW_AI: (
            AIEffect(P.MU0, ADD, 0.08),
            AIEffect(P.DELTA0, MUL, 0.90),
            AIEffect(P.RHO0, MUL, 1.25),                 # More suspects referred for X-ray
        ),
        Intervention.DIAGNOSTIC_AI: (
            AIEffect(P.MU1, ADD, 0.35),                  # CAD4TB screening
            AIEffect(P.DELTA1, MUL, 0.75),
            AIEffect(P.RHO1, MUL, 0.75),
        ),
    },
    "diarrhea": {
        Intervention.SELF_CARE_AI: (
            AIEffect(P.MU_I, ADD, 0.25),                 # ORS preparation guidance
            AIEffect(P.DELTA_I, MUL, 0.92),
        ),
        Intervention.CHW_AI: (
            AIEffect(P.MU0, ADD, 0.20),
            AIEffect(P.DELTA0, MUL, 0.80),
            AIEffect(P.RHO0, MUL, 0.80),
        ),
    },
}

AI_COSTS: Dict[Intervention, AICost] = {
    Intervention.TRIAGE_AI: AICost(fixed=200_000, variable=2.5),
    Intervention.CHW_AI: AICost(fixed=150_000, variable=1.5),
    Intervention.DIAGNOSTIC_AI: AICost(fixed=300_000, variable=1.0),
    Intervention.BED_MANAGEMENT_AI: AICost(fixed=250_000, variable=1.5),
    Intervention.HOSPITAL_DECISION_AI: AICost(fixed=400_000, variable=3.0),
    Intervention.SELF_CARE_AI: AICost(fixed=100_000, variable=0.5),
}

# Share of eligible episodes that actually use each tool
AI_UPTAKE: Dict[Intervention, float] = {
    Intervention.TRIAGE_AI: 0.33,            # Patient-facing
    Intervention.SELF_CARE_AI: 0.33,
    Intervention.CHW_AI: 0.66,               # Provider-facing
    Intervention.DIAGNOSTIC_AI: 0.66,
    Intervention.BED_MANAGEMENT_AI: 0.66,
    Intervention.HOSPITAL_DECISION_AI: 0.66,
}
URBAN_UPTAKE_MULTIPLIER = 1.2
RURAL_UPTAKE_MULTIPLIER = 0.7


# =============================================================================
# Lookups
# =============================================================================

def get_disease(name: str) -> DiseaseProfile:
    """Return a disease profile by catalog key."""
    try:
        return DISEASE_PROFILES[name]
    except KeyError:
        raise UnknownProfileError(f"Disease profile not found: {name}")


def get_health_system(name: str) -> HealthSystemProfile:
    """Return a health-system preset by catalog key."""
    try:
        return HEALTH_SYSTEM_PROFILES[name]
    except KeyError:
        raise UnknownProfileError(f"Health system profile not found: {name}")


def get_ai_effects(
    intervention: Intervention,
    disease: Optional[str] = None,
) -> Tuple[AIEffect, ...]:
    """Effects of an intervention, with disease-specific replacements merged in.

    A disease-specific effect replaces the base effect on the same parameter;
    base effects on other parameters are kept.
    """
    base = AI_BASE_EFFECTS[intervention]
    overrides = DISEASE_AI_EFFECTS.get(disease or "", {}).get(intervention, ())
    if not overrides:
        return base

    replaced = {effect.parameter: effect for effect in overrides}
    merged = [replaced.pop(effect.parameter, effect) for effect in base]
    merged.extend(replaced.values())
    return tuple(merged)


def list_diseases() -> Tuple[str, ...]:
    return tuple(DISEASE_PROFILES)


def list_health_systems() -> Tuple[str, ...]:
    return tuple(HEALTH_SYSTEM_PROFILES)
