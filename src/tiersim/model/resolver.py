"""Parameter resolver: merges every modifier into one ResolvedParameters.

Order of application:
1. Disease base rates.
2. Health-system direct values and per-compartment multipliers.
3. Country and urban/rural adjustment (optional).
4. Multi-condition (comorbidity) adjustment (optional).
5. Explicit parameter overrides (optional).
6. AI intervention effects scaled by magnitude and uptake (and by disease
   severity when a country is set), plus AI costs.
7. Validation: negative values raise ParameterError, probabilities above 1
   are clamped and outflow sets above 1 are rescaled, both with warnings.

Resolution is a pure function of its inputs.
"""

import logging
from dataclasses import fields
from typing import Dict, List, Optional, Union

from tiersim.core import catalog
from tiersim.core.country import adjust_for_country, get_country, severity_factor
from tiersim.core.entities import (
    Compartment,
    EffectKey,
    EffectOperation,
    Intervention,
    ParameterError,
    UnknownProfileError,
)
from tiersim.core.parameters import (
    OUTFLOW_FIELDS,
    PROBABILITY_FIELDS,
    DiseaseProfile,
    HealthSystemProfile,
    PerDiemCosts,
    ResolvedParameters,
)
from tiersim.core.scenario import (
    MAX_EFFECT_MAGNITUDE,
    AIInterventionSet,
    ComorbidityAdjustment,
    ScenarioConfig,
)

logger = logging.getLogger(__name__)


# Disease fields copied straight into the working values
_DISEASE_FIELDS = (
    "incidence", "disability_weight", "mean_age_of_infection",
    "mu_u", "mu_i", "mu0", "mu1", "mu2", "mu3",
    "delta_u", "delta_i", "delta0", "delta1", "delta2", "delta3",
    "rho0", "rho1", "rho2",
    "competition_sensitivity", "queue_abandonment_rate", "queue_bypass_rate",
    "queue_clearance_rate", "congestion_mortality_multiplier",
)

_RESOLUTION_FIELDS = ("mu_u", "mu_i", "mu0", "mu1", "mu2", "mu3")
_DEATH_FIELDS = ("delta_u", "delta_i", "delta0", "delta1", "delta2", "delta3")

# Non-probability fields that must still be non-negative
_NON_NEGATIVE_FIELDS = (
    "population", "incidence", "disability_weight", "mean_age_of_infection",
    "regional_life_expectancy", "competition_sensitivity",
    "congestion_mortality_multiplier", "ai_fixed_cost", "ai_variable_cost",
    "discount_rate", "throughput_boost_l0", "throughput_boost_l1",
    "throughput_boost_l2", "throughput_boost_l3",
)

_SCALAR_FIELDS = frozenset(
    f.name for f in fields(ResolvedParameters)
    if f.name not in ("per_diem_costs", "disease", "active_interventions", "warnings")
)


def _rate_field(prefix: str, compartment: Compartment) -> str:
    """Field name for a rate of a compartment: ("mu", L0) -> "mu0"."""
    if compartment == Compartment.UNTREATED:
        return f"{prefix}_u"
    if compartment == Compartment.INFORMAL:
        return f"{prefix}_i"
    return f"{prefix}{compartment.value[1]}"


def effective_multiplier(base: float, magnitude: float) -> float:
    """Scale a multiplicative effect: magnitude 0 -> 1.0, 1 -> base, 2 -> doubled effect."""
    if base < 1.0:
        return 1.0 - (1.0 - base) * magnitude
    if base > 1.0:
        return 1.0 + (base - 1.0) * magnitude
    return 1.0


def _apply_health_system(values: Dict[str, float], system: HealthSystemProfile) -> None:
    values["phi0"] = system.phi0
    values["sigma_i"] = system.sigma_i
    values["informal_care_ratio"] = system.informal_care_ratio
    values["regional_life_expectancy"] = system.regional_life_expectancy

    for prefix, multipliers in (
        ("mu", system.mu_multipliers),
        ("delta", system.delta_multipliers),
        ("rho", system.rho_multipliers),
    ):
        for compartment, multiplier in multipliers.items():
            values[_rate_field(prefix, compartment)] *= multiplier


def _apply_comorbidity(values: Dict[str, float], comorbidity: ComorbidityAdjustment) -> None:
    for name in _DEATH_FIELDS:
        values[name] *= comorbidity.mortality_multiplier
    for name in _RESOLUTION_FIELDS:
        values[name] *= comorbidity.resolution_reduction
    values["phi0"] *= comorbidity.care_seeking_boost


def _apply_overrides(
    values: Dict[str, float],
    per_diem: Dict[str, float],
    overrides: Dict[str, float],
) -> None:
    for name, value in overrides.items():
        if name.startswith("per_diem_costs."):
            level = name.split(".", 1)[1]
            if level not in per_diem:
                raise ValueError(f"Unknown per-diem cost level in override: {name}")
            per_diem[level] = float(value)
        elif name in _SCALAR_FIELDS:
            values[name] = float(value)
        else:
            raise ValueError(f"Unknown parameter in override: {name}")


def _apply_ai_effects(
    values: Dict[str, float],
    disease_name: str,
    active: List[Intervention],
    effect_magnitudes: Dict[EffectKey, float],
    uptake: Dict[Intervention, float],
    country_active: bool = False,
) -> None:
    for intervention in active:
        share = uptake.get(intervention, 1.0)
        if not 0.0 <= share <= 1.0:
            raise ValueError(f"Uptake for {intervention.value} must be in [0, 1], got {share}")

        for effect in catalog.get_ai_effects(intervention, disease_name):
            key = EffectKey(intervention, effect.parameter)
            magnitude = effect_magnitudes.get(key, 1.0)
            if not 0.0 <= magnitude <= MAX_EFFECT_MAGNITUDE:
                raise ValueError(
                    f"Effect magnitude for {key.to_string()} must be in "
                    f"[0, {MAX_EFFECT_MAGNITUDE}], got {magnitude}"
                )
            scale = magnitude * share
            if country_active:
                scale *= severity_factor(disease_name, intervention, effect.parameter)
            name = effect.parameter.value

            if effect.operation == EffectOperation.ADDITIVE:
                values[name] += effect.base * scale
            else:
                values[name] *= effective_multiplier(effect.base, scale)

        cost = catalog.AI_COSTS[intervention]
        values["ai_fixed_cost"] += cost.fixed
        values["ai_variable_cost"] += cost.variable * share


def _validate(values: Dict[str, float], per_diem: Dict[str, float], warnings: List[str]) -> None:
    for name in PROBABILITY_FIELDS:
        value = values[name]
        if value < 0.0:
            raise ParameterError(f"Resolved probability {name} is negative ({value})")
        if value > 1.0:
            message = f"{name} resolved to {value:.4f}; clamped to 1.0"
            logger.warning(message)
            warnings.append(message)
            values[name] = 1.0

    for name in _NON_NEGATIVE_FIELDS:
        if values[name] < 0.0:
            raise ParameterError(f"Resolved parameter {name} is negative ({values[name]})")
    for level, cost in per_diem.items():
        if cost < 0.0:
            raise ParameterError(f"Per-diem cost for {level} is negative ({cost})")

    if not 0.0 <= values["system_congestion"] <= 1.0:
        raise ParameterError(
            f"system_congestion must be in [0, 1], got {values['system_congestion']}"
        )

    for compartment, names in OUTFLOW_FIELDS.items():
        total = sum(values[name] for name in names)
        if total > 1.0:
            message = (
                f"Outflows from {compartment.value} sum to {total:.4f}; "
                f"rescaled {', '.join(names)} to sum to 1.0"
            )
            logger.warning(message)
            warnings.append(message)
            for name in names:
                values[name] /= total


def resolve_parameters(
    disease: Union[DiseaseProfile, str],
    health_system: Union[HealthSystemProfile, str],
    interventions: Optional[AIInterventionSet] = None,
    effect_magnitudes: Optional[Dict[EffectKey, float]] = None,
    comorbidity: Optional[ComorbidityAdjustment] = None,
    population: float = 100_000,
    system_congestion: float = 0.0,
    country: Optional[str] = None,
    is_urban: bool = True,
    parameter_overrides: Optional[Dict[str, float]] = None,
    uptake: Optional[Dict[Intervention, float]] = None,
    discount_rate: float = 0.0,
) -> ResolvedParameters:
    """Resolve one fully merged parameter set.

    Args:
        disease: Disease profile or catalog key.
        health_system: Health-system profile or catalog key.
        interventions: Active AI interventions (none if omitted).
        effect_magnitudes: Per-effect scale factor in [0, 2]; default 1.0.
        comorbidity: Optional multi-condition adjustment.
        population: Population at risk.
        system_congestion: System congestion in [0, 1].
        country: Optional country key; unknown keys degrade to the generic
            profile with a warning.
        is_urban: Urban or rural setting for the country adjustment.
        parameter_overrides: Values set after all profile adjustments and
            before AI effects (keys are ResolvedParameters field names or
            "per_diem_costs.<level>").
        uptake: Fraction of episodes using each AI tool; default 1.0.
        discount_rate: Annual DALY discount rate.

    Returns:
        Frozen ResolvedParameters carrying any warnings raised.

    Raises:
        UnknownProfileError: Disease or health system not in the catalog.
        ParameterError: A resolved value is negative.
        ValueError: A magnitude, uptake or override is invalid.
    """
    if isinstance(disease, str):
        disease = catalog.get_disease(disease)
    if isinstance(health_system, str):
        health_system = catalog.get_health_system(health_system)
    interventions = interventions or AIInterventionSet()
    warnings: List[str] = []

    values: Dict[str, float] = {name: float(getattr(disease, name)) for name in _DISEASE_FIELDS}
    values.update(
        population=float(population),
        system_congestion=float(system_congestion),
        discount_rate=float(discount_rate),
        ai_fixed_cost=0.0,
        ai_variable_cost=0.0,
        queue_prevention_rate=0.0,
        throughput_boost_l0=0.0,
        throughput_boost_l1=0.0,
        throughput_boost_l2=0.0,
        throughput_boost_l3=0.0,
        visit_reduction=0.0,
        direct_routing_improvement=0.0,
    )
    per_diem = health_system.per_diem_costs.to_dict()

    _apply_health_system(values, health_system)

    country_active = False
    if country:
        try:
            profile = get_country(country)
        except UnknownProfileError:
            message = f"Unknown country {country!r}; using the generic profile"
            logger.warning(message)
            warnings.append(message)
        else:
            warnings.extend(adjust_for_country(values, profile, disease.name, is_urban))
            country_active = True

    if comorbidity is not None:
        _apply_comorbidity(values, comorbidity)

    if parameter_overrides:
        _apply_overrides(values, per_diem, parameter_overrides)

    active = interventions.active()
    _apply_ai_effects(
        values, disease.name, active, effect_magnitudes or {}, uptake or {}, country_active
    )

    _validate(values, per_diem, warnings)

    return ResolvedParameters(
        per_diem_costs=PerDiemCosts(**per_diem),
        disease=disease.name,
        active_interventions=frozenset(active),
        warnings=tuple(warnings),
        **values,
    )


def resolve_config(config: ScenarioConfig) -> ResolvedParameters:
    """Resolve the parameters for a scenario configuration."""
    return resolve_parameters(
        disease=config.disease,
        health_system=config.health_system,
        interventions=config.interventions,
        effect_magnitudes=config.effect_magnitudes,
        comorbidity=config.comorbidity,
        population=config.population,
        system_congestion=config.system_congestion,
        country=config.country,
        is_urban=config.is_urban,
        parameter_overrides=config.parameter_overrides,
        uptake=config.uptake,
        discount_rate=config.discount_rate,
    )
