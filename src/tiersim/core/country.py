"""Country and urban/rural parameter adjustments.

Country profiles scale a disease's base rates for a specific setting:

1. Disease burden (incidence, mortality, care seeking) by country.
2. Rural access multipliers, capped so rural settings are never modelled as
   a collapse of the system.
3. Infrastructure (hospital beds) and workforce (physician density plus
   CHW programme) multipliers on all formal resolution rates.
4. Vertical programmes that hold up specific disease/country pairs
   (Kenya TB, South Africa HIV, Nigeria malaria, maternal referrals).
5. Disease severity, which limits how much self-care and triage AI can do
   for a disease once a country profile is active.

Adjustments operate on the resolver's working dictionary of parameter
values, keyed by ResolvedParameters field names.
"""

from dataclasses import dataclass, replace
from typing import Dict, List, Optional

from tiersim.core.entities import Intervention, ModelParameter, UnknownProfileError


@dataclass(frozen=True)
class CountryProfile:
    """Static description of one country's health system capacity."""
    key: str
    name: str
    country_code: str
    region: str
    urban_population_pct: float
    physician_density_per_1000: float
    hospital_beds_per_1000: float
    chw_programme_bonus: float = 0.0

    @property
    def infrastructure_multiplier(self) -> float:
        """0.8-1.0 scaling from hospital beds against a 1.5/1000 LMIC baseline."""
        bed_ratio = self.hospital_beds_per_1000 / 1.5
        return 0.8 + 0.2 * min(bed_ratio, 1.0)

    @property
    def workforce_multiplier(self) -> float:
        """0.8-1.1 scaling from physician density plus the CHW programme bonus."""
        physician_ratio = self.physician_density_per_1000 / 1.0
        return min(1.1, 0.8 + 0.3 * min(physician_ratio, 1.0) + self.chw_programme_bonus)


@dataclass(frozen=True)
class BurdenMultiplier:
    incidence: float = 1.0
    mortality: float = 1.0
    care_seeking: float = 1.0


@dataclass(frozen=True)
class RuralMultipliers:
    """Rural access penalties relative to the national (urban) profile."""
    phi0: float
    sigma_i: float
    informal_care_ratio: float
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


COUNTRY_PROFILES: Dict[str, CountryProfile] = {
    "nigeria": CountryProfile(
        key="nigeria", name="Nigeria", country_code="NGA", region="West Africa",
        urban_population_pct=0.52, physician_density_per_1000=0.4,
        hospital_beds_per_1000=0.5, chw_programme_bonus=0.10,
    ),
    "kenya": CountryProfile(
        key="kenya", name="Kenya", country_code="KEN", region="East Africa",
        urban_population_pct=0.28, physician_density_per_1000=0.2,
        hospital_beds_per_1000=1.4, chw_programme_bonus=0.15,
    ),
    "south_africa": CountryProfile(
        key="south_africa", name="South Africa", country_code="ZAF", region="Southern Africa",
        urban_population_pct=0.67, physician_density_per_1000=0.9,
        hospital_beds_per_1000=2.3, chw_programme_bonus=0.10,
    ),
}


def _burden(incidence, mortality, care_seeking) -> BurdenMultiplier:
    return BurdenMultiplier(incidence=incidence, mortality=mortality, care_seeking=care_seeking)


COUNTRY_DISEASE_BURDENS: Dict[str, Dict[str, BurdenMultiplier]] = {
    "nigeria": {
        "tuberculosis": _burden(0.8, 0.9, 0.7),
        "malaria": _burden(1.5, 1.3, 0.8),
        "childhood_pneumonia": _burden(1.8, 1.6, 0.6),
        "diarrhea": _burden(1.7, 1.5, 0.65),
        "hiv_management_chronic": _burden(0.6, 0.8, 0.8),
        "hiv_opportunistic": _burden(0.6, 0.9, 0.7),
        "fever": _burden(1.4, 1.3, 0.6),
        "urti": _burden(1.3, 1.1, 0.7),
        "anemia": _burden(1.4, 1.2, 0.7),
        "high_risk_pregnancy_low_anc": _burden(1.6, 1.5, 0.5),
        "congestive_heart_failure": _burden(1.2, 1.3, 0.6),
    },
    "kenya": {
        "tuberculosis": _burden(1.5, 1.4, 0.85),
        "malaria": _burden(1.1, 1.0, 0.9),
        "childhood_pneumonia": _burden(1.2, 1.1, 0.8),
        "diarrhea": _burden(1.1, 1.0, 0.8),
        "hiv_management_chronic": _burden(1.8, 1.5, 0.9),
        "hiv_opportunistic": _burden(2.0, 1.6, 0.85),
        "fever": _burden(1.2, 1.1, 0.8),
        "urti": _burden(1.1, 1.0, 0.85),
        "anemia": _burden(1.2, 1.1, 0.8),
        "high_risk_pregnancy_low_anc": _burden(1.3, 1.2, 0.7),
        "congestive_heart_failure": _burden(1.3, 1.2, 0.7),
    },
    "south_africa": {
        "tuberculosis": _burden(2.2, 1.8, 0.9),
        "hiv_management_chronic": _burden(2.5, 1.6, 0.95),
        "hiv_opportunistic": _burden(3.0, 2.0, 0.9),
        "childhood_pneumonia": _burden(1.3, 1.2, 0.85),
        "diarrhea": _burden(1.0, 0.9, 0.9),
        "malaria": _burden(0.3, 0.8, 0.95),
        "congestive_heart_failure": _burden(1.8, 1.4, 0.8),
        "anemia": _burden(1.5, 1.1, 0.8),
        "high_risk_pregnancy_low_anc": _burden(1.4, 1.3, 0.85),
        "urti": _burden(1.1, 1.0, 0.9),
        "fever": _burden(1.2, 1.1, 0.85),
    },
}

RURAL_MULTIPLIERS: Dict[str, RuralMultipliers] = {
    "nigeria": RuralMultipliers(
        phi0=0.6, sigma_i=0.5, informal_care_ratio=1.6,
        mu0=0.7, mu1=0.6, mu2=0.7, mu3=0.75,
        delta_u=1.3, delta_i=1.3, delta0=1.2, delta1=1.2, delta2=1.15, delta3=1.1,
        rho0=0.6, rho1=0.5, rho2=0.4,
    ),
    "kenya": RuralMultipliers(
        phi0=0.7, sigma_i=0.6, informal_care_ratio=1.5,
        mu0=0.8, mu1=0.7, mu2=0.75, mu3=0.8,
        delta_u=1.3, delta_i=1.3, delta0=1.2, delta1=1.2, delta2=1.15, delta3=1.1,
        rho0=0.7, rho1=0.6, rho2=0.5,
    ),
    "south_africa": RuralMultipliers(
        phi0=0.6, sigma_i=0.5, informal_care_ratio=1.4,
        mu0=0.7, mu1=0.6, mu2=0.7, mu3=0.75,
        delta_u=1.3, delta_i=1.4, delta0=1.25, delta1=1.3, delta2=1.2, delta3=1.15,
        rho0=0.6, rho1=0.5, rho2=0.4,
    ),
}

# Floors on rural resolution/referral multipliers, ceilings on rural mortality
RURAL_FLOORS = {"mu0": 0.5, "mu1": 0.4, "mu2": 0.5, "mu3": 0.6, "rho0": 0.4, "rho1": 0.4, "rho2": 0.4}
RURAL_CEILINGS = {
    "delta_u": 1.5, "delta_i": 1.5,
    "delta0": 1.4, "delta1": 1.4, "delta2": 1.3, "delta3": 1.2,
}


@dataclass(frozen=True)
class DiseaseSeverity:
    """How far patient-facing AI can help with a disease."""
    self_care_amenable: str
    ai_triage_impact: str


DISEASE_SEVERITY: Dict[str, DiseaseSeverity] = {
    "fever": DiseaseSeverity("Very High", "High"),
    "urti": DiseaseSeverity("Very High", "High"),
    "diarrhea": DiseaseSeverity("High", "High"),
    "childhood_pneumonia": DiseaseSeverity("Low", "Very High"),
    "malaria": DiseaseSeverity("Low", "High"),
    "tuberculosis": DiseaseSeverity("Very Low", "Moderate"),
    "hiv_management_chronic": DiseaseSeverity("Very Low", "Low"),
}

SELF_CARE_MULTIPLIERS = {"Very Low": 0.1, "Low": 0.3, "Moderate": 0.5, "High": 0.8, "Very High": 1.0}
TRIAGE_MULTIPLIERS = {"Low": 0.5, "Moderate": 0.7, "High": 0.9, "Very High": 1.0}

# Effects scaled by severity; everything else keeps full strength
_SELF_CARE_SCALED = (ModelParameter.MU_I, ModelParameter.DELTA_I, ModelParameter.VISIT_REDUCTION)
_TRIAGE_SCALED = (ModelParameter.QUEUE_PREVENTION_RATE,)

HIV_DISEASES = ("hiv_management_chronic", "hiv_opportunistic")
MATERNAL_DISEASE = "high_risk_pregnancy_low_anc"

_DEATH_FIELDS = ("delta_u", "delta_i", "delta0", "delta1", "delta2", "delta3")
_FORMAL_RESOLUTION_FIELDS = ("mu0", "mu1", "mu2", "mu3")


def get_country(key: str) -> CountryProfile:
    """Return a country profile by key ("kenya") or ISO3 code ("KEN")."""
    if key in COUNTRY_PROFILES:
        return COUNTRY_PROFILES[key]
    for profile in COUNTRY_PROFILES.values():
        if profile.country_code == key.upper():
            return profile
    raise UnknownProfileError(f"Country profile not found: {key}")


def get_rural_multipliers(country_key: str, disease: str) -> RuralMultipliers:
    """Rural multipliers for a country with disease-specific programme exceptions."""
    multipliers = RURAL_MULTIPLIERS.get(country_key, RURAL_MULTIPLIERS["nigeria"])

    if country_key == "kenya" and disease == "tuberculosis":
        # TB programme keeps CHW and primary care effective in rural areas
        multipliers = replace(multipliers, mu0=0.9, mu1=0.85, rho0=0.85)
    if country_key == "south_africa" and disease in HIV_DISEASES:
        # ART programme reaches rural areas
        multipliers = replace(multipliers, phi0=0.8, mu1=0.8, delta_u=1.2)
    if disease == MATERNAL_DISEASE:
        multipliers = replace(
            multipliers,
            rho0=min(0.9, multipliers.rho0 * 1.3),
            rho1=min(0.9, multipliers.rho1 * 1.3),
        )
    return multipliers


def _apply_rural(values: Dict[str, float], rural: RuralMultipliers) -> None:
    values["phi0"] *= rural.phi0
    values["sigma_i"] *= rural.sigma_i
    values["informal_care_ratio"] *= rural.informal_care_ratio

    for name, floor in RURAL_FLOORS.items():
        values[name] *= max(floor, getattr(rural, name))
    for name, ceiling in RURAL_CEILINGS.items():
        values[name] *= min(ceiling, getattr(rural, name))


def _apply_vertical_programmes(
    values: Dict[str, float],
    country_key: str,
    disease: str,
    is_urban: bool,
) -> None:
    if country_key == "kenya" and disease == "tuberculosis":
        values["mu0"] *= 1.2
        values["mu1"] *= 1.3
        values["phi0"] = max(values["phi0"], 0.5)

    if country_key == "south_africa" and disease in HIV_DISEASES:
        values["mu1"] *= 1.4
        values["mu2"] *= 1.3
        values["delta_u"] *= 0.7
        values["phi0"] = max(values["phi0"], 0.7)

    if country_key == "nigeria" and disease == "malaria":
        values["mu0"] *= 1.3
        values["phi0"] = max(values["phi0"], 0.4)

    if disease == MATERNAL_DISEASE:
        values["rho0"] *= 1.5
        values["rho1"] *= 1.4
        if not is_urban:
            values["phi0"] = max(values["phi0"], 0.35)


def adjust_for_country(
    values: Dict[str, float],
    country: CountryProfile,
    disease: str,
    is_urban: bool = True,
) -> List[str]:
    """Apply country, setting and programme adjustments in place.

    Args:
        values: Working parameter values keyed by ResolvedParameters field.
        country: Country profile to apply.
        disease: Disease catalog key (selects burden and programme rules).
        is_urban: False applies the rural access multipliers.

    Returns:
        Notes describing adjustments that could not be applied.
    """
    notes: List[str] = []

    burden: Optional[BurdenMultiplier] = COUNTRY_DISEASE_BURDENS.get(country.key, {}).get(disease)
    if burden is None:
        notes.append(f"No {country.name} burden data for {disease!r}; burden unchanged")
    else:
        values["incidence"] *= burden.incidence
        for name in _DEATH_FIELDS:
            values[name] *= burden.mortality
        values["phi0"] *= burden.care_seeking

    if not is_urban:
        _apply_rural(values, get_rural_multipliers(country.key, disease))

    capacity = country.infrastructure_multiplier * country.workforce_multiplier
    for name in _FORMAL_RESOLUTION_FIELDS:
        values[name] *= capacity

    _apply_vertical_programmes(values, country.key, disease, is_urban)
    return notes


def severity_factor(disease: str, intervention: Intervention, parameter: ModelParameter) -> float:
    """Share of an AI effect that applies to a disease given its severity.

    Self-care AI gains on informal care (mu_i, delta_i, visit reduction)
    scale with how amenable the disease is to self-care; triage AI queue
    prevention scales with its triage impact. Diseases without a severity
    record, and all other effects, return 1.0.
    """
    severity = DISEASE_SEVERITY.get(disease)
    if severity is None:
        return 1.0
    if intervention == Intervention.SELF_CARE_AI and parameter in _SELF_CARE_SCALED:
        return SELF_CARE_MULTIPLIERS.get(severity.self_care_amenable, 0.5)
    if intervention == Intervention.TRIAGE_AI and parameter in _TRIAGE_SCALED:
        return TRIAGE_MULTIPLIERS.get(severity.ai_triage_impact, 0.7)
    return 1.0


def list_countries() -> List[str]:
    return list(COUNTRY_PROFILES)
