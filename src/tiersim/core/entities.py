"""Core entity definitions for the simulation.

This module contains enums, typed keys and exceptions that are used across
the codebase, placed here to avoid circular imports.
"""

from enum import Enum, IntEnum
from typing import NamedTuple


class CareLevel(IntEnum):
    """Formal care levels, lowest to highest."""
    L0 = 0      # Community health worker
    L1 = 1      # Primary care facility
    L2 = 2      # District hospital
    L3 = 3      # Tertiary hospital


class Compartment(Enum):
    """Population stocks tracked by the stock-and-flow model."""
    UNTREATED = "U"
    INFORMAL = "I"
    L0 = "L0"
    L1 = "L1"
    L2 = "L2"
    L3 = "L3"
    RESOLVED = "R"
    DEAD = "D"


# Compartments that hold patients who are still ill
ACTIVE_COMPARTMENTS = (
    Compartment.UNTREATED,
    Compartment.INFORMAL,
    Compartment.L0,
    Compartment.L1,
    Compartment.L2,
    Compartment.L3,
)


class Intervention(Enum):
    """The six AI intervention toggles.

    Values match the keys used by exported scenario documents.
    """
    TRIAGE_AI = "triageAI"                      # Direct-to-consumer triage
    CHW_AI = "chwAI"                            # CHW decision support
    DIAGNOSTIC_AI = "diagnosticAI"              # Point-of-care diagnostics
    BED_MANAGEMENT_AI = "bedManagementAI"       # Hospital bed management
    HOSPITAL_DECISION_AI = "hospitalDecisionAI" # Hospital decision support
    SELF_CARE_AI = "selfCareAI"                 # Self-care apps

    @classmethod
    def from_key(cls, key: str) -> "Intervention":
        """Look up an intervention by value ("chwAI") or name ("CHW_AI")."""
        for member in cls:
            if key in (member.value, member.name, member.name.lower()):
                return member
        raise UnknownProfileError(f"Unknown AI intervention: {key}")


class EffectOperation(Enum):
    """How an AI effect is combined with the parameter it targets."""
    ADDITIVE = "additive"
    MULTIPLICATIVE = "multiplicative"


class ModelParameter(Enum):
    """Scalar fields of ResolvedParameters that AI effects may target.

    The value is the attribute name on ResolvedParameters.
    """
    PHI0 = "phi0"
    SIGMA_I = "sigma_i"
    MU_I = "mu_i"
    DELTA_I = "delta_i"
    MU0 = "mu0"
    DELTA0 = "delta0"
    RHO0 = "rho0"
    MU1 = "mu1"
    DELTA1 = "delta1"
    RHO1 = "rho1"
    MU2 = "mu2"
    DELTA2 = "delta2"
    RHO2 = "rho2"
    MU3 = "mu3"
    DELTA3 = "delta3"
    QUEUE_PREVENTION_RATE = "queue_prevention_rate"
    THROUGHPUT_BOOST_L0 = "throughput_boost_l0"
    THROUGHPUT_BOOST_L1 = "throughput_boost_l1"
    THROUGHPUT_BOOST_L2 = "throughput_boost_l2"
    THROUGHPUT_BOOST_L3 = "throughput_boost_l3"
    VISIT_REDUCTION = "visit_reduction"
    DIRECT_ROUTING_IMPROVEMENT = "direct_routing_improvement"


class EffectKey(NamedTuple):
    """Typed (intervention, parameter) pair used to address one AI effect."""
    intervention: Intervention
    parameter: ModelParameter

    def to_string(self) -> str:
        """Serialise as "chwAI:mu0" for scenario documents."""
        return f"{self.intervention.value}:{self.parameter.value}"

    @classmethod
    def from_string(cls, text: str) -> "EffectKey":
        """Parse the "chwAI:mu0" form written by to_string()."""
        try:
            intervention_key, parameter_key = text.split(":", 1)
        except ValueError:
            raise ValueError(f"Effect key must look like 'chwAI:mu0', got {text!r}")
        return cls(Intervention.from_key(intervention_key), ModelParameter(parameter_key))


class IcerStatus(Enum):
    """Quadrant of the cost-effectiveness plane an intervention falls in."""
    DOMINANT = "dominant"               # Cheaper and healthier
    INCREMENTAL = "incremental"         # Costs more, healthier
    DOMINATED = "dominated"             # Costs as much or more, less healthy
    COST_SAVING_LESS_EFFECTIVE = "cost_saving_less_effective"
    UNDEFINED = "undefined"             # No DALY difference


class ParameterError(ValueError):
    """Raised when parameter resolution yields an invalid value."""


class UnknownProfileError(KeyError):
    """Raised when a disease, health-system or country key is not in the catalog."""
