"""Model layer: capacity, compartment state, weekly stepper, parameter resolver."""

from tiersim.model.capacity import capacity_multiplier, queue_entry_rate
from tiersim.model.resolver import resolve_config, resolve_parameters
from tiersim.model.state import CompartmentState
from tiersim.model.stepper import step

__all__ = [
    "capacity_multiplier",
    "queue_entry_rate",
    "resolve_config",
    "resolve_parameters",
    "CompartmentState",
    "step",
]
