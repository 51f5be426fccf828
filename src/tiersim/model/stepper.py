"""Weekly stepper: one deterministic difference-equation step of the model.

Order of operations within a week (single pass, start-of-week stocks):

1. Incidence: lambda * population / 52 new cases.
2. Initial split: self-care visit reduction resolves a share at home;
   phi0 of the rest seeks formal care, the remainder splits between
   untreated (informal_care_ratio) and informal care.
3. Untreated/informal transitions; sigma_i of I moves to formal care.
4. Formal entry routing: entrants go to L0 unless self-care direct
   routing is active under congestion > 0.5 (60/40 to L1/L2).
5. Capacity-constrained admission. Shortfall either queues or is dropped.
6. Per-level resolution, death and referral.
7. Queue mortality, abandonment (to U), bypass (to I) and clearance.
8. Cumulative outcomes.

Every flow out of a stock is taken from its start-of-week value, so the
total of all stocks (including dropped shortfall) grows by exactly the
week's new cases.
"""

from dataclasses import dataclass

import numpy as np

from tiersim.core.entities import CareLevel
from tiersim.core.parameters import ResolvedParameters
from tiersim.model.capacity import capacity_multiplier, queue_entry_rate
from tiersim.model.state import CompartmentState


# Direct-routing split and activation threshold for self-care AI
DIRECT_ROUTING_CONGESTION_THRESHOLD = 0.5
DIRECT_ROUTING_L1_SHARE = 0.6

LEVELS = tuple(CareLevel)


@dataclass(frozen=True)
class QueueFlows:
    """Per-level queue outflows for one week (arrays indexed by CareLevel)."""
    mortality: np.ndarray
    abandonment: np.ndarray
    bypass: np.ndarray
    clearance: np.ndarray


def _level_rates(params: ResolvedParameters):
    mu = np.array([params.resolution_rate(k) for k in LEVELS])
    delta = np.array([params.death_rate(k) for k in LEVELS])
    rho = np.array([params.referral_rate(k) for k in LEVELS])
    return mu, delta, rho


def route_formal_entrants(entrants: float, params: ResolvedParameters) -> np.ndarray:
    """Split formal-care entrants across L0..L3 (before capacity)."""
    routed = np.zeros(len(LEVELS))
    congestion = params.system_congestion

    if params.direct_routing_improvement > 0 and congestion > DIRECT_ROUTING_CONGESTION_THRESHOLD:
        direct = entrants * min(1.0, params.direct_routing_improvement * congestion)
        routed[CareLevel.L1] = direct * DIRECT_ROUTING_L1_SHARE
        routed[CareLevel.L2] = direct * (1.0 - DIRECT_ROUTING_L1_SHARE)
        routed[CareLevel.L0] = entrants - direct
    else:
        routed[CareLevel.L0] = entrants
    return routed


def queue_flows(
    queues: np.ndarray,
    params: ResolvedParameters,
    capacity: float,
) -> QueueFlows:
    """Outflows from each queue based on its start-of-week size.

    If the combined weekly rates for a queue exceed 1 they are scaled down
    proportionally, so a queue can never be drained below zero.
    """
    cs = params.competition_sensitivity
    boosts = np.array([params.throughput_boost(k) for k in LEVELS])
    base_deaths = np.array([params.death_rate(k) for k in LEVELS])

    mortality = base_deaths * params.congestion_mortality_multiplier * cs
    abandonment = np.full(len(LEVELS), params.queue_abandonment_rate)
    bypass = np.full(len(LEVELS), params.queue_bypass_rate)
    clearance = params.queue_clearance_rate * capacity * (1.0 + boosts)

    total = mortality + abandonment + bypass + clearance
    scale = np.where(total > 1.0, 1.0 / np.where(total > 0, total, 1.0), 1.0)

    return QueueFlows(
        mortality=queues * mortality * scale,
        abandonment=queues * abandonment * scale,
        bypass=queues * bypass * scale,
        clearance=queues * clearance * scale,
    )


def step(state: CompartmentState, params: ResolvedParameters, week_index: int) -> CompartmentState:
    """Advance the population by one week.

    Args:
        state: State at the end of the previous week.
        params: Resolved parameters (immutable for the run).
        week_index: Zero-based index of the week being simulated.

    Returns:
        The state at the end of week week_index + 1.
    """
    capacity = capacity_multiplier(params.system_congestion, params.competition_sensitivity)
    entry_rate = queue_entry_rate(params.system_congestion, params.competition_sensitivity)

    # 1-2. Incidence and initial split
    new_cases = params.weekly_incidence
    avoided = new_cases * params.visit_reduction
    seeking = new_cases - avoided
    formal_new = params.phi0 * seeking
    remainder = seeking - formal_new
    to_untreated = remainder * params.informal_care_ratio
    to_informal = remainder - to_untreated

    # 3. Untreated and informal care
    u_resolved = state.u * params.mu_u
    u_deaths = state.u * params.delta_u
    i_resolved = state.i * params.mu_i
    i_deaths = state.i * params.delta_i
    i_to_formal = state.i * params.sigma_i

    # 4. Formal entry routing
    formal_entrants = formal_new + i_to_formal
    routed = route_formal_entrants(formal_entrants, params)

    # 6. Level outflows on start-of-week occupancy (referrals feed step 5)
    levels = np.array([state.level(k) for k in LEVELS])
    mu, delta, rho = _level_rates(params)
    level_resolved = levels * mu
    level_deaths = levels * delta
    referrals = levels * rho

    # 5. Capacity-constrained admission of entrants plus referrals from below
    desired = routed.copy()
    desired[1:] += referrals[:-1]
    admitted = desired * capacity
    shortfall = np.maximum(desired - admitted, 0.0)
    queue_entries = shortfall * entry_rate * (1.0 - params.queue_prevention_rate)
    dropped = shortfall - queue_entries

    # 7. Queue dynamics
    queues = np.array([state.queue(k) for k in LEVELS])
    flows = queue_flows(queues, params, capacity)
    new_queues = np.maximum(
        queues + queue_entries - flows.mortality - flows.abandonment - flows.bypass - flows.clearance,
        0.0,
    )
    new_levels = levels - level_resolved - level_deaths - referrals + admitted + flows.clearance

    # 8. Cumulative outcomes
    resolved = u_resolved + i_resolved + level_resolved.sum() + avoided
    deaths = u_deaths + i_deaths + level_deaths.sum()
    queue_deaths = flows.mortality.sum()

    touched = 0.0
    if params.ai_active:
        touched = formal_entrants
        if params.self_care_active:
            touched += state.i

    return CompartmentState(
        week=week_index + 1,
        u=float(state.u - u_resolved - u_deaths + to_untreated + flows.abandonment.sum()),
        i=float(state.i - i_resolved - i_deaths - i_to_formal + to_informal + flows.bypass.sum()),
        l0=float(new_levels[CareLevel.L0]),
        l1=float(new_levels[CareLevel.L1]),
        l2=float(new_levels[CareLevel.L2]),
        l3=float(new_levels[CareLevel.L3]),
        q0=float(new_queues[CareLevel.L0]),
        q1=float(new_queues[CareLevel.L1]),
        q2=float(new_queues[CareLevel.L2]),
        q3=float(new_queues[CareLevel.L3]),
        r=state.r + float(resolved),
        d=state.d + float(deaths + queue_deaths),
        new_cases=new_cases,
        resolved_this_week=float(resolved),
        deaths_this_week=float(deaths + queue_deaths),
        queue_deaths=state.queue_deaths + float(queue_deaths),
        shortfall_dropped=state.shortfall_dropped + float(dropped.sum()),
        episodes_touched=state.episodes_touched + float(touched),
    )
