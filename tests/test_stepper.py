"""Tests for the weekly stepper and compartment state."""

import dataclasses

import numpy as np
import pytest

from tiersim.core.entities import CareLevel, Intervention
from tiersim.model.state import STOCK_FIELDS, CompartmentState
from tiersim.model.stepper import queue_flows, route_formal_entrants, step


def _run(params, weeks):
    states = [CompartmentState()]
    for week in range(weeks):
        states.append(step(states[-1], params, week))
    return states


class TestFirstStep:
    """Hand-computed values for the first week from an empty population."""

    def test_initial_split(self, base_params):
        """phi0 of new cases go to L0; the rest split 30/70 into U and I."""
        new_cases = 0.05 * 100_000 / 52
        state = step(CompartmentState(), base_params, 0)

        assert state.week == 1
        assert state.new_cases == pytest.approx(new_cases)
        assert state.l0 == pytest.approx(new_cases * 0.6)
        assert state.u == pytest.approx(new_cases * 0.4 * 0.3)
        assert state.i == pytest.approx(new_cases * 0.4 * 0.7)
        assert state.l1 == 0.0
        assert state.r == 0.0
        assert state.d == 0.0

    def test_second_step_outflows(self, base_params):
        """Outflows in week 2 are taken from the week-1 stocks."""
        first = step(CompartmentState(), base_params, 0)
        second = step(first, base_params, 1)

        expected_resolved = first.u * 0.05 + first.i * 0.3 + first.l0 * 0.5
        expected_deaths = first.u * 0.01 + first.i * 0.01 + first.l0 * 0.005
        assert second.resolved_this_week == pytest.approx(expected_resolved)
        assert second.deaths_this_week == pytest.approx(expected_deaths)
        # Referrals from L0 are admitted to L1 in full at zero congestion
        assert second.l1 == pytest.approx(first.l0 * 0.3)

    def test_visit_reduction_resolves_at_home(self, base_params):
        params = dataclasses.replace(base_params, visit_reduction=0.2)
        state = step(CompartmentState(), params, 0)

        assert state.resolved_this_week == pytest.approx(params.weekly_incidence * 0.2)
        assert state.l0 == pytest.approx(params.weekly_incidence * 0.8 * 0.6)


class TestConservation:
    """Population accounting across many weeks."""

    @pytest.mark.parametrize("fixture_name", ["base_params", "congested_params"])
    def test_total_grows_by_new_cases(self, request, fixture_name):
        """Every case is in exactly one stock, R, D, or the dropped tally."""
        params = request.getfixturevalue(fixture_name)
        states = _run(params, 52)

        for state in states[1:]:
            assert state.total_population == pytest.approx(
                state.week * params.weekly_incidence, rel=1e-9
            )

    @pytest.mark.parametrize("fixture_name", ["base_params", "congested_params"])
    def test_stocks_never_negative(self, request, fixture_name):
        params = request.getfixturevalue(fixture_name)
        for state in _run(params, 104):
            assert state.min_value() >= -1e-9

    def test_cumulative_outcomes_non_decreasing(self, congested_params):
        states = _run(congested_params, 52)
        for before, after in zip(states, states[1:]):
            assert after.r >= before.r
            assert after.d >= before.d
            assert after.queue_deaths >= before.queue_deaths

    def test_deterministic(self, congested_params):
        """Identical inputs give identical trajectories."""
        first = [s.as_array() for s in _run(congested_params, 20)]
        second = [s.as_array() for s in _run(congested_params, 20)]
        np.testing.assert_array_equal(np.array(first), np.array(second))


class TestCongestion:
    """Queue behaviour under congestion."""

    def test_no_queues_without_congestion(self, base_params):
        """Zero congestion means full capacity, no shortfall and no queues."""
        final = _run(base_params, 30)[-1]
        assert final.queued == 0.0
        assert final.shortfall_dropped == 0.0
        assert final.queue_deaths == 0.0

    def test_queues_form_under_congestion(self, congested_params):
        final = _run(congested_params, 30)[-1]
        assert final.queued > 0.0
        assert final.shortfall_dropped > 0.0

    def test_queue_prevention_reduces_queueing(self, congested_params):
        without = dataclasses.replace(congested_params, queue_prevention_rate=0.0)
        with_prevention = _run(congested_params, 20)[-1]
        no_prevention = _run(without, 20)[-1]
        assert with_prevention.queued < no_prevention.queued

    def test_queue_deaths_counted_in_deaths(self, congested_params):
        state = _run(congested_params, 10)[-1]
        assert state.d >= state.queue_deaths > 0.0


class TestRouting:
    """Tests for route_formal_entrants."""

    def test_all_to_chw_by_default(self, base_params):
        routed = route_formal_entrants(100.0, base_params)
        assert routed.tolist() == [100.0, 0.0, 0.0, 0.0]

    def test_direct_routing_under_congestion(self, congested_params):
        """Share dri * congestion bypasses L0, split 60/40 between L1 and L2."""
        routed = route_formal_entrants(100.0, congested_params)
        assert routed[CareLevel.L0] == pytest.approx(80.0)
        assert routed[CareLevel.L1] == pytest.approx(12.0)
        assert routed[CareLevel.L2] == pytest.approx(8.0)
        assert routed[CareLevel.L3] == 0.0

    def test_direct_routing_inactive_at_moderate_congestion(self, congested_params):
        params = dataclasses.replace(congested_params, system_congestion=0.5)
        routed = route_formal_entrants(100.0, params)
        assert routed[CareLevel.L0] == 100.0


class TestQueueFlows:
    """Tests for queue_flows."""

    def test_rates_scaled_when_they_exceed_one(self, base_params):
        """A queue is never drained below zero."""
        params = dataclasses.replace(base_params, queue_clearance_rate=0.9)
        queues = np.full(4, 100.0)
        flows = queue_flows(queues, params, capacity=1.0)

        total = flows.mortality + flows.abandonment + flows.bypass + flows.clearance
        np.testing.assert_allclose(total, queues)

    def test_throughput_boost_increases_clearance(self, base_params):
        boosted = dataclasses.replace(base_params, throughput_boost_l1=0.35)
        queues = np.full(4, 100.0)
        plain = queue_flows(queues, base_params, capacity=0.5)
        faster = queue_flows(queues, boosted, capacity=0.5)

        assert faster.clearance[CareLevel.L1] == pytest.approx(100 * 0.3 * 0.5 * 1.35)
        assert faster.clearance[CareLevel.L0] == plain.clearance[CareLevel.L0]


class TestEpisodesTouched:
    """AI episode counting."""

    def test_zero_without_ai(self, base_params):
        final = _run(base_params, 5)[-1]
        assert final.episodes_touched == 0.0

    def test_counts_formal_entrants(self, base_params):
        params = dataclasses.replace(base_params, active_interventions=frozenset({Intervention.CHW_AI}))
        state = step(CompartmentState(), params, 0)
        assert state.episodes_touched == pytest.approx(params.weekly_incidence * 0.6)

    def test_self_care_adds_informal_patients(self, base_params):
        chw = dataclasses.replace(base_params, active_interventions=frozenset({Intervention.CHW_AI}))
        self_care = dataclasses.replace(
            base_params,
            active_interventions=frozenset({Intervention.CHW_AI, Intervention.SELF_CARE_AI}),
        )
        start = CompartmentState(i=50.0)
        assert step(start, self_care, 0).episodes_touched == pytest.approx(
            step(start, chw, 0).episodes_touched + 50.0
        )


class TestCompartmentState:
    """Tests for CompartmentState helpers."""

    def test_as_array_order(self):
        state = CompartmentState(u=1, i=2, l0=3, q3=4, r=5, d=6)
        values = dict(zip(STOCK_FIELDS, state.as_array()))
        assert values["u"] == 1
        assert values["q3"] == 4
        assert values["d"] == 6

    def test_level_and_queue_lookup(self):
        state = CompartmentState(l2=7.0, q1=3.0)
        assert state.level(CareLevel.L2) == 7.0
        assert state.queue(CareLevel.L1) == 3.0
        assert state.queued == 3.0
        assert state.ill == 7.0
