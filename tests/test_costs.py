"""Tests for cost modelling."""

import dataclasses

import pytest

from tiersim.core.entities import Intervention
from tiersim.model.state import CompartmentState
from tiersim.results.costs import (
    CostBreakdown,
    calculate_costs,
    combine_costs,
    format_currency,
)


@pytest.fixture
def two_weeks():
    """Initial state plus two simulated weeks with hand-picked occupancy."""
    return [
        CompartmentState(week=0, l0=999.0),  # Not a simulated week
        CompartmentState(week=1, u=50.0, i=10.0, l0=4.0, l1=2.0, q1=30.0),
        CompartmentState(week=2, u=50.0, i=0.0, l0=6.0, l2=1.0, l3=0.5, episodes_touched=40.0),
    ]


class TestCostBreakdown:
    """Tests for CostBreakdown dataclass."""

    def test_default_values(self):
        costs = CostBreakdown()
        assert costs.currency == "USD"
        assert costs.grand_total == 0.0

    def test_totals(self):
        costs = CostBreakdown(
            informal_costs=100, l0_costs=200, l1_costs=300, l2_costs=400, l3_costs=500,
            ai_fixed_costs=1000, ai_variable_costs=50,
        )
        assert costs.total_facility_costs == 1400
        assert costs.total_care_costs == 1500
        assert costs.total_ai_costs == 1050
        assert costs.grand_total == 2550

    def test_to_dict(self):
        data = CostBreakdown(l2_costs=10.0).to_dict()
        assert data["l2_costs"] == 10.0
        assert data["grand_total"] == 10.0


class TestCalculateCosts:
    """Tests for calculate_costs."""

    def test_occupancy_times_per_diem_times_seven(self, base_params, two_weeks):
        """Week 0 is excluded; untreated and queued patients cost nothing."""
        costs = calculate_costs(two_weeks, base_params)

        assert costs.informal_costs == pytest.approx(10 * 10 * 7)
        assert costs.l0_costs == pytest.approx((4 + 6) * 15 * 7)
        assert costs.l1_costs == pytest.approx(2 * 35 * 7)
        assert costs.l2_costs == pytest.approx(1 * 100 * 7)
        assert costs.l3_costs == pytest.approx(0.5 * 200 * 7)
        assert costs.grand_total == pytest.approx(700 + 1050 + 490 + 700 + 700)

    def test_no_ai_costs_without_ai(self, base_params, two_weeks):
        params = dataclasses.replace(base_params, ai_fixed_cost=150_000, ai_variable_cost=1.5)
        costs = calculate_costs(two_weeks, params)
        assert costs.total_ai_costs == 0.0

    def test_ai_costs(self, base_params, two_weeks):
        params = dataclasses.replace(
            base_params,
            ai_fixed_cost=150_000,
            ai_variable_cost=1.5,
            active_interventions=frozenset({Intervention.CHW_AI}),
        )
        costs = calculate_costs(two_weeks, params)
        assert costs.ai_fixed_costs == 150_000
        assert costs.ai_variable_costs == pytest.approx(40 * 1.5)
        assert costs.episodes_touched == 40.0

    def test_currency_passed_through(self, base_params, two_weeks):
        assert calculate_costs(two_weeks, base_params, currency="EUR").currency == "EUR"


class TestCombineCosts:
    """Tests for combine_costs."""

    def test_fixed_cost_counted_once(self):
        a = CostBreakdown(l0_costs=100, ai_fixed_costs=150_000, ai_variable_costs=10)
        b = CostBreakdown(l0_costs=50, ai_fixed_costs=150_000, ai_variable_costs=5)
        combined = combine_costs([a, b], ai_fixed_cost=150_000)

        assert combined.l0_costs == 150
        assert combined.ai_variable_costs == 15
        assert combined.ai_fixed_costs == 150_000
        assert combined.grand_total == 150 + 15 + 150_000


class TestFormatCurrency:
    """Tests for format_currency function."""

    def test_whole_numbers(self):
        assert format_currency(1234567) == "$1,234,567"

    def test_decimals(self):
        assert format_currency(1234.5, symbol="KES ", decimals=2) == "KES 1,234.50"

    def test_negative(self):
        assert format_currency(-500) == "$-500"
