"""Tests for sensitivity analysis."""

import pytest

from tiersim.core.scenario import AIInterventionSet, ScenarioConfig
from tiersim.experiment.analysis import (
    get_base_value,
    one_way_sensitivity,
    set_nested_param,
    two_way_sensitivity,
    variation_values,
)
from tiersim.experiment.runner import run_baseline


@pytest.fixture
def config():
    return ScenarioConfig(
        name="CHW AI",
        interventions=AIInterventionSet(chw_ai=True),
        system_congestion=0.4,
        weeks=12,
    )


class TestSetNestedParam:
    """Tests for set_nested_param."""

    def test_top_level(self, config):
        updated = set_nested_param(config, "system_congestion", 0.6)
        assert updated.system_congestion == 0.6
        assert config.system_congestion == 0.4  # Original unchanged

    def test_override_path_kept_whole(self, config):
        updated = set_nested_param(config, "parameter_overrides.per_diem_costs.l2", 90.0)
        assert updated.parameter_overrides == {"per_diem_costs.l2": 90.0}

    def test_nested_attribute(self, config):
        updated = set_nested_param(config, "interventions.triage_ai", True)
        assert updated.interventions.triage_ai

    def test_invalid_path_raises(self, config):
        with pytest.raises(ValueError):
            set_nested_param(config, "nonexistent.field", 1.0)

    def test_invalid_value_raises(self, config):
        with pytest.raises(ValueError):
            set_nested_param(config, "system_congestion", 1.5)


class TestBaseValue:
    """Tests for get_base_value and variation_values."""

    def test_config_field(self, config):
        assert get_base_value(config, "system_congestion") == 0.4

    def test_override_path_uses_resolved_value_without_ai(self, config):
        """mu0 before the CHW effect is applied."""
        assert get_base_value(config, "parameter_overrides.mu0") == pytest.approx(0.5)
        assert get_base_value(config, "parameter_overrides.per_diem_costs.l1") == 40

    def test_unknown_override_raises(self, config):
        with pytest.raises(ValueError):
            get_base_value(config, "parameter_overrides.warp_speed")

    def test_variation_values(self):
        values = variation_values(100.0, 0.25, 10)
        assert len(values) == 11
        assert values[0] == pytest.approx(75.0)
        assert values[5] == pytest.approx(100.0)
        assert values[-1] == pytest.approx(125.0)


class TestOneWaySensitivity:
    """Tests for one_way_sensitivity."""

    def test_default_grid_has_eleven_points(self, config):
        sweep = one_way_sensitivity(config, "parameter_overrides.mu0")
        df = sweep.to_dataframe()
        assert len(df) == 11
        assert df["success"].all()
        assert df["pct_change"].iloc[0] == pytest.approx(-25.0)

    def test_higher_resolution_fewer_deaths(self, config):
        sweep = one_way_sensitivity(config, "parameter_overrides.mu0", steps=2)
        deaths = list(sweep.results["deaths"])
        assert deaths[0] > deaths[1] > deaths[2]
        assert sweep.swing("deaths") == pytest.approx(deaths[0] - deaths[2])

    def test_fixed_baseline(self, config):
        baseline = run_baseline(config).results
        sweep = one_way_sensitivity(config, "system_congestion", baseline=baseline, steps=2)
        assert sweep.results["icer_status"].notna().all()

    def test_explicit_values(self, config):
        sweep = one_way_sensitivity(config, "system_congestion", values=[0.0, 0.9])
        assert sweep.values == [0.0, 0.9]
        assert list(sweep.results["value"]) == [0.0, 0.9]
        assert sweep.results["success"].all()

    def test_invalid_point_recorded_as_failure(self, config):
        """A point that produces an invalid scenario does not abort the sweep."""
        sweep = one_way_sensitivity(config, "system_congestion", values=[0.4, 1.2])
        assert list(sweep.results["success"]) == [True, False]

    def test_parallel_matches_sequential(self, config):
        sequential = one_way_sensitivity(config, "parameter_overrides.mu0", steps=3)
        parallel = one_way_sensitivity(config, "parameter_overrides.mu0", steps=3, parallel=True)
        assert list(parallel.results["deaths"]) == pytest.approx(list(sequential.results["deaths"]))


class TestTwoWaySensitivity:
    """Tests for two_way_sensitivity."""

    def test_default_grid(self, config):
        grid = two_way_sensitivity(config, "system_congestion", "parameter_overrides.mu0")
        assert len(grid.results) == 36
        assert grid.pivot("deaths").shape == (6, 6)

    def test_same_parameter_raises(self, config):
        with pytest.raises(ValueError):
            two_way_sensitivity(config, "system_congestion", "system_congestion")

    def test_grid_values(self, config):
        grid = two_way_sensitivity(config, "system_congestion", "population", steps=1)
        assert grid.primary_values == pytest.approx([0.32, 0.48])
        assert grid.secondary_values == pytest.approx([80_000, 120_000])
        assert set(grid.results.columns) >= {"primary_value", "secondary_value", "deaths", "icer"}
