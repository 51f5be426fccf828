"""Tests for scenario configuration and scenario files."""

import json

import pytest

from tiersim.core.entities import EffectKey, Intervention, ModelParameter
from tiersim.core.scenario import (
    AIInterventionSet,
    ComorbidityAdjustment,
    ScenarioConfig,
    default_uptake,
    get_default_scenario_dir,
    list_available_scenarios,
    load_scenario_file,
    save_scenario_file,
)
from tiersim.experiment.runner import run_simulation


class TestAIInterventionSet:
    """Tests for AIInterventionSet."""

    def test_all_off_by_default(self):
        interventions = AIInterventionSet()
        assert interventions.active() == []
        assert not interventions.any_active

    def test_active_in_catalog_order(self):
        interventions = AIInterventionSet(self_care_ai=True, triage_ai=True)
        assert interventions.active() == [Intervention.TRIAGE_AI, Intervention.SELF_CARE_AI]

    def test_dict_round_trip_uses_document_keys(self):
        interventions = AIInterventionSet(chw_ai=True, bed_management_ai=True)
        data = interventions.to_dict()
        assert data["chwAI"] is True
        assert data["triageAI"] is False
        assert AIInterventionSet.from_dict(data) == interventions

    def test_all_on(self):
        assert len(AIInterventionSet.all_on().active()) == 6


class TestScenarioConfig:
    """Tests for ScenarioConfig validation and conversion."""

    def test_defaults(self):
        config = ScenarioConfig()
        assert config.disease == "generic"
        assert config.health_system == "moderate_urban_system"
        assert config.weeks == 52
        assert config.discount_rate == 0.03

    @pytest.mark.parametrize("kwargs", [
        {"population": 0},
        {"weeks": 0},
        {"system_congestion": 1.1},
        {"discount_rate": -0.01},
        {"effect_magnitudes": {"chwAI:mu0": 2.5}},
        {"uptake": {"chwAI": 1.2}},
    ])
    def test_invalid_values_raise(self, kwargs):
        with pytest.raises(ValueError):
            ScenarioConfig(**kwargs)

    def test_document_keys_converted(self):
        config = ScenarioConfig(effect_magnitudes={"chwAI:mu0": 1.5}, uptake={"chwAI": 0.5})
        key = EffectKey(Intervention.CHW_AI, ModelParameter.MU0)
        assert config.magnitude(key) == 1.5
        assert config.uptake_for(Intervention.CHW_AI) == 0.5
        assert config.uptake_for(Intervention.TRIAGE_AI) == 1.0

    def test_to_dict_from_dict(self):
        config = ScenarioConfig(
            name="Test",
            disease="malaria",
            interventions=AIInterventionSet(chw_ai=True),
            effect_magnitudes={"chwAI:mu0": 1.5},
            country="kenya",
            is_urban=False,
            comorbidity=ComorbidityAdjustment(1.2, 0.9, 1.0),
            parameter_overrides={"per_diem_costs.l2": 90.0},
        )
        data = config.to_dict()
        assert data["effect_magnitudes"] == {"chwAI:mu0": 1.5}
        assert data["comorbidity"]["mortality_multiplier"] == 1.2

        restored = ScenarioConfig.from_dict(data)
        assert restored == config

    def test_from_dict_ignores_results(self):
        config = ScenarioConfig.from_dict({"name": "X", "results": {"deaths": 1.0}})
        assert config.name == "X"

    def test_from_dict_null_mappings_treated_as_empty(self):
        config = ScenarioConfig.from_dict({
            "name": "X",
            "effect_magnitudes": None,
            "uptake": None,
            "parameter_overrides": None,
        })
        assert config.effect_magnitudes == {}
        assert config.uptake == {}
        assert config.parameter_overrides == {}

    def test_baseline(self):
        config = ScenarioConfig(name="CHW", interventions=AIInterventionSet(chw_ai=True))
        baseline = config.baseline()
        assert baseline.name == "CHW (baseline)"
        assert not baseline.interventions.any_active
        assert config.interventions.chw_ai


class TestComorbidityAdjustment:
    """Tests for ComorbidityAdjustment validation."""

    @pytest.mark.parametrize("kwargs", [
        {"mortality_multiplier": 0.9},
        {"resolution_reduction": 0.0},
        {"resolution_reduction": 1.1},
        {"care_seeking_boost": 0.5},
    ])
    def test_invalid_values_raise(self, kwargs):
        with pytest.raises(ValueError):
            ComorbidityAdjustment(**kwargs)


class TestDefaultUptake:
    """Tests for default_uptake."""

    def test_urban(self):
        uptake = default_uptake(is_urban=True)
        assert uptake[Intervention.CHW_AI] == pytest.approx(0.66 * 1.2)
        assert uptake[Intervention.TRIAGE_AI] == pytest.approx(0.33 * 1.2)

    def test_rural(self):
        assert default_uptake(is_urban=False)[Intervention.CHW_AI] == pytest.approx(0.66 * 0.7)


class TestScenarioFiles:
    """Tests for scenario file I/O."""

    @pytest.fixture
    def config(self):
        return ScenarioConfig(
            name="Saved",
            disease="malaria",
            interventions=AIInterventionSet(chw_ai=True),
            uptake={"chwAI": 0.66},
            system_congestion=0.3,
        )

    def test_save_and_load_yaml(self, tmp_path, config):
        path = tmp_path / "scenario.yaml"
        save_scenario_file(config, path)
        assert load_scenario_file(path) == config

    def test_save_and_load_json_with_results(self, tmp_path, config):
        path = tmp_path / "nested" / "scenario.json"
        save_scenario_file(config, path, results={"cumulative_deaths": 12.5})

        with open(path) as f:
            data = json.load(f)
        assert data["results"]["cumulative_deaths"] == 12.5
        assert load_scenario_file(path) == config

    def test_yaml_with_empty_mapping_keys(self, tmp_path):
        path = tmp_path / "sparse.yaml"
        path.write_text(
            "name: Sparse\ndisease: malaria\n"
            "effect_magnitudes:\nparameter_overrides:\nuptake:\n"
        )
        config = load_scenario_file(path)
        assert config.disease == "malaria"
        assert config.effect_magnitudes == {}
        assert config.parameter_overrides == {}

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_scenario_file(tmp_path / "missing.yaml")

    def test_unsupported_format_raises(self, tmp_path, config):
        path = tmp_path / "scenario.txt"
        path.write_text("name: x")
        with pytest.raises(ValueError):
            load_scenario_file(path)
        with pytest.raises(ValueError):
            save_scenario_file(config, tmp_path / "out.toml")

    def test_env_var_directory(self, tmp_path, monkeypatch, config):
        monkeypatch.setenv("TIERSIM_SCENARIO_DIR", str(tmp_path))
        save_scenario_file(config, tmp_path / "a.yaml")
        save_scenario_file(config, tmp_path / "b.json")

        assert get_default_scenario_dir() == tmp_path
        assert [p.name for p in list_available_scenarios()] == ["a.yaml", "b.json"]

    def test_missing_directory_lists_nothing(self, tmp_path):
        assert list_available_scenarios(tmp_path / "nope") == []


class TestPackagedScenarios:
    """The scenarios shipped with the package load and run."""

    @pytest.fixture
    def packaged(self, monkeypatch, tmp_path):
        monkeypatch.delenv("TIERSIM_SCENARIO_DIR", raising=False)
        monkeypatch.chdir(tmp_path)
        return list_available_scenarios()

    def test_packaged_scenarios_present(self, packaged):
        names = [p.name for p in packaged]
        assert "malaria_chw_ai.yaml" in names
        assert "pneumonia_congested_district.yaml" in names

    def test_packaged_scenarios_run(self, packaged):
        for path in packaged:
            run = run_simulation(load_scenario_file(path))
            assert run.success, run.error_message
