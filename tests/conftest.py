"""Pytest fixtures for tiersim tests."""

import dataclasses

import pytest

from tiersim.core.parameters import ResolvedParameters
from tiersim.core.scenario import AIInterventionSet, ScenarioConfig


@pytest.fixture
def base_params() -> ResolvedParameters:
    """Uncongested parameter set: population 100,000, lambda 0.05, phi0 0.6, no AI."""
    return ResolvedParameters(
        population=100_000,
        incidence=0.05,
        disability_weight=0.2,
        mean_age_of_infection=30,
        regional_life_expectancy=70,
        phi0=0.6,
        informal_care_ratio=0.3,
        sigma_i=0.2,
        mu_u=0.05, delta_u=0.01,
        mu_i=0.3, delta_i=0.01,
        mu0=0.5, delta0=0.005, rho0=0.3,
        mu1=0.6, delta1=0.004, rho1=0.2,
        mu2=0.7, delta2=0.003, rho2=0.1,
        mu3=0.8, delta3=0.002,
    )


@pytest.fixture
def congested_params(base_params) -> ResolvedParameters:
    """Heavily congested system with every queue mechanic switched on."""
    return dataclasses.replace(
        base_params,
        system_congestion=0.8,
        competition_sensitivity=1.3,
        queue_prevention_rate=0.35,
        throughput_boost_l1=0.35,
        throughput_boost_l3=0.40,
        visit_reduction=0.2,
        direct_routing_improvement=0.25,
    )


@pytest.fixture
def default_config() -> ScenarioConfig:
    """Generic disease in the moderate urban system, AI off."""
    return ScenarioConfig(name="Generic")


@pytest.fixture
def chw_config() -> ScenarioConfig:
    """Generic disease with CHW decision support switched on."""
    return ScenarioConfig(name="CHW AI", interventions=AIInterventionSet(chw_ai=True))
