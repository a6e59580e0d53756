"""Pytest fixtures for the sovereign default tests."""

import pytest

from ag_default import AGDefaultModel
from tests.helpers.factories import single_state_config, stochastic_config, two_shock_processes


@pytest.fixture
def single_state_model() -> AGDefaultModel:
    return AGDefaultModel(single_state_config())


@pytest.fixture
def stochastic_model() -> AGDefaultModel:
    return AGDefaultModel(stochastic_config(), shocks=two_shock_processes())
