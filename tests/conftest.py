"""
conftest.py - Shared pytest fixtures for tipstacks tests

Provides common fixtures used across unit, scenario and conformance tests:
- Deployment config with the well-known contract owner
- Funded balance book for the three test wallets
- Deployed contract and host runtime around it
"""

import pytest

from tipstacks import BalanceBook, Chain, DeploymentConfig, TipContract

from tests.fake_view import FakeView
from tests.scenario import make_book, make_config


# =============================================================================
# BASIC FIXTURES
# =============================================================================

@pytest.fixture
def config() -> DeploymentConfig:
    """Default deployment: owner is admin and platform."""
    return make_config()


@pytest.fixture
def book() -> BalanceBook:
    """Balance book with each wallet holding 100M STX."""
    return make_book()


@pytest.fixture
def contract(config, book) -> TipContract:
    """Deployed contract using the funded balance book."""
    return TipContract(config, book, verbose=False)


@pytest.fixture
def chain(contract) -> Chain:
    """Host runtime around the deployed contract."""
    return Chain(contract)


@pytest.fixture
def view(config) -> FakeView:
    """Empty read-only view for planner tests."""
    return FakeView(config)
