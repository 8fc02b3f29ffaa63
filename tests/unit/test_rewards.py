"""
Tests for rewards.py - step reward function and admin rate overrides.
"""

import pytest

from hypothesis import given, strategies as st

from tipstacks import (
    OriginType, RewardEngine, InvalidAmount, Unauthorized,
    compute_reward_points, compute_reward_rate_update,
)
from tipstacks.core import REWARD_THRESHOLD, STORE_REWARD_RATES
from tipstacks.rewards import compute_account_reward

from tests.fake_view import FakeView
from tests.scenario import CONTRACT_OWNER, WALLET_1, WALLET_2


class TestComputeRewardPoints:

    def test_qualifying_tip(self):
        assert compute_reward_points(2_000_000) == 10

    def test_below_threshold(self):
        assert compute_reward_points(500_000) == 0

    def test_exactly_threshold_qualifies(self):
        assert compute_reward_points(REWARD_THRESHOLD) == 10
        assert compute_reward_points(REWARD_THRESHOLD - 1) == 0

    def test_custom_rate(self):
        assert compute_reward_points(5_000_000, rate=20) == 20

    @given(amount=st.integers(min_value=1, max_value=1_000_000_000))
    def test_points_never_scale_with_amount(self, amount):
        assert compute_reward_points(amount) in (0, 10)


class TestAccountReward:

    def test_override_applies(self, config):
        view = FakeView(config, rates={WALLET_1: 20})
        assert compute_account_reward(view, WALLET_1, 2_000_000) == 20
        assert compute_account_reward(view, WALLET_2, 2_000_000) == 10

    def test_threshold_comes_from_config(self, config):
        view = FakeView(config.with_overrides(reward_threshold=100))
        assert compute_account_reward(view, WALLET_1, 100) == 10


class TestRewardRateUpdate:

    def test_admin_sets_override(self, view):
        pending = compute_reward_rate_update(view, CONTRACT_OWNER, WALLET_1, 20)

        assert pending.origin is OriginType.ADMIN
        assert pending.args == (WALLET_1, 20)
        (change,) = pending.state_changes
        assert change.store == STORE_REWARD_RATES
        assert (change.key, change.old_value, change.new_value) == (WALLET_1, 10, 20)

    def test_non_admin_rejected(self, view):
        with pytest.raises(Unauthorized):
            compute_reward_rate_update(view, WALLET_1, WALLET_1, 20)

    def test_admin_checked_before_value(self, view):
        with pytest.raises(Unauthorized):
            compute_reward_rate_update(view, WALLET_1, WALLET_1, -1)

    @pytest.mark.parametrize("value", [-1, 2.5, "20", True])
    def test_invalid_value_rejected(self, view, value):
        with pytest.raises(InvalidAmount):
            compute_reward_rate_update(view, CONTRACT_OWNER, WALLET_1, value)

    def test_unchanged_rate_has_no_changes(self, config):
        view = FakeView(config, rates={WALLET_1: 20})
        assert compute_reward_rate_update(view, CONTRACT_OWNER, WALLET_1, 20).is_empty()


class TestRewardEngine:

    def test_default_rate(self):
        engine = RewardEngine()
        assert engine.rate_for("alice") == 10
        assert not engine.has_override("alice")

    def test_override(self):
        engine = RewardEngine(default_rate=10)
        engine.set_rate("alice", 0)
        assert engine.compute("alice", 2_000_000) == 0
        assert engine.compute("bob", 2_000_000) == 10

    def test_clone_is_independent(self):
        engine = RewardEngine()
        cloned = engine.clone()
        cloned.set_rate("alice", 20)
        assert engine.rate_for("alice") == 10

    def test_threshold_applies(self):
        engine = RewardEngine(threshold=100)
        assert engine.compute("alice", 100) == 10
        assert engine.compute("alice", 99) == 0

    def test_clone_keeps_threshold(self):
        cloned = RewardEngine(default_rate=20, threshold=100).clone()
        assert cloned.threshold == 100
        assert cloned.compute("alice", 500) == 20
