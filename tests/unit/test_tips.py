"""
Tests for tips.py - fee arithmetic, the ordered checks and the tip plan.

Tests:
- compute_platform_fee / split_tip rounding
- validate_tip check order (token, amount, recipient)
- compute_tip transfers and stats deltas
"""

import pytest

from hypothesis import given, strategies as st

from tipstacks import (
    TipStats, InvalidAmount, InvalidRecipient, InvalidTokenType, Unauthorized,
    compute_platform_fee, compute_tip, validate_tip,
)
from tipstacks.tips import split_tip

from tests.fake_view import FakeView
from tests.scenario import CONTRACT_OWNER, WALLET_1, WALLET_2


ESCROW = f"{CONTRACT_OWNER}.tip-stacks"


# ============================================================================
# Fee arithmetic
# ============================================================================

class TestPlatformFee:

    def test_five_percent(self):
        assert compute_platform_fee(10_000_000) == 500_000
        assert split_tip(10_000_000) == (500_000, 9_500_000)

    def test_rounds_down(self):
        assert compute_platform_fee(19) == 0
        assert compute_platform_fee(39) == 1
        assert split_tip(1) == (0, 1)

    @given(amount=st.integers(min_value=1, max_value=1_000_000_000),
           pct=st.integers(min_value=0, max_value=100))
    def test_fee_plus_net_is_amount(self, amount, pct):
        fee, net = split_tip(amount, pct)
        assert fee + net == amount
        assert 0 <= fee <= amount


# ============================================================================
# Validation
# ============================================================================

class TestValidateTip:

    def test_valid_tip(self, view):
        validate_tip(view, WALLET_1, WALLET_2, 10_000_000, "STX")

    def test_wrong_token(self, view):
        with pytest.raises(InvalidTokenType):
            validate_tip(view, WALLET_1, WALLET_2, 10_000_000, "XYZ")

    @pytest.mark.parametrize("amount", [0, -1, 1_000_000_001, 10_000_000_000_000])
    def test_amount_out_of_range(self, view, amount):
        with pytest.raises(InvalidAmount):
            validate_tip(view, WALLET_1, WALLET_2, amount, "STX")

    def test_max_amount_is_inclusive(self, view):
        validate_tip(view, WALLET_1, WALLET_2, 1_000_000_000, "STX")

    @pytest.mark.parametrize("amount", [1.5, "10", True])
    def test_non_int_amount(self, view, amount):
        with pytest.raises(InvalidAmount):
            validate_tip(view, WALLET_1, WALLET_2, amount, "STX")

    def test_empty_recipient(self, view):
        with pytest.raises(InvalidRecipient):
            validate_tip(view, WALLET_1, "", 10_000_000, "STX")

    @pytest.mark.parametrize("recipient", [WALLET_1, CONTRACT_OWNER, ESCROW])
    def test_restricted_recipient(self, view, recipient):
        with pytest.raises(InvalidRecipient):
            validate_tip(view, WALLET_1, recipient, 10_000_000, "STX")

    def test_separate_platform_is_restricted(self, config):
        view = FakeView(config.with_overrides(platform="platform"))
        with pytest.raises(InvalidRecipient):
            validate_tip(view, WALLET_1, "platform", 10_000_000, "STX")

    def test_escrow_cannot_send(self, view):
        with pytest.raises(Unauthorized):
            validate_tip(view, ESCROW, WALLET_2, 10_000_000, "STX")

    def test_token_checked_before_amount(self, view):
        with pytest.raises(InvalidTokenType):
            validate_tip(view, WALLET_1, WALLET_2, 0, "XYZ")

    def test_amount_checked_before_recipient(self, view):
        with pytest.raises(InvalidAmount):
            validate_tip(view, WALLET_1, WALLET_1, 0, "STX")


# ============================================================================
# Planning
# ============================================================================

class TestComputeTip:

    def test_transfers(self, view):
        pending = compute_tip(view, WALLET_1, WALLET_2, 10_000_000, "STX")

        gross, payout = pending.transfers
        assert (gross.amount, gross.source, gross.dest, gross.memo) == (10_000_000, WALLET_1, ESCROW, "tip")
        assert (payout.amount, payout.source, payout.dest, payout.memo) == (
            9_500_000, ESCROW, WALLET_2, "tip-payout"
        )

    def test_stats_changes(self, view):
        pending = compute_tip(view, WALLET_1, WALLET_2, 10_000_000, "STX")

        sender, recipient = pending.state_changes
        assert sender.new_value == TipStats(total_sent=10_000_000, total_received=0, reward_points=10)
        assert recipient.new_value == TipStats(total_sent=0, total_received=9_500_000, reward_points=0)

    def test_small_tip_earns_nothing(self, view):
        pending = compute_tip(view, WALLET_1, WALLET_2, 500_000, "STX")
        assert pending.state_changes[0].new_value.reward_points == 0

    def test_zero_net_skips_payout(self, config):
        view = FakeView(config.with_overrides(platform_fee_percent=100))
        pending = compute_tip(view, WALLET_1, WALLET_2, 1_000, "STX")

        assert len(pending.transfers) == 1
        assert pending.state_changes[1].new_value.total_received == 0

    def test_override_rate_used(self, config):
        view = FakeView(config, rates={WALLET_1: 20})
        pending = compute_tip(view, WALLET_1, WALLET_2, 2_000_000, "STX")
        assert pending.state_changes[0].new_value.reward_points == 20

    def test_args_recorded(self, view):
        pending = compute_tip(view, WALLET_1, WALLET_2, 2_000_000, "STX")
        assert pending.args == (WALLET_2, 2_000_000, "STX")
        assert pending.caller == WALLET_1
