"""
rewards.py - Loyalty points for qualifying tips

This module provides reward computation and per-account rate overrides:
1. compute_reward_points() - Pure step function: flat rate at or above the threshold
2. effective_reward_rate() - Rate for an account (override or deployment default)
3. compute_reward_rate_update() - Planner for the admin-only rate override call

Points are never scaled: a tip either qualifies for the whole rate or earns nothing.
An override changes the rate used for the account's future tips; it never touches
points already accrued.
"""

from __future__ import annotations
from typing import Dict, Optional

from .access import AccessControl
from .core import (
    ContractView, PendingCall, StateChange, InvalidAmount, OriginType,
    REWARD_RATE, REWARD_THRESHOLD, STORE_REWARD_RATES, FN_UPDATE_USER_REWARD_POINTS,
    build_call,
)


def compute_reward_points(
    amount: int,
    rate: int = REWARD_RATE,
    threshold: int = REWARD_THRESHOLD,
) -> int:
    """
    Points earned for a tip of the given gross amount.

    Args:
        amount: Gross tip amount in smallest units.
        rate: Points credited when the tip qualifies.
        threshold: Minimum amount that qualifies.

    Returns:
        rate if amount >= threshold, else 0.

    Example:
        compute_reward_points(2_000_000)  # 10
        compute_reward_points(500_000)    # 0
    """
    return rate if amount >= threshold else 0


def effective_reward_rate(view: ContractView, account: str) -> int:
    """Rate applied to the account's qualifying tips."""
    return view.get_reward_rate(account)


def compute_account_reward(view: ContractView, account: str, amount: int) -> int:
    """Points the account would earn by sending a tip of amount."""
    return compute_reward_points(
        amount,
        rate=effective_reward_rate(view, account),
        threshold=view.config.reward_threshold,
    )


def compute_reward_rate_update(
    view: ContractView,
    caller: str,
    account: str,
    value: int,
) -> PendingCall:
    """
    Plan the administrator's per-account reward rate override.

    Args:
        view: Read-only contract access
        caller: Authenticated caller (must be the administrator)
        account: Account whose rate is overridden
        value: New rate (non-negative int)

    Returns:
        PendingCall with one STORE_REWARD_RATES change. If the rate is
        unchanged the call carries no changes but still succeeds.

    Raises:
        Unauthorized: If caller is not the administrator.
        InvalidAmount: If value is not a non-negative int.
    """
    AccessControl.from_config(view.config).require_admin(caller)

    if not isinstance(value, int) or isinstance(value, bool) or value < 0:
        raise InvalidAmount(f"reward rate must be a non-negative int, got {value!r}")

    old_rate = view.get_reward_rate(account)
    changes = []
    if old_rate != value:
        changes.append(StateChange(
            store=STORE_REWARD_RATES,
            key=account,
            old_value=old_rate,
            new_value=value,
        ))

    return build_call(
        FN_UPDATE_USER_REWARD_POINTS,
        caller,
        (account, value),
        changes,
        origin=OriginType.ADMIN,
    )


class RewardEngine:
    """
    Per-account reward rates with the deployment's qualifying threshold.

    Accounts without an override use the deployment's default rate.

    Example:
        engine = RewardEngine(default_rate=10, threshold=1_000_000)
        engine.rate_for("alice")          # 10
        engine.set_rate("alice", 20)
        engine.compute("alice", 2_000_000)  # 20
    """

    def __init__(
        self,
        default_rate: int = REWARD_RATE,
        overrides: Optional[Dict[str, int]] = None,
        threshold: int = REWARD_THRESHOLD,
    ):
        self.default_rate = default_rate
        self.threshold = threshold
        self.overrides: Dict[str, int] = dict(overrides or {})

    def rate_for(self, account: str) -> int:
        return self.overrides.get(account, self.default_rate)

    def has_override(self, account: str) -> bool:
        return account in self.overrides

    def set_rate(self, account: str, rate: int) -> None:
        self.overrides[account] = rate

    def compute(self, account: str, amount: int) -> int:
        """Points account earns for a tip of amount under its current rate."""
        return compute_reward_points(amount, self.rate_for(account), self.threshold)

    def clone(self) -> RewardEngine:
        return RewardEngine(self.default_rate, self.overrides, self.threshold)
