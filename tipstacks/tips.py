"""
tips.py - Tip validation, fee split and settlement planning

This module provides the pure half of the tip processor:
1. compute_platform_fee() - Fee retained by the contract (whole percent, rounded down)
2. validate_tip() - The three ordered checks (token, amount, recipient)
3. compute_tip() - Full plan for one tip: transfers plus stats deltas

Pattern:
    Gross tip (amount):
        Transfer(amount, sender -> contract_account)
    Payout (net_amount = amount - fee):
        Transfer(net_amount, contract_account -> recipient)
    The fee stays with the contract account.

    Stats:
        sender.total_sent        += amount
        sender.reward_points     += reward for amount
        recipient.total_received += net_amount

All functions take ContractView (read-only) and return immutable results.
TipContract applies the plan only after settlement succeeds.
"""

from __future__ import annotations
from typing import List, Tuple

from .access import AccessControl
from .core import (
    ContractView, PendingCall, Transfer,
    InvalidAmount, InvalidRecipient, InvalidTokenType, Unauthorized,
    FN_TIP, PLATFORM_FEE_PERCENT,
    build_call,
)
from .rewards import compute_account_reward
from .stats import compute_stats_changes


def compute_platform_fee(amount: int, fee_percent: int = PLATFORM_FEE_PERCENT) -> int:
    """
    Fee retained on a tip: floor(amount * fee_percent / 100).

    Integer arithmetic only; no rounding mode to configure.
    """
    return amount * fee_percent // 100


def split_tip(amount: int, fee_percent: int = PLATFORM_FEE_PERCENT) -> Tuple[int, int]:
    """Return (platform_fee, net_amount) for a gross amount."""
    fee = compute_platform_fee(amount, fee_percent)
    return fee, amount - fee


def validate_tip(
    view: ContractView,
    sender: str,
    recipient: str,
    amount: int,
    token_tag: str,
) -> None:
    """
    Run the tip checks in their fixed order.

    Raises:
        InvalidTokenType: token_tag is not the settlement asset.
        InvalidAmount: amount is not an int in (0, max_tip_amount].
        InvalidRecipient: recipient is empty, the sender, the platform, the
            administrator or the contract's escrow account.
        Unauthorized: the contract's escrow account is the sender.
    """
    config = view.config
    if token_tag != config.token_tag:
        raise InvalidTokenType(f"unsupported token {token_tag!r}")

    if not isinstance(amount, int) or isinstance(amount, bool):
        raise InvalidAmount(f"amount must be int, got {type(amount)}")
    if amount <= 0 or amount > config.max_tip_amount:
        raise InvalidAmount(f"amount {amount} outside (0, {config.max_tip_amount}]")

    access = AccessControl.from_config(config)
    if not recipient or recipient == sender or access.is_restricted_recipient(recipient):
        raise InvalidRecipient(f"{sender} cannot tip {recipient}")
    if access.is_contract(sender):
        raise Unauthorized("the contract account cannot send tips")


def compute_tip(
    view: ContractView,
    sender: str,
    recipient: str,
    amount: int,
    token_tag: str,
) -> PendingCall:
    """
    Plan a tip from sender to recipient.

    Args:
        view: Read-only contract access
        sender: Authenticated caller
        recipient: Account receiving the tip
        amount: Gross amount in smallest units
        token_tag: Asset selector (must be the settlement asset)

    Returns:
        PendingCall with the settlement transfers and the two stats changes.

    Raises:
        ContractError subclass from validate_tip().

    Example:
        pending = compute_tip(view, "alice", "bob", 10_000_000, "STX")
        # transfers: 10_000_000 alice -> escrow, 9_500_000 escrow -> bob
    """
    validate_tip(view, sender, recipient, amount, token_tag)

    config = view.config
    _, net_amount = split_tip(amount, config.platform_fee_percent)
    points = compute_account_reward(view, sender, amount)

    transfers: List[Transfer] = [
        Transfer(amount, sender, config.contract_account, memo="tip"),
    ]
    if net_amount > 0:
        transfers.append(Transfer(net_amount, config.contract_account, recipient, memo="tip-payout"))

    changes = compute_stats_changes(view, sender, recipient, amount, net_amount, points)
    return build_call(FN_TIP, sender, (recipient, amount, token_tag), changes, transfers)
