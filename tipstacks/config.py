"""
config.py - Deployment parameters for the tipping contract.

The administrator, platform account and every tunable limit are fixed when the
contract is deployed. DeploymentConfig is the single immutable value carrying
them; it is injected into TipContract and never mutated afterwards.
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from typing import Any, Dict, Optional

from .core import (
    TOKEN_STX, MAX_TIP_AMOUNT, PLATFORM_FEE_PERCENT,
    REWARD_RATE, REWARD_THRESHOLD,
    USERNAME_MIN_LENGTH, USERNAME_MAX_LENGTH,
)


# Suffix used to derive the contract's own escrow account from the deployer.
CONTRACT_NAME = "tip-stacks"


@dataclass(frozen=True, slots=True)
class DeploymentConfig:
    """
    Immutable deployment parameters.

    Attributes:
        admin: Administrator account (the only caller allowed to set reward rates).
        platform: Platform account that may not receive tips (defaults to admin).
        contract_account: Escrow account that receives gross tips and keeps fees
            (defaults to "<admin>.tip-stacks").
        token_tag: The one recognized settlement asset tag.
        max_tip_amount: Largest accepted tip, in smallest units.
        platform_fee_percent: Fee retained on each tip, whole percent, rounded down.
        reward_rate: Default points credited for a qualifying tip.
        reward_threshold: Minimum gross tip that qualifies for points.
        username_min_length: Inclusive lower bound on username length.
        username_max_length: Inclusive upper bound on username length.
    """
    admin: str
    platform: Optional[str] = None
    contract_account: Optional[str] = None
    token_tag: str = TOKEN_STX
    max_tip_amount: int = MAX_TIP_AMOUNT
    platform_fee_percent: int = PLATFORM_FEE_PERCENT
    reward_rate: int = REWARD_RATE
    reward_threshold: int = REWARD_THRESHOLD
    username_min_length: int = USERNAME_MIN_LENGTH
    username_max_length: int = USERNAME_MAX_LENGTH

    def __post_init__(self):
        if not self.admin or not self.admin.strip():
            raise ValueError("admin cannot be empty")
        if self.platform is None:
            object.__setattr__(self, 'platform', self.admin)
        elif not self.platform.strip():
            raise ValueError("platform cannot be empty")
        if self.contract_account is None:
            object.__setattr__(self, 'contract_account', f"{self.admin}.{CONTRACT_NAME}")
        elif not self.contract_account.strip():
            raise ValueError("contract_account cannot be empty")
        if not self.token_tag or not self.token_tag.strip():
            raise ValueError("token_tag cannot be empty")

        for name in ('max_tip_amount', 'platform_fee_percent', 'reward_rate',
                     'reward_threshold', 'username_min_length', 'username_max_length'):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool):
                raise ValueError(f"{name} must be int, got {type(value)}")

        if self.max_tip_amount <= 0:
            raise ValueError(f"max_tip_amount must be positive, got {self.max_tip_amount}")
        if not 0 <= self.platform_fee_percent <= 100:
            raise ValueError(
                f"platform_fee_percent must be between 0 and 100, got {self.platform_fee_percent}"
            )
        if self.reward_rate < 0:
            raise ValueError(f"reward_rate cannot be negative, got {self.reward_rate}")
        if self.reward_threshold < 0:
            raise ValueError(f"reward_threshold cannot be negative, got {self.reward_threshold}")
        if self.username_min_length < 1:
            raise ValueError("username_min_length must be at least 1")
        if self.username_max_length < self.username_min_length:
            raise ValueError("username_max_length must be >= username_min_length")
        if self.contract_account in (self.admin, self.platform):
            raise ValueError("contract_account must differ from admin and platform")

    def with_overrides(self, **changes: Any) -> DeploymentConfig:
        """Return a copy with some parameters replaced (validated again)."""
        return replace(self, **changes)

    @classmethod
    def from_mapping(cls, settings: Dict[str, Any]) -> DeploymentConfig:
        """
        Build a config from a plain mapping, e.g. a parsed deployment plan.

        Unknown keys are rejected.

        Raises:
            ValueError: If a key is unknown or a value is invalid.
        """
        known = set(cls.__dataclass_fields__)
        unknown = sorted(set(settings) - known)
        if unknown:
            raise ValueError(f"Unknown deployment settings: {', '.join(unknown)}")
        return cls(**settings)
