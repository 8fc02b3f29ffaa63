"""
tipstacks - Deterministic Tipping Contract

Tips between accounts net of a platform fee, per-account tipping statistics,
loyalty points and unique display names, as a set of atomic state transitions.

Usage:
    from tipstacks import (
        TipContract, DeploymentConfig, BalanceBook, Chain, contract_call,
    )

    book = BalanceBook(test_mode=True)
    book.set_balance("wallet_1", 100_000_000)
    contract = TipContract(DeploymentConfig(admin="deployer"), book)

    # Direct calls
    contract.tip("wallet_1", "wallet_2", 10_000_000, "STX")
    contract.set_user_identity("wallet_1", "wallet_1", "alice")

    # Through the host runtime
    chain = Chain(contract)
    block = chain.mine_block([
        contract_call("tip", ["wallet_2", 2_000_000, "STX"], "wallet_1"),
    ])
    chain.call_read_only("get-user-tip-stats", ["wallet_1"])
"""

# Core types
from .core import (
    ContractView,
    TipStats,
    Identity,
    Transfer,
    StateChange,
    PendingCall,
    CallRecord,
    CallResult,
    ErrorCode,
    OriginType,
    build_call,
    ContractError,
    InvalidAmount,
    InvalidRecipient,
    Unauthorized,
    InvalidUsernameLength,
    UsernameTaken,
    InvalidTokenType,
    TransferFailed,
    EMPTY_STATS,
    EMPTY_IDENTITY,
    TOKEN_STX,
    MICRO_PER_TOKEN,
    MAX_TIP_AMOUNT,
    PLATFORM_FEE_PERCENT,
    REWARD_RATE,
    REWARD_THRESHOLD,
    USERNAME_MIN_LENGTH,
    USERNAME_MAX_LENGTH,
    FN_TIP,
    FN_SET_USER_IDENTITY,
    FN_UPDATE_USER_REWARD_POINTS,
)

# Configuration and access control
from .config import DeploymentConfig
from .access import AccessControl

# Stores and planners
from .stats import StatsLedger, compute_stats_changes
from .identity import (
    IdentityRegistry,
    normalize_username,
    validate_username_length,
    compute_identity_registration,
)
from .rewards import (
    RewardEngine,
    compute_reward_points,
    compute_account_reward,
    compute_reward_rate_update,
)
from .tips import compute_platform_fee, split_tip, validate_tip, compute_tip

# Settlement
from .settlement import (
    TransferPrimitive,
    BalanceBook,
    ReplaySettlement,
    SettlementError,
    TRANSFER_INSUFFICIENT_BALANCE,
)

# Contract
from .contract import TipContract, ReplayError

# Host runtime
from .runtime import (
    Chain,
    Block,
    Receipt,
    ContractCall,
    UnknownFunction,
    contract_call,
    to_wire,
)

__all__ = [
    # Core
    'ContractView', 'TipStats', 'Identity', 'Transfer', 'StateChange',
    'PendingCall', 'CallRecord', 'CallResult', 'ErrorCode', 'OriginType', 'build_call',
    'ContractError', 'InvalidAmount', 'InvalidRecipient', 'Unauthorized',
    'InvalidUsernameLength', 'UsernameTaken', 'InvalidTokenType', 'TransferFailed',
    'EMPTY_STATS', 'EMPTY_IDENTITY',
    'TOKEN_STX', 'MICRO_PER_TOKEN', 'MAX_TIP_AMOUNT', 'PLATFORM_FEE_PERCENT',
    'REWARD_RATE', 'REWARD_THRESHOLD', 'USERNAME_MIN_LENGTH', 'USERNAME_MAX_LENGTH',
    'FN_TIP', 'FN_SET_USER_IDENTITY', 'FN_UPDATE_USER_REWARD_POINTS',
    # Configuration
    'DeploymentConfig', 'AccessControl',
    # Stats
    'StatsLedger', 'compute_stats_changes',
    # Identity
    'IdentityRegistry', 'normalize_username', 'validate_username_length',
    'compute_identity_registration',
    # Rewards
    'RewardEngine', 'compute_reward_points', 'compute_account_reward',
    'compute_reward_rate_update',
    # Tips
    'compute_platform_fee', 'split_tip', 'validate_tip', 'compute_tip',
    # Settlement
    'TransferPrimitive', 'BalanceBook', 'ReplaySettlement', 'SettlementError',
    'TRANSFER_INSUFFICIENT_BALANCE',
    # Contract
    'TipContract', 'ReplayError',
    # Runtime
    'Chain', 'Block', 'Receipt', 'ContractCall', 'UnknownFunction',
    'contract_call', 'to_wire',
]

__version__ = '1.0.0'
