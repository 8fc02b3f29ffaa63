"""
Core types and pure functions for the tipping contract.

This module provides the foundational data structures and protocols for the contract:
1. Protocols: ContractView for read-only contract access
2. Immutable data structures: TipStats, Identity, Transfer, StateChange, PendingCall, CallRecord
3. Results and exceptions: CallResult, ErrorCode and the ContractError hierarchy
4. Canonical serialization used for content hashes (intent ids, state digests)

All functions in this module are pure and operate on read-only views.
No function can mutate contract state directly.
"""

from __future__ import annotations
from dataclasses import dataclass, field, fields, is_dataclass
from enum import Enum, IntEnum
import hashlib
from typing import (
    Dict, List, Optional, Any, Protocol,
    Tuple, runtime_checkable, TYPE_CHECKING
)

if TYPE_CHECKING:
    from .config import DeploymentConfig


# ============================================================================
# CONSTANTS
# ============================================================================

# The one settlement asset recognized by the contract.
TOKEN_STX = "STX"

# Smallest units per whole token (1 STX = 1,000,000 micro-STX).
MICRO_PER_TOKEN = 1_000_000

# Largest tip accepted in a single call: 1000 STX in micro units.
MAX_TIP_AMOUNT = 1000 * MICRO_PER_TOKEN

# Platform fee, in whole percent of the gross tip, rounded down.
PLATFORM_FEE_PERCENT = 5

# Flat reward credited for a qualifying tip.
REWARD_RATE = 10

# Minimum gross tip (1 STX) that earns reward points.
REWARD_THRESHOLD = 1 * MICRO_PER_TOKEN

# Inclusive bounds on username length.
USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 20

# Store names used in StateChange records.
STORE_STATS = "stats"
STORE_IDENTITY = "identity"
STORE_USERNAMES = "usernames"
STORE_REWARD_RATES = "reward_rates"

# Wire names of the mutating entry points.
FN_TIP = "tip"
FN_SET_USER_IDENTITY = "set-user-identity"
FN_UPDATE_USER_REWARD_POINTS = "update-user-reward-points"


# ============================================================================
# ERROR CODES
# ============================================================================

class ErrorCode(IntEnum):
    """
    Numeric error codes returned by mutating entry points.

    The values are part of the wire contract and never change.
    Codes 1, 3, 4, 7 and 8 are reserved and deliberately unnamed.
    """
    INVALID_AMOUNT = 2
    INVALID_RECIPIENT = 5
    UNAUTHORIZED = 6
    INVALID_USERNAME_LENGTH = 9
    USERNAME_TAKEN = 10
    INVALID_TOKEN_TYPE = 11


class OriginType(Enum):
    """Where an executed call came from (used in the audit trail)."""
    USER_ACTION = "user_action"     # Ordinary account call
    ADMIN = "admin"                 # Administrator-gated call
    REPLAY = "replay"               # Re-executed from a call log


# ============================================================================
# EXCEPTIONS
# ============================================================================

class ContractError(Exception):
    """
    Base exception for all contract rule violations.

    Carries the numeric code returned to the caller. Entry points convert
    these into CallResult.err(code); they never escape a mutating call.
    """
    code: int = 0

    def __init__(self, message: str = "", code: Optional[int] = None):
        super().__init__(message)
        if code is not None:
            self.code = int(code)


class InvalidAmount(ContractError):
    """Raised when an amount is zero, negative, not an integer, or above the maximum."""
    code = ErrorCode.INVALID_AMOUNT


class InvalidRecipient(ContractError):
    """Raised when tipping yourself or a restricted (platform/admin) account."""
    code = ErrorCode.INVALID_RECIPIENT


class Unauthorized(ContractError):
    """Raised when the caller may not perform the requested operation."""
    code = ErrorCode.UNAUTHORIZED


class InvalidUsernameLength(ContractError):
    """Raised when a username is outside the allowed length bounds."""
    code = ErrorCode.INVALID_USERNAME_LENGTH


class UsernameTaken(ContractError):
    """Raised when a username is already held by another account."""
    code = ErrorCode.USERNAME_TAKEN


class InvalidTokenType(ContractError):
    """Raised when the token tag is not the recognized settlement asset."""
    code = ErrorCode.INVALID_TOKEN_TYPE


class TransferFailed(ContractError):
    """
    Raised by a transfer primitive when settlement cannot complete.

    The code is supplied by the primitive itself and passed through unchanged.
    """
    code = 1


# ============================================================================
# RESULTS
# ============================================================================

@dataclass(frozen=True, slots=True)
class CallResult:
    """
    Outcome of a mutating entry point.

    Either ok (with a value, always True for this contract) or err (with a code).
    str() renders the textual form used by the host runtime: "(ok true)", "(err u2)".
    """
    is_ok: bool
    value: Any = None
    code: Optional[int] = None

    @classmethod
    def ok(cls, value: Any = True) -> CallResult:
        return cls(is_ok=True, value=value)

    @classmethod
    def err(cls, code: int) -> CallResult:
        return cls(is_ok=False, code=int(code))

    @property
    def error(self) -> Optional[ErrorCode]:
        """The named ErrorCode, or None for ok results and reserved codes."""
        if self.is_ok:
            return None
        try:
            return ErrorCode(self.code)
        except ValueError:
            return None

    def __str__(self) -> str:
        if self.is_ok:
            if isinstance(self.value, bool):
                return f"(ok {'true' if self.value else 'false'})"
            return f"(ok {self.value})"
        return f"(err u{self.code})"


# ============================================================================
# RECORDS
# ============================================================================

@dataclass(frozen=True, slots=True)
class TipStats:
    """
    Aggregate tipping counters for one account.

    Attributes:
        total_sent: Gross amount sent (before the platform fee).
        total_received: Net amount received (after the platform fee).
        reward_points: Loyalty points accrued from qualifying tips.
    """
    total_sent: int = 0
    total_received: int = 0
    reward_points: int = 0

    def __post_init__(self):
        for f in fields(self):
            value = getattr(self, f.name)
            if not isinstance(value, int) or isinstance(value, bool):
                raise ValueError(f"TipStats.{f.name} must be int, got {type(value)}")
            if value < 0:
                raise ValueError(f"TipStats.{f.name} cannot be negative, got {value}")

    def dominates(self, other: TipStats) -> bool:
        """Return True if no counter here is smaller than the matching counter in other."""
        return (
            self.total_sent >= other.total_sent
            and self.total_received >= other.total_received
            and self.reward_points >= other.reward_points
        )


@dataclass(frozen=True, slots=True)
class Identity:
    """A registered display name. The default value stands for "no identity"."""
    username: str = ""
    verified: bool = False


EMPTY_STATS = TipStats()
EMPTY_IDENTITY = Identity()


@dataclass(frozen=True, slots=True)
class Transfer:
    """
    A single movement of the settlement asset between two accounts.

    Attributes:
        amount: Quantity in smallest units (positive int).
        source: Account debited.
        dest: Account credited.
        memo: Short label identifying why the transfer happened.
    """
    amount: int
    source: str
    dest: str
    memo: str = ""

    def __post_init__(self):
        if not isinstance(self.amount, int) or isinstance(self.amount, bool):
            raise ValueError(f"Transfer amount must be int, got {type(self.amount)}")
        if self.amount <= 0:
            raise ValueError(f"Transfer amount must be positive, got {self.amount}")
        if not self.source or not self.source.strip():
            raise ValueError("Transfer source cannot be empty")
        if not self.dest or not self.dest.strip():
            raise ValueError("Transfer dest cannot be empty")
        if self.source == self.dest:
            raise ValueError("Source and dest must be different")

    def __repr__(self) -> str:
        return f"Transfer({self.amount}: {self.source}→{self.dest})"


@dataclass(frozen=True, slots=True)
class StateChange:
    """
    Record of one keyed value change in a contract store.

    Stores before/after values so a call can be audited and replayed.
    A new_value of None means the key is removed (used when a username is released).

    Attributes:
        store: One of the STORE_* names.
        key: Account or normalized username.
        old_value: Value before the change (None if the key was absent).
        new_value: Value after the change (None to delete).
    """
    store: str
    key: str
    old_value: Any
    new_value: Any

    def changed_fields(self) -> Dict[str, Tuple[Any, Any]]:
        """
        Compute fields that differ between old and new value.

        Records (TipStats, Identity) are compared field by field; plain values
        are reported under the key "value".
        """
        if is_dataclass(self.old_value) or is_dataclass(self.new_value):
            template = self.new_value if self.new_value is not None else self.old_value
            changes = {}
            for f in fields(template):
                old_val = getattr(self.old_value, f.name, None)
                new_val = getattr(self.new_value, f.name, None)
                if old_val != new_val:
                    changes[f.name] = (old_val, new_val)
            return changes
        if self.old_value != self.new_value:
            return {"value": (self.old_value, self.new_value)}
        return {}


# ============================================================================
# CANONICALIZATION
# ============================================================================

def _canonicalize(value: Any) -> str:
    """
    Produce a canonical string representation of a value for hashing.

    Output is independent of dict insertion order, so two replicas holding the
    same logical state produce the same string.
    """
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return f"N:{value}"
    if isinstance(value, str):
        return f"S:{value}"
    if isinstance(value, Enum):
        return f"E:{value.value}"
    if is_dataclass(value) and not isinstance(value, type):
        serialized = ",".join(
            f"{f.name}={_canonicalize(getattr(value, f.name))}" for f in fields(value)
        )
        return f"{type(value).__name__}({serialized})"
    if isinstance(value, dict):
        items = sorted(value.items(), key=lambda kv: str(kv[0]))
        serialized = ",".join(f"{_canonicalize(k)}:{_canonicalize(v)}" for k, v in items)
        return f"{{{serialized}}}"
    if isinstance(value, (list, tuple)):
        serialized = ",".join(_canonicalize(item) for item in value)
        return f"[{serialized}]"
    return f"R:{repr(value)}"


def _digest(content: str, length: Optional[int] = None) -> str:
    digest = hashlib.sha256(content.encode()).hexdigest()
    return digest[:length] if length else digest


def _compute_intent_id(
    function: str,
    caller: str,
    args: Tuple[Any, ...],
    state_changes: Tuple[StateChange, ...],
    transfers: Tuple[Transfer, ...],
) -> str:
    """
    Compute a deterministic content hash for a call's intent.

    Based solely on the semantic content of the call (function, caller, args,
    the staged changes and transfers). Order of state changes is kept: it is
    the order in which they are applied.
    """
    content_parts = [f"fn:{function}", f"caller:{caller}", f"args:{_canonicalize(args)}"]
    for t in transfers:
        content_parts.append(f"transfer:{t.amount}|{t.source}|{t.dest}|{t.memo}")
    for sc in state_changes:
        content_parts.append(
            f"change:{sc.store}|{sc.key}|{_canonicalize(sc.old_value)}|{_canonicalize(sc.new_value)}"
        )
    return _digest("|".join(content_parts), 16)


# ============================================================================
# CALLS
# ============================================================================

@dataclass(frozen=True, slots=True)
class PendingCall:
    """
    A validated call before it is applied - represents INTENT.

    Built by the contract's planners and handed to TipContract for settlement
    and application. Nothing in a PendingCall has touched contract state yet.

    Attributes:
        function: Wire name of the entry point.
        caller: Authenticated calling account.
        args: Call arguments (excluding the caller).
        state_changes: Ordered store changes to apply.
        transfers: Settlement transfers to execute before the changes are applied.
        origin: OriginType of the call.
        intent_id: Content-addressable hash (auto-computed).
    """
    function: str
    caller: str
    args: Tuple[Any, ...]
    state_changes: Tuple[StateChange, ...] = ()
    transfers: Tuple[Transfer, ...] = ()
    origin: OriginType = OriginType.USER_ACTION
    intent_id: str = field(default="")

    def __post_init__(self):
        if not self.intent_id:
            computed_id = _compute_intent_id(
                self.function, self.caller, self.args, self.state_changes, self.transfers
            )
            object.__setattr__(self, 'intent_id', computed_id)

    def is_empty(self) -> bool:
        """Return True if this call changes nothing and moves nothing."""
        return not self.state_changes and not self.transfers

    def __repr__(self) -> str:
        return (
            f"PendingCall({self.function} by {self.caller}: "
            f"{len(self.transfers)} transfers, {len(self.state_changes)} changes)"
        )


def build_call(
    function: str,
    caller: str,
    args: Tuple[Any, ...],
    state_changes: Optional[List[StateChange]] = None,
    transfers: Optional[List[Transfer]] = None,
    origin: OriginType = OriginType.USER_ACTION,
) -> PendingCall:
    """
    Build a PendingCall from staged changes and transfers.

    This is the standard way for planners to describe what a call will do.

    Example:
        changes = [StateChange(STORE_IDENTITY, "alice", EMPTY_IDENTITY, Identity("alice", True))]
        pending = build_call(FN_SET_USER_IDENTITY, "alice", ("alice", "alice"), changes)
    """
    return PendingCall(
        function=function,
        caller=caller,
        args=tuple(args),
        state_changes=tuple(state_changes or ()),
        transfers=tuple(transfers or ()),
        origin=origin,
    )


@dataclass(frozen=True, slots=True)
class CallRecord:
    """
    An applied, immutable record of a call - represents FACT.

    Attributes:
        function, caller, args, state_changes, transfers, origin, intent_id:
            Copied from the PendingCall.
        contract_name: Name of the contract instance that applied it.
        sequence_number: Monotonic position within the contract's call log.
        block_height: Host block the call ran in (0 when called directly).
    """
    function: str
    caller: str
    args: Tuple[Any, ...]
    state_changes: Tuple[StateChange, ...]
    transfers: Tuple[Transfer, ...]
    origin: OriginType
    intent_id: str
    contract_name: str
    sequence_number: int
    block_height: int = 0

    @property
    def exec_id(self) -> str:
        """Format: exec:{contract}:{sequence:012d}:{block}"""
        return f"exec:{self.contract_name}:{self.sequence_number:012d}:{self.block_height}"

    def __repr__(self) -> str:
        w = 100
        bar = "─" * w

        def pad(text: str) -> str:
            """Pad or truncate text to exactly w characters."""
            if len(text) > w:
                return text[:w-3] + "..."
            return text + " " * (w - len(text))

        lines = [
            "",
            f"┌{bar}┐",
            f"│{pad(' Call: ' + self.exec_id)}│",
            f"├{bar}┤",
            f"│{pad('   function       : ' + self.function)}│",
            f"│{pad('   caller         : ' + self.caller)}│",
            f"│{pad('   args           : ' + repr(self.args))}│",
            f"│{pad('   intent_id      : ' + self.intent_id)}│",
            f"│{pad('   origin         : ' + self.origin.value)}│",
        ]
        if self.transfers:
            lines.append(f"├{bar}┤")
            lines.append(f"│{pad(' Transfers (' + str(len(self.transfers)) + '):')}│")
            for i, t in enumerate(self.transfers):
                lines.append(f"│{pad(f'   [{i}] {t.amount}: {t.source} → {t.dest}')}│")
        if self.state_changes:
            lines.append(f"├{bar}┤")
            lines.append(f"│{pad(' State Changes (' + str(len(self.state_changes)) + '):')}│")
            for sc in self.state_changes:
                lines.append(f"│{pad('   [' + sc.store + ':' + sc.key + ']')}│")
                for field_name, (old_val, new_val) in sc.changed_fields().items():
                    lines.append(f"│{pad(f'      {field_name}: {old_val!r} → {new_val!r}')}│")
        lines.append(f"└{bar}┘")
        return "\n".join(lines)


# ============================================================================
# PROTOCOLS
# ============================================================================

@runtime_checkable
class ContractView(Protocol):
    """
    Read-only interface to contract state.

    Planners in stats.py, identity.py and rewards.py accept a ContractView
    to declare that they only read. TipContract implements this protocol;
    tests use FakeView.
    """

    @property
    def config(self) -> 'DeploymentConfig':
        """Deployment parameters (administrator, limits, rates)."""
        ...

    def get_user_tip_stats(self, account: str) -> TipStats:
        """Return the account's stats, all-zero if never touched."""
        ...

    def get_user_identity(self, account: str) -> Identity:
        """Return the account's identity, EMPTY_IDENTITY if none."""
        ...

    def get_username_owner(self, username: str) -> Optional[str]:
        """Return the account holding a username (any casing), or None."""
        ...

    def get_reward_rate(self, account: str) -> int:
        """Return the reward rate applied to the account's qualifying tips."""
        ...
