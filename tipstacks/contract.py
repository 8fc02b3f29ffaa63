"""
contract.py - Stateful Tipping Contract

The TipContract class is the central state manager of the package.
It is the only module that mutates contract state.

Key responsibilities:
    - Implements the ContractView protocol for safe read-only access by planners
    - Executes calls atomically (settlement and every state change, or nothing)
    - Converts rule violations into CallResult error codes at the entry point
    - Keeps an append-only call log and supports clone(), replay() and state_digest()
"""

from __future__ import annotations
from dataclasses import replace
from typing import Any, Callable, Dict, List, Optional, Tuple

from .access import AccessControl
from .config import DeploymentConfig
from .core import (
    # Types
    CallRecord, CallResult, Identity, OriginType, PendingCall, StateChange, TipStats,
    # Constants
    STORE_STATS, STORE_IDENTITY, STORE_USERNAMES, STORE_REWARD_RATES,
    FN_TIP, FN_SET_USER_IDENTITY, FN_UPDATE_USER_REWARD_POINTS,
    # Exceptions
    ContractError,
    # Helper functions
    _canonicalize, _digest,
)
from .identity import IdentityRegistry, compute_identity_registration
from .rewards import RewardEngine, compute_reward_rate_update
from .settlement import BalanceBook, ReplaySettlement, TransferPrimitive
from .stats import StatsLedger
from .tips import compute_tip


class ReplayError(RuntimeError):
    """Raised when a logged call does not succeed again during replay()."""
    pass


class TipContract:
    """
    Tipping contract with full validation and audit trail.

    Implements the ContractView protocol, allowing the contract to be passed to
    pure planners that only read.

    Design Principles:
        - Always validates: every call is fully planned and checked before any
          mutation; settlement runs before state changes are applied.
        - Always logs: every applied call is recorded in call_log, enabling
          replay() for state reconstruction.

    Thread Safety:
        Not thread-safe. The host runtime runs one call at a time.

    Example:
        config = DeploymentConfig(admin="deployer")
        book = BalanceBook(test_mode=True)
        book.set_balance("alice", 50_000_000)
        contract = TipContract(config, book)

        contract.tip("alice", "bob", 10_000_000, "STX")          # (ok true)
        contract.get_total_tips_received("bob")                  # 9_500_000
    """

    def __init__(
        self,
        config: DeploymentConfig,
        transfers: Optional[TransferPrimitive] = None,
        name: str = "tip-stacks",
        verbose: bool = True,
    ):
        """
        Deploy a contract.

        Args:
            config: Immutable deployment parameters
            transfers: Value-transfer primitive (default: empty BalanceBook)
            name: Contract identifier used in exec ids
            verbose: Print applied and rejected calls (default: True)
        """
        self.name = name
        self._config = config
        self.access = AccessControl.from_config(config)
        self.transfers: TransferPrimitive = transfers if transfers is not None else BalanceBook()
        self.stats = StatsLedger()
        self.identities = IdentityRegistry()
        self.rewards = RewardEngine(default_rate=config.reward_rate, threshold=config.reward_threshold)
        self.call_log: List[CallRecord] = []
        self.verbose = verbose
        self._next_sequence: int = 0
        self._block_height: int = 0

    # ========================================================================
    # ContractView PROTOCOL IMPLEMENTATION (read-only methods)
    # ========================================================================

    @property
    def config(self) -> DeploymentConfig:
        return self._config

    @property
    def block_height(self) -> int:
        return self._block_height

    def get_user_tip_stats(self, account: str) -> TipStats:
        """Stats for account (all-zero if the account never tipped or was tipped)."""
        return self.stats.get(account)

    def get_total_tips_sent(self, account: str) -> int:
        return self.stats.get(account).total_sent

    def get_total_tips_received(self, account: str) -> int:
        return self.stats.get(account).total_received

    def get_reward_points(self, account: str, amount: int) -> int:
        """
        Points account would earn for a tip of amount.

        A pure query: no transfer is made and nothing is recorded.
        """
        return self.rewards.compute(account, amount)

    def get_user_identity(self, account: str) -> Identity:
        return self.identities.get(account)

    def get_username_owner(self, username: str) -> Optional[str]:
        return self.identities.owner_of(username)

    def get_reward_rate(self, account: str) -> int:
        return self.rewards.rate_for(account)

    def is_admin(self, account: str) -> bool:
        return self.access.is_admin(account)

    # ========================================================================
    # ENTRY POINTS (Mutating)
    # ========================================================================

    def tip(self, caller: str, recipient: str, amount: int, token_tag: str) -> CallResult:
        """
        Send amount of token_tag from caller to recipient, net of the platform fee.

        Returns:
            CallResult.ok(True), or err with InvalidTokenType (11), InvalidAmount (2),
            InvalidRecipient (5), or the transfer primitive's own code.
        """
        return self._run(
            FN_TIP, caller,
            lambda: compute_tip(self, caller, recipient, amount, token_tag),
        )

    def set_user_identity(self, caller: str, account: str, username: str) -> CallResult:
        """
        Register (or change) caller's display name.

        Returns:
            CallResult.ok(True), or err with Unauthorized (6),
            InvalidUsernameLength (9) or UsernameTaken (10).
        """
        return self._run(
            FN_SET_USER_IDENTITY, caller,
            lambda: compute_identity_registration(self, caller, account, username),
        )

    def update_user_reward_points(self, caller: str, account: str, value: int) -> CallResult:
        """
        Override the reward rate used for account's future qualifying tips (admin only).

        Returns:
            CallResult.ok(True), or err with Unauthorized (6) or InvalidAmount (2).
        """
        return self._run(
            FN_UPDATE_USER_REWARD_POINTS, caller,
            lambda: compute_reward_rate_update(self, caller, account, value),
        )

    def call(self, function: str, caller: str, *args: Any) -> CallResult:
        """
        Dispatch a mutating entry point by its wire name.

        Raises:
            KeyError: If function is not a mutating entry point.
        """
        entry_point = self._entry_points()[function]
        return entry_point(caller, *args)

    def _entry_points(self) -> Dict[str, Callable[..., CallResult]]:
        return {
            FN_TIP: self.tip,
            FN_SET_USER_IDENTITY: self.set_user_identity,
            FN_UPDATE_USER_REWARD_POINTS: self.update_user_reward_points,
        }

    def _plan(self, function: str, caller: str, args: Tuple[Any, ...]) -> PendingCall:
        """Run the planner behind a mutating entry point without executing it."""
        planners = {
            FN_TIP: compute_tip,
            FN_SET_USER_IDENTITY: compute_identity_registration,
            FN_UPDATE_USER_REWARD_POINTS: compute_reward_rate_update,
        }
        return planners[function](self, caller, *args)

    def _run(self, function: str, caller: str, plan: Callable[[], PendingCall]) -> CallResult:
        """
        Plan and execute one call, converting rule violations into error results.

        Only ContractError is converted; anything else is a bug and propagates.
        """
        try:
            pending = plan()
            self.execute(pending)
        except ContractError as e:
            if self.verbose:
                print(f"✗ REJECTED {function} by {caller}: (err u{e.code}) {e}")
            return CallResult.err(e.code)
        return CallResult.ok(True)

    # ========================================================================
    # EXECUTION (Mutating)
    # ========================================================================

    def advance_block(self, height: int) -> None:
        """
        Move the contract to a new host block height.

        Raises:
            ValueError: If height is lower than the current height.
        """
        if height < self._block_height:
            raise ValueError(f"Cannot move block height backwards: {height} < {self._block_height}")
        self._block_height = height

    def execute(self, pending: PendingCall) -> Optional[CallRecord]:
        """
        Apply a PendingCall atomically.

        Order:
        1. Check every state change against current state (nothing applied yet)
        2. Settle transfers through the primitive (all or nothing)
        3. Apply state changes and append the CallRecord to call_log

        Args:
            pending: PendingCall produced by a planner

        Returns:
            The CallRecord, or None for a call that changes nothing.

        Raises:
            TransferFailed: If settlement fails (no state changed).
            ValueError: If a state change is stale (no state changed).
        """
        if pending.is_empty():
            return None

        valid, reason = self._validate_pending(pending)
        if not valid:
            raise ValueError(f"Rejected {pending!r}: {reason}")

        if pending.transfers:
            self.transfers.settle(pending.transfers)

        for sc in pending.state_changes:
            self._apply_change(sc)

        sequence = self._next_sequence
        self._next_sequence += 1
        record = CallRecord(
            function=pending.function,
            caller=pending.caller,
            args=pending.args,
            state_changes=pending.state_changes,
            transfers=pending.transfers,
            origin=pending.origin,
            intent_id=pending.intent_id,
            contract_name=self.name,
            sequence_number=sequence,
            block_height=self._block_height,
        )
        self.call_log.append(record)

        if self.verbose:
            self._print_call_result(record, "APPLIED", "✓")
        return record

    def _current_value(self, store: str, key: str) -> Any:
        if store == STORE_STATS:
            return self.stats.get(key)
        if store == STORE_IDENTITY:
            return self.identities.get(key) if self.identities.has_identity(key) else None
        if store == STORE_USERNAMES:
            return self.identities.owner_of(key)
        if store == STORE_REWARD_RATES:
            return self.rewards.rate_for(key)
        raise ValueError(f"Unknown store: {store}")

    def _validate_pending(self, pending: PendingCall) -> Tuple[bool, str]:
        """
        Check that each change's old_value matches state as it will be when applied.

        Changes are walked in order over an overlay, so a call may touch the same
        key twice.
        """
        overlay: Dict[Tuple[str, str], Any] = {}
        for sc in pending.state_changes:
            slot = (sc.store, sc.key)
            try:
                current = overlay[slot] if slot in overlay else self._current_value(sc.store, sc.key)
            except ValueError as e:
                return False, str(e)
            if sc.old_value != current:
                return False, f"stale {sc.store}:{sc.key}: expected {sc.old_value!r}, found {current!r}"
            if sc.store == STORE_STATS and not sc.new_value.dominates(current):
                return False, f"stats for {sc.key} cannot decrease"
            overlay[slot] = sc.new_value
        return True, ""

    def _apply_change(self, change: StateChange) -> None:
        if change.store == STORE_STATS:
            self.stats.apply(change)
        elif change.store in (STORE_IDENTITY, STORE_USERNAMES):
            self.identities.apply(change)
        elif change.store == STORE_REWARD_RATES:
            self.rewards.set_rate(change.key, change.new_value)
        else:
            raise ValueError(f"Unknown store: {change.store}")

    def _print_call_result(self, record: CallRecord, result: str, icon: str) -> None:
        """Print the record's box with a result line in place of the closing bar."""
        lines = repr(record).split('\n')
        w = 100
        bar = "─" * w

        def pad(text: str) -> str:
            if len(text) > w:
                return text[:w-3] + "..."
            return text + " " * (w - len(text))

        lines[-1] = f"├{bar}┤"
        lines.append(f"│{pad(' ' + icon + ' ' + result)}│")
        lines.append(f"└{bar}┘")
        print("\n".join(lines))

    # ========================================================================
    # CONTRACT OPERATIONS
    # ========================================================================

    def state_snapshot(self) -> Dict[str, Dict[str, Any]]:
        """All durable state as plain dicts (records are immutable)."""
        identity_state = self.identities.snapshot()
        return {
            STORE_STATS: self.stats.snapshot(),
            STORE_IDENTITY: identity_state['identities'],
            STORE_USERNAMES: identity_state['usernames'],
            STORE_REWARD_RATES: dict(self.rewards.overrides),
        }

    def state_digest(self) -> str:
        """
        SHA-256 of the canonical serialization of all durable state.

        Two contracts that processed the same calls report the same digest,
        regardless of name, verbosity or dict insertion order.
        """
        return _digest(_canonicalize(self.state_snapshot()))

    def clone(self) -> TipContract:
        """
        Create an independent copy of this contract.

        The transfer primitive is cloned when it supports clone(); otherwise the
        clone shares it.
        """
        cloned = TipContract.__new__(TipContract)
        cloned.name = self.name
        cloned._config = self._config
        cloned.access = self.access
        cloned.verbose = self.verbose
        cloned.stats = self.stats.clone()
        cloned.identities = self.identities.clone()
        cloned.rewards = self.rewards.clone()
        cloned.call_log = list(self.call_log)
        cloned._next_sequence = self._next_sequence
        cloned._block_height = self._block_height
        clone_transfers = getattr(self.transfers, 'clone', None)
        cloned.transfers = clone_transfers() if callable(clone_transfers) else self.transfers
        return cloned

    def replay(self, transfers: Optional[TransferPrimitive] = None, from_call: int = 0) -> TipContract:
        """
        Create a new contract by re-running the call log.

        Each logged call is planned again against the rebuilt state at its
        original block height and recorded with OriginType.REPLAY. The intent_id
        of each replayed record matches the original's. Balances are not part
        of contract state: pass a
        primitive funded as the original was, or leave it None to accept the
        logged transfers as already settled.

        Args:
            transfers: Primitive for the new contract (default: ReplaySettlement)
            from_call: Starting index in call_log

        Returns:
            New TipContract with replayed state

        Raises:
            ReplayError: If a logged call does not succeed on replay.
        """
        replayed = TipContract(
            self._config,
            transfers if transfers is not None else ReplaySettlement(),
            name=f"{self.name}_replayed",
            verbose=self.verbose,
        )
        for record in self.call_log[from_call:]:
            replayed.advance_block(record.block_height)
            try:
                pending = replayed._plan(record.function, record.caller, record.args)
                replayed.execute(replace(pending, origin=OriginType.REPLAY))
            except ContractError as e:
                raise ReplayError(f"Replay failed at {record.exec_id}: (err u{e.code}) {e}") from e
        return replayed
