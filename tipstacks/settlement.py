"""
settlement.py - Value-transfer primitive for the settlement asset

The contract never moves value itself. It hands a batch of Transfers to a
TransferPrimitive, which must either apply all of them or none of them.

BalanceBook is the in-memory primitive used by the host runtime simulator and
the tests:
    - Integer balances of the single settlement asset
    - Always validates: the net effect of the whole batch is checked before
      anything is applied
    - Failure raises TransferFailed with the primitive's own code
"""

from __future__ import annotations
from collections import defaultdict
from typing import Dict, List, Protocol, Sequence, Set, Tuple, runtime_checkable

from .core import Transfer, TransferFailed


# Error code the native transfer primitive uses for an insufficient balance.
TRANSFER_INSUFFICIENT_BALANCE = 1


class SettlementError(Exception):
    """Raised when the balance book is misused (not a failed transfer)."""
    pass


@runtime_checkable
class TransferPrimitive(Protocol):
    """
    External value-transfer primitive.

    settle() executes a batch of transfers atomically. On failure it raises
    TransferFailed and leaves every balance unchanged.
    """

    def settle(self, transfers: Sequence[Transfer]) -> None:
        ...


class BalanceBook:
    """
    Atomic balance store for one asset.

    Example:
        book = BalanceBook(test_mode=True)
        book.set_balance("alice", 5_000_000)
        book.settle([Transfer(1_000_000, "alice", "bob", "tip")])
        book.get_balance("bob")  # 1_000_000
    """

    def __init__(self, test_mode: bool = False):
        self._balances: Dict[str, int] = defaultdict(int)
        self._test_mode = test_mode

    # ========================================================================
    # READ-ONLY
    # ========================================================================

    def get_balance(self, account: str) -> int:
        return self._balances.get(account, 0)

    def list_accounts(self) -> Set[str]:
        return {a for a, b in self._balances.items() if b != 0}

    def total_supply(self) -> int:
        """Sum of all balances, accumulated in sorted account order."""
        return sum(self._balances[a] for a in sorted(self._balances))

    # ========================================================================
    # MUTATING
    # ========================================================================

    def set_balance(self, account: str, amount: int) -> None:
        """
        Set an account's balance directly (test mode only).

        Raises:
            SettlementError: If called when test_mode is False.
            ValueError: If amount is negative or not an int.
        """
        if not self._test_mode:
            raise SettlementError(
                "set_balance() is disabled outside test mode. "
                "Use settle() to move balances."
            )
        if not isinstance(amount, int) or isinstance(amount, bool) or amount < 0:
            raise ValueError(f"balance must be a non-negative int, got {amount!r}")
        self._balances[account] = amount

    def settle(self, transfers: Sequence[Transfer]) -> None:
        """
        Execute transfers atomically.

        Raises:
            TransferFailed: If any account would end with a negative balance.
                Nothing is applied in that case.
        """
        valid, reason = self._validate(transfers)
        if not valid:
            raise TransferFailed(reason, code=TRANSFER_INSUFFICIENT_BALANCE)

        for t in transfers:
            self._balances[t.source] -= t.amount
            self._balances[t.dest] += t.amount

    def _validate(self, transfers: Sequence[Transfer]) -> Tuple[bool, str]:
        """
        Check the batch in order, as the transfers would run.

        A later transfer may spend what an earlier one credited, but no account
        may go negative at any step.
        """
        running: Dict[str, int] = {}
        for t in transfers:
            src = running.get(t.source, self.get_balance(t.source)) - t.amount
            if src < 0:
                return False, f"{t.source}: balance {src + t.amount} < {t.amount}"
            running[t.source] = src
            running[t.dest] = running.get(t.dest, self.get_balance(t.dest)) + t.amount
        return True, ""

    def clone(self) -> BalanceBook:
        cloned = BalanceBook(test_mode=self._test_mode)
        cloned._balances = defaultdict(int, self._balances)
        return cloned


class ReplaySettlement:
    """
    Primitive that accepts every batch and only records it.

    Used by TipContract.replay() to rebuild contract state from a call log
    whose transfers already settled on the original run.
    """

    def __init__(self):
        self.settled: List[Transfer] = []

    def settle(self, transfers: Sequence[Transfer]) -> None:
        self.settled.extend(transfers)
