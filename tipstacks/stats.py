"""
stats.py - Per-account tipping statistics

StatsLedger holds one TipStats record per account. Reads of an account that was
never touched return the all-zero record; has_entry() tells the two apart.

Counters only grow. apply() refuses any change that would decrease a counter,
so no call (or bug) can rewrite history.
"""

from __future__ import annotations
from typing import Dict, Iterator, List, Optional

from .core import (
    ContractView, StateChange, TipStats,
    EMPTY_STATS, STORE_STATS,
)


class StatsLedger:
    """
    Durable aggregate counters keyed by account.

    Not thread-safe; the host runtime serializes calls.
    """

    def __init__(self, entries: Optional[Dict[str, TipStats]] = None):
        self._entries: Dict[str, TipStats] = dict(entries or {})

    def get(self, account: str) -> TipStats:
        """Stats for account, EMPTY_STATS if never touched."""
        return self._entries.get(account, EMPTY_STATS)

    def has_entry(self, account: str) -> bool:
        return account in self._entries

    def accounts(self) -> List[str]:
        return sorted(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self.accounts())

    def __len__(self) -> int:
        return len(self._entries)

    def snapshot(self) -> Dict[str, TipStats]:
        """Copy of all entries (records are immutable, so a shallow copy is enough)."""
        return dict(self._entries)

    def apply(self, change: StateChange) -> None:
        """
        Apply a STORE_STATS change.

        Raises:
            ValueError: If the change targets another store, its old_value does not
                match the current record, or it would decrease a counter.
        """
        if change.store != STORE_STATS:
            raise ValueError(f"StatsLedger cannot apply a {change.store} change")
        current = self.get(change.key)
        if change.old_value != current:
            raise ValueError(
                f"Stale stats for {change.key}: expected {change.old_value!r}, found {current!r}"
            )
        new_stats = change.new_value
        if not isinstance(new_stats, TipStats):
            raise ValueError(f"Stats change must carry TipStats, got {type(new_stats)}")
        if not new_stats.dominates(current):
            raise ValueError(f"Stats for {change.key} cannot decrease: {current!r} -> {new_stats!r}")
        self._entries[change.key] = new_stats

    def clone(self) -> StatsLedger:
        return StatsLedger(self._entries)


def compute_stats_changes(
    view: ContractView,
    sender: str,
    recipient: str,
    amount: int,
    net_amount: int,
    reward_points: int,
) -> List[StateChange]:
    """
    Stats deltas for one accepted tip.

    Sender: total_sent += amount (gross), reward_points += reward_points.
    Recipient: total_received += net_amount (after fee).

    Args:
        view: Read-only contract access
        sender: Tipping account
        recipient: Receiving account (must differ from sender)
        amount: Gross tip
        net_amount: Amount credited to the recipient
        reward_points: Points earned by the sender for this tip

    Returns:
        Two StateChange records, sender first.
    """
    if sender == recipient:
        raise ValueError("sender and recipient must be different")

    sender_old = view.get_user_tip_stats(sender)
    sender_new = TipStats(
        total_sent=sender_old.total_sent + amount,
        total_received=sender_old.total_received,
        reward_points=sender_old.reward_points + reward_points,
    )
    recipient_old = view.get_user_tip_stats(recipient)
    recipient_new = TipStats(
        total_sent=recipient_old.total_sent,
        total_received=recipient_old.total_received + net_amount,
        reward_points=recipient_old.reward_points,
    )
    return [
        StateChange(store=STORE_STATS, key=sender, old_value=sender_old, new_value=sender_new),
        StateChange(store=STORE_STATS, key=recipient, old_value=recipient_old, new_value=recipient_new),
    ]
