"""
runtime.py - In-process host runtime

Plays the part of the ledger runtime around the contract:
1. Attests the caller: every ContractCall carries its authenticated sender
2. Orders calls: mine_block() runs calls strictly one after another
3. Dispatches wire names ("tip", "get-user-tip-stats", ...) to the contract
4. Serves read-only calls outside of blocks

Execution order each mine_block():
1. Advance the contract to the next block height
2. Run each call in list order; each commits or rolls back before the next starts
3. Collect one Receipt per call, in order

The contract's call log is the audit trail - receipts are only the per-block view.
"""

from __future__ import annotations
from dataclasses import dataclass, field, fields, is_dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from .core import (
    CallResult,
    FN_TIP, FN_SET_USER_IDENTITY, FN_UPDATE_USER_REWARD_POINTS,
)
from .contract import TipContract


# Wire names of the read-only queries.
FN_GET_USER_TIP_STATS = "get-user-tip-stats"
FN_GET_TOTAL_TIPS_SENT = "get-total-tips-sent"
FN_GET_TOTAL_TIPS_RECEIVED = "get-total-tips-received"
FN_GET_REWARD_POINTS = "get-reward-points"
FN_GET_USER_IDENTITY = "get-user-identity"

PUBLIC_FUNCTIONS = (FN_TIP, FN_SET_USER_IDENTITY, FN_UPDATE_USER_REWARD_POINTS)
READ_ONLY_FUNCTIONS = (
    FN_GET_USER_TIP_STATS,
    FN_GET_TOTAL_TIPS_SENT,
    FN_GET_TOTAL_TIPS_RECEIVED,
    FN_GET_REWARD_POINTS,
    FN_GET_USER_IDENTITY,
)

# Record field -> wire tuple key.
_WIRE_KEYS = {
    'total_sent': 'total-tips-sent',
    'total_received': 'total-tips-received',
    'reward_points': 'reward-points',
    'username': 'username',
    'verified': 'verified',
}


class UnknownFunction(LookupError):
    """Raised when a call names a function the contract does not export."""
    pass


@dataclass(frozen=True, slots=True)
class ContractCall:
    """
    A call submitted to the runtime.

    Attributes:
        function: Wire name of a public function.
        args: Positional arguments (the sender is not among them).
        sender: Authenticated calling account.
    """
    function: str
    args: Tuple[Any, ...]
    sender: str

    def __post_init__(self):
        if not self.sender or not self.sender.strip():
            raise ValueError("ContractCall sender cannot be empty")
        object.__setattr__(self, 'args', tuple(self.args))


def contract_call(function: str, args: Sequence[Any], sender: str) -> ContractCall:
    """Convenience constructor mirroring how clients build calls."""
    return ContractCall(function=function, args=tuple(args), sender=sender)


@dataclass(frozen=True, slots=True)
class Receipt:
    """Outcome of one call within a block."""
    result: CallResult
    block_height: int
    index: int
    function: str
    sender: str

    @property
    def ok(self) -> bool:
        return self.result.is_ok


@dataclass(frozen=True, slots=True)
class Block:
    """A mined block: its height and the receipts of its calls, in order."""
    height: int
    receipts: Tuple[Receipt, ...] = field(default_factory=tuple)


def to_wire(value: Any) -> Any:
    """
    Render a query result the way clients see it.

    TipStats and Identity become dicts with dashed keys
    ({"total-tips-sent": ..., "reward-points": ...}); ints, bools and strings
    are returned unchanged.
    """
    if is_dataclass(value) and not isinstance(value, type):
        return {_WIRE_KEYS.get(f.name, f.name): getattr(value, f.name) for f in fields(value)}
    return value


class Chain:
    """
    Host runtime simulator around one deployed contract.

    Example:
        chain = Chain(contract)
        block = chain.mine_block([
            contract_call("tip", ["wallet_2", 10_000_000, "STX"], "wallet_1"),
        ])
        str(block.receipts[0].result)   # "(ok true)"
        chain.call_read_only("get-user-tip-stats", ["wallet_1"], "wallet_1")
    """

    def __init__(self, contract: TipContract):
        self.contract = contract
        self.blocks: List[Block] = []
        self.verbose = contract.verbose

    @property
    def block_height(self) -> int:
        return self.contract.block_height

    def mine_block(self, calls: Sequence[ContractCall]) -> Block:
        """
        Run calls in order in a new block.

        Returns:
            Block with one Receipt per call.

        Raises:
            UnknownFunction: If any call names a non-public function. Checked
                for the whole block before any call runs.
        """
        for call in calls:
            if call.function not in PUBLIC_FUNCTIONS:
                raise UnknownFunction(f"{call.function} is not a public function")

        height = self.block_height + 1
        self.contract.advance_block(height)

        receipts: List[Receipt] = []
        for index, call in enumerate(calls):
            if self.verbose:
                print(f"[BLOCK {height}] {call.sender} -> {call.function}{call.args}")
            result = self.contract.call(call.function, call.sender, *call.args)
            receipts.append(Receipt(
                result=result,
                block_height=height,
                index=index,
                function=call.function,
                sender=call.sender,
            ))

        block = Block(height=height, receipts=tuple(receipts))
        self.blocks.append(block)
        return block

    def mine_empty_blocks(self, count: int = 1) -> int:
        """Advance the height without calls. Returns the new height."""
        for _ in range(count):
            self.mine_block([])
        return self.block_height

    def call_read_only(self, function: str, args: Sequence[Any], sender: Optional[str] = None) -> Any:
        """
        Run a read-only query.

        The sender is accepted for parity with public calls; no query depends on it.

        Raises:
            UnknownFunction: If function is not a read-only query.
        """
        query = self._read_only_functions().get(function)
        if query is None:
            raise UnknownFunction(f"{function} is not a read-only function")
        return query(*args)

    def _read_only_functions(self) -> Dict[str, Callable[..., Any]]:
        return {
            FN_GET_USER_TIP_STATS: self.contract.get_user_tip_stats,
            FN_GET_TOTAL_TIPS_SENT: self.contract.get_total_tips_sent,
            FN_GET_TOTAL_TIPS_RECEIVED: self.contract.get_total_tips_received,
            FN_GET_REWARD_POINTS: self.contract.get_reward_points,
            FN_GET_USER_IDENTITY: self.contract.get_user_identity,
        }

    def receipts(self) -> List[Receipt]:
        """All receipts across mined blocks, in execution order."""
        return [r for block in self.blocks for r in block.receipts]
