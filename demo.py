#!/usr/bin/env python3
"""
demo.py - Interactive Tutorial: Learn the Tipping Contract Step by Step

A walk through the contract's behavior. Each step builds on the previous one.
Press Enter to advance.

WHAT YOU'LL LEARN:
  1-3:   Foundation - Deployment, funding, the first tip and its fee split
  4-6:   Rules      - Rejections, rewards, admin rate overrides
  7-8:   Identity   - Usernames and their uniqueness
  9-10:  Audit      - The call log, replay and conservation

Run:
    python demo.py           # Interactive mode (press Enter for each step)
    python demo.py --quick   # Run all steps without pausing
"""

from dataclasses import dataclass
import sys

from tipstacks import (
    TipContract, DeploymentConfig, BalanceBook, Chain, contract_call, to_wire,
)


# ============================================================================
# CONFIGURATION
# ============================================================================

@dataclass
class DemoConfig:
    """Configuration for the tutorial. Modify these to experiment."""
    admin: str = "deployer"
    initial_balance: int = 100_000_000   # 100 STX
    first_tip: int = 10_000_000
    small_tip: int = 500_000
    override_rate: int = 20


CONFIG = DemoConfig()

QUICK_MODE = "--quick" in sys.argv


def wait_for_enter():
    """Pause for user input unless in quick mode."""
    if not QUICK_MODE:
        input("\n[Press Enter to continue...]")


def step_header(number: int, title: str, objective: str):
    print(f"\n{'='*70}")
    print(f"STEP {number}: {title}")
    print(f"{'='*70}")
    print(f"\nObjective: {objective}\n")


def show(chain: Chain, account: str):
    stats = chain.call_read_only("get-user-tip-stats", [account])
    print(f"  {account:<10} stats={to_wire(stats)}  balance={chain.contract.transfers.get_balance(account)}")


# ============================================================================
# FOUNDATION
# ============================================================================

def step_01_deploy() -> Chain:
    step_header(1, "Deploying the Contract",
        "All parameters are fixed at deployment in one immutable config.")

    config = DeploymentConfig(admin=CONFIG.admin)
    print(f">>> DeploymentConfig(admin={CONFIG.admin!r})")
    print(f"Escrow account:  {config.contract_account}")
    print(f"Max tip:         {config.max_tip_amount}")
    print(f"Platform fee:    {config.platform_fee_percent}%")
    print(f"Reward:          {config.reward_rate} points for tips >= {config.reward_threshold}")

    book = BalanceBook(test_mode=True)
    for wallet in ("alice", "bob", "carol"):
        book.set_balance(wallet, CONFIG.initial_balance)

    return Chain(TipContract(config, book, verbose=True))


def step_02_first_tip(chain: Chain) -> Chain:
    step_header(2, "The First Tip",
        "A tip moves the gross amount to escrow and pays out the net.")

    block = chain.mine_block([
        contract_call("tip", ["bob", CONFIG.first_tip, "STX"], "alice"),
    ])
    print(f"\nResult: {block.receipts[0].result}")
    for account in ("alice", "bob", chain.contract.config.contract_account):
        show(chain, account)
    return chain


def step_03_fee(chain: Chain) -> Chain:
    step_header(3, "The Platform Fee",
        "The fee is a whole percent, rounded down, kept by the escrow account.")

    block = chain.mine_block([contract_call("tip", ["carol", 19, "STX"], "bob")])
    print(f"\nA 19-unit tip: {block.receipts[0].result}")
    print(f"carol received {chain.contract.get_total_tips_received('carol')} (fee rounds to 0)")
    return chain


# ============================================================================
# RULES
# ============================================================================

def step_04_rejections(chain: Chain) -> Chain:
    step_header(4, "Rejected Calls",
        "Every rule violation is an error code; nothing changes.")

    digest = chain.contract.state_digest()
    block = chain.mine_block([
        contract_call("tip", ["bob", 1_000_000_001, "STX"], "alice"),
        contract_call("tip", ["alice", 1_000_000, "STX"], "alice"),
        contract_call("tip", [CONFIG.admin, 1_000_000, "STX"], "alice"),
        contract_call("tip", ["bob", 1_000_000, "XYZ"], "alice"),
    ])
    for receipt in block.receipts:
        print(f"  call {receipt.index}: {receipt.result}")
    print(f"\nState unchanged: {chain.contract.state_digest() == digest}")
    return chain


def step_05_rewards(chain: Chain) -> Chain:
    step_header(5, "Reward Points",
        "Tips at or above the threshold earn a flat number of points.")

    chain.mine_block([contract_call("tip", ["bob", CONFIG.small_tip, "STX"], "carol")])
    print(f"carol's small tip earned {chain.contract.get_user_tip_stats('carol').reward_points} points")
    print(f"alice has {chain.contract.get_user_tip_stats('alice').reward_points} points")
    return chain


def step_06_override(chain: Chain) -> Chain:
    step_header(6, "Admin Rate Override",
        "Only the administrator can change an account's reward rate.")

    block = chain.mine_block([
        contract_call("update-user-reward-points", ["alice", CONFIG.override_rate], "alice"),
        contract_call("update-user-reward-points", ["alice", CONFIG.override_rate], CONFIG.admin),
        contract_call("tip", ["bob", 2_000_000, "STX"], "alice"),
    ])
    for receipt in block.receipts:
        print(f"  {receipt.sender:<10} {receipt.function:<28} {receipt.result}")
    print(f"\nalice now has {chain.contract.get_user_tip_stats('alice').reward_points} points")
    return chain


# ============================================================================
# IDENTITY
# ============================================================================

def step_07_usernames(chain: Chain) -> Chain:
    step_header(7, "Usernames",
        "Each account may claim one display name of 3 to 20 characters.")

    block = chain.mine_block([
        contract_call("set-user-identity", ["alice", "alice"], "alice"),
        contract_call("set-user-identity", ["bob", "ab"], "bob"),
        contract_call("set-user-identity", ["carol", "mallory"], "bob"),
    ])
    for receipt in block.receipts:
        print(f"  {receipt.sender:<10} {receipt.result}")
    print(f"\nalice: {to_wire(chain.call_read_only('get-user-identity', ['alice']))}")
    return chain


def step_08_uniqueness(chain: Chain) -> Chain:
    step_header(8, "Uniqueness",
        "A name held by one account cannot be claimed by another, in any case.")

    block = chain.mine_block([contract_call("set-user-identity", ["bob", "ALICE"], "bob")])
    print(f"bob claims 'ALICE': {block.receipts[0].result}")
    return chain


# ============================================================================
# AUDIT
# ============================================================================

def step_09_replay(chain: Chain) -> Chain:
    step_header(9, "Call Log and Replay",
        "Every applied call is logged; replaying the log rebuilds the same state.")

    contract = chain.contract
    contract.verbose = False
    for record in contract.call_log:
        print(f"  {record.exec_id}  {record.function:<28} intent={record.intent_id}")

    replayed = contract.replay()
    print(f"\nDigest:          {contract.state_digest()[:16]}")
    print(f"Replayed digest: {replayed.state_digest()[:16]}")
    return chain


def step_10_conservation(chain: Chain) -> Chain:
    step_header(10, "Conservation",
        "Tips only redistribute value; the escrow holds exactly the fees.")

    book = chain.contract.transfers
    print(f"Total supply: {book.total_supply()} (funded {3 * CONFIG.initial_balance})")
    print(f"Escrow:       {book.get_balance(chain.contract.config.contract_account)}")
    return chain


def main():
    """Run the complete tutorial."""
    print("=" * 70)
    print("       TIPSTACKS - INTERACTIVE TUTORIAL")
    print("=" * 70)

    chain = step_01_deploy()
    for step in (step_02_first_tip, step_03_fee, step_04_rejections, step_05_rewards,
                 step_06_override, step_07_usernames, step_08_uniqueness,
                 step_09_replay, step_10_conservation):
        wait_for_enter()
        chain = step(chain)

    print("\nTutorial complete.")
    return chain


if __name__ == "__main__":
    main()
