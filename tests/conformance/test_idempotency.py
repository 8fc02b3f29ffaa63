"""
Idempotency Conformance Tests

INVARIANT: Queries never change state, and re-applying a setting that is
already in place is an ok result with no effect.

    ∀ query Q: state(Q(state)) = state
    set_user_identity(a, a, u) twice ⟹ one log entry
    update_user_reward_points(a, v) twice ⟹ one log entry

Tips are NOT idempotent: two identical tips are two tips.
"""

from hypothesis import given, settings
from hypothesis import strategies as st

from tests.scenario import make_chain, make_contract, CONTRACT_OWNER, WALLET_1, WALLET_2
from tests.strategies import SENDERS, call_sequences, run


class TestIdempotencyProperties:
    """Property-based idempotency tests."""

    @given(call_sequences(), st.sampled_from(SENDERS),
           st.integers(min_value=0, max_value=2_000_000_000))
    @settings(max_examples=50)
    def test_queries_are_pure(self, calls, account, amount):
        """
        PROPERTY: Every read-only query leaves the digest and log unchanged
        and returns the same answer when asked twice.
        """
        chain = make_chain()
        run(chain.contract, calls)
        digest = chain.contract.state_digest()
        log_length = len(chain.contract.call_log)

        queries = [
            ("get-user-tip-stats", [account]),
            ("get-total-tips-sent", [account]),
            ("get-total-tips-received", [account]),
            ("get-reward-points", [account, amount]),
            ("get-user-identity", [account]),
        ]
        for function, args in queries:
            assert chain.call_read_only(function, args) == chain.call_read_only(function, args)

        assert chain.contract.state_digest() == digest
        assert len(chain.contract.call_log) == log_length

    @given(st.integers(min_value=0, max_value=100))
    @settings(max_examples=30)
    def test_rate_update_twice(self, value):
        """
        PROPERTY: Setting the same rate twice logs at most one call.
        """
        contract = make_contract()
        first = contract.update_user_reward_points(CONTRACT_OWNER, WALLET_1, value)
        digest = contract.state_digest()
        second = contract.update_user_reward_points(CONTRACT_OWNER, WALLET_1, value)

        assert first.is_ok and second.is_ok
        assert contract.state_digest() == digest
        assert len(contract.call_log) == (0 if value == contract.config.reward_rate else 1)


class TestIdempotencyExamples:
    """Explicit idempotency examples."""

    def test_identity_twice(self):
        contract = make_contract()
        assert contract.set_user_identity(WALLET_1, WALLET_1, "alice").is_ok
        digest = contract.state_digest()

        assert contract.set_user_identity(WALLET_1, WALLET_1, "alice").is_ok
        assert contract.state_digest() == digest
        assert len(contract.call_log) == 1

    def test_identical_tips_both_apply(self):
        contract = make_contract()
        contract.tip(WALLET_1, WALLET_2, 2_000_000, "STX")
        contract.tip(WALLET_1, WALLET_2, 2_000_000, "STX")

        assert contract.get_total_tips_sent(WALLET_1) == 4_000_000
        assert len(contract.call_log) == 2
        assert contract.call_log[0].intent_id != contract.call_log[1].intent_id
