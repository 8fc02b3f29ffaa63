"""
Tests for core.py - records, results, error codes and canonical hashing.

Tests:
- ErrorCode values are the wire contract
- CallResult rendering and error lookup
- TipStats / Transfer validation in __post_init__
- StateChange.changed_fields
- PendingCall intent_id determinism
- CallRecord exec_id and repr
"""

import pytest

from tipstacks import (
    CallRecord, CallResult, ErrorCode, Identity, OriginType, PendingCall,
    StateChange, TipStats, Transfer, build_call,
    ContractError, InvalidAmount, InvalidRecipient, Unauthorized,
    InvalidUsernameLength, UsernameTaken, InvalidTokenType, TransferFailed,
    FN_TIP,
)
from tipstacks.core import _canonicalize, STORE_STATS, STORE_USERNAMES


# ============================================================================
# Error codes
# ============================================================================

class TestErrorCodes:
    """The numeric codes are stable."""

    def test_error_code_values(self):
        assert ErrorCode.INVALID_AMOUNT == 2
        assert ErrorCode.INVALID_RECIPIENT == 5
        assert ErrorCode.UNAUTHORIZED == 6
        assert ErrorCode.INVALID_USERNAME_LENGTH == 9
        assert ErrorCode.USERNAME_TAKEN == 10
        assert ErrorCode.INVALID_TOKEN_TYPE == 11

    def test_reserved_codes_are_unnamed(self):
        for code in (1, 3, 4, 7, 8):
            with pytest.raises(ValueError):
                ErrorCode(code)

    def test_exceptions_carry_codes(self):
        assert InvalidAmount().code == 2
        assert InvalidRecipient().code == 5
        assert Unauthorized().code == 6
        assert InvalidUsernameLength().code == 9
        assert UsernameTaken().code == 10
        assert InvalidTokenType().code == 11

    def test_transfer_failed_code_comes_from_primitive(self):
        assert TransferFailed("no funds").code == 1
        assert TransferFailed("other", code=3).code == 3
        assert isinstance(TransferFailed(), ContractError)


# ============================================================================
# CallResult
# ============================================================================

class TestCallResult:

    def test_ok_renders_like_the_runtime(self):
        assert str(CallResult.ok()) == "(ok true)"
        assert str(CallResult.ok(False)) == "(ok false)"
        assert CallResult.ok().is_ok

    def test_err_renders_with_uint_code(self):
        result = CallResult.err(ErrorCode.INVALID_AMOUNT)
        assert str(result) == "(err u2)"
        assert not result.is_ok
        assert result.code == 2

    def test_error_property(self):
        assert CallResult.err(10).error is ErrorCode.USERNAME_TAKEN
        assert CallResult.err(1).error is None
        assert CallResult.ok().error is None


# ============================================================================
# Records
# ============================================================================

class TestTipStats:

    def test_defaults_are_zero(self):
        stats = TipStats()
        assert (stats.total_sent, stats.total_received, stats.reward_points) == (0, 0, 0)

    def test_negative_counter_rejected(self):
        with pytest.raises(ValueError, match="cannot be negative"):
            TipStats(total_sent=-1)

    def test_non_int_counter_rejected(self):
        with pytest.raises(ValueError, match="must be int"):
            TipStats(reward_points=1.5)
        with pytest.raises(ValueError, match="must be int"):
            TipStats(total_received=True)

    def test_dominates(self):
        assert TipStats(5, 5, 5).dominates(TipStats(5, 4, 0))
        assert not TipStats(5, 5, 5).dominates(TipStats(6, 0, 0))


class TestTransfer:

    def test_valid_transfer(self):
        t = Transfer(100, "alice", "bob", "tip")
        assert repr(t) == "Transfer(100: alice→bob)"

    @pytest.mark.parametrize("amount", [0, -5])
    def test_non_positive_amount_rejected(self, amount):
        with pytest.raises(ValueError, match="must be positive"):
            Transfer(amount, "alice", "bob")

    def test_same_account_rejected(self):
        with pytest.raises(ValueError, match="must be different"):
            Transfer(1, "alice", "alice")

    def test_empty_account_rejected(self):
        with pytest.raises(ValueError, match="source cannot be empty"):
            Transfer(1, " ", "bob")


class TestStateChange:

    def test_changed_fields_for_records(self):
        sc = StateChange(STORE_STATS, "alice", TipStats(1, 0, 0), TipStats(3, 0, 10))
        assert sc.changed_fields() == {
            'total_sent': (1, 3),
            'reward_points': (0, 10),
        }

    def test_changed_fields_for_new_record(self):
        sc = StateChange("identity", "alice", None, Identity("alice", True))
        assert sc.changed_fields() == {
            'username': (None, "alice"),
            'verified': (None, True),
        }

    def test_changed_fields_for_plain_values(self):
        sc = StateChange(STORE_USERNAMES, "alice", None, "wallet")
        assert sc.changed_fields() == {'value': (None, "wallet")}
        assert StateChange(STORE_USERNAMES, "alice", "w", "w").changed_fields() == {}


# ============================================================================
# PendingCall / CallRecord
# ============================================================================

class TestPendingCall:

    def _changes(self):
        return [StateChange(STORE_STATS, "alice", TipStats(), TipStats(total_sent=5))]

    def test_intent_id_is_deterministic(self):
        a = build_call(FN_TIP, "alice", ("bob", 5, "STX"), self._changes())
        b = build_call(FN_TIP, "alice", ("bob", 5, "STX"), self._changes())
        assert a.intent_id == b.intent_id
        assert len(a.intent_id) == 16

    def test_intent_id_depends_on_content(self):
        a = build_call(FN_TIP, "alice", ("bob", 5, "STX"), self._changes())
        b = build_call(FN_TIP, "alice", ("bob", 6, "STX"), self._changes())
        c = build_call(FN_TIP, "carol", ("bob", 5, "STX"), self._changes())
        assert len({a.intent_id, b.intent_id, c.intent_id}) == 3

    def test_empty_call(self):
        pending = build_call(FN_TIP, "alice", ())
        assert pending.is_empty()
        assert isinstance(pending, PendingCall)
        assert pending.origin is OriginType.USER_ACTION


class TestCallRecord:

    def test_exec_id_and_repr(self):
        record = CallRecord(
            function=FN_TIP,
            caller="alice",
            args=("bob", 5, "STX"),
            state_changes=(StateChange(STORE_STATS, "alice", TipStats(), TipStats(total_sent=5)),),
            transfers=(Transfer(5, "alice", "escrow"),),
            origin=OriginType.USER_ACTION,
            intent_id="abc",
            contract_name="tip-stacks",
            sequence_number=3,
            block_height=7,
        )
        assert record.exec_id == "exec:tip-stacks:000000000003:7"
        text = repr(record)
        assert "Transfers (1)" in text
        assert "total_sent: 0 → 5" in text


class TestCanonicalize:

    def test_dict_order_does_not_matter(self):
        assert _canonicalize({'a': 1, 'b': 2}) == _canonicalize({'b': 2, 'a': 1})

    def test_bool_and_int_differ(self):
        assert _canonicalize(True) != _canonicalize(1)

    def test_records_serialize_by_field(self):
        assert _canonicalize(TipStats(1, 2, 3)) == "TipStats(total_sent=N:1,total_received=N:2,reward_points=N:3)"
