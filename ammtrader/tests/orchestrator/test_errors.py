"""Tests for error normalization and user-facing messages."""

import pytest

from ammtrader.errors import SigningRejected, TransactionReverted
from ammtrader.orchestrator import ErrorCode, normalize_error, user_message
from ammtrader.types import TxKind


class TestNormalizeError:
    """Classification of raw signer and ledger messages."""

    @pytest.mark.parametrize("message, expected", [
        ("User rejected the request.", ErrorCode.USER_REJECTED),
        ("MetaMask Tx Signature: User denied transaction signature.", ErrorCode.USER_REJECTED),
        ("ERC20: insufficient allowance", ErrorCode.INSUFFICIENT_ALLOWANCE),
        ("ERC20: transfer amount exceeds balance", ErrorCode.INSUFFICIENT_BALANCE),
        ("Trading closed", ErrorCode.TRADING_CLOSED),
        ("Market not resolved", ErrorCode.NOT_RESOLVED),
        ("Nothing to claim", ErrorCode.NOTHING_TO_CLAIM),
        ("Invalid amount", ErrorCode.INVALID_AMOUNT),
        ("something odd", ErrorCode.UNKNOWN),
        (None, ErrorCode.UNKNOWN),
    ])
    def test_messages(self, message, expected):
        assert normalize_error(message) == expected

    def test_exception_name(self):
        """Test the exception class alone identifies a decline."""
        assert normalize_error("", "SigningRejected") == ErrorCode.USER_REJECTED


class TestUserMessage:
    """Message shown for a failed action."""

    def test_revert_reason_verbatim(self):
        exc = TransactionReverted("0xabc", "Trading closed")
        assert user_message(TxKind.BUY, exc) == "Trading closed"

    @pytest.mark.parametrize("kind, expected", [
        (TxKind.APPROVE, "Approval failed"),
        (TxKind.BUY, "Buy failed"),
        (TxKind.CLAIM, "Claim failed"),
    ])
    def test_revert_without_reason_is_generic(self, kind, expected):
        assert user_message(kind, TransactionReverted("0xabc")) == expected

    @pytest.mark.parametrize("kind, expected", [
        (TxKind.APPROVE, "Approval failed"),
        (TxKind.BUY, "Buy failed"),
        (TxKind.CLAIM, "Claim failed"),
    ])
    def test_no_exception_is_generic(self, kind, expected):
        assert user_message(kind) == expected

    def test_short_message_preferred(self):
        exc = SigningRejected("eth_sendTransaction failed: code 4001 ...", "User rejected the request.")
        assert user_message(TxKind.APPROVE, exc) == "User rejected the request."

    def test_plain_exception_text(self):
        assert user_message(TxKind.CLAIM, RuntimeError("nonce too low")) == "nonce too low"
