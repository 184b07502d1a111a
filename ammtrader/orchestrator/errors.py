"""
Normalized error codes for transaction results.

Provides stable error classification independent of raw signer and
ledger messages, and the user-facing message for each failure.
"""

from enum import Enum
from typing import Optional

from ..errors import TransactionReverted
from ..types import TxKind


class ErrorCode(Enum):
    """Normalized error codes for transaction results."""
    SUCCESS = "success"
    USER_REJECTED = "user_rejected"
    INSUFFICIENT_ALLOWANCE = "insufficient_allowance"
    INSUFFICIENT_BALANCE = "insufficient_balance"
    TRADING_CLOSED = "trading_closed"
    NOT_RESOLVED = "not_resolved"
    NOTHING_TO_CLAIM = "nothing_to_claim"
    INVALID_AMOUNT = "invalid_amount"
    UNKNOWN = "unknown"


GENERIC_FAILURE = {
    TxKind.APPROVE: "Approval failed",
    TxKind.BUY: "Buy failed",
    TxKind.CLAIM: "Claim failed",
}


def normalize_error(
    error_msg: Optional[str] = None,
    exception_name: Optional[str] = None,
) -> ErrorCode:
    """
    Map raw error strings to normalized codes.

    Args:
        error_msg: Raw error message from the signer or ledger
        exception_name: Exception class name if available

    Returns:
        Normalized ErrorCode
    """
    msg = (error_msg or "").lower()
    exc = (exception_name or "").lower()

    # Check for user decline
    if any(kw in msg for kw in ("user rejected", "user denied", "rejected by user", "declined")):
        return ErrorCode.USER_REJECTED
    if "signingrejected" in exc:
        return ErrorCode.USER_REJECTED

    # Check for allowance before balance: "insufficient allowance" mentions both
    if "allowance" in msg:
        return ErrorCode.INSUFFICIENT_ALLOWANCE

    if any(kw in msg for kw in ("insufficient balance", "exceeds balance", "not enough")):
        return ErrorCode.INSUFFICIENT_BALANCE

    if any(kw in msg for kw in ("closed", "ended", "expired")):
        return ErrorCode.TRADING_CLOSED

    if "not resolved" in msg or "unresolved" in msg:
        return ErrorCode.NOT_RESOLVED

    if any(kw in msg for kw in ("nothing to claim", "no shares", "no winnings")):
        return ErrorCode.NOTHING_TO_CLAIM

    if any(kw in msg for kw in ("invalid amount", "amount must", "zero amount")):
        return ErrorCode.INVALID_AMOUNT

    return ErrorCode.UNKNOWN


def user_message(kind: TxKind, exc: Optional[BaseException] = None) -> str:
    """
    Build the message shown for a failed action.

    Uses the short message carried by the exception when there is one,
    then the exception text, then the generic per-action message. A
    revert without a ledger-provided reason gets the generic message.
    """
    if isinstance(exc, TransactionReverted):
        return exc.reason or GENERIC_FAILURE[kind]
    if exc is not None:
        short = getattr(exc, "short_message", None)
        if short:
            return str(short)
        text = str(exc).strip()
        if text:
            return text
    return GENERIC_FAILURE[kind]
