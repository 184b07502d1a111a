"""
Core enums - the fundamental vocabulary of the trading client.

These are the basic building blocks used throughout the codebase.
"""

from enum import Enum, IntEnum, auto


class Outcome(IntEnum):
    """
    Binary market outcome.

    Values match the uint8 encoding used by the market contract.
    """
    NONE = 0
    YES = 1
    NO = 2

    @classmethod
    def parse(cls, text: str) -> "Outcome":
        """Parse "YES"/"NO" (case-insensitive) into an outcome."""
        key = text.strip().upper()
        if key not in ("YES", "NO"):
            raise ValueError(f"Outcome must be YES or NO, got {text!r}")
        return cls[key]


class TxKind(Enum):
    """Mutating flows the orchestrator drives."""
    APPROVE = "approve"
    BUY = "buy"
    CLAIM = "claim"


class TxStatus(Enum):
    """
    Transaction lifecycle status.

    SUBMITTING:             Waiting for the signer to return a hash
    AWAITING_CONFIRMATION:  Hash known, waiting for the ledger's terminal signal
    CONFIRMED:              Finalized on the ledger
    REJECTED:               Declined or failed before submission
    FAILED:                 Reverted on the ledger
    """
    SUBMITTING = "submitting"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    CONFIRMED = "confirmed"
    REJECTED = "rejected"
    FAILED = "failed"

    @property
    def is_active(self) -> bool:
        """True while work is still running: submission, confirmation, or the refresh after it."""
        return self in (TxStatus.SUBMITTING, TxStatus.AWAITING_CONFIRMATION, TxStatus.CONFIRMED)

    @property
    def is_terminal(self) -> bool:
        return self in (TxStatus.CONFIRMED, TxStatus.REJECTED, TxStatus.FAILED)


class OfferedAction(Enum):
    """The single mutating action offered for a snapshot."""
    NONE = auto()
    APPROVE = auto()
    BUY = auto()
    CLAIM = auto()


class QueryName(Enum):
    """Named read queries against the ledger."""
    ALLOWANCE = "allowance"
    MARKET_COUNT = "market_count"
    MARKET_DETAIL = "market_detail"
    USER_POSITION = "user_position"
    PRICE = "price"
