"""Custom exceptions for the AMM trading client."""

from typing import Optional


class AmmTraderError(Exception):
    """Base exception for trading client errors."""
    pass


class ConfigurationError(AmmTraderError):
    """Raised when configuration is invalid or unset."""
    pass


class LedgerError(AmmTraderError):
    """Raised when a ledger read or receipt poll fails."""
    pass


class SigningRejected(AmmTraderError):
    """
    Raised when the signer declines or fails before submission.

    The message is short and meant for the user.
    """

    def __init__(self, message: str, short_message: Optional[str] = None):
        super().__init__(message)
        self.short_message = short_message or message


class TransactionReverted(AmmTraderError):
    """Raised when the ledger reports a transaction as failed."""

    def __init__(self, tx_hash: str, reason: Optional[str] = None):
        super().__init__(reason or f"Transaction {tx_hash} reverted")
        self.tx_hash = tx_hash
        self.reason = reason


class SubmissionRefused(AmmTraderError):
    """Raised when a submission is refused before reaching the signer."""
    pass
