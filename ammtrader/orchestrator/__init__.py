"""
Transaction orchestration for the trading client.

This package sequences the two-phase flows against the ledger:
- approve (infinite allowance for the market) then buy
- claim after resolution

Usage:
    from ammtrader.orchestrator import TransactionOrchestrator

    orchestrator = TransactionOrchestrator(ledger, reader, market_address)
    tx = await orchestrator.approve()

At most one transaction is in flight per session; a second submission is
refused until the first reaches a terminal state and its refresh is done.
"""

# Main actor
from .actor import TransactionOrchestrator

# State
from .state import (
    TxSlot,
    TRANSITIONS,
    refresh_plan,
)

# Errors
from .errors import (
    ErrorCode,
    GENERIC_FAILURE,
    normalize_error,
    user_message,
)

__all__ = [
    # Actor
    "TransactionOrchestrator",
    # State
    "TxSlot",
    "TRANSITIONS",
    "refresh_plan",
    # Errors
    "ErrorCode",
    "GENERIC_FAILURE",
    "normalize_error",
    "user_message",
]
