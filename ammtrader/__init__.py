"""
AMM Trader - binary prediction market client

An asynchronous client for trading YES/NO outcome shares against an
on-chain AMM: reads market state, approves the market to spend the
collateral token, buys shares, and claims winnings after resolution.
"""

__version__ = "0.1.0"

# Core types
from .types import (
    Outcome,
    TxKind,
    TxStatus,
    OfferedAction,
    Market,
    UserPosition,
    QueryKey,
    QueryValue,
    PendingTransaction,
    SessionState,
    NOT_AVAILABLE,
)

# Components
from .reader import RemoteStateReader, QueryPoller, QueryStore
from .clock import Clock
from .derived import SessionView, derive
from .orchestrator import TransactionOrchestrator
from .session import TradingSession, reduce

# Errors
from .errors import (
    AmmTraderError,
    ConfigurationError,
    LedgerError,
    SigningRejected,
    TransactionReverted,
    SubmissionRefused,
)

# Config
from .config import AppConfig

__all__ = [
    "__version__",
    # Types
    "Outcome",
    "TxKind",
    "TxStatus",
    "OfferedAction",
    "Market",
    "UserPosition",
    "QueryKey",
    "QueryValue",
    "PendingTransaction",
    "SessionState",
    "NOT_AVAILABLE",
    # Components
    "RemoteStateReader",
    "QueryPoller",
    "QueryStore",
    "Clock",
    "SessionView",
    "derive",
    "TransactionOrchestrator",
    "TradingSession",
    "reduce",
    # Errors
    "AmmTraderError",
    "ConfigurationError",
    "LedgerError",
    "SigningRejected",
    "TransactionReverted",
    "SubmissionRefused",
    # Config
    "AppConfig",
]
