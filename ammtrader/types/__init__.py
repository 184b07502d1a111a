"""
Trading client types.

You can import directly from here or from the specific submodules.

Example:
    from ammtrader.types import Outcome, QueryKey, NOT_AVAILABLE

    # More explicit
    from ammtrader.types.core import Outcome
    from ammtrader.types.state import QueryKey
"""

# Core enums
from .core import (
    Outcome,
    TxKind,
    TxStatus,
    OfferedAction,
    QueryName,
)

# Utility functions and constants
from .utils import (
    ZERO_ADDRESS,
    MAX_UINT256,
    PRICE_SCALE,
    now_s,
    wall_ms,
    is_address,
    is_unset_address,
    parse_amount,
    short_hash,
)

# Ledger-owned data
from .market import (
    Market,
    UserPosition,
    TxReceipt,
)

# Session state
from .state import (
    NOT_AVAILABLE,
    QueryKey,
    QueryValue,
    TradeIntent,
    PendingTransaction,
    SessionState,
)

# Events
from .events import (
    SessionEventType,
    SessionEvent,
    ReadPublished,
    ClockTicked,
    MarketSelected,
    AmountEdited,
    OutcomeSelected,
    SignerChanged,
    TxUpdated,
    SessionClosed,
)

__all__ = [
    # Core enums
    "Outcome",
    "TxKind",
    "TxStatus",
    "OfferedAction",
    "QueryName",
    # Utilities
    "ZERO_ADDRESS",
    "MAX_UINT256",
    "PRICE_SCALE",
    "now_s",
    "wall_ms",
    "is_address",
    "is_unset_address",
    "parse_amount",
    "short_hash",
    # Ledger data
    "Market",
    "UserPosition",
    "TxReceipt",
    # Session state
    "NOT_AVAILABLE",
    "QueryKey",
    "QueryValue",
    "TradeIntent",
    "PendingTransaction",
    "SessionState",
    # Events
    "SessionEventType",
    "SessionEvent",
    "ReadPublished",
    "ClockTicked",
    "MarketSelected",
    "AmountEdited",
    "OutcomeSelected",
    "SignerChanged",
    "TxUpdated",
    "SessionClosed",
]
