"""
Event types for the session reducer.

All events inherit from SessionEvent. Reads, clock ticks, user edits and
transaction lifecycle changes all reach the session state this way.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Optional

from .core import Outcome
from .state import PendingTransaction, QueryValue
from .utils import now_s


class SessionEventType(Enum):
    """Event types processed by the session reducer."""
    READ_PUBLISHED = auto()
    CLOCK_TICKED = auto()
    MARKET_SELECTED = auto()
    AMOUNT_EDITED = auto()
    OUTCOME_SELECTED = auto()
    SIGNER_CHANGED = auto()
    TX_UPDATED = auto()
    SESSION_CLOSED = auto()


@dataclass(slots=True)
class SessionEvent:
    """Base class for session events."""
    event_type: Optional[SessionEventType] = None
    ts: int = field(default_factory=now_s)


@dataclass(slots=True)
class ReadPublished(SessionEvent):
    """A query produced a new value (or a new error)."""
    query: Optional[QueryValue] = None

    def __post_init__(self):
        self.event_type = SessionEventType.READ_PUBLISHED


@dataclass(slots=True)
class ClockTicked(SessionEvent):
    """Clock advanced."""
    now: int = 0

    def __post_init__(self):
        self.event_type = SessionEventType.CLOCK_TICKED


@dataclass(slots=True)
class MarketSelected(SessionEvent):
    """User picked a market from the catalog."""
    market_id: int = 0

    def __post_init__(self):
        self.event_type = SessionEventType.MARKET_SELECTED


@dataclass(slots=True)
class AmountEdited(SessionEvent):
    """User edited the amount text."""
    text: str = ""

    def __post_init__(self):
        self.event_type = SessionEventType.AMOUNT_EDITED


@dataclass(slots=True)
class OutcomeSelected(SessionEvent):
    """User chose YES or NO."""
    outcome: Outcome = Outcome.YES

    def __post_init__(self):
        self.event_type = SessionEventType.OUTCOME_SELECTED


@dataclass(slots=True)
class SignerChanged(SessionEvent):
    """Signer address connected or disconnected (None)."""
    address: Optional[str] = None

    def __post_init__(self):
        self.event_type = SessionEventType.SIGNER_CHANGED


@dataclass(slots=True)
class TxUpdated(SessionEvent):
    """
    Orchestrator moved a transaction to a new lifecycle state.

    tx is None when the slot was released back to idle.
    """
    tx: Optional[PendingTransaction] = None

    def __post_init__(self):
        self.event_type = SessionEventType.TX_UPDATED


@dataclass(slots=True)
class SessionClosed(SessionEvent):
    """Session ended; no further events are applied."""

    def __post_init__(self):
        self.event_type = SessionEventType.SESSION_CLOSED
