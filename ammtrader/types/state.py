"""
Session state types.

Client-owned state: query keys and their versioned values, the trade
intent, the pending transaction, and the session value that holds them.
"""

from dataclasses import dataclass, field
from typing import Any, Optional

from .core import Outcome, QueryName, TxKind, TxStatus
from .utils import parse_amount


class _NotAvailable:
    """Marker for a query that has not produced a value yet."""
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NOT_AVAILABLE"

    def __reduce__(self):
        return (_NotAvailable, ())


NOT_AVAILABLE = _NotAvailable()


@dataclass(frozen=True, slots=True)
class QueryKey:
    """
    Identity of one named read query.

    Two keys with the same name and args refer to the same cached value.
    """
    name: QueryName
    args: tuple = ()

    @classmethod
    def allowance(cls, owner: str, spender: str) -> "QueryKey":
        return cls(QueryName.ALLOWANCE, (owner.lower(), spender.lower()))

    @classmethod
    def market_count(cls) -> "QueryKey":
        return cls(QueryName.MARKET_COUNT)

    @classmethod
    def market_detail(cls, market_id: int) -> "QueryKey":
        return cls(QueryName.MARKET_DETAIL, (int(market_id),))

    @classmethod
    def user_position(cls, market_id: int, address: str) -> "QueryKey":
        return cls(QueryName.USER_POSITION, (int(market_id), address.lower()))

    @classmethod
    def price(cls, market_id: int, outcome: Outcome) -> "QueryKey":
        return cls(QueryName.PRICE, (int(market_id), Outcome(outcome)))

    def __str__(self) -> str:
        if not self.args:
            return self.name.value
        args = ",".join(a.name if isinstance(a, Outcome) else str(a) for a in self.args)
        return f"{self.name.value}({args})"


@dataclass(frozen=True, slots=True)
class QueryValue:
    """
    Latest known state of one query.

    value is NOT_AVAILABLE until the first successful fetch. A failed
    refresh keeps the previous value and records the error.
    """
    key: QueryKey
    value: Any = NOT_AVAILABLE
    seq: int = 0
    fetched_at_ms: int = 0
    loading: bool = False
    error: Optional[str] = None

    @property
    def available(self) -> bool:
        return self.value is not NOT_AVAILABLE


@dataclass(frozen=True, slots=True)
class TradeIntent:
    """
    User-entered trade parameters.

    amount is None when the entered text is not a valid amount.
    """
    amount_text: str = "1000000"
    outcome: Outcome = Outcome.YES

    @property
    def amount(self) -> Optional[int]:
        return parse_amount(self.amount_text)


@dataclass(frozen=True, slots=True)
class PendingTransaction:
    """One mutating request and where it is in its lifecycle."""
    kind: TxKind
    market_id: Optional[int]
    status: TxStatus = TxStatus.SUBMITTING
    tx_hash: Optional[str] = None
    outcome: Optional[Outcome] = None
    amount: Optional[int] = None
    reason: Optional[str] = None
    submitted_at_ms: int = 0


@dataclass(frozen=True)
class SessionState:
    """
    The whole client session as one value.

    ONLY produced by session.reduce(). Every rendered view is a pure
    projection of this value.
    """
    token_address: str
    market_address: str
    owner: Optional[str] = None
    selected_market_id: int = 0
    intent: TradeIntent = field(default_factory=TradeIntent)
    now: Optional[int] = None
    reads: dict[QueryKey, QueryValue] = field(default_factory=dict)
    pending: Optional[PendingTransaction] = None
    last_tx_hash: Optional[str] = None
    last_error: Optional[str] = None
    closed: bool = False

    def read(self, key: QueryKey) -> QueryValue:
        """Latest value for a query, NOT_AVAILABLE if never fetched."""
        found = self.reads.get(key)
        if found is None:
            return QueryValue(key=key)
        return found

    def value(self, key: QueryKey) -> Any:
        return self.read(key).value
