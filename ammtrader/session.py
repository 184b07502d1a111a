"""
Trading session.

SessionState is the single value describing the client; reduce() is the
only way it changes. TradingSession wires the reader, clock and
orchestrator so that everything they observe arrives here as an event.
"""

import asyncio
import logging
from dataclasses import replace
from typing import Callable, Optional

from .clock import Clock
from .derived import SessionView, derive
from .errors import SubmissionRefused
from .ledger import LedgerClient
from .orchestrator import TransactionOrchestrator
from .reader import QueryPoller, RemoteStateReader
from .types import (
    AmountEdited,
    ClockTicked,
    MarketSelected,
    OfferedAction,
    Outcome,
    OutcomeSelected,
    PendingTransaction,
    QueryKey,
    ReadPublished,
    SessionClosed,
    SessionEvent,
    SessionState,
    SignerChanged,
    TradeIntent,
    TxStatus,
    TxUpdated,
)

logger = logging.getLogger(__name__)

StateListener = Callable[[SessionState], None]


def reduce(state: SessionState, event: SessionEvent) -> SessionState:
    """
    Apply one event to the session state.

    Pure: returns a new SessionState and never mutates its input. Once
    the session is closed every event is ignored.
    """
    if state.closed:
        return state

    if isinstance(event, ReadPublished):
        return _reduce_read(state, event)
    if isinstance(event, ClockTicked):
        return replace(state, now=event.now)
    if isinstance(event, MarketSelected):
        return replace(state, selected_market_id=event.market_id)
    if isinstance(event, AmountEdited):
        return replace(state, intent=replace(state.intent, amount_text=event.text))
    if isinstance(event, OutcomeSelected):
        return replace(state, intent=replace(state.intent, outcome=event.outcome))
    if isinstance(event, SignerChanged):
        return replace(state, owner=event.address or None)
    if isinstance(event, TxUpdated):
        return _reduce_tx(state, event.tx)
    if isinstance(event, SessionClosed):
        return replace(state, closed=True, pending=None)

    logger.warning(f"Unhandled session event: {type(event).__name__}")
    return state


def _reduce_read(state: SessionState, event: ReadPublished) -> SessionState:
    """Accept a read only if it is newer than what the state holds for that key."""
    query = event.query
    if query is None:
        return state
    current = state.reads.get(query.key)
    if current is not None and query.seq <= current.seq:
        return state
    reads = dict(state.reads)
    reads[query.key] = query
    return replace(state, reads=reads)


def _reduce_tx(state: SessionState, tx: Optional[PendingTransaction]) -> SessionState:
    if tx is None:
        return replace(state, pending=None)

    changes = {"pending": tx}
    if tx.status == TxStatus.SUBMITTING:
        changes["last_error"] = None
    if tx.tx_hash:
        changes["last_tx_hash"] = tx.tx_hash
    if tx.status in (TxStatus.REJECTED, TxStatus.FAILED):
        changes["last_error"] = tx.reason
    return replace(state, **changes)


class TradingSession:
    """
    One user's session against a token ledger and a market ledger.

    Usage:
        session = TradingSession(ledger, token_address, market_address)
        session.subscribe(render)

        await session.start()
        await session.select_market(0)
        session.set_amount("2500000")
        session.set_outcome(Outcome.NO)

        view = session.view()
        if view.offered_action == OfferedAction.APPROVE:
            await session.approve()

        await session.close()
    """

    def __init__(
        self,
        ledger: LedgerClient,
        token_address: str,
        market_address: str,
        clock: Optional[Clock] = None,
        journal=None,
        default_amount: str = "1000000",
        poll_interval_s: float = 0.0,
    ):
        """
        Initialize the session.

        Args:
            ledger: Ledger client shared by the reader and orchestrator
            token_address: Token ledger address
            market_address: Market ledger address (the approved spender)
            clock: Session clock; a 1 second clock when omitted
            journal: Optional TransactionJournal
            default_amount: Initial amount text
            poll_interval_s: Re-read the selected market this often; 0 disables
        """
        self._ledger = ledger
        self._reader = RemoteStateReader(ledger)
        self._clock = clock or Clock()
        self._orchestrator = TransactionOrchestrator(
            ledger, self._reader, market_address, journal=journal
        )
        self._poller: Optional[QueryPoller] = None
        if poll_interval_s > 0:
            self._poller = QueryPoller(self._reader, self._selected_keys, poll_interval_s)

        self._state = SessionState(
            token_address=token_address,
            market_address=market_address,
            owner=ledger.signer_address,
            intent=TradeIntent(amount_text=default_amount),
            now=self._clock.now,
        )
        self._listeners: list[StateListener] = []

        self._reader.subscribe(lambda value: self.dispatch(ReadPublished(query=value)))
        self._clock.subscribe(lambda now: self.dispatch(ClockTicked(now=now)))
        self._orchestrator.subscribe(lambda tx: self.dispatch(TxUpdated(tx=tx)))

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def reader(self) -> RemoteStateReader:
        return self._reader

    @property
    def orchestrator(self) -> TransactionOrchestrator:
        return self._orchestrator

    def subscribe(self, listener: StateListener) -> None:
        """Register a callback invoked with the new state after every event."""
        self._listeners.append(listener)

    def dispatch(self, event: SessionEvent) -> SessionState:
        """Reduce one event into the session state and notify listeners."""
        previous = self._state
        self._state = reduce(previous, event)
        if self._state is not previous:
            for listener in list(self._listeners):
                listener(self._state)
        return self._state

    def view(self) -> SessionView:
        return derive(self._state)

    # ---- lifecycle ----

    async def start(self) -> None:
        """Start the clock and load the catalog and the selected market."""
        self._check_open()
        self._clock.start()
        self.dispatch(ClockTicked(now=self._clock.now))
        logger.info(
            f"Session started (signer={self._state.owner or 'none'}, "
            f"market={self._state.market_address})"
        )
        await asyncio.gather(
            self.load_catalog(),
            self._reader.refresh_and_wait(self._selected_keys()),
        )
        if self._poller is not None:
            self._poller.start()

    async def close(self) -> None:
        """
        End the session.

        Abandons any in-flight transaction flow and read, and stops the
        clock. Nothing is published afterwards.
        """
        if self._state.closed:
            return
        if self._poller is not None:
            await self._poller.stop()
        await self._orchestrator.close()
        await self._reader.close()
        await self._clock.stop()
        self.dispatch(SessionClosed())
        self._listeners.clear()
        logger.info("Session closed")

    # ---- reads ----

    async def load_catalog(self) -> None:
        """Read the market count, then every market's detail."""
        self._check_open()
        (count,) = await self._reader.refresh_and_wait([QueryKey.market_count()])
        if not count.available:
            logger.warning(f"Market count unavailable: {count.error}")
            return
        keys = [QueryKey.market_detail(market_id) for market_id in range(int(count.value))]
        await self._reader.refresh_and_wait(keys)

    async def select_market(self, market_id: int) -> None:
        """Select a market and wait for its reads to settle."""
        self._check_open()
        if market_id < 0:
            raise ValueError(f"Market id must be non-negative, got {market_id}")
        self.dispatch(MarketSelected(market_id=market_id))
        await self._reader.refresh_and_wait(self._selected_keys())

    def refresh_signer(self) -> None:
        """Pick up a connected or disconnected signer and re-read its state."""
        self._check_open()
        address = self._ledger.signer_address
        if address == self._state.owner:
            return
        self.dispatch(SignerChanged(address=address))
        self._reader.refresh_many(self._selected_keys())

    def _selected_keys(self) -> list[QueryKey]:
        """Queries the selected market's view depends on."""
        state = self._state
        market_id = state.selected_market_id
        keys = [
            QueryKey.market_detail(market_id),
            QueryKey.price(market_id, Outcome.YES),
            QueryKey.price(market_id, Outcome.NO),
        ]
        if state.owner:
            keys.append(QueryKey.user_position(market_id, state.owner))
            keys.append(QueryKey.allowance(state.owner, state.market_address))
        return keys

    # ---- intent ----

    def set_amount(self, text: str) -> None:
        self.dispatch(AmountEdited(text=text))

    def set_outcome(self, outcome: Outcome) -> None:
        if outcome not in (Outcome.YES, Outcome.NO):
            raise ValueError(f"Outcome must be YES or NO, got {outcome!r}")
        self.dispatch(OutcomeSelected(outcome=outcome))

    # ---- actions ----

    async def approve(self) -> PendingTransaction:
        self._require_offered(OfferedAction.APPROVE)
        return await self._orchestrator.approve()

    async def buy(self) -> PendingTransaction:
        """Buy the selected outcome in the selected market for the entered amount."""
        self._require_offered(OfferedAction.BUY)
        state = self._state
        return await self._orchestrator.buy(
            state.selected_market_id,
            state.intent.outcome,
            state.intent.amount,
        )

    async def claim(self) -> PendingTransaction:
        self._require_offered(OfferedAction.CLAIM)
        return await self._orchestrator.claim(self._state.selected_market_id)

    def _require_offered(self, action: OfferedAction) -> None:
        """Refuse an action the current snapshot does not offer."""
        self._check_open()
        view = self.view()
        if view.offered_action != action:
            logger.warning(
                f"Refused {action.name.lower()}: offered {view.offered_action.name.lower()} "
                f"({view.status})"
            )
            raise SubmissionRefused(
                f"{action.name.capitalize()} is not available: {view.status}"
            )

    def _check_open(self) -> None:
        if self._state.closed:
            raise SubmissionRefused("Session is closed")
