"""
Derived State Calculator.

Pure functions from the session state to what the user may do right now.
Nothing here performs I/O or mutates its inputs; derive() is re-run after
every session event.

Trading-open and the countdown are both computed from seconds_remaining(),
so at the end-time boundary they can never disagree.
"""

from dataclasses import dataclass, field
from typing import Any, Optional

from .types import (
    NOT_AVAILABLE,
    Market,
    OfferedAction,
    Outcome,
    PendingTransaction,
    PRICE_SCALE,
    QueryKey,
    SessionState,
    UserPosition,
)

PLACEHOLDER = "—"
LOADING = "Loading..."

# 4 fractional digits of a 1e18-scaled price
_PRICE_FRACTION_DIV = PRICE_SCALE // 10 ** 4


def _known(value: Any) -> bool:
    return value is not None and value is not NOT_AVAILABLE


def seconds_remaining(end_time: Optional[int], now: Optional[int]) -> Optional[int]:
    """Whole seconds until end_time, clamped at zero. None if either is unknown."""
    if end_time is None or now is None:
        return None
    return max(0, end_time - now)


def is_trading_open(market: Optional[Market], now: Optional[int]) -> bool:
    """Open iff the market is unresolved and now < end_time."""
    if market is None:
        return False
    remaining = seconds_remaining(market.end_time, now)
    return not market.resolved and remaining is not None and remaining > 0


def format_countdown(remaining: Optional[int]) -> str:
    """Render seconds as zero-padded HH:MM:SS; placeholder if unknown."""
    if remaining is None:
        return PLACEHOLDER
    remaining = max(0, remaining)
    hh, rest = divmod(remaining, 3600)
    mm, ss = divmod(rest, 60)
    return f"{hh:02d}:{mm:02d}:{ss:02d}"


def needs_approval(allowance: Any, amount: Optional[int]) -> bool:
    """
    True when the allowance does not cover the amount.

    An unknown allowance always needs approval; a missing amount counts as 0.
    """
    if not _known(allowance):
        return True
    return int(allowance) < (amount or 0)


def can_claim(market: Optional[Market], position: Any) -> bool:
    """
    True when a resolved market pays this position out.

    Invalid markets refund any holder; otherwise the winning side must be
    held. Unresolved markets are never claimable.
    """
    if market is None or not market.resolved:
        return False
    if market.invalid:
        return True
    if not isinstance(position, UserPosition):
        return False
    return position.shares(market.winning_outcome) > 0


def format_price(raw: Any) -> str:
    """
    Render a 1e18-scaled price with exactly 4 fractional digits.

    Truncates beyond the 4th digit. Unknown prices render as the
    placeholder, never as zero.
    """
    if not _known(raw):
        return PLACEHOLDER
    raw = int(raw)
    whole, frac = divmod(raw, PRICE_SCALE)
    return f"{whole}.{frac // _PRICE_FRACTION_DIV:04d}"


def format_amount(value: Any) -> str:
    """Integer amount or placeholder."""
    if not _known(value):
        return PLACEHOLDER
    return str(int(value))


def offered_action(
    market: Optional[Market],
    trading_open: bool,
    approval_needed: bool,
    claimable: bool,
) -> OfferedAction:
    """
    The single mutating action for this snapshot.

    Resolved markets can only be claimed from; open markets offer Approve
    until the allowance covers the amount, then Buy.
    """
    if market is None:
        return OfferedAction.NONE
    if market.resolved:
        return OfferedAction.CLAIM if claimable else OfferedAction.NONE
    if not trading_open:
        return OfferedAction.NONE
    return OfferedAction.APPROVE if approval_needed else OfferedAction.BUY


def action_label(action: OfferedAction, outcome: Outcome, busy: bool) -> str:
    if action == OfferedAction.APPROVE:
        return "Approving..." if busy else "Approve"
    if action == OfferedAction.BUY:
        return "Buying..." if busy else f"Buy {outcome.name}"
    if action == OfferedAction.CLAIM:
        return "Claiming..." if busy else "Claim Winnings"
    return ""


def status_line(market: Optional[Market], trading_open: bool, countdown: str) -> str:
    """Resolution banner or trading status for the selected market."""
    if market is None:
        return LOADING
    if market.resolved:
        if market.invalid:
            return "Invalid - refunds available"
        if market.winning_outcome == Outcome.YES:
            return "Resolved: YES wins"
        if market.winning_outcome == Outcome.NO:
            return "Resolved: NO wins"
        return "Resolved"
    if trading_open:
        return f"Trading open — ends in {countdown}"
    return "Trading closed"


@dataclass(frozen=True, slots=True)
class CatalogEntry:
    """One row of the market list."""
    market_id: int
    label: str
    resolved: bool
    selected: bool


@dataclass(frozen=True)
class SessionView:
    """Everything a renderer needs; a pure projection of SessionState."""
    market_id: int
    market: Optional[Market]
    question: str
    status: str
    is_trading_open: bool
    seconds_remaining: Optional[int]
    countdown: str
    needs_approval: bool
    can_claim: bool
    offered_action: OfferedAction
    action_enabled: bool
    action_label: str
    outcome: Outcome
    amount_text: str
    amount: Optional[int]
    allowance: str
    price_yes: str
    price_no: str
    liquidity_yes: str
    liquidity_no: str
    shares_yes: str
    shares_no: str
    pending: Optional[PendingTransaction]
    last_tx_hash: Optional[str]
    last_error: Optional[str]
    catalog: list[CatalogEntry] = field(default_factory=list)


def _catalog(state: SessionState) -> list[CatalogEntry]:
    count = state.value(QueryKey.market_count())
    if not _known(count):
        return []
    entries = []
    for market_id in range(int(count)):
        detail = state.value(QueryKey.market_detail(market_id))
        if isinstance(detail, Market):
            label = f"#{market_id}: {detail.question}"
            resolved = detail.resolved
            if resolved:
                label += " (resolved)"
        else:
            label = f"Market #{market_id}"
            resolved = False
        entries.append(
            CatalogEntry(
                market_id=market_id,
                label=label,
                resolved=resolved,
                selected=market_id == state.selected_market_id,
            )
        )
    return entries


def derive(state: SessionState) -> SessionView:
    """Project the session state into the view a renderer shows."""
    market_id = state.selected_market_id
    detail = state.value(QueryKey.market_detail(market_id))
    market = detail if isinstance(detail, Market) else None

    if state.owner:
        allowance = state.value(QueryKey.allowance(state.owner, state.market_address))
        position = state.value(QueryKey.user_position(market_id, state.owner))
    else:
        allowance = NOT_AVAILABLE
        position = NOT_AVAILABLE

    amount = state.intent.amount
    remaining = seconds_remaining(market.end_time, state.now) if market else None
    trading_open = is_trading_open(market, state.now)
    approval_needed = needs_approval(allowance, amount)
    claimable = can_claim(market, position)
    action = offered_action(market, trading_open, approval_needed, claimable)

    busy = state.pending is not None and state.pending.status.is_active
    enabled = action != OfferedAction.NONE and state.owner is not None and state.pending is None

    has_position = isinstance(position, UserPosition)
    return SessionView(
        market_id=market_id,
        market=market,
        question=market.question if market else LOADING,
        status=status_line(market, trading_open, format_countdown(remaining)),
        is_trading_open=trading_open,
        seconds_remaining=remaining,
        countdown=format_countdown(remaining),
        needs_approval=approval_needed,
        can_claim=claimable,
        offered_action=action,
        action_enabled=enabled,
        action_label=action_label(action, state.intent.outcome, busy),
        outcome=state.intent.outcome,
        amount_text=state.intent.amount_text,
        amount=amount,
        allowance=format_amount(allowance),
        price_yes=format_price(state.value(QueryKey.price(market_id, Outcome.YES))),
        price_no=format_price(state.value(QueryKey.price(market_id, Outcome.NO))),
        liquidity_yes=format_amount(market.liquidity(Outcome.YES) if market else None),
        liquidity_no=format_amount(market.liquidity(Outcome.NO) if market else None),
        shares_yes=format_amount(position.shares(Outcome.YES) if has_position else None),
        shares_no=format_amount(position.shares(Outcome.NO) if has_position else None),
        pending=state.pending,
        last_tx_hash=state.last_tx_hash,
        last_error=state.last_error,
        catalog=_catalog(state),
    )
