"""
Orchestrator state types.

Defines the single in-flight transaction slot and the refresh plan that
runs when a transaction confirms.
"""

from dataclasses import replace
from typing import Optional

from ..errors import SubmissionRefused
from ..types import Outcome, PendingTransaction, QueryKey, TxKind, TxStatus

# Allowed lifecycle transitions. None is the idle slot.
TRANSITIONS: dict[Optional[TxStatus], frozenset] = {
    None: frozenset({TxStatus.SUBMITTING}),
    TxStatus.SUBMITTING: frozenset({TxStatus.AWAITING_CONFIRMATION, TxStatus.REJECTED}),
    TxStatus.AWAITING_CONFIRMATION: frozenset({TxStatus.CONFIRMED, TxStatus.FAILED}),
    TxStatus.CONFIRMED: frozenset(),
    TxStatus.REJECTED: frozenset(),
    TxStatus.FAILED: frozenset(),
}


class TxSlot:
    """
    The one "current pending transaction" slot of a session.

    State machine invariant:
    - Empty: a new submission may acquire the slot
    - Occupied (any status): every other submission is refused

    The slot stays occupied through CONFIRMED until the post-confirmation
    refresh finishes, so no action is offered on stale reads. acquire()
    never awaits, which makes check-and-set atomic on the event loop.
    """

    def __init__(self):
        self._current: Optional[PendingTransaction] = None

    @property
    def current(self) -> Optional[PendingTransaction]:
        return self._current

    @property
    def busy(self) -> bool:
        return self._current is not None

    def acquire(self, tx: PendingTransaction) -> PendingTransaction:
        """Occupy the slot, or refuse if a transaction is already in it."""
        if self._current is not None:
            raise SubmissionRefused(
                f"A {self._current.kind.value} transaction is already "
                f"{self._current.status.value}"
            )
        if tx.status != TxStatus.SUBMITTING:
            raise ValueError(f"New transaction must start SUBMITTING, not {tx.status}")
        self._current = tx
        return tx

    def transition(self, status: TxStatus, **changes) -> PendingTransaction:
        """Move the current transaction to status, validating the edge."""
        if self._current is None:
            raise ValueError(f"Cannot transition to {status}: slot is idle")
        allowed = TRANSITIONS[self._current.status]
        if status not in allowed:
            raise ValueError(f"Cannot transition from {self._current.status} to {status}")
        self._current = replace(self._current, status=status, **changes)
        return self._current

    def release(self) -> Optional[PendingTransaction]:
        """Free the slot. Returns what was in it."""
        tx, self._current = self._current, None
        return tx


def refresh_plan(
    kind: TxKind,
    market_id: Optional[int],
    owner: str,
    spender: str,
) -> list[QueryKey]:
    """
    Queries to re-read after a transaction of this kind confirms.

    Allowance always; trade and claim also re-read the affected market's
    position and detail. A buy moves the AMM, so prices are re-read too.
    """
    keys = [QueryKey.allowance(owner, spender)]
    if kind in (TxKind.BUY, TxKind.CLAIM) and market_id is not None:
        keys.append(QueryKey.user_position(market_id, owner))
        keys.append(QueryKey.market_detail(market_id))
    if kind == TxKind.BUY and market_id is not None:
        keys.append(QueryKey.price(market_id, Outcome.YES))
        keys.append(QueryKey.price(market_id, Outcome.NO))
    return keys
