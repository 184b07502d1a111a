"""
Transaction Orchestrator.

Drives the two mutating flows (approve -> buy, and claim) through

    Idle -> Submitting -> AwaitingConfirmation -> {Confirmed, Rejected, Failed}

and back to Idle. On Confirmed it re-reads the queries the transaction
touched before releasing the slot, so the next offered action is decided
on fresh allowance/position state, never speculatively.

Every error is local to the transaction: the slot is released, the
reason is recorded, and nothing is retried automatically.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

import aiohttp

from ..errors import LedgerError, SigningRejected, SubmissionRefused, TransactionReverted
from ..ledger import LedgerClient
from ..reader import RemoteStateReader
from ..types import (
    MAX_UINT256,
    Outcome,
    PendingTransaction,
    TxKind,
    TxStatus,
    short_hash,
    wall_ms,
)
from .errors import normalize_error, user_message
from .state import TxSlot, refresh_plan

logger = logging.getLogger(__name__)

TxListener = Callable[[Optional[PendingTransaction]], None]


class TransactionOrchestrator:
    """
    Owner of the session's single pending-transaction slot.

    Listeners get every lifecycle change, then None when the slot is
    released.

    Usage:
        orchestrator = TransactionOrchestrator(ledger, reader, market_address)
        orchestrator.subscribe(on_tx)

        tx = await orchestrator.approve()          # returns terminal tx
        tx = await orchestrator.buy(0, Outcome.YES, 1_000_000)
        tx = await orchestrator.claim(0)
    """

    def __init__(
        self,
        ledger: LedgerClient,
        reader: RemoteStateReader,
        market_address: str,
        journal=None,
    ):
        """
        Initialize the orchestrator.

        Args:
            ledger: Ledger client used for writes and receipts
            reader: Reader refreshed after confirmation
            market_address: Spender approved on the token ledger
            journal: Optional TransactionJournal
        """
        self._ledger = ledger
        self._reader = reader
        self._market_address = market_address
        self._journal = journal
        self._slot = TxSlot()
        self._listeners: list[TxListener] = []
        self._flow_task: Optional[asyncio.Task] = None
        self._closed = False

    @property
    def pending(self) -> Optional[PendingTransaction]:
        return self._slot.current

    @property
    def busy(self) -> bool:
        return self._slot.busy

    def subscribe(self, listener: TxListener) -> None:
        self._listeners.append(listener)

    # ---- flows ----

    async def approve(self) -> PendingTransaction:
        """Infinite approval of the market ledger on the token ledger."""
        return await self._run(
            TxKind.APPROVE,
            None,
            lambda: self._ledger.approve(self._market_address, MAX_UINT256),
        )

    async def buy(
        self,
        market_id: int,
        outcome: Outcome,
        amount: Optional[int],
    ) -> PendingTransaction:
        """Buy outcome shares; amount None means the entered text was malformed."""

        async def submit() -> str:
            if amount is None or amount < 0:
                raise SigningRejected("Invalid amount")
            if outcome not in (Outcome.YES, Outcome.NO):
                raise SigningRejected("Choose YES or NO")
            return await self._ledger.buy(market_id, outcome, amount)

        return await self._run(TxKind.BUY, market_id, submit, outcome=outcome, amount=amount)

    async def claim(self, market_id: int) -> PendingTransaction:
        return await self._run(
            TxKind.CLAIM,
            market_id,
            lambda: self._ledger.claim(market_id),
        )

    # ---- lifecycle ----

    async def _run(
        self,
        kind: TxKind,
        market_id: Optional[int],
        submit: Callable[[], Awaitable[str]],
        outcome: Optional[Outcome] = None,
        amount: Optional[int] = None,
    ) -> PendingTransaction:
        """
        Take one transaction from Idle to a terminal state and back to Idle.

        Raises:
            SubmissionRefused: slot busy, session closed, or no signer
        """
        owner = self._guard(kind)
        tx = self._slot.acquire(
            PendingTransaction(
                kind=kind,
                market_id=market_id,
                status=TxStatus.SUBMITTING,
                outcome=outcome,
                amount=amount,
                submitted_at_ms=wall_ms(),
            )
        )
        self._emit(tx)
        self._flow_task = asyncio.current_task()

        try:
            try:
                tx_hash = await submit()
            except SigningRejected as e:
                code = normalize_error(str(e), type(e).__name__)
                logger.warning(f"{kind.value} rejected ({code.value}): {e}")
                tx = self._slot.transition(TxStatus.REJECTED, reason=user_message(kind, e))
                self._emit(tx)
                return tx
            except (LedgerError, aiohttp.ClientError, asyncio.TimeoutError) as e:
                # Transport or ledger failure before a hash came back
                logger.warning(f"{kind.value} submission failed: {type(e).__name__}: {e}")
                tx = self._slot.transition(TxStatus.REJECTED, reason=user_message(kind))
                self._emit(tx)
                return tx

            tx = self._slot.transition(TxStatus.AWAITING_CONFIRMATION, tx_hash=tx_hash)
            logger.info(f"{kind.value} submitted: {short_hash(tx_hash)}")
            self._emit(tx)

            try:
                receipt = await self._ledger.wait_for_receipt(tx_hash)
            except LedgerError as e:
                logger.warning(f"{kind.value} {short_hash(tx_hash)} receipt error: {e}")
                tx = self._slot.transition(TxStatus.FAILED, reason=user_message(kind))
                self._emit(tx)
                return tx

            if not receipt.success:
                reverted = TransactionReverted(tx_hash, receipt.reason)
                logger.warning(f"{kind.value} {short_hash(tx_hash)} failed: {reverted}")
                tx = self._slot.transition(TxStatus.FAILED, reason=user_message(kind, reverted))
                self._emit(tx)
                return tx

            tx = self._slot.transition(TxStatus.CONFIRMED)
            logger.info(f"{kind.value} confirmed: {short_hash(tx_hash)}")
            self._emit(tx)

            await self._refresh_after(tx, owner)
            return tx

        finally:
            self._flow_task = None
            released = self._slot.release()
            if released is not None and not released.status.is_terminal:
                logger.info(f"{kind.value} abandoned while {released.status.value}")
            if released is not None and not self._closed:
                self._emit(None)

    def _guard(self, kind: TxKind) -> str:
        """Refuse before touching the slot when no submission is possible."""
        if self._closed:
            raise SubmissionRefused("Session is closed")
        if self._slot.busy:
            current = self._slot.current
            logger.warning(f"Refused {kind.value}: {current.kind.value} in flight")
            raise SubmissionRefused(
                f"A {current.kind.value} transaction is already {current.status.value}"
            )
        owner = self._ledger.signer_address
        if not owner:
            logger.warning(f"Refused {kind.value}: no signer")
            raise SubmissionRefused("No signer address available")
        return owner

    async def _refresh_after(self, tx: PendingTransaction, owner: str) -> None:
        """Re-read what the confirmed transaction changed."""
        if self._reader.closed:
            return
        keys = refresh_plan(tx.kind, tx.market_id, owner, self._market_address)
        logger.info(f"Refreshing after {tx.kind.value}: {', '.join(str(k) for k in keys)}")
        await self._reader.refresh_and_wait(keys)

    def _emit(self, tx: Optional[PendingTransaction]) -> None:
        if tx is not None and self._journal is not None:
            self._journal.record(tx)
        for listener in list(self._listeners):
            listener(tx)

    async def close(self) -> None:
        """
        Abandon any in-flight flow without further side effects.

        The flow's task is cancelled; its slot is released silently.
        """
        self._closed = True
        self._listeners.clear()

        task, self._flow_task = self._flow_task, None
        if task is None or task.done() or task is asyncio.current_task():
            return
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        logger.info("Abandoned in-flight transaction flow")
