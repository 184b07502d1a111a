"""
Ledger interface.

The client reads market, position, price and allowance state from the
ledger and writes approve/buy/claim transactions to it. Everything the
client knows about the ledger goes through this interface.
"""

from abc import ABC, abstractmethod
from typing import Optional

from ..types import Market, Outcome, TxReceipt, UserPosition


class LedgerClient(ABC):
    """
    Read and write operations against the token and market ledgers.

    Reads are side-effect free and may be retried freely. Writes return
    a transaction hash once the signer has broadcast the transaction;
    its terminal state arrives later through wait_for_receipt().
    """

    @property
    @abstractmethod
    def signer_address(self) -> Optional[str]:
        """Address transactions are sent from, None when read-only."""

    # ---- reads ----

    @abstractmethod
    async def allowance(self, owner: str, spender: str) -> int:
        """Amount spender may move on behalf of owner."""

    @abstractmethod
    async def market_count(self) -> int:
        """Number of markets; ids run from 0 to count - 1."""

    @abstractmethod
    async def market_detail(self, market_id: int) -> Market:
        """Full detail for one market."""

    @abstractmethod
    async def user_position(self, market_id: int, address: str) -> UserPosition:
        """Shares held by address in market."""

    @abstractmethod
    async def current_price(self, market_id: int, outcome: Outcome) -> int:
        """AMM price for outcome, scaled by 1e18."""

    # ---- writes ----

    @abstractmethod
    async def approve(self, spender: str, amount: int) -> str:
        """Approve spender on the token ledger. Returns tx hash."""

    @abstractmethod
    async def buy(self, market_id: int, outcome: Outcome, amount_in: int) -> str:
        """Buy outcome shares. Returns tx hash."""

    @abstractmethod
    async def claim(self, market_id: int) -> str:
        """Claim payout from a resolved market. Returns tx hash."""

    @abstractmethod
    async def wait_for_receipt(self, tx_hash: str) -> TxReceipt:
        """
        Wait for the ledger's terminal signal.

        No timeout: returns only once the transaction is finalized or
        reverted, or raises if the wait is cancelled.
        """

    async def close(self) -> None:
        """Release transport resources."""
        return None
