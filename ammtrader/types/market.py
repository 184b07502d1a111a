"""
Ledger-owned data types.

Read-through copies of market, position and receipt state. The client
never mutates these; new values only arrive through fresh reads.
"""

from dataclasses import dataclass
from typing import Optional, Sequence

from .core import Outcome


@dataclass(frozen=True, slots=True)
class Market:
    """
    One prediction market as returned by getMarket(id).

    INVARIANT: an unresolved market has winning_outcome == NONE and
    invalid == False. Once resolved the pair never changes.
    """
    market_id: int
    question: str
    end_time: int  # Unix seconds
    resolved: bool
    invalid: bool
    winning_outcome: Outcome
    fee_bps: int
    protocol_fees_accrued: int
    liquidity_yes: int
    liquidity_no: int

    def __post_init__(self):
        if not self.resolved and (self.invalid or self.winning_outcome != Outcome.NONE):
            raise ValueError(
                f"Market {self.market_id}: unresolved market cannot be invalid "
                f"or have a winner"
            )

    @classmethod
    def from_tuple(cls, market_id: int, values: Sequence) -> "Market":
        """
        Build from the getMarket output tuple.

        Order: question, endTime, resolved, invalid, winningOutcome,
        feeBps, protocolFeesAccrued, yesLiquidity, noLiquidity.
        """
        (
            question,
            end_time,
            resolved,
            invalid,
            winning,
            fee_bps,
            fees_accrued,
            yes_liq,
            no_liq,
        ) = values
        return cls(
            market_id=market_id,
            question=str(question),
            end_time=int(end_time),
            resolved=bool(resolved),
            invalid=bool(invalid),
            winning_outcome=Outcome(int(winning)),
            fee_bps=int(fee_bps),
            protocol_fees_accrued=int(fees_accrued),
            liquidity_yes=int(yes_liq),
            liquidity_no=int(no_liq),
        )

    def liquidity(self, outcome: Outcome) -> int:
        return self.liquidity_yes if outcome == Outcome.YES else self.liquidity_no


@dataclass(frozen=True, slots=True)
class UserPosition:
    """Shares held by one address in one market."""
    market_id: int
    address: str
    shares_yes: int = 0
    shares_no: int = 0

    def shares(self, outcome: Outcome) -> int:
        if outcome == Outcome.YES:
            return self.shares_yes
        if outcome == Outcome.NO:
            return self.shares_no
        return 0


@dataclass(frozen=True, slots=True)
class TxReceipt:
    """Terminal ledger signal for a submitted transaction."""
    tx_hash: str
    success: bool
    block_number: Optional[int] = None
    reason: Optional[str] = None
