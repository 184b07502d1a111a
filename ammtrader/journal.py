"""
Transaction journal.

Appends every transaction lifecycle change to a JSONL file for auditing.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import IO, Optional

import orjson

from .types import PendingTransaction, wall_ms

logger = logging.getLogger(__name__)


class TransactionJournal:
    """
    Logs transaction lifecycle records to a JSON-lines file.

    One line per state change: submitted, awaiting confirmation,
    confirmed, rejected or failed.
    """

    def __init__(self, output_dir: str = "journal"):
        """
        Initialize the journal.

        Args:
            output_dir: Directory to store journal files
        """
        self._output_dir = Path(output_dir)
        self._output_dir.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        self._filepath = self._output_dir / f"transactions_{timestamp}.jsonl"
        self._file: Optional[IO[bytes]] = open(self._filepath, "ab")
        logger.info(f"Transaction journal: {self._filepath}")

    @property
    def path(self) -> Path:
        return self._filepath

    def record(self, tx: PendingTransaction) -> None:
        """Append one lifecycle record."""
        if not self._file:
            return

        ts = wall_ms()
        entry = {
            "ts": ts,
            "time": datetime.fromtimestamp(ts / 1000).isoformat(),
            "kind": tx.kind.value,
            "status": tx.status.value,
            "market_id": tx.market_id,
            "outcome": tx.outcome.name if tx.outcome is not None else None,
            # uint256 amounts overflow JSON integers in most readers
            "amount": str(tx.amount) if tx.amount is not None else None,
            "tx_hash": tx.tx_hash,
            "reason": tx.reason,
        }

        try:
            self._file.write(orjson.dumps(entry) + b"\n")
            self._file.flush()
        except OSError as e:
            logger.error(f"Failed to write journal entry: {e}")

    def close(self) -> None:
        """Close the journal file."""
        if self._file:
            try:
                self._file.close()
                logger.info(f"Transaction journal closed: {self._filepath}")
            finally:
                self._file = None
