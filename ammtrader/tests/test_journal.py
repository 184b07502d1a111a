"""Tests for TransactionJournal."""

import orjson

from ammtrader.journal import TransactionJournal
from ammtrader.types import MAX_UINT256, Outcome, PendingTransaction, TxKind, TxStatus


class TestTransactionJournal:
    """JSONL output of lifecycle records."""

    def test_records_one_line_per_change(self, tmp_path):
        journal = TransactionJournal(str(tmp_path))
        tx = PendingTransaction(TxKind.BUY, 2, outcome=Outcome.NO, amount=1_000_000)

        journal.record(tx)
        journal.record(PendingTransaction(
            TxKind.BUY, 2, TxStatus.FAILED, "0xabc", Outcome.NO, 1_000_000, "Trading closed",
        ))
        journal.close()

        lines = journal.path.read_bytes().splitlines()
        assert len(lines) == 2

        first = orjson.loads(lines[0])
        assert first["kind"] == "buy"
        assert first["status"] == "submitting"
        assert first["market_id"] == 2
        assert first["outcome"] == "NO"
        assert first["amount"] == "1000000"
        assert first["tx_hash"] is None
        assert "time" in first

        second = orjson.loads(lines[1])
        assert second["status"] == "failed"
        assert second["tx_hash"] == "0xabc"
        assert second["reason"] == "Trading closed"

    def test_uint256_amount_as_string(self, tmp_path):
        """Test an infinite approval amount survives JSON encoding."""
        journal = TransactionJournal(str(tmp_path))
        journal.record(PendingTransaction(TxKind.APPROVE, None, amount=MAX_UINT256))
        journal.close()

        entry = orjson.loads(journal.path.read_bytes().splitlines()[0])
        assert int(entry["amount"]) == MAX_UINT256
        assert entry["market_id"] is None
        assert entry["outcome"] is None

    def test_record_after_close_ignored(self, tmp_path):
        journal = TransactionJournal(str(tmp_path))
        journal.close()
        journal.record(PendingTransaction(TxKind.CLAIM, 0))
        assert journal.path.read_bytes() == b""

    def test_creates_output_dir(self, tmp_path):
        journal = TransactionJournal(str(tmp_path / "nested" / "journal"))
        assert journal.path.parent.is_dir()
        assert journal.path.name.startswith("transactions_")
        journal.close()
