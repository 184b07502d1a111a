"""Tests for RemoteStateReader and QueryPoller."""

import asyncio

import pytest

from ammtrader.errors import LedgerError
from ammtrader.reader import QueryPoller, RemoteStateReader
from ammtrader.types import NOT_AVAILABLE, Outcome, QueryKey, QueryName
from ammtrader.tests.fakes import MARKET, OWNER, FakeLedger, make_market, settle


class TestReads:
    """Basic fetch and publish behavior."""

    def test_unfetched_query_is_not_available(self, ledger):
        """Test a never-fetched query reports NOT_AVAILABLE, not zero."""
        reader = RemoteStateReader(ledger)
        value = reader.get(QueryKey.allowance(OWNER, MARKET))
        assert value.value is NOT_AVAILABLE
        assert value.available is False
        assert value.seq == 0

    @pytest.mark.asyncio
    async def test_refresh_publishes_loading_then_value(self, ledger):
        """Test listeners see the loading flag, then the fetched value."""
        reader = RemoteStateReader(ledger)
        published = []
        reader.subscribe(published.append)

        await reader.refresh_and_wait([QueryKey.market_count()])

        assert [v.loading for v in published] == [True, False]
        assert published[-1].value == 1
        assert published[-1].seq == 2
        assert published[-1].fetched_at_ms > 0
        assert reader.get(QueryKey.market_count()).value == 1

    @pytest.mark.asyncio
    async def test_zero_allowance_is_a_value(self, ledger):
        """Test a fetched zero is available and distinct from unknown."""
        reader = RemoteStateReader(ledger)
        (value,) = await reader.refresh_and_wait([QueryKey.allowance(OWNER, MARKET)])
        assert value.available is True
        assert value.value == 0

    @pytest.mark.asyncio
    async def test_dispatches_each_query_name(self, ledger):
        """Test every query name maps onto its ledger call."""
        ledger.set_position(0, shares_yes=7)
        ledger.allowances[(OWNER.lower(), MARKET.lower())] = 42
        reader = RemoteStateReader(ledger)

        values = await reader.refresh_and_wait([
            QueryKey.allowance(OWNER, MARKET),
            QueryKey.market_count(),
            QueryKey.market_detail(0),
            QueryKey.user_position(0, OWNER),
            QueryKey.price(0, Outcome.YES),
        ])

        assert values[0].value == 42
        assert values[1].value == 1
        assert values[2].value.question == make_market(0).question
        assert values[3].value.shares_yes == 7
        assert values[4].value == 5 * 10 ** 17


class TestIndependence:
    """A slow or failing query never blocks another."""

    @pytest.mark.asyncio
    async def test_slow_query_does_not_block_others(self, ledger):
        """Test a blocked market_count read leaves allowance deliverable."""
        ledger.read_gates[QueryName.MARKET_COUNT] = asyncio.Event()
        reader = RemoteStateReader(ledger)

        reader.refresh(QueryKey.market_count())
        (allowance,) = await reader.refresh_and_wait([QueryKey.allowance(OWNER, MARKET)])

        assert allowance.value == 0
        assert reader.is_loading(QueryKey.market_count())
        assert reader.get(QueryKey.market_count()).value is NOT_AVAILABLE

        ledger.read_gates[QueryName.MARKET_COUNT].set()
        await reader.wait_settled(QueryKey.market_count())
        assert reader.get(QueryKey.market_count()).value == 1

    @pytest.mark.asyncio
    async def test_failure_keeps_previous_value(self, ledger):
        """Test a failed refresh keeps the last good value and records the error."""
        reader = RemoteStateReader(ledger)
        key = QueryKey.market_count()
        await reader.refresh_and_wait([key])

        ledger.read_errors[QueryName.MARKET_COUNT] = LedgerError("node down")
        (value,) = await reader.refresh_and_wait([key])

        assert value.value == 1
        assert value.error == "node down"
        assert value.loading is False

    @pytest.mark.asyncio
    async def test_first_failure_stays_unavailable(self, ledger):
        """Test a query that has never succeeded reports unknown, never zero."""
        ledger.read_errors[QueryName.ALLOWANCE] = LedgerError("timeout")
        reader = RemoteStateReader(ledger)

        (value,) = await reader.refresh_and_wait([QueryKey.allowance(OWNER, MARKET)])

        assert value.value is NOT_AVAILABLE
        assert value.error == "timeout"

    @pytest.mark.asyncio
    async def test_error_cleared_by_next_success(self, ledger):
        """Test a successful refresh clears the recorded error."""
        reader = RemoteStateReader(ledger)
        key = QueryKey.market_count()
        ledger.read_errors[QueryName.MARKET_COUNT] = LedgerError("flaky")
        await reader.refresh_and_wait([key])

        del ledger.read_errors[QueryName.MARKET_COUNT]
        (value,) = await reader.refresh_and_wait([key])
        assert value.value == 1
        assert value.error is None


class TestSupersession:
    """Last refresh wins."""

    @pytest.mark.asyncio
    async def test_later_refresh_wins_over_slow_earlier(self):
        """Test a slow first fetch cannot overwrite a later one."""
        ledger = FakeLedger()
        first = asyncio.get_running_loop().create_future()
        answers = [first]

        async def market_count():
            if answers:
                return await answers.pop(0)
            return 2

        ledger.market_count = market_count
        reader = RemoteStateReader(ledger)
        key = QueryKey.market_count()

        first_task = reader.refresh(key)
        await settle()
        second_task = reader.refresh(key)
        await settle()

        assert first_task.cancelled() or first_task.done()
        await second_task
        assert reader.get(key).value == 2

        if not first.done():
            first.set_result(1)
        await settle()
        assert reader.get(key).value == 2

    @pytest.mark.asyncio
    async def test_wait_settled_follows_newer_refresh(self, ledger):
        """Test waiting on a superseded fetch waits for its replacement."""
        gate = asyncio.Event()
        ledger.read_gates[QueryName.MARKET_COUNT] = gate
        reader = RemoteStateReader(ledger)
        key = QueryKey.market_count()

        reader.refresh(key)
        waiter = asyncio.create_task(reader.wait_settled(key))
        await settle()
        reader.refresh(key)
        await settle()
        assert not waiter.done()

        gate.set()
        await waiter
        assert reader.get(key).value == 1
        assert not reader.is_loading(key)

    @pytest.mark.asyncio
    async def test_sequences_are_per_key(self, ledger):
        """Test each query numbers its own values."""
        reader = RemoteStateReader(ledger)
        await reader.refresh_and_wait([QueryKey.market_count()])
        await reader.refresh_and_wait([QueryKey.market_count()])
        (detail,) = await reader.refresh_and_wait([QueryKey.market_detail(0)])

        assert reader.get(QueryKey.market_count()).seq == 4
        assert detail.seq == 2


class TestClose:
    """Closing abandons in-flight reads."""

    @pytest.mark.asyncio
    async def test_close_cancels_inflight_and_stops_publishing(self, ledger):
        """Test nothing is published after close."""
        gate = asyncio.Event()
        ledger.read_gates[QueryName.MARKET_DETAIL] = gate
        reader = RemoteStateReader(ledger)
        published = []
        reader.subscribe(published.append)

        task = reader.refresh(QueryKey.market_detail(0))
        await settle()
        await reader.close()
        gate.set()
        await settle()

        assert task.done()
        assert [v.loading for v in published] == [True]
        assert reader.closed is True

    @pytest.mark.asyncio
    async def test_refresh_after_close_raises(self, ledger):
        """Test a closed reader refuses new work."""
        reader = RemoteStateReader(ledger)
        await reader.close()
        with pytest.raises(RuntimeError):
            reader.refresh(QueryKey.market_count())


class TestQueryPoller:
    """Tests for periodic re-reads."""

    @pytest.mark.asyncio
    async def test_polls_until_stopped(self, ledger):
        """Test each round refreshes the callback's keys."""
        reader = RemoteStateReader(ledger)
        poller = QueryPoller(reader, lambda: [QueryKey.market_count()], interval_seconds=0.01)

        poller.start()
        await asyncio.sleep(0.05)
        await poller.stop()

        assert ledger.read_counts[QueryName.MARKET_COUNT] >= 2
        assert poller.running is False
        await reader.close()
