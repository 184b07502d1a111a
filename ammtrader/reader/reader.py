"""
Remote State Reader.

Issues read-only queries against the ledger and keeps the latest value of
each one in its own versioned store. Queries are independent: a failing or
slow query never blocks delivery of another query's current value.

KEY DESIGN PRINCIPLES:

1. One QueryStore per QueryKey
   - Each published QueryValue carries that store's sequence number
   - Consumers compare sequences per key, never across keys

2. Last refresh wins, deterministically
   - refresh() cancels any in-flight fetch for the same key
   - A result whose generation is no longer current is dropped, so a
     slow earlier fetch can never overwrite a later one

3. Close abandons everything
   - In-flight fetches are cancelled and nothing is published afterwards
"""

import asyncio
import logging
from dataclasses import replace
from typing import Any, Callable, Iterable

from ..ledger import LedgerClient
from ..types import QueryKey, QueryName, QueryValue, wall_ms
from .store import QueryStore

logger = logging.getLogger(__name__)

Listener = Callable[[QueryValue], None]


class RemoteStateReader:
    """
    Latest-value cache over named ledger queries.

    Usage:
        reader = RemoteStateReader(ledger)
        reader.subscribe(on_value)

        reader.refresh(QueryKey.market_count())        # fire and forget
        await reader.refresh_and_wait([QueryKey.allowance(owner, spender)])

        value = reader.get(QueryKey.market_count())    # QueryValue
        await reader.close()
    """

    def __init__(self, ledger: LedgerClient):
        """
        Initialize the reader.

        Args:
            ledger: Ledger client used for every fetch
        """
        self._ledger = ledger
        self._stores: dict[QueryKey, QueryStore] = {}
        self._inflight: dict[QueryKey, asyncio.Task] = {}
        self._generation: dict[QueryKey, int] = {}
        self._listeners: list[Listener] = []
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def subscribe(self, listener: Listener) -> None:
        """Register a callback invoked with every published QueryValue."""
        self._listeners.append(listener)

    def get(self, key: QueryKey) -> QueryValue:
        """Latest value for key; value is NOT_AVAILABLE before the first fetch."""
        store = self._stores.get(key)
        return store.latest if store is not None else QueryValue(key=key)

    def is_loading(self, key: QueryKey) -> bool:
        task = self._inflight.get(key)
        return task is not None and not task.done()

    def refresh(self, key: QueryKey) -> asyncio.Task:
        """
        Re-issue a query, superseding any in-flight fetch for the same key.

        Returns:
            The fetch task. It never raises except when cancelled.
        """
        if self._closed:
            raise RuntimeError("RemoteStateReader is closed")

        previous = self._inflight.get(key)
        if previous is not None and not previous.done():
            previous.cancel()
            logger.debug(f"Superseded in-flight read {key}")

        generation = self._generation.get(key, 0) + 1
        self._generation[key] = generation

        current = self.get(key)
        if not current.loading:
            self._publish(replace(current, loading=True))

        task = asyncio.create_task(self._fetch(key, generation), name=f"read:{key}")
        self._inflight[key] = task
        return task

    def refresh_many(self, keys: Iterable[QueryKey]) -> list[asyncio.Task]:
        return [self.refresh(key) for key in keys]

    async def refresh_and_wait(self, keys: Iterable[QueryKey]) -> list[QueryValue]:
        """
        Refresh keys and wait until each has settled on its latest fetch.

        Returns:
            The settled QueryValue for each key, in order
        """
        keys = list(keys)
        self.refresh_many(keys)
        for key in keys:
            await self.wait_settled(key)
        return [self.get(key) for key in keys]

    async def wait_settled(self, key: QueryKey) -> None:
        """
        Wait until no fetch for key is in flight.

        Follows supersession: if the awaited fetch is replaced by a newer
        refresh, waits for the newer one.
        """
        while True:
            task = self._inflight.get(key)
            if task is None:
                return
            await asyncio.wait({task})
            if self._inflight.get(key) is task:
                # Finished without clearing itself (closed mid-flight)
                return

    async def _fetch(self, key: QueryKey, generation: int) -> None:
        """Fetch one query and publish the result if still current."""
        try:
            try:
                value = await self._query(key)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                if self._is_current(key, generation):
                    logger.warning(f"Read {key} failed: {e}")
                    self._publish(replace(self.get(key), loading=False, error=str(e)))
                return

            if not self._is_current(key, generation):
                logger.debug(f"Dropping superseded result for {key}")
                return

            self._publish(
                QueryValue(
                    key=key,
                    value=value,
                    fetched_at_ms=wall_ms(),
                    loading=False,
                    error=None,
                )
            )
        finally:
            if self._inflight.get(key) is asyncio.current_task():
                del self._inflight[key]

    def _is_current(self, key: QueryKey, generation: int) -> bool:
        return not self._closed and self._generation.get(key) == generation

    async def _query(self, key: QueryKey) -> Any:
        """Map a query key onto the ledger call that answers it."""
        name, args = key.name, key.args
        if name == QueryName.ALLOWANCE:
            return await self._ledger.allowance(*args)
        if name == QueryName.MARKET_COUNT:
            return await self._ledger.market_count()
        if name == QueryName.MARKET_DETAIL:
            return await self._ledger.market_detail(*args)
        if name == QueryName.USER_POSITION:
            return await self._ledger.user_position(*args)
        if name == QueryName.PRICE:
            return await self._ledger.current_price(*args)
        raise ValueError(f"Unknown query {name}")

    def _publish(self, value: QueryValue) -> None:
        """Stamp the next sequence, swap it into the store, notify."""
        store = self._stores.get(value.key)
        if store is None:
            store = QueryStore(value.key)
            self._stores[value.key] = store

        stamped = store.publish(value)
        logger.debug(f"Published {value.key} seq={stamped.seq}")

        for listener in list(self._listeners):
            listener(stamped)

    async def close(self) -> None:
        """Cancel in-flight reads; nothing is published after this."""
        if self._closed:
            return
        self._closed = True
        self._listeners.clear()

        tasks = [t for t in self._inflight.values() if not t.done()]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._inflight.clear()
        logger.info(f"Reader closed ({len(tasks)} reads abandoned)")
