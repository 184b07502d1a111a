"""Optional periodic refresh of a set of queries."""

import asyncio
import logging
from time import monotonic
from typing import Callable, Iterable, Optional

from ..types import QueryKey
from .reader import RemoteStateReader

logger = logging.getLogger(__name__)


class QueryPoller:
    """
    Re-issues a set of queries at a fixed interval.

    Pull-based: each round triggers reader.refresh() for the keys the
    callback returns at that moment, then sleeps out the remainder of
    the interval. The reader itself never polls.
    """

    def __init__(
        self,
        reader: RemoteStateReader,
        keys: Callable[[], Iterable[QueryKey]],
        interval_seconds: float = 5.0,
    ):
        """
        Initialize the poller.

        Args:
            reader: Reader to refresh
            keys: Returns the keys to refresh this round
            interval_seconds: Seconds between rounds
        """
        self._reader = reader
        self._keys = keys
        self.interval_seconds = interval_seconds
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            logger.warning("QueryPoller already running")
            return
        self._task = asyncio.create_task(self.run(), name="query-poller")

    async def run(self) -> None:
        """Main polling loop."""
        logger.info(f"Query poller started every {self.interval_seconds}s")
        while not self._reader.closed:
            loop_start = monotonic()
            for key in list(self._keys()):
                self._reader.refresh(key)

            elapsed = monotonic() - loop_start
            await asyncio.sleep(max(0.0, self.interval_seconds - elapsed))
        logger.info("Query poller stopped")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        await asyncio.gather(self._task, return_exceptions=True)
        self._task = None
