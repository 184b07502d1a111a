"""
Session clock.

A ticking wall-clock timestamp, refreshed on a fixed period while the
session is active. Ticks are fire-and-forget: nothing awaits them.
"""

import asyncio
import logging
from typing import Callable, Optional

from .types import now_s

logger = logging.getLogger(__name__)

TickListener = Callable[[int], None]


class Clock:
    """
    Process-wide ticking timestamp.

    Only the clock's own task writes the timestamp. Listeners get the new
    value after every tick. stop() cancels the timer so nothing leaks past
    the end of the session.
    """

    def __init__(
        self,
        interval_seconds: float = 1.0,
        time_fn: Callable[[], int] = now_s,
    ):
        """
        Initialize the clock.

        Args:
            interval_seconds: Tick period
            time_fn: Source of the current unix time in seconds
        """
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self._interval = interval_seconds
        self._time_fn = time_fn
        self._now = time_fn()
        self._listeners: list[TickListener] = []
        self._task: Optional[asyncio.Task] = None
        self._ticks = 0

    @property
    def now(self) -> int:
        """Timestamp as of the last tick."""
        return self._now

    @property
    def ticks(self) -> int:
        return self._ticks

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def subscribe(self, listener: TickListener) -> None:
        self._listeners.append(listener)

    def start(self) -> None:
        """Start ticking on the running event loop."""
        if self.running:
            logger.warning("Clock already running")
            return
        self._now = self._time_fn()
        self._task = asyncio.create_task(self._run(), name="clock")
        logger.info(f"Clock started ({self._interval}s period)")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            self._tick()

    def _tick(self) -> None:
        self._now = self._time_fn()
        self._ticks += 1
        for listener in list(self._listeners):
            try:
                listener(self._now)
            except Exception as e:
                logger.error(f"Clock listener error: {e}", exc_info=True)

    async def stop(self) -> None:
        """Cancel the timer and drop listeners."""
        task, self._task = self._task, None
        self._listeners.clear()
        if task is None:
            return
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        logger.info("Clock stopped")
