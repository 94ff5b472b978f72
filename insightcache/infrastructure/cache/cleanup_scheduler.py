"""Periodic background sweep of the cache.

Runs a sweep coroutine on a fixed interval until stopped. A failing sweep is
logged and the schedule carries on.
"""

import asyncio
import logging
from datetime import timedelta
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

DEFAULT_CLEANUP_INTERVAL = timedelta(hours=1)


class CleanupScheduler:
    """Cancellable periodic task driving the cache sweep."""

    def __init__(
        self,
        sweep: Callable[[], Awaitable[None]],
        interval: timedelta = DEFAULT_CLEANUP_INTERVAL,
    ):
        """Initializes the scheduler.

        Args:
            sweep: Coroutine function performing one sweep.
            interval: Delay between the end of one sweep and the start of the next.
        """
        if interval.total_seconds() <= 0:
            raise ValueError("Cleanup interval must be positive")
        self._sweep = sweep
        self.interval = interval
        self._stop_event: Optional[asyncio.Event] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Schedules the loop on the running event loop. Idempotent."""
        if self.running:
            return
        self._stop_event = asyncio.Event()
        self._task = asyncio.get_running_loop().create_task(self._run(self._stop_event))
        logger.info(f"Background cache cleanup started (every {self.interval.total_seconds():.0f}s)")

    async def stop(self) -> None:
        """Stops future sweeps and waits for the loop to exit."""
        task, stop_event = self._task, self._stop_event
        if task is None:
            return
        self._task = None
        self._stop_event = None
        if stop_event is not None:
            stop_event.set()
        if not task.done():
            await task
        logger.info("Background cache cleanup stopped.")

    async def _run(self, stop_event: asyncio.Event) -> None:
        seconds = self.interval.total_seconds()
        while not stop_event.is_set():
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=seconds)
                break  # Stop requested
            except asyncio.TimeoutError:
                pass
            try:
                await self._sweep()
            except Exception as e:
                # Never let a single bad sweep end the schedule
                logger.error(f"Background cache cleanup failed: {e}", exc_info=True)
