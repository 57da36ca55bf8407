"""Periodic refresh of the emote cache."""

import asyncio
import logging
import time
from typing import Protocol

from .cache import CacheStore
from .models import Snapshot
from .settings import DEFAULT_REFRESH_INTERVAL

logger = logging.getLogger(__name__)


class SnapshotBuilder(Protocol):
    async def build_snapshot(self) -> Snapshot: ...

    async def close(self) -> None: ...


class RefreshScheduler:
    """
    Rebuilds the snapshot immediately on start and then on a fixed interval.

    At most one cycle runs at a time: a trigger that arrives while a cycle
    is in flight is skipped, not queued.
    """

    def __init__(
        self,
        aggregator: SnapshotBuilder,
        cache: CacheStore,
        interval: float = DEFAULT_REFRESH_INTERVAL,
    ) -> None:
        self.aggregator = aggregator
        self.cache = cache
        self.interval = interval
        self._cycle_lock = asyncio.Lock()
        self._running = False
        self._refresh_task: asyncio.Task | None = None
        self._cycle_tasks: set[asyncio.Task] = set()
        self.cycles_completed = 0
        self.last_cycle_duration: float | None = None

    @property
    def cycle_in_progress(self) -> bool:
        return self._cycle_lock.locked()

    async def run_cycle(self) -> bool:
        """Build and publish one snapshot.

        Returns False if skipped because another cycle is in flight.
        """
        if self._cycle_lock.locked():
            logger.debug("Refresh cycle already in progress, skipping trigger")
            return False

        async with self._cycle_lock:
            logger.info("Fetching all emotes...")
            started = time.monotonic()
            try:
                snapshot = await self.aggregator.build_snapshot()
            except Exception as e:
                logger.exception(f"Refresh cycle failed, keeping previous snapshot: {e}")
                return True
            finally:
                self.last_cycle_duration = time.monotonic() - started

            self.cache.publish(snapshot)
            self.cycles_completed += 1
            logger.info(
                f"Loaded {snapshot.emote_count} unique emotes "
                f"in {self.last_cycle_duration:.1f}s"
            )
            return True

    async def start(self) -> None:
        """Start the refresh loop."""
        if self._running:
            return

        self._running = True
        self._refresh_task = asyncio.create_task(self._refresh_loop())

    async def stop(self) -> None:
        """Stop the refresh loop and close upstream sessions."""
        self._running = False

        if self._refresh_task:
            self._refresh_task.cancel()
            try:
                await self._refresh_task
            except asyncio.CancelledError:
                pass
            self._refresh_task = None

        for task in list(self._cycle_tasks):
            task.cancel()
        await asyncio.gather(*self._cycle_tasks, return_exceptions=True)

        await self.aggregator.close()

    async def _refresh_loop(self) -> None:
        """Run a cycle now, then once per interval."""
        while self._running:
            # Detached so a slow cycle never delays the next tick
            task = asyncio.create_task(self.run_cycle())
            self._cycle_tasks.add(task)
            task.add_done_callback(self._cycle_tasks.discard)
            await asyncio.sleep(self.interval)
