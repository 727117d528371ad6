"""Background task that evicts abandoned transfers from the assembly cache."""

import asyncio
import inspect
from typing import Any, Callable, List, Optional

from common.constants import SWEEP_INTERVAL_SECONDS
from common.logging_config import get_logger
from receiver.assembly_cache import AssemblyCache

logger = get_logger(__name__)


class EvictionSweeper:
    """
    Background task that periodically removes expired assembly entries.
    """

    def __init__(
        self,
        cache: AssemblyCache,
        interval_seconds: float = SWEEP_INTERVAL_SECONDS,
        on_evicted: Optional[Callable[[List[str]], Any]] = None,
    ):
        """
        Initialize sweeper task.

        Args:
            cache: Cache to sweep
            interval_seconds: Time between sweeps (default 60 seconds)
            on_evicted: Optional callback receiving the keys evicted by a sweep
        """
        self.cache = cache
        self.interval_seconds = interval_seconds
        self.on_evicted = on_evicted
        self._running = False
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start the background sweep task."""
        if self._running:
            logger.warning("Eviction sweeper already running")
            return

        self._running = True
        self._task = asyncio.create_task(self._run())
        logger.info(f"Started eviction sweeper (interval: {self.interval_seconds}s)")

    async def stop(self) -> None:
        """Stop the background sweep task."""
        if not self._running:
            return

        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        logger.info("Stopped eviction sweeper")

    async def _run(self) -> None:
        """Main loop for the sweep task."""
        while self._running:
            try:
                await asyncio.sleep(self.interval_seconds)

                if not self._running:
                    break

                await self.sweep_once()

            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Error in eviction sweep: {e}", exc_info=True)

    async def sweep_once(self) -> List[str]:
        """
        Execute one sweep.

        Returns:
            Keys evicted in this sweep
        """
        evicted = self.cache.evict_expired()

        if not evicted:
            logger.debug("No stale transfers to evict")
            return evicted

        logger.info(f"Sweep evicted {len(evicted)} stale transfer(s): {', '.join(evicted)}")

        if self.on_evicted is not None:
            result = self.on_evicted(evicted)
            if inspect.isawaitable(result):
                await result

        return evicted
