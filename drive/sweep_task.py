"""Background task that purges expired staged chunks."""

import asyncio
from typing import Optional

from common.logging_config import get_logger
from drive.config import SWEEP_INTERVAL_SECONDS
from drive.services.upload_coordinator import UploadCoordinator

logger = get_logger(__name__)


class ExpiredUploadSweeper:
    """
    Background task that periodically runs the staging TTL sweep.
    """

    def __init__(self, coordinator: UploadCoordinator, interval_seconds: float = SWEEP_INTERVAL_SECONDS):
        """
        Initialize sweeper task.

        Args:
            coordinator: Upload coordinator whose staging area is swept
            interval_seconds: Time between sweeps (default 1 hour)
        """
        self.coordinator = coordinator
        self.interval_seconds = interval_seconds
        self.total_removed = 0
        self._running = False
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start the background sweep task."""
        if self._running:
            logger.warning("Sweep task already running")
            return

        self._running = True
        self._task = asyncio.create_task(self._run())
        logger.info(f"Started expired upload sweeper (interval: {self.interval_seconds}s)")

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

        logger.info("Stopped expired upload sweeper")

    async def wait(self) -> None:
        if self._task:
            await self._task

    async def _run(self) -> None:
        """Main loop for sweep task."""
        while self._running:
            try:
                await asyncio.sleep(self.interval_seconds)

                if not self._running:
                    break

                await self._sweep_cycle()

            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Error in sweep task: {e}", exc_info=True)

    async def _sweep_cycle(self) -> int:
        """Execute one sweep in a worker thread; sqlite and blob calls block."""
        removed = await asyncio.to_thread(self.coordinator.sweep_expired)
        self.total_removed += removed
        if removed:
            logger.info(f"Sweep cycle complete: {removed} expired staged chunks removed")
        else:
            logger.debug("Sweep cycle complete: nothing expired")
        return removed
