# core/scheduler.py

"""
Fixed-interval scan trigger, independent of file system activity
"""
import asyncio
import logging
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


class ScheduledTrigger:
    """
    Runs the scan action every interval_minutes for the life of the process.
    """

    def __init__(self, action: Callable[[], Any], interval_minutes: int = 30):
        self.action = action
        self.interval_minutes = interval_minutes
        self.runs = 0
        self._running = False
        self._task: Optional[asyncio.Task] = None

    @property
    def interval_seconds(self) -> float:
        return self.interval_minutes * 60

    def start(self) -> asyncio.Task:
        """Schedule the trigger loop on the running event loop"""
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run(), name="scheduled-scan")
        return self._task

    async def run(self):
        if self._running:
            logger.warning("[SCHEDULE] Already running")
            return

        logger.debug(f"[SCHEDULE] Scanning every {self.interval_minutes} minutes")
        self._running = True

        try:
            while self._running:
                await asyncio.sleep(self.interval_seconds)
                await self.fire()
        except asyncio.CancelledError:
            logger.debug("[SCHEDULE] Cancelled")
        finally:
            self._running = False

    async def fire(self):
        """Run the action once in a worker thread"""
        logger.info("Running scheduled scan")
        self.runs += 1
        try:
            await asyncio.to_thread(self.action)
        except Exception as e:
            logger.error(f"[SCHEDULE] Scheduled scan failed: {e}")

    async def stop(self):
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
