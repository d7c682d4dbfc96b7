"""
Background queue runner.

Periodically checks the activity queue and drains it when due.
"""

import asyncio
import logging
from typing import Optional

from automator.config import Settings, settings
from .queue import ActivityQueue

logger = logging.getLogger(__name__)


class QueueRunner:
    """
    Background task polling the activity queue.

    The first iteration drains unconditionally, so activities left in
    the database by a previous process are picked up even though the
    in-memory watermark was lost.

    Usage:
        runner = QueueRunner(queue)
        await runner.start()
        # ... later ...
        await runner.stop()
    """

    def __init__(self, queue: ActivityQueue, config: Settings = settings):
        self.queue = queue
        self.config = config
        self._running = False
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._running

    async def start(self):
        """Start background polling loop."""
        if self._running:
            return

        self._running = True
        self._task = asyncio.create_task(self._run_loop())
        logger.info("Queue runner started")

    async def stop(self):
        """Stop background polling loop."""
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("Queue runner stopped")

    async def _run_loop(self):
        """Main polling loop."""
        first = True
        while self._running:
            try:
                if first:
                    await self.queue.drain()
                else:
                    await self.queue.check_queued()
            except Exception as e:
                logger.error(f"Queue runner error: {e}")
            first = False

            await asyncio.sleep(self.config.queue_poll_interval)
