# vibecheck/services/retention.py
from sqlalchemy.exc import SQLAlchemyError
from typing import Optional
import asyncio
import logging
import time

logger = logging.getLogger(__name__)

class RetentionSweeper:
    """
    Purges sessions older than the TTL.

    Runs once at startup and then on a fixed interval. A failed pass is
    logged and the next interval simply tries again.
    """

    def __init__(self, store, ttl_seconds: int = 24 * 60 * 60, interval_seconds: int = 60 * 60):
        self.store = store
        self.ttl_seconds = ttl_seconds
        self.interval_seconds = interval_seconds
        self._task: Optional[asyncio.Task] = None

    def sweep(self, now: Optional[float] = None) -> int:
        """Delete expired sessions; returns how many were removed"""
        now = time.time() if now is None else now
        cutoff = int(now) - self.ttl_seconds
        try:
            deleted = self.store.purge_older_than(cutoff)
        except SQLAlchemyError as e:
            logger.error(f"Session cleanup failed: {e}")
            return 0

        if deleted > 0:
            logger.info(f"Cleaned up {deleted} old sessions")
        return deleted

    async def _run(self):
        while True:
            await asyncio.sleep(self.interval_seconds)
            self.sweep()

    def start(self):
        """Sweep now and schedule the periodic sweep on the running loop"""
        self.sweep()
        if self._task is None or self._task.done():
            self._task = asyncio.get_running_loop().create_task(self._run())

    async def stop(self):
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
