"""
Polling scheduler.

Runs on the main event loop next to the Telegram dispatcher:

    advance()  → if due, try-lock the cache and enqueue PollCenter per
                 tracked center; returns the next deadline. Never blocks.
    timer      → sleeps until that deadline, then the loop calls advance()
                 again.

A busy cache is retried after LOCK_RETRY_INTERVAL instead of waited for, so
polling never stalls the loop and never slips by more than about a second.
"""

import asyncio
import logging
import time
from typing import Callable, Optional, Protocol

from nexus.app.errors import ChannelError, LockContention
from nexus.app.tracking import SubscriberCache
from .messages import PollCenter, Shutdown
from .work_queue import WorkQueue

logger = logging.getLogger(__name__)

POLL_INTERVAL = 15.0  # seconds between polls of every tracked center
LOCK_RETRY_INTERVAL = 1.0  # seconds before retrying a busy cache


class Timer(Protocol):
    async def wait_until(self, deadline: float) -> None: ...


class SleepTimer:
    """Wakes the scheduling loop at a monotonic deadline."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self.clock = clock

    async def wait_until(self, deadline: float) -> None:
        delay = max(0.0, deadline - self.clock())
        logger.debug(f"Sleeping for {delay:.1f} seconds")
        await asyncio.sleep(delay)


class Scheduler:

    def __init__(
        self,
        cache: SubscriberCache,
        queue: WorkQueue,
        *,
        interval: float = POLL_INTERVAL,
        retry_interval: float = LOCK_RETRY_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
        timer: Optional[Timer] = None,
    ):
        self.cache = cache
        self.queue = queue
        self.interval = interval
        self.retry_interval = retry_interval
        self.clock = clock
        self.timer = timer or SleepTimer(clock)
        self.next_due: Optional[float] = None

    def advance(self) -> float:
        """One scheduling step. Returns the next due time on the scheduler clock."""
        now = self.clock()
        if self.next_due is not None and now < self.next_due:
            return self.next_due

        logger.info("Starting work!")
        try:
            with self.cache.try_locked():
                centers = self.cache.get_reverse_index()
        except LockContention:
            logger.warning("Failed to acquire lock, trying again shortly")
            self.next_due = now + self.retry_interval
            return self.next_due

        logger.info(f"Centers to check {centers}")
        for center_id in centers:
            try:
                self.queue.put(PollCenter(center_id))
            except ChannelError as e:
                logger.warning(f"Failed to queue work message for center id {center_id}: {e}")

        self.next_due = now + self.interval
        return self.next_due

    async def run(self) -> None:
        """Advance, sleep until due, repeat. Sends Shutdown when cancelled."""
        logger.info("Scheduler started")
        try:
            while True:
                deadline = self.advance()
                await self.timer.wait_until(deadline)
        finally:
            self.close()

    def close(self) -> None:
        """Ask the worker to stop. Fire-and-forget."""
        logger.info("Stopping scheduler...")
        try:
            self.queue.put(Shutdown())
        except ChannelError:
            logger.warning("Failed to send stop command. Worker thread may not exit nicely.")
