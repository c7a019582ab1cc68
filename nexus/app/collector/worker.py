"""
Collector worker.

Runs on a dedicated thread with its own asyncio loop, so slot queries and
Telegram sends never delay the scheduler on the main loop.

Strictly sequential: one work item is fully handled (including awaited I/O)
before the next one is taken. No retries; a dropped poll is simply redone
on the next scheduler tick.
"""

import asyncio
import logging
import threading
from typing import Protocol

from nexus.app.centers import Center, CenterRegistry
from nexus.app.errors import ChannelError, DecodeError, TransportError
from nexus.app.tracking import SubscriberCache
from .formatters import format_slot_available
from .messages import NotifyCenter, PollCenter, Shutdown, Slot, WorkItem
from .window import EligibilityWindow
from .work_queue import WorkQueue

logger = logging.getLogger(__name__)


class SlotSourceProtocol(Protocol):
    async def get_slots(self, center_id: int) -> list[Slot]: ...


class NotifierProtocol(Protocol):
    async def send(self, chat_id: int, text: str) -> None: ...

    async def close(self) -> None: ...


class Worker:

    def __init__(
        self,
        queue: WorkQueue,
        cache: SubscriberCache,
        centers: CenterRegistry,
        slot_source: SlotSourceProtocol,
        notifier: NotifierProtocol,
        window: EligibilityWindow,
        schedule_url: str,
    ):
        self.queue = queue
        self.cache = cache
        self.centers = centers
        self.slot_source = slot_source
        self.notifier = notifier
        self.window = window
        self.schedule_url = schedule_url
        self._thread: threading.Thread | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> threading.Thread:
        """Spawn the worker thread. Daemon: process exit does not wait for it."""
        self._thread = threading.Thread(
            target=self._thread_main,
            name="collector-worker",
            daemon=True,
        )
        self._thread.start()
        return self._thread

    def _thread_main(self) -> None:
        asyncio.run(self.run())

    async def run(self) -> None:
        """Consume the queue until Shutdown."""
        logger.info("Async Worker Thread Started")

        try:
            while True:
                # Wait in a thread so the loop keeps servicing the notifier session
                item = await asyncio.to_thread(self.queue.get)
                logger.info(f"Message {item!r} Received")

                if isinstance(item, Shutdown):
                    logger.info("Worker received shutdown, exiting")
                    return

                try:
                    await self.handle(item)
                except Exception:
                    logger.exception(f"Worker failed to handle {item!r}")
        finally:
            self.queue.close()
            await self.notifier.close()

    async def handle(self, item: WorkItem) -> None:
        if isinstance(item, PollCenter):
            await self._poll_center(item.center_id)
        elif isinstance(item, NotifyCenter):
            await self._notify_center(item.center_id, list(item.slots))
        else:
            logger.warning(f"Unexpected work item: {item!r}")

    # ------------------------------------------------------------------
    # PollCenter
    # ------------------------------------------------------------------

    async def _poll_center(self, center_id: int) -> None:
        try:
            slots = await self.slot_source.get_slots(center_id)
        except (TransportError, DecodeError) as e:
            logger.warning(str(e))
            return

        if not slots:
            logger.info(f"No slots available for {center_id}")
            return

        try:
            self.queue.put(NotifyCenter(center_id, tuple(slots)))
        except ChannelError as e:
            logger.warning(f"Failed to send channel message {e}")

    # ------------------------------------------------------------------
    # NotifyCenter
    # ------------------------------------------------------------------

    async def _notify_center(self, center_id: int, slots: list[Slot]) -> None:
        if not slots:
            logger.warning("Empty slot was messaged!")
            return

        center = self.centers.get(center_id)
        if center is None:
            logger.warning(f"Center {center_id} is not configured, dropping {len(slots)} slots")
            return

        # Blocking wait is fine here, this is the worker thread
        with self.cache.locked():
            deliveries = self._collect_deliveries(center, slots)

        for chat_id, text in deliveries:
            try:
                await self.notifier.send(chat_id, text)
            except TransportError as e:
                logger.warning(str(e))

    def _collect_deliveries(self, center: Center, slots: list[Slot]) -> list[tuple[int, str]]:
        """(chat_id, text) for every subscriber and every in-window slot. Caller holds the lock."""
        subscribers = self.cache.get_reverse_index().get(center.id)
        if not subscribers:
            logger.info(f"Center {center.id} has no subscribers")
            return []

        deliveries: list[tuple[int, str]] = []
        for subscriber_id in subscribers:
            record = self.cache.get_subscriber_data(subscriber_id)
            if record is None:
                continue

            for slot in slots:
                try:
                    starts_at = slot.starts_at()
                except ValueError:
                    logger.warning(f"Unparsable slot timestamp {slot.start_timestamp!r} at {center.id}")
                    continue

                if not self.window.contains(starts_at):
                    continue

                deliveries.append(
                    (record.chat_id, format_slot_available(center, starts_at, self.schedule_url))
                )

        return deliveries
