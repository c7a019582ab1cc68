"""
Multi-producer / single-consumer FIFO between the event loop and the worker.

queue.Queue plus a closed flag, so a producer learns the consumer is gone
(ChannelError) instead of filling a queue nobody reads.
"""

import queue
import threading

from nexus.app.errors import ChannelError
from .messages import WorkItem


class WorkQueue:

    def __init__(self, maxsize: int = 0):
        self._queue: "queue.Queue[WorkItem]" = queue.Queue(maxsize=maxsize)
        self._closed = threading.Event()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def put(self, item: WorkItem) -> None:
        if self._closed.is_set():
            raise ChannelError(f"work queue closed, dropping {item!r}")
        self._queue.put(item)

    def get(self, timeout: float | None = None) -> WorkItem:
        """Block until an item is available. Raises queue.Empty on timeout."""
        return self._queue.get(timeout=timeout)

    def close(self) -> None:
        self._closed.set()

    def qsize(self) -> int:
        return self._queue.qsize()
