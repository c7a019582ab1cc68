"""
Slot collector.

Scheduler (main event loop) → WorkQueue → Worker (own thread and loop)
→ slots API → subscriber cache → Telegram.
"""

from .messages import NotifyCenter, PollCenter, Shutdown, Slot, WorkItem
from .work_queue import WorkQueue
from .window import EligibilityWindow
from .slot_source import SlotSource
from .notifier import TelegramNotifier
from .scheduler import Scheduler, SleepTimer
from .worker import Worker

__all__ = [
    "NotifyCenter",
    "PollCenter",
    "Shutdown",
    "Slot",
    "WorkItem",
    "WorkQueue",
    "EligibilityWindow",
    "SlotSource",
    "TelegramNotifier",
    "Scheduler",
    "SleepTimer",
    "Worker",
]
