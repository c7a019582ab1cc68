"""Date range a slot must fall in to be worth a notification."""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional


@dataclass(frozen=True)
class EligibilityWindow:
    """
    Inclusive on both ends. A missing bound is open.

    The window is configuration (WINDOW_START / WINDOW_END), not a
    rolling "next N days" policy.
    """
    start: Optional[date] = None
    end: Optional[date] = None

    def __post_init__(self):
        if self.start and self.end and self.start > self.end:
            raise ValueError(f"window start {self.start} is after end {self.end}")

    def contains(self, when: datetime) -> bool:
        day = when.date()
        if self.start is not None and day < self.start:
            return False
        if self.end is not None and day > self.end:
            return False
        return True
