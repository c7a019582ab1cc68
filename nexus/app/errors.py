"""Exception hierarchy for the slot watcher."""

from __future__ import annotations


class NexusError(Exception):
    """Base exception for all nexus errors."""


class TransportError(NexusError):
    """Network failure reaching the slots API, Redis or Telegram."""

    def __init__(self, message: str, *, endpoint: str = "") -> None:
        self.endpoint = endpoint
        super().__init__(message)


class DecodeError(NexusError):
    """Malformed response body or stored record."""


class LockContention(NexusError):
    """The subscriber cache lock is held elsewhere."""


class ChannelError(NexusError):
    """The work queue has been closed."""


class DomainError(NexusError):
    """User-facing failure; the message is shown to the user as is."""


class AlreadyTracking(DomainError):
    def __init__(self, message: str = "You are already tracking this center.") -> None:
        super().__init__(message)


class NotTracking(DomainError):
    def __init__(self, message: str = "You are not tracking this center!") -> None:
        super().__init__(message)


class CenterNotFound(DomainError):
    def __init__(self, message: str = "Could not find center") -> None:
        super().__init__(message)
