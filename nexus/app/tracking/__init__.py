# nexus/app/tracking/__init__.py
"""
Subscriber tracking.

Redis holds the source of truth; SubscriberCache mirrors it in memory and
exposes the center → subscribers reverse index used by the collector.
"""

from .models import Manifest, SubscriberRecord
from .store import MANIFEST_KEY, SubscriberStore
from .cache import SubscriberCache

__all__ = [
    "Manifest",
    "SubscriberRecord",
    "MANIFEST_KEY",
    "SubscriberStore",
    "SubscriberCache",
]
