# nexus/app/tracking/cache.py
"""
In-memory mirror of subscriber records and the manifest.

Every read or mutation that needs current state resyncs from Redis first
(read-through, last-write-wins). One re-entrant lock guards the cache:

- locked()      blocking wait. Worker thread and command handlers
                (the latter via asyncio.to_thread, never on the event loop).
- try_locked()  non-blocking. Scheduler only; raises LockContention at once.

Public operations take the lock themselves. get_reverse_index() does not:
the caller must already hold it.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Iterator, Optional

from nexus.app.errors import AlreadyTracking, DecodeError, LockContention, NotTracking, TransportError
from .models import Manifest, SubscriberRecord
from .store import SubscriberStore

logger = logging.getLogger(__name__)


class SubscriberCache:

    def __init__(self, store: SubscriberStore, strict_manifest: bool = False):
        self.store = store
        self.strict_manifest = strict_manifest
        self.records: dict[int, SubscriberRecord] = {}
        self.manifest = Manifest()
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Locking
    # ------------------------------------------------------------------

    @contextmanager
    def locked(self) -> Iterator["SubscriberCache"]:
        """Wait for the lock. Never call this on the event loop thread."""
        with self._lock:
            yield self

    @contextmanager
    def try_locked(self) -> Iterator["SubscriberCache"]:
        """Take the lock only if it is free right now."""
        if not self._lock.acquire(blocking=False):
            raise LockContention("subscriber cache is busy")
        try:
            yield self
        finally:
            self._lock.release()

    # ------------------------------------------------------------------
    # Sync
    # ------------------------------------------------------------------

    def warm_up(self) -> None:
        """Load the manifest and every listed record."""
        with self.locked():
            self._sync_manifest()
            for subscriber_id in list(self.manifest.users):
                if self._sync_record(subscriber_id) is None:
                    logger.warning(
                        f"Attempted to populate user data but could not get user data for {subscriber_id}"
                    )
        logger.info(f"Cache warmed up: {len(self.records)} subscribers")

    def _sync_manifest(self) -> None:
        logger.info("Syncing all users...")
        try:
            manifest = self.store.load_manifest()
        except (TransportError, DecodeError) as e:
            logger.warning(f"Could not load all users list: {e}")
            return

        if manifest is None:
            logger.warning("Could not get all users!")
            return
        self.manifest = manifest

    def _sync_record(self, subscriber_id: int) -> Optional[SubscriberRecord]:
        try:
            record = self.store.load_record(subscriber_id)
        except (TransportError, DecodeError) as e:
            logger.warning(f"Could not load user data for {subscriber_id}: {e}")
            return None

        if record is None:
            logger.warning(f"No stored user data for {subscriber_id}")
            return None

        self.records[subscriber_id] = record
        return record

    def resync(self, subscriber_id: int) -> Optional[SubscriberRecord]:
        """
        Reload the manifest and one subscriber's record from Redis.

        Failures keep the previous in-memory state. Returns the record
        freshly read from Redis, or None if none could be read.
        """
        logger.info(f"Getting data for user id {subscriber_id}")
        with self.locked():
            self._sync_manifest()
            return self._sync_record(subscriber_id)

    def ensure_in_manifest(self, subscriber_id: int) -> None:
        """
        Make sure Redis' manifest lists subscriber_id.

        An absent manifest is recreated with just this id. So is an
        unparsable one, unless strict_manifest is set, in which case
        DecodeError is raised and Redis is left untouched.
        """
        logger.info(f"Ensuring {subscriber_id} is in all users list")
        with self.locked():
            try:
                manifest = self.store.load_manifest()
            except DecodeError:
                if self.strict_manifest:
                    raise
                logger.warning("Failed to parse all users")
                manifest = None

            if manifest is not None:
                if subscriber_id not in manifest.users:
                    manifest.users.append(subscriber_id)
                    self.store.save_manifest(manifest)
                self.manifest = manifest
                return

            logger.warning("Failed to get all users, defaulting to new list. Hopefully this is expected")
            manifest = Manifest(users=[subscriber_id])
            self.store.save_manifest(manifest)
            self.manifest = manifest

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def track_center(self, chat_id: int, subscriber_id: int, center_id: int) -> SubscriberRecord:
        """
        Subscribe subscriber_id to center_id.

        Raises:
            AlreadyTracking: center already in the subscription list.
            DecodeError: manifest unparsable and strict_manifest is set.
            TransportError: Redis read or write failed.

        Nothing is written unless the manifest lists the subscriber.
        """
        with self.locked():
            self.resync(subscriber_id)

            current = self.records.get(subscriber_id)
            if current is None:
                record = SubscriberRecord(subscriptions=[center_id], chat_id=chat_id)
            elif center_id in current.subscriptions:
                raise AlreadyTracking()
            else:
                record = current.model_copy(
                    update={"subscriptions": [*current.subscriptions, center_id]}
                )

            # Manifest first: a record outside the manifest is never polled
            self.ensure_in_manifest(subscriber_id)
            self.store.save_record(subscriber_id, record)
            self.records[subscriber_id] = record
            return record

    def untrack_center(self, subscriber_id: int, center_id: int) -> SubscriberRecord:
        """
        Unsubscribe subscriber_id from center_id.

        Raises:
            NotTracking: no record, or center not in it.
            TransportError: Redis write failed.
        """
        with self.locked():
            self.resync(subscriber_id)

            current = self.records.get(subscriber_id)
            if current is None:
                raise NotTracking("You are not tracking any centers!")
            if center_id not in current.subscriptions:
                raise NotTracking()

            record = current.model_copy(
                update={"subscriptions": [c for c in current.subscriptions if c != center_id]}
            )
            self.store.save_record(subscriber_id, record)
            self.records[subscriber_id] = record
            return record

    def get_subscriber_data(self, subscriber_id: int) -> Optional[SubscriberRecord]:
        with self.locked():
            self.resync(subscriber_id)
            return self.records.get(subscriber_id)

    def get_reverse_index(self) -> dict[int, list[int]]:
        """center id → subscriber ids, in manifest order. Caller holds the lock."""
        result: dict[int, list[int]] = {}
        for subscriber_id in self.manifest.users:
            record = self.records.get(subscriber_id)
            if record is None:
                continue
            for center_id in record.subscriptions:
                result.setdefault(center_id, []).append(subscriber_id)
        return result
