# nexus/app/tracking/store.py
"""
Redis storage for subscriber records.

Key format:
    {subscriber_id}  → JSON SubscriberRecord
    all_users        → JSON Manifest

Plain GET/SET, no transactions: writers race with last-write-wins.
"""

import logging

from pydantic import ValidationError
from redis import Redis, RedisError

from nexus.app.errors import DecodeError, TransportError
from .models import Manifest, SubscriberRecord

logger = logging.getLogger(__name__)

MANIFEST_KEY = "all_users"


class SubscriberStore:
    """Thin wrapper around a sync Redis client."""

    def __init__(self, redis: Redis):
        self.redis = redis

    @staticmethod
    def _key(subscriber_id: int) -> str:
        return str(subscriber_id)

    def _get(self, key: str) -> str | None:
        try:
            raw = self.redis.get(key)
        except RedisError as e:
            raise TransportError(f"GET {key} failed: {e}", endpoint="redis") from e
        if isinstance(raw, bytes):
            raw = raw.decode()
        return raw

    def _set(self, key: str, value: str) -> None:
        try:
            self.redis.set(key, value)
        except RedisError as e:
            raise TransportError(f"SET {key} failed: {e}", endpoint="redis") from e

    # ── Subscriber records ───────────────────────────────────────────────

    def load_record(self, subscriber_id: int) -> SubscriberRecord | None:
        """
        Read one subscriber record.

        Returns:
            The record, or None if the key does not exist.

        Raises:
            TransportError: Redis unreachable.
            DecodeError: stored value is not a valid record.
        """
        raw = self._get(self._key(subscriber_id))
        if raw is None:
            return None
        try:
            return SubscriberRecord.model_validate_json(raw)
        except ValidationError as e:
            raise DecodeError(f"Invalid record for {subscriber_id}: {e}") from e

    def save_record(self, subscriber_id: int, record: SubscriberRecord) -> None:
        self._set(self._key(subscriber_id), record.model_dump_json())

    # ── Manifest ─────────────────────────────────────────────────────────

    def load_manifest(self) -> Manifest | None:
        raw = self._get(MANIFEST_KEY)
        if raw is None:
            return None
        try:
            return Manifest.model_validate_json(raw)
        except ValidationError as e:
            raise DecodeError(f"Invalid manifest: {e}") from e

    def save_manifest(self, manifest: Manifest) -> None:
        self._set(MANIFEST_KEY, manifest.model_dump_json())
