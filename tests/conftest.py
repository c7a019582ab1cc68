from __future__ import annotations

from datetime import date
from pathlib import Path

import pytest
from redis import RedisError

from nexus.app.centers import Center, CenterRegistry
from nexus.app.collector import EligibilityWindow, Slot, WorkQueue, Worker
from nexus.app.errors import TransportError
from nexus.app.i18n.loader import load_messages
from nexus.app.tracking import SubscriberCache, SubscriberStore

APP_DIR = Path(__file__).resolve().parents[1] / "nexus" / "app"

SCHEDULE_URL = "https://example.test/schedule?service=nh"


class FakeRedis:
    """The GET/SET subset SubscriberStore uses."""

    def __init__(self) -> None:
        self.data: dict[str, str] = {}
        self.fail = False
        self.failing_keys: set[str] = set()

    def get(self, key: str) -> str | None:
        if self.fail or key in self.failing_keys:
            raise RedisError("connection refused")
        return self.data.get(key)

    def set(self, key: str, value: str) -> bool:
        if self.fail:
            raise RedisError("connection refused")
        self.data[key] = value
        return True


class FakeSlotSource:
    def __init__(self) -> None:
        self.slots: dict[int, list[Slot]] = {}
        self.error: Exception | None = None
        self.calls: list[int] = []

    async def get_slots(self, center_id: int) -> list[Slot]:
        self.calls.append(center_id)
        if self.error is not None:
            raise self.error
        return self.slots.get(center_id, [])


class FakeNotifier:
    def __init__(self) -> None:
        self.sent: list[tuple[int, str]] = []
        self.fail_for: set[int] = set()
        self.closed = False

    async def send(self, chat_id: int, text: str) -> None:
        if chat_id in self.fail_for:
            raise TransportError(f"Failed to send bot message to chat={chat_id}", endpoint="telegram")
        self.sent.append((chat_id, text))

    async def close(self) -> None:
        self.closed = True


@pytest.fixture(autouse=True, scope="session")
def _messages() -> None:
    load_messages(APP_DIR / "i18n" / "messages.txt")


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def store(fake_redis: FakeRedis) -> SubscriberStore:
    return SubscriberStore(fake_redis)  # type: ignore[arg-type]


@pytest.fixture
def cache(store: SubscriberStore) -> SubscriberCache:
    return SubscriberCache(store)


@pytest.fixture
def centers() -> CenterRegistry:
    return CenterRegistry(
        [
            Center(id=7, short_name="sfo", full_name="San Francisco EC", address="SFO Intl Terminal"),
            Center(id=9, short_name="jfk", full_name="JFK Terminal 4 (Global Entry)", address="Jamaica, NY"),
        ]
    )


@pytest.fixture
def queue() -> WorkQueue:
    return WorkQueue()


@pytest.fixture
def slot_source() -> FakeSlotSource:
    return FakeSlotSource()


@pytest.fixture
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture
def window() -> EligibilityWindow:
    return EligibilityWindow(date(2023, 1, 1), date(2023, 2, 1))


@pytest.fixture
def worker(queue, cache, centers, slot_source, notifier, window) -> Worker:
    return Worker(
        queue=queue,
        cache=cache,
        centers=centers,
        slot_source=slot_source,
        notifier=notifier,
        window=window,
        schedule_url=SCHEDULE_URL,
    )


@pytest.fixture
def drain():
    def _drain(queue: WorkQueue) -> list:
        items = []
        while queue.qsize():
            items.append(queue.get(timeout=0))
        return items

    return _drain
