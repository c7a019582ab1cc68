from __future__ import annotations

import json

import pytest

from nexus.app.errors import AlreadyTracking, DecodeError, NotTracking, TransportError
from nexus.app.tracking import MANIFEST_KEY, Manifest, SubscriberCache, SubscriberRecord


def test_track_center_builds_reverse_index(cache: SubscriberCache) -> None:
    cache.track_center(555, 42, 7)

    with cache.locked():
        assert cache.get_reverse_index() == {7: [42]}


def test_reverse_index_lists_subscriber_under_each_tracked_center_only(cache: SubscriberCache) -> None:
    cache.track_center(555, 42, 7)
    cache.track_center(555, 42, 9)
    cache.track_center(600, 43, 9)

    with cache.locked():
        index = cache.get_reverse_index()

    assert index == {7: [42], 9: [42, 43]}


def test_track_same_center_twice_is_rejected_and_list_unchanged(cache: SubscriberCache, fake_redis) -> None:
    cache.track_center(555, 42, 7)

    with pytest.raises(AlreadyTracking):
        cache.track_center(555, 42, 7)

    assert cache.get_subscriber_data(42).subscriptions == [7]
    assert json.loads(fake_redis.data["42"])["subscriptions"] == [7]


def test_untrack_then_track_restores_single_subscription(cache: SubscriberCache) -> None:
    cache.track_center(555, 42, 7)
    cache.untrack_center(42, 7)
    assert cache.get_subscriber_data(42).subscriptions == []

    cache.track_center(555, 42, 7)
    assert cache.get_subscriber_data(42).subscriptions == [7]


def test_untrack_center_never_tracked_leaves_record_unchanged(cache: SubscriberCache) -> None:
    cache.track_center(555, 42, 7)

    with pytest.raises(NotTracking, match="not tracking this center"):
        cache.untrack_center(42, 9)

    record = cache.get_subscriber_data(42)
    assert record == SubscriberRecord(subscriptions=[7], chat_id=555)


def test_untrack_without_any_record(cache: SubscriberCache) -> None:
    with pytest.raises(NotTracking, match="any centers"):
        cache.untrack_center(42, 7)


def test_unsubscribed_record_stays_in_manifest(cache: SubscriberCache) -> None:
    cache.track_center(555, 42, 7)
    cache.untrack_center(42, 7)

    assert cache.manifest.users == [42]
    with cache.locked():
        assert cache.get_reverse_index() == {}


def test_record_round_trip_through_store(cache: SubscriberCache, store) -> None:
    record = SubscriberRecord(subscriptions=[9, 7, 12], chat_id=-100123)
    store.save_record(42, record)

    assert cache.get_subscriber_data(42) == record
    assert cache.records[42].subscriptions == [9, 7, 12]


def test_resync_picks_up_writes_from_another_process(cache: SubscriberCache, store) -> None:
    cache.track_center(555, 42, 7)

    # Another instance wrote directly to Redis
    store.save_record(42, SubscriberRecord(subscriptions=[7, 9], chat_id=555))
    store.save_manifest(Manifest(users=[42, 43]))
    store.save_record(43, SubscriberRecord(subscriptions=[9], chat_id=600))

    assert cache.get_subscriber_data(42).subscriptions == [7, 9]
    assert cache.manifest.users == [42, 43]


def test_record_missing_from_manifest_is_not_indexed(cache: SubscriberCache, store) -> None:
    store.save_record(42, SubscriberRecord(subscriptions=[7], chat_id=555))

    assert cache.get_subscriber_data(42) is not None
    with cache.locked():
        assert cache.get_reverse_index() == {}


def test_resync_keeps_previous_state_on_corrupt_data(cache: SubscriberCache, fake_redis) -> None:
    cache.track_center(555, 42, 7)
    fake_redis.data["42"] = "subscriptions = [7]"
    fake_redis.data[MANIFEST_KEY] = "not json"

    assert cache.resync(42) is None
    assert cache.records[42].subscriptions == [7]
    assert cache.manifest.users == [42]


def test_resync_keeps_previous_state_when_redis_is_down(cache: SubscriberCache, fake_redis) -> None:
    cache.track_center(555, 42, 7)
    fake_redis.fail = True

    assert cache.get_subscriber_data(42).subscriptions == [7]


def test_track_reports_transport_error_on_write_failure(cache: SubscriberCache, fake_redis) -> None:
    fake_redis.fail = True

    with pytest.raises(TransportError):
        cache.track_center(555, 42, 7)


def test_ensure_in_manifest_appends_to_existing(cache: SubscriberCache, store) -> None:
    store.save_manifest(Manifest(users=[1, 2]))

    cache.ensure_in_manifest(3)
    cache.ensure_in_manifest(2)

    assert store.load_manifest().users == [1, 2, 3]
    assert cache.manifest.users == [1, 2, 3]


def test_ensure_in_manifest_creates_absent_manifest(cache: SubscriberCache, store) -> None:
    cache.ensure_in_manifest(42)

    assert store.load_manifest().users == [42]


def test_ensure_in_manifest_recreates_corrupt_manifest(cache: SubscriberCache, store, fake_redis) -> None:
    fake_redis.data[MANIFEST_KEY] = "{broken"

    cache.ensure_in_manifest(42)

    assert store.load_manifest().users == [42]


def test_strict_manifest_refuses_to_overwrite_corrupt_manifest(store, fake_redis) -> None:
    cache = SubscriberCache(store, strict_manifest=True)
    fake_redis.data[MANIFEST_KEY] = "{broken"

    with pytest.raises(DecodeError):
        cache.ensure_in_manifest(42)

    assert fake_redis.data[MANIFEST_KEY] == "{broken"


def test_track_with_corrupt_manifest_in_strict_mode_writes_nothing(store, fake_redis) -> None:
    cache = SubscriberCache(store, strict_manifest=True)
    fake_redis.data[MANIFEST_KEY] = "{broken"

    with pytest.raises(DecodeError):
        cache.track_center(555, 42, 7)

    assert "42" not in fake_redis.data
    assert 42 not in cache.records

    # Once the manifest is repaired the same request goes through
    store.save_manifest(Manifest(users=[1]))
    cache.track_center(555, 42, 7)

    assert store.load_manifest().users == [1, 42]
    with cache.locked():
        assert cache.get_reverse_index() == {7: [42]}


def test_track_with_unreachable_manifest_writes_nothing(cache: SubscriberCache, fake_redis) -> None:
    fake_redis.failing_keys.add(MANIFEST_KEY)

    with pytest.raises(TransportError):
        cache.track_center(555, 42, 7)

    assert "42" not in fake_redis.data
    assert 42 not in cache.records


def test_warm_up_loads_every_listed_subscriber(cache: SubscriberCache, store) -> None:
    store.save_manifest(Manifest(users=[42, 43, 44]))
    store.save_record(42, SubscriberRecord(subscriptions=[7], chat_id=555))
    store.save_record(43, SubscriberRecord(subscriptions=[7, 9], chat_id=600))

    cache.warm_up()

    with cache.locked():
        assert cache.get_reverse_index() == {7: [42, 43], 9: [43]}
    assert 44 not in cache.records


def test_duplicate_subscriptions_are_rejected_on_decode(store, fake_redis) -> None:
    fake_redis.data["42"] = json.dumps({"subscriptions": [7, 7], "chat_id": 555})

    with pytest.raises(DecodeError):
        store.load_record(42)
