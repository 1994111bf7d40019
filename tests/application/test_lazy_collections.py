import threading
import time

import pytest

from iMedia.application.services.collections import (
    AlbumCollection,
    AssetCollection,
    CollectionState,
    FetchedAsset,
    LazyCollection,
)
from iMedia.application.services.resolver import TypedResultResolver
from iMedia.domain.models.core import AlbumHandle, AlbumType, MediaType
from iMedia.domain.models.filters import ByIdentifier
from iMedia.domain.models.kinds import MediaKind
from iMedia.domain.models.sort import AssetSortKey, Sort
from iMedia.errors import InvalidArgumentError
from iMedia.events import CollectionEvaluatedEvent, EventBus


def test_concurrent_first_access_evaluates_once():
    calls = []

    def loader():
        calls.append(1)
        time.sleep(0.05)
        return [1, 2, 3]

    collection = LazyCollection(loader)
    seen = []
    start = threading.Barrier(8)

    def reader():
        start.wait()
        seen.append(collection.items)

    threads = [threading.Thread(target=reader) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(calls) == 1
    assert all(items is seen[0] for items in seen)
    assert seen[0] == (1, 2, 3)
    assert collection.state is CollectionState.EVALUATED


def test_failed_evaluation_can_be_retried():
    attempts = []

    def loader():
        attempts.append(1)
        if len(attempts) == 1:
            raise RuntimeError("store offline")
        return ["ok"]

    collection = LazyCollection(loader)
    with pytest.raises(RuntimeError):
        collection.items
    assert collection.state is CollectionState.UNEVALUATED

    assert list(collection) == ["ok"]
    assert len(attempts) == 2


def test_sequence_protocol():
    collection = LazyCollection(lambda: "abc")
    assert len(collection) == 3
    assert collection[1] == "b"
    assert collection.first == "a"
    assert LazyCollection(lambda: []).first is None


def test_asset_collection_is_memoized_until_redeclared(memory_store, make_handle, dates):
    t1, t2, t3 = dates
    memory_store.add_asset(make_handle("p1", creation_date=t1))
    memory_store.add_asset(make_handle("p2", creation_date=t2))
    resolver = TypedResultResolver()
    sort = [Sort(AssetSortKey.CREATION_DATE, ascending=False)]

    photos = AssetCollection(memory_store, resolver, MediaKind.PHOTO, sort=sort)
    assert memory_store.fetch_count == 0
    assert [p.local_identifier for p in photos] == ["p2", "p1"]
    assert len(photos) == 2
    assert memory_store.fetch_count == 1

    memory_store.add_asset(make_handle("p3", creation_date=t3))
    assert len(photos) == 2

    redeclared = AssetCollection(memory_store, resolver, MediaKind.PHOTO, sort=sort)
    assert [p.local_identifier for p in redeclared] == ["p3", "p2", "p1"]


def test_bad_declarations_fail_before_fetching(memory_store):
    with pytest.raises(InvalidArgumentError):
        AssetCollection(memory_store, TypedResultResolver(), MediaKind.PHOTO, [ByIdentifier("a"), "junk"])
    assert memory_store.fetch_count == 0


def test_evaluation_publishes_an_event(memory_store, make_handle):
    memory_store.add_asset(make_handle("v1", MediaType.VIDEO))
    bus = EventBus()
    events = []
    bus.subscribe(CollectionEvaluatedEvent, events.append)

    videos = AssetCollection(memory_store, TypedResultResolver(), MediaKind.VIDEO, event_bus=bus)
    videos.items
    videos.items

    assert [(e.kind, e.count) for e in events] == [("video", 1)]
    bus.shutdown()


def test_pages_come_straight_from_the_store(memory_store, make_handle, dates):
    for index, date in enumerate(dates):
        memory_store.add_asset(make_handle(f"p{index}", creation_date=date))
    photos = AssetCollection(
        memory_store, TypedResultResolver(), MediaKind.PHOTO, sort=[Sort(AssetSortKey.CREATION_DATE)]
    )

    first = photos.page(1, 2)
    second = photos.page(2, 2)

    assert [p.local_identifier for p in first.items] == ["p0", "p1"]
    assert first.has_more
    assert [p.local_identifier for p in second.items] == ["p2"]
    assert not second.has_more
    assert not photos.is_evaluated


def test_fetched_asset_yields_first_match_or_none(memory_store, make_handle):
    memory_store.add_asset(make_handle("p1"))
    resolver = TypedResultResolver()

    assert FetchedAsset(memory_store, resolver, MediaKind.PHOTO, [ByIdentifier("p1")]).value.local_identifier == "p1"
    assert FetchedAsset(memory_store, resolver, MediaKind.VIDEO, [ByIdentifier("p1")]).value is None


def test_album_collection_orders_by_title(memory_store):
    memory_store.add_album(AlbumHandle("a1", "Zoo", AlbumType.USER))
    memory_store.add_album(AlbumHandle("a2", "Beach", AlbumType.USER))

    albums = AlbumCollection(memory_store, AlbumType.USER)

    assert [a.localized_title for a in albums] == ["Beach", "Zoo"]
