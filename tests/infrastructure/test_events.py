import logging
import threading
from datetime import timedelta

from iMedia.errors.handler import ErrorHandler, ErrorOccurredEvent, ErrorSeverity
from iMedia.events import AssetDeletedEvent, AssetFavoritedEvent, DomainEvent, EventBus


def test_sync_subscribe_publish():
    bus = EventBus()
    received = []

    bus.subscribe(AssetFavoritedEvent, lambda event: received.append(event.local_identifier))
    bus.publish(AssetFavoritedEvent(local_identifier="p1", is_favorite=True))

    assert received == ["p1"]
    bus.shutdown()


def test_async_subscribe_publish():
    bus = EventBus()
    done = threading.Event()
    received = []

    def handler(event):
        received.append(event.local_identifiers)
        done.set()

    bus.subscribe(AssetDeletedEvent, handler, async_=True)
    bus.publish(AssetDeletedEvent(local_identifiers=("a", "b")))

    assert done.wait(5)
    assert received == [("a", "b")]
    bus.shutdown()


def test_handlers_only_see_their_event_type():
    bus = EventBus()
    favorites = []

    bus.subscribe(AssetFavoritedEvent, favorites.append)
    bus.publish(AssetDeletedEvent(local_identifiers=("a",)))

    assert favorites == []
    bus.shutdown()


def test_unsubscribe_and_failing_handlers():
    bus = EventBus()
    received = []

    def broken(event):
        raise RuntimeError("handler bug")

    bus.subscribe(AssetFavoritedEvent, broken)
    subscription = bus.subscribe(AssetFavoritedEvent, received.append)
    bus.publish(AssetFavoritedEvent(local_identifier="p1"))
    bus.unsubscribe(subscription)
    bus.publish(AssetFavoritedEvent(local_identifier="p2"))

    assert [event.local_identifier for event in received] == ["p1"]
    bus.shutdown()


def test_base_class_subscribers_see_every_media_event():
    bus = EventBus()
    seen = []

    bus.subscribe(DomainEvent, lambda event: seen.append(type(event).__name__))
    bus.publish(AssetFavoritedEvent(local_identifier="p1"))
    bus.publish(AssetDeletedEvent(local_identifiers=("a",)))

    assert seen == ["AssetFavoritedEvent", "AssetDeletedEvent"]
    bus.shutdown()


def test_error_events_travel_over_the_bus():
    bus = EventBus()
    handler = ErrorHandler(logging.getLogger("test"), bus)
    received = []
    bus.subscribe(ErrorOccurredEvent, received.append)

    handler.handle(RuntimeError("boom"), ErrorSeverity.INFO)

    assert [str(event.error) for event in received] == ["boom"]
    assert received[0].source == "error-handler"
    bus.shutdown()


def test_events_are_sequenced_and_stamped_in_utc():
    first = AssetFavoritedEvent(local_identifier="p1", source="mutation")
    second = AssetDeletedEvent(local_identifiers=("p1",))

    assert second.sequence > first.sequence
    assert first.occurred_at.utcoffset() == timedelta(0)
    assert first.name == "AssetFavoritedEvent"
