from .bus import EventBus, Subscription
from .domain_events import DomainEvent
from .media_events import (
    AlbumCreatedEvent,
    AlbumMembershipChangedEvent,
    AssetCreatedEvent,
    AssetDeletedEvent,
    AssetFavoritedEvent,
    CollectionEvaluatedEvent,
)

__all__ = [
    "AlbumCreatedEvent",
    "AlbumMembershipChangedEvent",
    "AssetCreatedEvent",
    "AssetDeletedEvent",
    "AssetFavoritedEvent",
    "CollectionEvaluatedEvent",
    "DomainEvent",
    "EventBus",
    "Subscription",
]
