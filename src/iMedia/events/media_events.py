from dataclasses import dataclass, field

from .domain_events import DomainEvent


@dataclass(frozen=True)
class AssetCreatedEvent(DomainEvent):
    local_identifier: str = ""
    media_type: int = 0


@dataclass(frozen=True)
class AssetFavoritedEvent(DomainEvent):
    local_identifier: str = ""
    is_favorite: bool = False


@dataclass(frozen=True)
class AssetDeletedEvent(DomainEvent):
    local_identifiers: tuple[str, ...] = ()


@dataclass(frozen=True)
class AlbumCreatedEvent(DomainEvent):
    album_identifier: str = ""
    title: str = ""


@dataclass(frozen=True)
class AlbumMembershipChangedEvent(DomainEvent):
    album_identifier: str = ""
    added: tuple[str, ...] = field(default_factory=tuple)
    removed: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class CollectionEvaluatedEvent(DomainEvent):
    kind: str = ""
    count: int = 0
