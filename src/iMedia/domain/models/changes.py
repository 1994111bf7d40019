"""Change requests: single atomic mutation intents submitted to a store."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional

from ...errors import InvalidArgumentError
from .core import Location, MediaSubtypes, MediaType


class ResourceType(Enum):
    PHOTO = "photo"
    VIDEO = "video"
    AUDIO = "audio"
    PAIRED_VIDEO = "paired_video"


@dataclass(frozen=True)
class AssetResource:
    """One payload of a new asset, given either inline or as a file."""

    resource_type: ResourceType
    data: Optional[bytes] = None
    file_path: Optional[Path] = None
    # Let the store take ownership of the file instead of copying it.
    should_move_file: bool = False
    original_filename: Optional[str] = None

    def __post_init__(self):
        if (self.data is None) == (self.file_path is None):
            raise InvalidArgumentError("A resource needs exactly one of data or file_path")
        if self.should_move_file and self.file_path is None:
            raise InvalidArgumentError("should_move_file only applies to file resources")

    def read_bytes(self) -> bytes:
        if self.data is not None:
            return self.data
        return Path(self.file_path).read_bytes()


class ChangeRequest:
    """Base class for everything a store can commit."""


@dataclass(frozen=True)
class FavoriteChangeRequest(ChangeRequest):
    local_identifier: str
    is_favorite: bool

    def __post_init__(self):
        if not self.local_identifier:
            raise InvalidArgumentError("Favorite change needs an asset identifier")


@dataclass(frozen=True)
class AssetCreationRequest(ChangeRequest):
    resources: tuple[AssetResource, ...]
    # Optional low resolution preview, delivered ahead of the full data.
    thumbnail: Optional[bytes] = None
    creation_date: Optional[datetime] = None
    location: Optional[Location] = None

    def __post_init__(self):
        object.__setattr__(self, "resources", tuple(self.resources))
        types = [resource.resource_type for resource in self.resources]
        if not types:
            raise InvalidArgumentError("An asset needs at least one resource")
        if len(set(types)) != len(types):
            raise InvalidArgumentError("Each resource type may appear only once")
        if ResourceType.PAIRED_VIDEO in types and ResourceType.PHOTO not in types:
            raise InvalidArgumentError("A paired video needs a photo resource")
        primary = {ResourceType.PHOTO, ResourceType.VIDEO, ResourceType.AUDIO} & set(types)
        if len(primary) != 1:
            raise InvalidArgumentError("An asset needs exactly one primary resource")

    def _types(self) -> set[ResourceType]:
        return {resource.resource_type for resource in self.resources}

    @property
    def media_type(self) -> MediaType:
        types = self._types()
        if ResourceType.PHOTO in types:
            return MediaType.IMAGE
        if ResourceType.VIDEO in types:
            return MediaType.VIDEO
        return MediaType.AUDIO

    @property
    def media_subtypes(self) -> MediaSubtypes:
        if ResourceType.PAIRED_VIDEO in self._types():
            return MediaSubtypes.PHOTO_LIVE
        return MediaSubtypes.NONE

    @property
    def primary_resource(self) -> AssetResource:
        for resource in self.resources:
            if resource.resource_type is not ResourceType.PAIRED_VIDEO:
                return resource
        raise InvalidArgumentError("No primary resource")  # unreachable after validation


@dataclass(frozen=True)
class AssetDeletionRequest(ChangeRequest):
    local_identifiers: tuple[str, ...]

    def __post_init__(self):
        object.__setattr__(self, "local_identifiers", tuple(self.local_identifiers))
        if not self.local_identifiers or not all(self.local_identifiers):
            raise InvalidArgumentError("Deletion needs non-empty asset identifiers")


@dataclass(frozen=True)
class AlbumCreationRequest(ChangeRequest):
    title: str

    def __post_init__(self):
        if not self.title or not self.title.strip():
            raise InvalidArgumentError("Album title must not be empty")


@dataclass(frozen=True)
class AlbumMembershipChangeRequest(ChangeRequest):
    album_identifier: str
    added: tuple[str, ...] = field(default_factory=tuple)
    removed: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self):
        object.__setattr__(self, "added", tuple(self.added))
        object.__setattr__(self, "removed", tuple(self.removed))
        if not self.album_identifier:
            raise InvalidArgumentError("Membership change needs an album identifier")
        if not self.added and not self.removed:
            raise InvalidArgumentError("Membership change adds or removes nothing")
