from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from datetime import datetime
from enum import Enum, IntEnum, IntFlag
from typing import Optional


# Native type tags and subtype bits.  Raw values match the ones persisted by
# the store so handles can be compared without translation.
class MediaType(IntEnum):
    UNKNOWN = 0
    IMAGE = 1
    VIDEO = 2
    AUDIO = 3


class MediaSubtypes(IntFlag):
    NONE = 0
    PHOTO_PANORAMA = 1 << 0
    PHOTO_HDR = 1 << 1
    PHOTO_SCREENSHOT = 1 << 2
    PHOTO_LIVE = 1 << 3
    PHOTO_DEPTH_EFFECT = 1 << 4
    VIDEO_STREAMED = 1 << 16
    VIDEO_HIGH_FRAME_RATE = 1 << 17
    VIDEO_TIMELAPSE = 1 << 18


class SourceType(IntFlag):
    NONE = 0
    USER_LIBRARY = 1 << 0
    CLOUD_SHARED = 1 << 1
    ITUNES_SYNCED = 1 << 2


class _TypedSubtype(Enum):
    """Subtype vocabulary of one media kind, backed by a native bit."""

    @property
    def native(self) -> MediaSubtypes:
        return MediaSubtypes(self.value)


class PhotoSubtype(_TypedSubtype):
    PANORAMA = MediaSubtypes.PHOTO_PANORAMA.value
    HDR = MediaSubtypes.PHOTO_HDR.value
    SCREENSHOT = MediaSubtypes.PHOTO_SCREENSHOT.value
    DEPTH_EFFECT = MediaSubtypes.PHOTO_DEPTH_EFFECT.value


class LivePhotoSubtype(_TypedSubtype):
    LIVE = MediaSubtypes.PHOTO_LIVE.value


class VideoSubtype(_TypedSubtype):
    STREAMED = MediaSubtypes.VIDEO_STREAMED.value
    HIGH_FRAME_RATE = MediaSubtypes.VIDEO_HIGH_FRAME_RATE.value
    TIMELAPSE = MediaSubtypes.VIDEO_TIMELAPSE.value


class AudioSubtype(_TypedSubtype):
    pass


def native_subtypes(subtypes) -> MediaSubtypes:
    """Fold typed or native subtypes into one native bitmask."""
    mask = MediaSubtypes.NONE
    for subtype in subtypes:
        if isinstance(subtype, _TypedSubtype):
            mask |= subtype.native
        else:
            mask |= MediaSubtypes(subtype)
    return mask


@dataclass(frozen=True)
class Location:
    latitude: float
    longitude: float
    altitude: Optional[float] = None


@dataclass(frozen=True)
class AssetHandle:
    """Store-owned reference to a single media item.

    Handles are values: a mutation never edits one in place, the store hands
    back a new handle carrying the post-mutation state instead.
    """

    local_identifier: str
    media_type: MediaType = MediaType.UNKNOWN
    media_subtypes: MediaSubtypes = MediaSubtypes.NONE
    source_type: SourceType = SourceType.USER_LIBRARY
    creation_date: Optional[datetime] = None
    modification_date: Optional[datetime] = None
    location: Optional[Location] = None
    is_favorite: bool = False
    is_hidden: bool = False

    def with_changes(self, **changes) -> AssetHandle:
        return dataclasses.replace(self, **changes)


@dataclass(frozen=True)
class Metadata:
    """Read-only snapshot of an asset taken when a media object is built."""

    type: MediaType
    subtypes: MediaSubtypes
    source_type: SourceType
    creation_date: Optional[datetime]
    modification_date: Optional[datetime]
    location: Optional[Location]
    is_favorite: bool
    is_hidden: bool

    @classmethod
    def from_handle(cls, handle: AssetHandle) -> Metadata:
        return cls(
            type=handle.media_type,
            subtypes=handle.media_subtypes,
            source_type=handle.source_type,
            creation_date=handle.creation_date,
            modification_date=handle.modification_date,
            location=handle.location,
            is_favorite=handle.is_favorite,
            is_hidden=handle.is_hidden,
        )


class AlbumSubtype(IntEnum):
    REGULAR = 2
    SYNCED_EVENT = 3
    SYNCED_ALBUM = 6
    IMPORTED = 7
    SMART_GENERIC = 200
    SMART_PANORAMAS = 201
    SMART_VIDEOS = 202
    SMART_FAVORITES = 203
    SMART_TIMELAPSES = 204
    SMART_ALL_HIDDEN = 205
    SMART_RECENTLY_ADDED = 206
    SMART_BURSTS = 207
    SMART_SLOMO_VIDEOS = 208
    SMART_USER_LIBRARY = 209
    SMART_SELFIE_PORTRAITS = 210
    SMART_SCREENSHOTS = 211
    SMART_DEPTH_EFFECT = 212
    SMART_LIVE_PHOTOS = 213


class AlbumType(IntEnum):
    """User-created albums versus albums maintained by the library itself."""

    USER = 1
    SMART = 2

    @property
    def subtypes(self) -> frozenset[AlbumSubtype]:
        if self is AlbumType.USER:
            return frozenset(s for s in AlbumSubtype if s < AlbumSubtype.SMART_GENERIC)
        return frozenset(s for s in AlbumSubtype if s >= AlbumSubtype.SMART_GENERIC)


@dataclass(frozen=True)
class AlbumHandle:
    local_identifier: str
    localized_title: str = ""
    album_type: AlbumType = AlbumType.USER
    album_subtype: AlbumSubtype = AlbumSubtype.REGULAR
    creation_date: Optional[datetime] = None

    def with_changes(self, **changes) -> AlbumHandle:
        return dataclasses.replace(self, **changes)
