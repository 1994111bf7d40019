from .album import Album
from .changes import (
    AlbumCreationRequest,
    AlbumMembershipChangeRequest,
    AssetCreationRequest,
    AssetDeletionRequest,
    AssetResource,
    ChangeRequest,
    FavoriteChangeRequest,
    ResourceType,
)
from .core import (
    AlbumHandle,
    AlbumSubtype,
    AlbumType,
    AssetHandle,
    AudioSubtype,
    LivePhotoSubtype,
    Location,
    MediaSubtypes,
    MediaType,
    Metadata,
    PhotoSubtype,
    SourceType,
    VideoSubtype,
)
from .filters import ByIdentifier, ByMediaType, BySubtypes, ByTitle, Custom, Filter
from .kinds import MediaKind
from .media import Audio, LivePhoto, MediaObject, Photo, Video
from .query import Query
from .representation import ContentMode, RepresentationInfo
from .result import Result
from .sort import AlbumSortKey, AssetSortKey, Sort, SortDescriptor, SortOrder

__all__ = [
    "Album",
    "AlbumCreationRequest",
    "AlbumHandle",
    "AlbumMembershipChangeRequest",
    "AlbumSortKey",
    "AlbumSubtype",
    "AlbumType",
    "AssetCreationRequest",
    "AssetDeletionRequest",
    "AssetHandle",
    "AssetResource",
    "AssetSortKey",
    "Audio",
    "AudioSubtype",
    "ByIdentifier",
    "ByMediaType",
    "BySubtypes",
    "ByTitle",
    "ChangeRequest",
    "ContentMode",
    "Custom",
    "FavoriteChangeRequest",
    "Filter",
    "LivePhoto",
    "LivePhotoSubtype",
    "Location",
    "MediaKind",
    "MediaObject",
    "MediaSubtypes",
    "MediaType",
    "Metadata",
    "Photo",
    "PhotoSubtype",
    "Query",
    "RepresentationInfo",
    "ResourceType",
    "Result",
    "Sort",
    "SortDescriptor",
    "SortOrder",
    "SourceType",
    "Video",
    "VideoSubtype",
]
