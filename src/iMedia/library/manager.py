"""The media library facade: declared collections, lookups and mutations."""

from __future__ import annotations

from datetime import datetime
from functools import cached_property
from pathlib import Path
from typing import Iterable, Optional, Sequence, Tuple

from ..application.dtos import LivePhotoData
from ..application.services.collections import AlbumCollection, AssetCollection, FetchedAsset
from ..application.services.mutation_pipeline import MutationPipeline
from ..application.services.representation import RepresentationRequest, RepresentationService
from ..application.services.resolver import TypedResultResolver
from ..config import DATABASE_FILE_NAME
from ..domain.models.album import Album
from ..domain.models.changes import (
    AlbumCreationRequest,
    AlbumMembershipChangeRequest,
    AssetCreationRequest,
    AssetDeletionRequest,
    AssetResource,
    ResourceType,
)
from ..domain.models.core import AlbumType, Location, PhotoSubtype, VideoSubtype
from ..domain.models.filters import BySubtypes, Filter
from ..domain.models.kinds import MediaKind
from ..domain.models.media import Audio, LivePhoto, MediaObject, Photo, Video
from ..domain.models.representation import ContentMode
from ..domain.models.result import Completion
from ..domain.models.sort import AssetSortKey, Sort
from ..domain.repositories import IAssetStore
from ..domain.services.query_compiler import QueryCompiler, identifier_query
from ..errors import InvalidArgumentError
from ..errors.handler import ErrorHandler
from ..events.bus import EventBus
from ..utils.logging import get_logger

LOGGER = get_logger(__name__)

NEWEST_FIRST: Tuple[Sort, ...] = (Sort(AssetSortKey.CREATION_DATE, ascending=False),)


class _KindCollections:
    """Predeclared collections of one media kind, newest first.

    Each collection is declared on first access and then kept, so repeated
    reads share one evaluation.  :meth:`MediaLibrary.refresh` replaces the
    whole namespace.
    """

    def __init__(self, library: "MediaLibrary", kind: MediaKind):
        self._library = library
        self._kind = kind

    def _declare(self, *filters: Filter) -> AssetCollection:
        return self._library.assets(self._kind, filters, NEWEST_FIRST)

    @cached_property
    def all(self) -> AssetCollection:
        return self._declare()


class _PhotoCollections(_KindCollections):
    @cached_property
    def panorama(self) -> AssetCollection:
        return self._declare(BySubtypes([PhotoSubtype.PANORAMA]))

    @cached_property
    def hdr(self) -> AssetCollection:
        return self._declare(BySubtypes([PhotoSubtype.HDR]))

    @cached_property
    def screenshot(self) -> AssetCollection:
        return self._declare(BySubtypes([PhotoSubtype.SCREENSHOT]))

    @cached_property
    def depth_effect(self) -> AssetCollection:
        return self._declare(BySubtypes([PhotoSubtype.DEPTH_EFFECT]))


class _VideoCollections(_KindCollections):
    @cached_property
    def streamed(self) -> AssetCollection:
        return self._declare(BySubtypes([VideoSubtype.STREAMED]))

    @cached_property
    def high_frame_rate(self) -> AssetCollection:
        return self._declare(BySubtypes([VideoSubtype.HIGH_FRAME_RATE]))

    @cached_property
    def timelapse(self) -> AssetCollection:
        return self._declare(BySubtypes([VideoSubtype.TIMELAPSE]))


class MediaLibrary:
    """Typed access to one asset store.

    Media objects and albums handed out here are bound to the library, which
    is what lets ``photo.favorite(...)`` or ``album.add(...)`` reach the
    store.  All mutations go through one :class:`MutationPipeline`.
    """

    def __init__(
        self,
        store: IAssetStore,
        event_bus: Optional[EventBus] = None,
        error_handler: Optional[ErrorHandler] = None,
        *,
        content_mode: ContentMode = ContentMode.DEFAULT,
    ):
        self._store = store
        self._owns_event_bus = event_bus is None
        self._event_bus = event_bus or EventBus(get_logger("events"))
        self._error_handler = error_handler or ErrorHandler(get_logger("errors"), self._event_bus)
        self._content_mode = content_mode
        self._compiler = QueryCompiler()
        self._resolver = TypedResultResolver(self)
        self._pipeline = MutationPipeline(store, self._event_bus, self._error_handler)
        self._representations = RepresentationService(store)
        self.refresh()

    @classmethod
    def from_settings(cls, settings, event_bus: Optional[EventBus] = None) -> "MediaLibrary":
        """Build a library over the store described by a :class:`SettingsManager`."""
        from ..infrastructure.stores.memory_store import InMemoryAssetStore
        from ..infrastructure.stores.sqlite_store import SQLiteAssetStore

        backend = settings.get("store.backend", "sqlite")
        max_workers = settings.get("store.max_workers")
        if backend == "memory":
            store = InMemoryAssetStore(max_workers=max_workers)
        else:
            db_path = settings.get("store.database_path")
            if not db_path:
                base = settings.path.parent if settings.path is not None else Path.cwd()
                db_path = base / DATABASE_FILE_NAME
            store = SQLiteAssetStore.open(
                Path(db_path), pool_size=settings.get("store.pool_size"), max_workers=max_workers
            )
        content_mode = ContentMode(settings.get("representation.content_mode", "default"))
        LOGGER.info("[LIBRARY] Opened %s store", backend)
        return cls(store, event_bus, content_mode=content_mode)

    @property
    def store(self) -> IAssetStore:
        return self._store

    @property
    def event_bus(self) -> EventBus:
        return self._event_bus

    def refresh(self) -> None:
        """Re-declare the predeclared collections so the next read refetches."""
        self.photos = _PhotoCollections(self, MediaKind.PHOTO)
        self.live_photos = _KindCollections(self, MediaKind.LIVE_PHOTO)
        self.videos = _VideoCollections(self, MediaKind.VIDEO)
        self.audios = _KindCollections(self, MediaKind.AUDIO)

    # ------------------------------------------------------------------
    # Declarations
    # ------------------------------------------------------------------
    def assets(
        self, kind: MediaKind, filters: Iterable[Filter] = (), sort: Sequence[Sort] = ()
    ) -> AssetCollection:
        return AssetCollection(
            self._store, self._resolver, kind, filters, sort,
            compiler=self._compiler, event_bus=self._event_bus,
        )

    def asset(self, kind: MediaKind, filters: Iterable[Filter] = (), sort: Sequence[Sort] = ()) -> FetchedAsset:
        return FetchedAsset(
            self._store, self._resolver, kind, filters, sort,
            compiler=self._compiler, event_bus=self._event_bus,
        )

    def albums(
        self,
        album_type: Optional[AlbumType] = None,
        filters: Iterable[Filter] = (),
        sort: Sequence[Sort] = (),
    ) -> AlbumCollection:
        return AlbumCollection(self._store, album_type, filters, sort, context=self, compiler=self._compiler)

    def album_assets(
        self, album: Album, kind: MediaKind, filters: Iterable[Filter] = (), sort: Sequence[Sort] = ()
    ) -> AssetCollection:
        return AssetCollection(
            self._store, self._resolver, kind, filters, sort,
            album_identifier=album.local_identifier, compiler=self._compiler, event_bus=self._event_bus,
        )

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------
    def media_with(self, local_identifier: str, kind: MediaKind) -> Optional[MediaObject]:
        """Return the asset of *kind* with *local_identifier*, or None."""
        handles = self._store.fetch(identifier_query(local_identifier, kind))
        if not handles:
            return None
        return self._resolver.resolve(handles[0], kind)

    def photo_with(self, local_identifier: str) -> Optional[Photo]:
        return self.media_with(local_identifier, MediaKind.PHOTO)

    def live_photo_with(self, local_identifier: str) -> Optional[LivePhoto]:
        return self.media_with(local_identifier, MediaKind.LIVE_PHOTO)

    def video_with(self, local_identifier: str) -> Optional[Video]:
        return self.media_with(local_identifier, MediaKind.VIDEO)

    def audio_with(self, local_identifier: str) -> Optional[Audio]:
        return self.media_with(local_identifier, MediaKind.AUDIO)

    def media_with_identifier(self, local_identifier: str) -> Optional[MediaObject]:
        """Return the asset with *local_identifier* as whatever kind it is, or None."""
        handle = self._store.fetch_by_identifier(local_identifier)
        return self._resolver.resolve_any(handle) if handle is not None else None

    def album_with(self, local_identifier: str) -> Optional[Album]:
        if not local_identifier:
            raise InvalidArgumentError("Album identifier must not be empty")
        handle = self._store.fetch_album_by_identifier(local_identifier)
        return Album(handle, self) if handle is not None else None

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    def favorite(self, media: MediaObject, is_favorite: bool, completion: Completion) -> None:
        self._pipeline.favorite(media, is_favorite, completion)

    def delete(self, media: Iterable[MediaObject], completion: Completion) -> None:
        """Delete *media* in one request; *completion* gets the deleted identifiers."""
        identifiers = tuple(item.local_identifier for item in media)
        self._pipeline.mutate("delete", lambda: AssetDeletionRequest(identifiers), completion)

    def save_photo(
        self,
        completion: Completion,
        data: Optional[bytes] = None,
        file_path: Optional[Path] = None,
        *,
        should_move_file: bool = False,
        thumbnail: Optional[bytes] = None,
        creation_date: Optional[datetime] = None,
        location: Optional[Location] = None,
    ) -> None:
        """Import a still image; *completion* receives ``Result[Photo]``."""
        self._save(
            MediaKind.PHOTO, completion,
            lambda: [AssetResource(ResourceType.PHOTO, data, file_path, should_move_file)],
            thumbnail, creation_date, location,
        )

    def save_video(
        self,
        completion: Completion,
        data: Optional[bytes] = None,
        file_path: Optional[Path] = None,
        *,
        should_move_file: bool = False,
        thumbnail: Optional[bytes] = None,
        creation_date: Optional[datetime] = None,
        location: Optional[Location] = None,
    ) -> None:
        self._save(
            MediaKind.VIDEO, completion,
            lambda: [AssetResource(ResourceType.VIDEO, data, file_path, should_move_file)],
            thumbnail, creation_date, location,
        )

    def save_audio(
        self,
        completion: Completion,
        data: Optional[bytes] = None,
        file_path: Optional[Path] = None,
        *,
        should_move_file: bool = False,
        creation_date: Optional[datetime] = None,
    ) -> None:
        self._save(
            MediaKind.AUDIO, completion,
            lambda: [AssetResource(ResourceType.AUDIO, data, file_path, should_move_file)],
            None, creation_date, None,
        )

    def save_live_photo(self, live_photo: LivePhotoData, completion: Completion) -> None:
        """Import a still image and its movie as one live photo.

        The movie file is moved into the library, not copied.
        """
        self._save(
            MediaKind.LIVE_PHOTO, completion,
            lambda: [
                AssetResource(ResourceType.PHOTO, data=live_photo.still_image_data),
                AssetResource(ResourceType.PAIRED_VIDEO, file_path=live_photo.movie_path, should_move_file=True),
            ],
            live_photo.thumbnail, None, None,
        )

    def _save(self, kind: MediaKind, completion: Completion, resources, thumbnail, creation_date, location) -> None:
        def _build() -> AssetCreationRequest:
            return AssetCreationRequest(
                resources=tuple(resources()),
                thumbnail=thumbnail,
                creation_date=creation_date,
                location=location,
            )

        self._pipeline.mutate(
            f"save_{kind.value.name}", _build, completion,
            on_success=lambda handle: self._resolver.resolve(handle, kind),
        )

    def create_album(self, title: str, completion: Completion) -> None:
        """Create a user album; *completion* receives ``Result[Album]``."""
        self._pipeline.mutate(
            "create_album", lambda: AlbumCreationRequest(title), completion,
            on_success=lambda handle: Album(handle, self),
        )

    def update_album(
        self,
        album: Album,
        completion: Completion,
        added: Iterable[MediaObject] = (),
        removed: Iterable[MediaObject] = (),
    ) -> None:
        added_ids = tuple(item.local_identifier for item in added)
        removed_ids = tuple(item.local_identifier for item in removed)
        self._pipeline.mutate(
            "update_album",
            lambda: AlbumMembershipChangeRequest(album.local_identifier, added_ids, removed_ids),
            completion,
            on_success=lambda handle: Album(handle, self),
        )

    # ------------------------------------------------------------------
    # Representations
    # ------------------------------------------------------------------
    def display_representation(
        self,
        media: MediaObject,
        completion: Completion,
        target_size: Optional[Tuple[int, int]] = None,
        content_mode: Optional[ContentMode] = None,
    ) -> RepresentationRequest:
        if content_mode is None or content_mode is ContentMode.DEFAULT:
            content_mode = self._content_mode
        return self._representations.request(media, completion, target_size, content_mode)

    def shutdown(self) -> None:
        self._store.shutdown()
        if self._owns_event_bus:
            self._event_bus.shutdown()
