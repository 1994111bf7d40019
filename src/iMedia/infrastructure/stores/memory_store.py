"""Process-local asset store.

Keeps everything in dictionaries.  Besides serving as a scratch library it
doubles as the test double for the store interface: tests seed it directly,
script representation deliveries and inject commit failures.
"""

from __future__ import annotations

import logging
import threading
import uuid
from collections import deque
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from iMedia.config import DEFAULT_STORE_WORKERS, LOCAL_IDENTIFIER_SUFFIX
from iMedia.domain.models.changes import (
    AlbumCreationRequest,
    AlbumMembershipChangeRequest,
    AssetCreationRequest,
    AssetDeletionRequest,
    FavoriteChangeRequest,
    ResourceType,
)
from iMedia.domain.models.core import AlbumHandle, AlbumSubtype, AlbumType, AssetHandle
from iMedia.domain.models.query import Query
from iMedia.domain.models.representation import ContentMode, RepresentationInfo
from iMedia.domain.models.sort import sort_records
from iMedia.errors import ChangeRequestError, PermissionDeniedError, StoreError

from .base import BackgroundStore, Delivery

LOGGER = logging.getLogger(__name__)


def new_local_identifier() -> str:
    return str(uuid.uuid4()).upper() + LOCAL_IDENTIFIER_SUFFIX


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _window(records: list, query: Query) -> list:
    if query.limit is None:
        return records[query.offset:]
    return records[query.offset:query.offset + query.limit]


class InMemoryAssetStore(BackgroundStore):
    def __init__(self, max_workers: int = DEFAULT_STORE_WORKERS, authorized: bool = True):
        super().__init__(max_workers=max_workers)
        self._lock = threading.RLock()
        self._assets: Dict[str, AssetHandle] = {}
        self._resources: Dict[str, Dict[ResourceType, bytes]] = {}
        self._thumbnails: Dict[str, bytes] = {}
        self._albums: Dict[str, AlbumHandle] = {}
        self._members: Dict[str, List[str]] = {}
        self._commit_failures: deque = deque()
        self._scripts: Dict[str, List[Delivery]] = {}
        self.authorized = authorized
        self.fetch_count = 0
        self.commit_count = 0

    # ------------------------------------------------------------------
    # Seeding and scripting
    # ------------------------------------------------------------------
    def add_asset(
        self,
        handle: AssetHandle,
        resources: Optional[Dict[ResourceType, bytes]] = None,
        thumbnail: Optional[bytes] = None,
    ) -> AssetHandle:
        with self._lock:
            self._assets[handle.local_identifier] = handle
            self._resources[handle.local_identifier] = dict(resources or {})
            if thumbnail is not None:
                self._thumbnails[handle.local_identifier] = thumbnail
        return handle

    def add_album(self, handle: AlbumHandle, members: Iterable[str] = ()) -> AlbumHandle:
        with self._lock:
            self._albums[handle.local_identifier] = handle
            self._members[handle.local_identifier] = list(members)
        return handle

    def fail_next_commit(self, error: StoreError) -> None:
        """Make the next commit fail with *error* without applying anything."""
        with self._lock:
            self._commit_failures.append(error)

    def script_representation(self, local_identifier: str, deliveries: Sequence[Delivery]) -> None:
        """Replace the default deliveries for *local_identifier*."""
        with self._lock:
            self._scripts[local_identifier] = list(deliveries)

    def members_of(self, album_identifier: str) -> Tuple[str, ...]:
        with self._lock:
            return tuple(self._members.get(album_identifier, ()))

    # ------------------------------------------------------------------
    # Fetching
    # ------------------------------------------------------------------
    def fetch(self, query: Query) -> List[AssetHandle]:
        with self._lock:
            self.fetch_count += 1
            if query.album_identifier is not None:
                ids = self._members.get(query.album_identifier, [])
                candidates = [self._assets[i] for i in ids if i in self._assets]
            else:
                candidates = list(self._assets.values())
        matched = [handle for handle in candidates if query.predicate.evaluate(handle)]
        ordered = sort_records(matched, query.ordering)
        LOGGER.debug("[STORE-FETCH] %d of %d assets matched", len(ordered), len(candidates))
        return _window(ordered, query)

    def fetch_by_identifier(self, local_identifier: str) -> Optional[AssetHandle]:
        with self._lock:
            return self._assets.get(local_identifier)

    def fetch_albums(self, query: Query) -> List[AlbumHandle]:
        with self._lock:
            candidates = list(self._albums.values())
        matched = [handle for handle in candidates if query.predicate.evaluate(handle)]
        return _window(sort_records(matched, query.ordering), query)

    def fetch_album_by_identifier(self, local_identifier: str) -> Optional[AlbumHandle]:
        with self._lock:
            return self._albums.get(local_identifier)

    # ------------------------------------------------------------------
    # Change requests
    # ------------------------------------------------------------------
    def _apply(self, request):
        with self._lock:
            self.commit_count += 1
            if not self.authorized:
                raise PermissionDeniedError("Access to the media library was denied")
            if self._commit_failures:
                raise self._commit_failures.popleft()
            return super()._apply(request)

    def _apply_favorite(self, request: FavoriteChangeRequest) -> AssetHandle:
        handle = self._assets.get(request.local_identifier)
        if handle is None:
            raise ChangeRequestError(f"Asset {request.local_identifier} no longer exists")
        updated = handle.with_changes(is_favorite=request.is_favorite, modification_date=_now())
        self._assets[handle.local_identifier] = updated
        return updated

    def _apply_creation(self, request: AssetCreationRequest) -> AssetHandle:
        try:
            payloads = {resource.resource_type: resource.read_bytes() for resource in request.resources}
        except OSError as exc:
            raise ChangeRequestError(f"Could not read resource: {exc}") from exc
        now = _now()
        handle = AssetHandle(
            local_identifier=new_local_identifier(),
            media_type=request.media_type,
            media_subtypes=request.media_subtypes,
            creation_date=request.creation_date or now,
            modification_date=now,
            location=request.location,
        )
        self.add_asset(handle, payloads, request.thumbnail)
        for resource in request.resources:
            if resource.should_move_file:
                Path(resource.file_path).unlink(missing_ok=True)
        return handle

    def _apply_deletion(self, request: AssetDeletionRequest) -> Tuple[str, ...]:
        missing = [i for i in request.local_identifiers if i not in self._assets]
        if missing:
            raise ChangeRequestError(f"Assets no longer exist: {', '.join(missing)}")
        for identifier in request.local_identifiers:
            del self._assets[identifier]
            self._resources.pop(identifier, None)
            self._thumbnails.pop(identifier, None)
            for members in self._members.values():
                if identifier in members:
                    members.remove(identifier)
        return request.local_identifiers

    def _apply_album_creation(self, request: AlbumCreationRequest) -> AlbumHandle:
        handle = AlbumHandle(
            local_identifier=new_local_identifier(),
            localized_title=request.title,
            album_type=AlbumType.USER,
            album_subtype=AlbumSubtype.REGULAR,
            creation_date=_now(),
        )
        return self.add_album(handle)

    def _apply_membership(self, request: AlbumMembershipChangeRequest) -> AlbumHandle:
        album = self._albums.get(request.album_identifier)
        if album is None:
            raise ChangeRequestError(f"Album {request.album_identifier} no longer exists")
        if album.album_type is not AlbumType.USER:
            raise ChangeRequestError(f"Album {album.localized_title!r} is managed by the library")
        missing = [i for i in request.added if i not in self._assets]
        if missing:
            raise ChangeRequestError(f"Assets no longer exist: {', '.join(missing)}")
        members = self._members.setdefault(album.local_identifier, [])
        for identifier in request.added:
            if identifier not in members:
                members.append(identifier)
        for identifier in request.removed:
            if identifier in members:
                members.remove(identifier)
        return album

    # ------------------------------------------------------------------
    # Representations
    # ------------------------------------------------------------------
    def _representations(
        self, handle: AssetHandle, target_size: Tuple[int, int], content_mode: ContentMode
    ) -> Iterator[Delivery]:
        with self._lock:
            scripted = self._scripts.get(handle.local_identifier)
            resources = dict(self._resources.get(handle.local_identifier, {}))
            thumbnail = self._thumbnails.get(handle.local_identifier)
            exists = handle.local_identifier in self._assets
        if scripted is not None:
            yield from scripted
            return
        if not exists:
            raise ChangeRequestError(f"Asset {handle.local_identifier} no longer exists")
        full = resources.get(ResourceType.PHOTO) or resources.get(ResourceType.VIDEO)
        if thumbnail is not None:
            yield thumbnail, RepresentationInfo(is_degraded=True, is_final=full is None)
        if full is not None:
            yield full, RepresentationInfo()
        elif thumbnail is None:
            yield None, RepresentationInfo()
