from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, Sequence

from ...errors import MediaNotBoundError
from .core import AlbumHandle, AlbumSubtype, AlbumType
from .result import Completion

if TYPE_CHECKING:  # pragma: no cover
    from ...application.services.collections import AssetCollection
    from .filters import Filter
    from .kinds import MediaKind
    from .media import MediaObject
    from .sort import Sort


class Album:
    """An album snapshot; its members are fetched lazily through queries."""

    def __init__(self, handle: AlbumHandle, context=None):
        self._handle = handle
        self._context = context

    @property
    def handle(self) -> AlbumHandle:
        return self._handle

    @property
    def local_identifier(self) -> str:
        return self._handle.local_identifier

    @property
    def localized_title(self) -> str:
        return self._handle.localized_title

    @property
    def album_type(self) -> AlbumType:
        return self._handle.album_type

    @property
    def album_subtype(self) -> AlbumSubtype:
        return self._handle.album_subtype

    @property
    def is_user_created(self) -> bool:
        return self._handle.album_type is AlbumType.USER

    def assets(
        self,
        kind: "MediaKind",
        filters: Iterable["Filter"] = (),
        sort: Sequence["Sort"] = (),
    ) -> "AssetCollection":
        """Declare a lazy collection of this album's members of *kind*."""
        return self._require_context().album_assets(self, kind, filters, sort)

    def add(self, media: Iterable["MediaObject"], completion: Completion) -> None:
        self._require_context().update_album(self, completion, added=media)

    def remove(self, media: Iterable["MediaObject"], completion: Completion) -> None:
        self._require_context().update_album(self, completion, removed=media)

    def _require_context(self):
        if self._context is None:
            raise MediaNotBoundError(f"Album {self.local_identifier} is not bound to a library")
        return self._context

    def __eq__(self, other) -> bool:
        if not isinstance(other, Album):
            return NotImplemented
        return self.local_identifier == other.local_identifier

    def __hash__(self) -> int:
        return hash(("Album", self.local_identifier))

    def __repr__(self) -> str:
        return f"Album({self.local_identifier!r}, {self.localized_title!r})"
