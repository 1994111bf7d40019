"""Typed media objects handed out to callers."""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, ClassVar, Dict, Optional, Tuple, Type

from ...errors import MediaNotBoundError
from .core import AssetHandle, Metadata
from .kinds import MediaKind
from .representation import ContentMode
from .result import Completion

if TYPE_CHECKING:  # pragma: no cover
    from ...application.services.representation import RepresentationRequest


class MediaObject:
    """A snapshot of one asset, typed by its :class:`MediaKind`.

    Everything is frozen at construction time except the favorite flag: a
    successful favorite change swaps in the handle returned by the store, so
    later metadata reads see the new state.  The handle and its metadata
    snapshot are always swapped together.
    """

    kind: ClassVar[MediaKind]

    def __init__(self, handle: AssetHandle, context=None):
        self._state: Tuple[AssetHandle, Metadata] = (handle, Metadata.from_handle(handle))
        self._state_lock = threading.Lock()
        self._context = context

    # ------------------------------------------------------------------
    # Snapshot access
    # ------------------------------------------------------------------
    @property
    def handle(self) -> AssetHandle:
        return self._state[0]

    @property
    def metadata(self) -> Metadata:
        return self._state[1]

    @property
    def local_identifier(self) -> str:
        return self._state[0].local_identifier

    def replace_handle(self, handle: AssetHandle) -> None:
        """Adopt the store's post-mutation handle."""
        if handle.local_identifier != self.local_identifier:
            raise ValueError(
                f"Handle {handle.local_identifier!r} does not belong to {self.local_identifier!r}"
            )
        with self._state_lock:
            self._state = (handle, Metadata.from_handle(handle))

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    def favorite(self, is_favorite: bool, completion: Completion) -> None:
        """Set the favorite flag; *completion* receives ``Result[None]``."""
        self._require_context().favorite(self, is_favorite, completion)

    def delete(self, completion: Completion) -> None:
        self._require_context().delete([self], completion)

    def _require_context(self):
        if self._context is None:
            raise MediaNotBoundError(f"{type(self).__name__} {self.local_identifier} is not bound to a library")
        return self._context

    def __eq__(self, other) -> bool:
        if not isinstance(other, MediaObject):
            return NotImplemented
        return type(self) is type(other) and self.local_identifier == other.local_identifier

    def __hash__(self) -> int:
        return hash((type(self).__name__, self.local_identifier))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.local_identifier!r})"


class _Displayable:
    def display_representation(
        self,
        completion: Completion,
        target_size: Optional[Tuple[int, int]] = None,
        content_mode: ContentMode = ContentMode.DEFAULT,
    ) -> "RepresentationRequest":
        """Request a display representation.

        *completion* is called exactly once with a ``Result`` holding a
        ``DisplayRepresentation``; the returned request can be cancelled,
        after which it never calls back.
        """
        return self._require_context().display_representation(self, completion, target_size, content_mode)


class Photo(_Displayable, MediaObject):
    kind = MediaKind.PHOTO


class LivePhoto(_Displayable, MediaObject):
    kind = MediaKind.LIVE_PHOTO


class Video(_Displayable, MediaObject):
    kind = MediaKind.VIDEO


class Audio(MediaObject):
    kind = MediaKind.AUDIO


_MEDIA_CLASSES: Dict[MediaKind, Type[MediaObject]] = {
    cls.kind: cls for cls in (Photo, LivePhoto, Video, Audio)
}


def media_class_for(kind: MediaKind) -> Type[MediaObject]:
    return _MEDIA_CLASSES[kind]
