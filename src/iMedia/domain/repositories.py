from abc import ABC, abstractmethod
from typing import Callable, List, Optional, Tuple

from .models.changes import ChangeRequest
from .models.core import AlbumHandle, AssetHandle
from .models.query import Query
from .models.representation import ContentMode, RepresentationHandler
from .models.result import Result


class IAssetStore(ABC):
    """The media library this package sits on top of.

    Fetches run synchronously on the caller's thread.  ``commit`` and
    ``request_representation`` return immediately and report back later from
    a store-managed thread.  Failures are :class:`~iMedia.errors.StoreError`
    instances, which callers receive untouched; stores own any retry policy.
    """

    @abstractmethod
    def fetch(self, query: Query) -> List[AssetHandle]:
        """Return handles matching *query* in query order."""
        pass

    @abstractmethod
    def fetch_by_identifier(self, local_identifier: str) -> Optional[AssetHandle]:
        """Return the handle for *local_identifier*, or None."""
        pass

    @abstractmethod
    def fetch_albums(self, query: Query) -> List[AlbumHandle]:
        """Return album handles matching *query* in query order."""
        pass

    @abstractmethod
    def fetch_album_by_identifier(self, local_identifier: str) -> Optional[AlbumHandle]:
        pass

    @abstractmethod
    def commit(self, request: ChangeRequest, completion: Callable[[Result], None]) -> None:
        """Apply *request* atomically, then call *completion* exactly once.

        On success the result carries the post-change handle (an
        :class:`AssetHandle` or :class:`AlbumHandle`, a tuple of identifiers
        for deletions).
        """
        pass

    @abstractmethod
    def request_representation(
        self,
        handle: AssetHandle,
        target_size: Tuple[int, int],
        content_mode: ContentMode,
        handler: RepresentationHandler,
    ) -> int:
        """Start delivering representations of *handle*; return a request id.

        *handler* may be called several times: interim deliveries are flagged
        ``is_final=False``.
        """
        pass

    @abstractmethod
    def cancel_representation(self, request_id: int) -> None:
        pass

    def shutdown(self) -> None:
        """Release background resources."""
        pass
