"""Lazily evaluated, memoized collections of media and albums."""

from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Callable, Generic, Iterable, Iterator, Optional, Sequence, TypeVar

from iMedia.application.dtos import PageResult
from iMedia.application.services.resolver import TypedResultResolver
from iMedia.domain.models.album import Album
from iMedia.domain.models.core import AlbumType
from iMedia.domain.models.filters import Filter
from iMedia.domain.models.kinds import MediaKind
from iMedia.domain.models.media import MediaObject
from iMedia.domain.models.query import Query
from iMedia.domain.models.sort import Sort
from iMedia.domain.repositories import IAssetStore
from iMedia.domain.services.query_compiler import QueryCompiler
from iMedia.events.media_events import CollectionEvaluatedEvent

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


class CollectionState(Enum):
    UNEVALUATED = "unevaluated"
    EVALUATED = "evaluated"


class LazyCollection(Generic[T]):
    """Evaluate a loader at most once and keep its result.

    The first access runs the loader under a lock; concurrent first accesses
    wait for it and then share the same tuple.  Once evaluated, reads take no
    lock.  Nothing invalidates the result: declare a new collection to see
    library changes.  If the loader raises, the collection stays unevaluated
    and the next access tries again.
    """

    def __init__(self, loader: Callable[[], Iterable[T]], name: str = ""):
        self._loader = loader
        self._name = name or type(self).__name__
        self._lock = threading.Lock()
        self._items: tuple = ()
        self._state = CollectionState.UNEVALUATED

    @property
    def state(self) -> CollectionState:
        return self._state

    @property
    def is_evaluated(self) -> bool:
        return self._state is CollectionState.EVALUATED

    @property
    def items(self) -> tuple:
        if self._state is CollectionState.EVALUATED:
            return self._items
        with self._lock:
            if self._state is CollectionState.UNEVALUATED:
                items = tuple(self._loader())
                # Publish the items before flipping the state so lock-free
                # readers never see EVALUATED with stale items.
                self._items = items
                self._state = CollectionState.EVALUATED
                LOGGER.debug("[COLLECTION] %s evaluated with %d items", self._name, len(items))
                self._did_evaluate(items)
        return self._items

    def _did_evaluate(self, items: tuple) -> None:
        pass

    @property
    def first(self) -> Optional[T]:
        items = self.items
        return items[0] if items else None

    def __iter__(self) -> Iterator[T]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def __getitem__(self, index):
        return self.items[index]

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self._name} {self._state.value}>"


class AssetCollection(LazyCollection[MediaObject]):
    """Media of one kind matching a filter set, in the declared order.

    The query is compiled when the collection is declared, so malformed
    filters or sorts fail right there, before any store access.
    """

    def __init__(
        self,
        store: IAssetStore,
        resolver: TypedResultResolver,
        kind: MediaKind,
        filters: Iterable[Filter] = (),
        sort: Sequence[Sort] = (),
        *,
        album_identifier: Optional[str] = None,
        compiler: Optional[QueryCompiler] = None,
        event_bus=None,
    ):
        compiler = compiler or QueryCompiler()
        self._store = store
        self._resolver = resolver
        self._kind = kind
        self._event_bus = event_bus
        self._query = compiler.compile(filters, sort, kind, album_identifier=album_identifier)
        super().__init__(self._load, name=kind.value.name)

    @property
    def kind(self) -> MediaKind:
        return self._kind

    @property
    def query(self) -> Query:
        return self._query

    def _load(self):
        return self._resolver.resolve_all(self._store.fetch(self._query), self._kind)

    def _did_evaluate(self, items: tuple) -> None:
        if self._event_bus is not None:
            self._event_bus.publish(
                CollectionEvaluatedEvent(kind=self._kind.value.name, count=len(items), source="collection")
            )

    def page(self, page: int, page_size: int) -> PageResult:
        """Fetch one page straight from the store; pages are not memoized."""
        query = self._query.paginate(page, page_size)
        items = self._resolver.resolve_all(self._store.fetch(query), self._kind)
        return PageResult(items=tuple(items), page=page, page_size=page_size)


class FetchedAsset(AssetCollection):
    """Single-value flavour of :class:`AssetCollection`: the first match."""

    @property
    def value(self) -> Optional[MediaObject]:
        return self.first


class AlbumCollection(LazyCollection[Album]):
    """Albums of an optional type, ordered by title unless told otherwise."""

    def __init__(
        self,
        store: IAssetStore,
        album_type: Optional[AlbumType] = None,
        filters: Iterable[Filter] = (),
        sort: Sequence[Sort] = (),
        *,
        context=None,
        compiler: Optional[QueryCompiler] = None,
    ):
        compiler = compiler or QueryCompiler()
        self._store = store
        self._context = context
        self._query = compiler.compile_albums(album_type, filters, sort)
        name = album_type.name.lower() if album_type is not None else "albums"
        super().__init__(self._load, name=name)

    @property
    def query(self) -> Query:
        return self._query

    def _load(self):
        return [Album(handle, self._context) for handle in self._store.fetch_albums(self._query)]
