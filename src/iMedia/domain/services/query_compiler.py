"""Turn declarative filters and sorts into executable :class:`Query` values."""

from __future__ import annotations

import logging
from typing import Iterable, Optional, Sequence

from ..models.core import AlbumType
from ..models.filters import ByIdentifier, Filter, compile_filter
from ..models.kinds import MediaKind
from ..models.predicates import And, Comparison, Op, Predicate
from ..models.query import Query
from ..models.sort import AlbumSortKey, Sort, compile_sorts

LOGGER = logging.getLogger(__name__)

DEFAULT_ALBUM_SORT = Sort(AlbumSortKey.LOCALIZED_TITLE, ascending=True)


class QueryCompiler:
    """Compile filter and sort sets.

    Filters are always AND-combined in the order given; OR needs a
    :class:`~iMedia.domain.models.filters.Custom` filter.  The media kind's
    own type constraint is injected ahead of the caller's filters, so a
    query compiled for one kind can never return another.
    """

    def compile(
        self,
        filters: Iterable[Filter] = (),
        sorts: Sequence[Sort] = (),
        kind: Optional[MediaKind] = None,
        *,
        require_ordering: bool = False,
        album_identifier: Optional[str] = None,
    ) -> Query:
        filters = tuple(filters)
        ordering = compile_sorts(sorts, require=require_ordering)
        self._warn_conflicting_identifiers(filters)

        terms: list[Predicate] = []
        if kind is not None:
            terms.append(kind.predicate())
        terms.extend(compile_filter(item) for item in filters)

        query = Query(predicate=And(tuple(terms)), ordering=ordering)
        if album_identifier is not None:
            query = query.in_album(album_identifier)
        return query

    def compile_albums(
        self,
        album_type: Optional[AlbumType] = None,
        filters: Iterable[Filter] = (),
        sorts: Sequence[Sort] = (),
    ) -> Query:
        """Album variant of :meth:`compile`.

        Albums are always ordered by title (ascending) after any caller keys,
        unless the caller already orders by title.
        """
        filters = tuple(filters)
        self._warn_conflicting_identifiers(filters)

        terms: list[Predicate] = []
        if album_type is not None:
            terms.append(Comparison("album_type", Op.EQ, album_type))
            terms.append(Comparison("album_subtype", Op.IN, sorted(album_type.subtypes)))
        terms.extend(compile_filter(item) for item in filters)

        ordering = compile_sorts(tuple(sorts) + (DEFAULT_ALBUM_SORT,), require=True)
        return Query(predicate=And(tuple(terms)), ordering=ordering)

    @staticmethod
    def _warn_conflicting_identifiers(filters: tuple) -> None:
        identifiers = {item.identifier for item in filters if isinstance(item, ByIdentifier)}
        if len(identifiers) > 1:
            # Kept legal: the query simply matches nothing.
            LOGGER.warning(
                "[QUERY] %d different ByIdentifier filters can never match together: %s",
                len(identifiers), sorted(identifiers),
            )


def identifier_query(local_identifier: str, kind: MediaKind) -> Query:
    """Query for one asset of *kind* by identifier."""
    return QueryCompiler().compile([ByIdentifier(local_identifier)], kind=kind)

