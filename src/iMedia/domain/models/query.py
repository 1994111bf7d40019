import dataclasses
from dataclasses import dataclass
from typing import Optional

from ...errors import InvalidArgumentError
from .predicates import TRUE, Predicate
from .sort import SortDescriptor, SortOrder


@dataclass(frozen=True)
class Query:
    """Compiled, store-ready query.

    A pure value: it can be executed any number of times against any store.
    When two records compare equal on every ordering term, they come back in
    the store's natural order (insertion order for the bundled stores).
    """

    predicate: Predicate = TRUE
    ordering: tuple[SortDescriptor, ...] = ()
    album_identifier: Optional[str] = None
    limit: Optional[int] = None
    offset: int = 0

    def in_album(self, album_identifier: str) -> "Query":
        if not album_identifier:
            raise InvalidArgumentError("Album identifier must not be empty")
        return dataclasses.replace(self, album_identifier=album_identifier)

    def ordered_by(self, key: str, order: SortOrder = SortOrder.ASC) -> "Query":
        return dataclasses.replace(self, ordering=self.ordering + (SortDescriptor(key, order),))

    def paginate(self, page: int, page_size: int) -> "Query":
        """Restrict to one page; pages are 1-based.

        Pages are only meaningful over a fixed order, so a query without
        ordering is rejected.
        """
        if not self.ordering:
            raise InvalidArgumentError("Pagination requires at least one sort key")
        if page < 1 or page_size < 1:
            raise InvalidArgumentError(f"Invalid page {page} / page size {page_size}")
        return dataclasses.replace(self, offset=(page - 1) * page_size, limit=page_size)
