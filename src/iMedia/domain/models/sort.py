from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, Iterable, TypeVar

from ...errors import InvalidArgumentError

KeyT = TypeVar("KeyT", bound=Enum)


class SortOrder(Enum):
    ASC = "ASC"
    DESC = "DESC"


class AssetSortKey(str, Enum):
    CREATION_DATE = "creation_date"
    MODIFICATION_DATE = "modification_date"
    LOCAL_IDENTIFIER = "local_identifier"
    IS_FAVORITE = "is_favorite"


class AlbumSortKey(str, Enum):
    LOCALIZED_TITLE = "localized_title"
    LOCAL_IDENTIFIER = "local_identifier"
    CREATION_DATE = "creation_date"


@dataclass(frozen=True)
class Sort(Generic[KeyT]):
    key: KeyT
    ascending: bool = True


@dataclass(frozen=True)
class SortDescriptor:
    """Compiled ordering term: a record attribute and a direction."""

    key: str
    order: SortOrder

    @property
    def ascending(self) -> bool:
        return self.order is SortOrder.ASC


def compile_sorts(sorts: Iterable[Sort[Any]], require: bool = False) -> tuple[SortDescriptor, ...]:
    """Flatten *sorts* into ordering descriptors, keeping the given order.

    A key repeated later in the sequence is dropped; the first occurrence
    wins.  With ``require=True`` an empty result raises
    :class:`InvalidArgumentError`, for callers that page or otherwise depend
    on a deterministic order.  Rows equal on every key keep the store's
    natural order.
    """

    descriptors: list[SortDescriptor] = []
    seen: set[str] = set()
    for sort in sorts:
        if not isinstance(sort, Sort):
            raise InvalidArgumentError(f"Not a sort: {sort!r}")
        key = sort.key.value if isinstance(sort.key, Enum) else str(sort.key)
        if key in seen:
            continue
        seen.add(key)
        descriptors.append(SortDescriptor(key, SortOrder.ASC if sort.ascending else SortOrder.DESC))
    if require and not descriptors:
        raise InvalidArgumentError("At least one sort key is required for a deterministic ordering")
    return tuple(descriptors)


def sort_records(records: Iterable[Any], ordering: Iterable[SortDescriptor]) -> list:
    """Order *records* in memory the way SQLite orders rows.

    ``None`` sorts first ascending and last descending.  Python's sort is
    stable, so applying the keys from last to first yields a multi-key sort
    that leaves full ties in their incoming order.
    """

    result = list(records)
    for descriptor in reversed(tuple(ordering)):
        result.sort(
            key=lambda record, k=descriptor.key: _null_first(getattr(record, k, None)),
            reverse=not descriptor.ascending,
        )
    return result


def _null_first(value: Any) -> tuple:
    if value is None:
        return (0, 0)
    if isinstance(value, Enum):
        value = value.value
    return (1, value)
