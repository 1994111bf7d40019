from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Iterable, TypeVar, Union

from ...errors import InvalidArgumentError
from .core import MediaType, native_subtypes
from .kinds import MediaKind
from .predicates import TRUE, BitmaskAny, Comparison, Op, Predicate

SubtypeT = TypeVar("SubtypeT")


class Filter:
    """One declarative constraint; compiles to exactly one predicate fragment."""

    def compile(self) -> Predicate:
        raise NotImplementedError


@dataclass(frozen=True)
class ByIdentifier(Filter):
    identifier: str

    def __post_init__(self):
        if not isinstance(self.identifier, str) or not self.identifier:
            raise InvalidArgumentError("ByIdentifier requires a non-empty identifier")

    def compile(self) -> Predicate:
        return Comparison("local_identifier", Op.EQ, self.identifier)


@dataclass(frozen=True)
class ByMediaType(Filter):
    """Restrict to a native type tag, or to everything a media kind covers."""

    media_type: Union[MediaKind, MediaType]

    def compile(self) -> Predicate:
        if isinstance(self.media_type, MediaKind):
            return self.media_type.predicate()
        return Comparison("media_type", Op.EQ, MediaType(self.media_type))


@dataclass(frozen=True)
class BySubtypes(Filter, Generic[SubtypeT]):
    """Matches assets carrying at least one of *subtypes*.

    An empty set places no constraint at all.
    """

    subtypes: frozenset

    def __init__(self, subtypes: Iterable[SubtypeT] = ()):
        object.__setattr__(self, "subtypes", frozenset(subtypes))

    def compile(self) -> Predicate:
        mask = native_subtypes(self.subtypes)
        if not mask:
            return TRUE
        return BitmaskAny("media_subtypes", int(mask))


@dataclass(frozen=True)
class ByTitle(Filter):
    """Album filter on the localized title."""

    title: str

    def compile(self) -> Predicate:
        return Comparison("localized_title", Op.EQ, self.title)


@dataclass(frozen=True)
class Custom(Filter):
    """Escape hatch for anything else, including OR combinations."""

    predicate: Predicate

    def compile(self) -> Predicate:
        return self.predicate


def compile_filter(item: Filter) -> Predicate:
    if not isinstance(item, Filter):
        raise InvalidArgumentError(f"Not a filter: {item!r}")
    return item.compile()


__all__ = [
    "ByIdentifier",
    "ByMediaType",
    "BySubtypes",
    "ByTitle",
    "Custom",
    "Filter",
    "compile_filter",
]
