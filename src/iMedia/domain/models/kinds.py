"""The closed set of media kinds and the native constraint each one implies.

Photos and live photos share the ``IMAGE`` type tag; the ``PHOTO_LIVE``
subtype bit is what tells them apart, so a kind is described by its type tag
plus the subtype bits it requires and the ones it refuses.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .core import AssetHandle, MediaSubtypes, MediaType
from .predicates import And, BitmaskAny, BitmaskNone, Comparison, Op, Predicate


@dataclass(frozen=True)
class KindSpec:
    name: str
    media_type: MediaType
    required_subtypes: MediaSubtypes = MediaSubtypes.NONE
    excluded_subtypes: MediaSubtypes = MediaSubtypes.NONE


class MediaKind(Enum):
    PHOTO = KindSpec("photo", MediaType.IMAGE, excluded_subtypes=MediaSubtypes.PHOTO_LIVE)
    LIVE_PHOTO = KindSpec("live_photo", MediaType.IMAGE, required_subtypes=MediaSubtypes.PHOTO_LIVE)
    VIDEO = KindSpec("video", MediaType.VIDEO)
    AUDIO = KindSpec("audio", MediaType.AUDIO)

    @property
    def media_type(self) -> MediaType:
        return self.value.media_type

    @property
    def required_subtypes(self) -> MediaSubtypes:
        return self.value.required_subtypes

    @property
    def excluded_subtypes(self) -> MediaSubtypes:
        return self.value.excluded_subtypes

    @property
    def media_class(self) -> type:
        """Domain class instances of this kind resolve to."""
        from .media import media_class_for

        return media_class_for(self)

    def matches(self, handle: AssetHandle) -> bool:
        if handle.media_type != self.media_type:
            return False
        subtypes = MediaSubtypes(handle.media_subtypes)
        if self.required_subtypes and not (subtypes & self.required_subtypes):
            return False
        if subtypes & self.excluded_subtypes:
            return False
        return True

    def predicate(self) -> Predicate:
        """The native constraint selecting exactly the assets of this kind."""
        terms: list[Predicate] = [Comparison("media_type", Op.EQ, self.media_type)]
        if self.required_subtypes:
            terms.append(BitmaskAny("media_subtypes", int(self.required_subtypes)))
        if self.excluded_subtypes:
            terms.append(BitmaskNone("media_subtypes", int(self.excluded_subtypes)))
        return And(tuple(terms))

    @classmethod
    def for_handle(cls, handle: AssetHandle):
        """Return the single kind *handle* belongs to, or ``None``."""
        for kind in cls:
            if kind.matches(handle):
                return kind
        return None
