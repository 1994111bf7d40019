"""Map raw asset handles onto typed media objects."""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from iMedia.domain.models.core import AssetHandle
from iMedia.domain.models.kinds import MediaKind
from iMedia.domain.models.media import MediaObject

LOGGER = logging.getLogger(__name__)


class TypedResultResolver:
    """Build the domain object for a handle, or nothing when kinds disagree.

    A mismatch is an expected outcome when scanning mixed result sets, so it
    yields ``None`` instead of raising.  Objects are bound to *context* so
    they can later mutate themselves or request representations.
    """

    def __init__(self, context=None):
        self._context = context

    def resolve(self, handle: AssetHandle, kind: MediaKind) -> Optional[MediaObject]:
        if not kind.matches(handle):
            return None
        return kind.media_class(handle, self._context)

    def resolve_all(self, handles: Iterable[AssetHandle], kind: MediaKind) -> List[MediaObject]:
        resolved: List[MediaObject] = []
        skipped = 0
        for handle in handles:
            media = self.resolve(handle, kind)
            if media is None:
                skipped += 1
                continue
            resolved.append(media)
        if skipped:
            LOGGER.debug("[RESOLVE] %d handles did not resolve to %s", skipped, kind.name)
        return resolved

    def resolve_any(self, handle: AssetHandle) -> Optional[MediaObject]:
        """Resolve *handle* to whichever kind it belongs to."""
        kind = MediaKind.for_handle(handle)
        if kind is None:
            return None
        return self.resolve(handle, kind)
