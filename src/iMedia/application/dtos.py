from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Optional


class RepresentationQuality(Enum):
    LOW = "low"
    HIGH = "high"


@dataclass(frozen=True)
class DisplayRepresentation:
    value: Any
    quality: RepresentationQuality = RepresentationQuality.HIGH

    @property
    def is_degraded(self) -> bool:
        return self.quality is RepresentationQuality.LOW


@dataclass(frozen=True)
class LivePhotoData:
    """Still image bytes plus the movie file that make up a live photo."""

    still_image_data: bytes
    movie_path: Path
    thumbnail: Optional[bytes] = None


@dataclass(frozen=True)
class PageResult:
    """One page of a paginated fetch."""

    items: tuple
    page: int
    page_size: int

    @property
    def has_more(self) -> bool:
        # A full page means there may be more behind it.
        return len(self.items) == self.page_size
