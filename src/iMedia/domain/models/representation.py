from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional


class ContentMode(Enum):
    DEFAULT = "default"
    ASPECT_FIT = "aspect_fit"
    ASPECT_FILL = "aspect_fill"


@dataclass(frozen=True)
class RepresentationInfo:
    """Flags a store attaches to every representation delivery."""

    is_degraded: bool = False
    # False while the store still intends to deliver something better.
    is_final: bool = True
    error: Optional[BaseException] = None
    is_cancelled: bool = False


RepresentationHandler = Callable[[Optional[Any], RepresentationInfo], None]
