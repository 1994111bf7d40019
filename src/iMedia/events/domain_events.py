"""Base type for everything published on the library's event bus."""

import itertools
from dataclasses import dataclass, field
from datetime import datetime, timezone

_sequence = itertools.count(1)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class DomainEvent:
    """A fact about the library, published after it happened.

    ``sequence`` increases monotonically per process, so subscribers can
    order events published from different store threads.  ``source`` names
    the component that published it (``"mutation"``, ``"collection"``...).
    """

    source: str = ""
    sequence: int = field(default_factory=lambda: next(_sequence))
    occurred_at: datetime = field(default_factory=_utc_now)

    @property
    def name(self) -> str:
        return type(self).__name__
