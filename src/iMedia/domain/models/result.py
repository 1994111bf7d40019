from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, Optional, TypeVar

T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of one asynchronous request: a value or an error, never both.

    ``degraded`` marks a success that carries less than what was asked for
    (e.g. a low resolution preview); it is not an error.
    """

    value: Optional[T] = None
    error: Optional[BaseException] = None
    degraded: bool = False

    @classmethod
    def ok(cls, value: T = None, degraded: bool = False) -> Result[T]:
        return cls(value=value, degraded=degraded)

    @classmethod
    def failure(cls, error: BaseException) -> Result[T]:
        return cls(error=error)

    @property
    def success(self) -> bool:
        return self.error is None

    def get(self) -> T:
        """Return the value or raise the carried error."""
        if self.error is not None:
            raise self.error
        return self.value

    def map(self, func: Callable[[T], U]) -> Result[U]:
        if self.error is not None:
            return Result(error=self.error)
        return Result(value=func(self.value), degraded=self.degraded)


Completion = Callable[[Result], None]
