import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional

from ..events.bus import EventBus
from ..events.domain_events import DomainEvent


class ErrorSeverity(Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


_SERIOUS = (ErrorSeverity.ERROR, ErrorSeverity.CRITICAL)


@dataclass(frozen=True)
class ErrorOccurredEvent(DomainEvent):
    error: Optional[Exception] = None
    severity: ErrorSeverity = ErrorSeverity.ERROR
    context: dict = field(default_factory=dict)


ErrorCallback = Callable[[str, ErrorSeverity], None]


class ErrorHandler:
    """Report failures the library swallows on behalf of a caller.

    Every handled error is logged at its severity and published as an
    :class:`ErrorOccurredEvent`.  Registered callbacks only hear about
    errors of severity ``ERROR`` or worse.
    """

    def __init__(self, logger: logging.Logger, event_bus: EventBus):
        self._logger = logger
        self._events = event_bus
        self._callbacks: List[ErrorCallback] = []

    def register_callback(self, callback: ErrorCallback) -> None:
        self._callbacks.append(callback)

    def handle(self, error: Exception, severity: ErrorSeverity = ErrorSeverity.ERROR, context: Optional[dict] = None):
        context = dict(context or {})
        log = getattr(self._logger, severity.value, self._logger.error)
        log("[ERROR] %s: %s %s", type(error).__name__, error, context)

        self._events.publish(
            ErrorOccurredEvent(error=error, severity=severity, context=context, source="error-handler")
        )

        if severity in _SERIOUS:
            for callback in list(self._callbacks):
                callback(str(error), severity)
