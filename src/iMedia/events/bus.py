"""In-process publish/subscribe for library events."""

import logging
import threading
import uuid
from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Type

from .domain_events import DomainEvent


@dataclass
class Subscription:
    """Handle returned by :meth:`EventBus.subscribe`."""

    event_type: Type[DomainEvent]
    handler: Callable[[DomainEvent], None]
    run_async: bool = False
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    active: bool = True

    def cancel(self) -> None:
        self.active = False


class EventBus:
    """Dispatch events to handlers registered for the event's type or a base of it.

    Synchronous handlers run on the publishing thread, which for mutations is
    a store worker.  Asynchronous handlers run on a small private pool.  A
    failing handler is logged and never affects the publisher or its peers.
    """

    def __init__(self, logger: Optional[logging.Logger] = None, max_workers: int = 2):
        self._logger = logger or logging.getLogger(__name__)
        self._subscriptions: Dict[Type[DomainEvent], List[Subscription]] = defaultdict(list)
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="imedia-events")
        self._lock = threading.Lock()
        self._closed = False

    def subscribe(
        self, event_type: Type[DomainEvent], handler: Callable[[DomainEvent], None], async_: bool = False
    ) -> Subscription:
        subscription = Subscription(event_type=event_type, handler=handler, run_async=async_)
        with self._lock:
            self._subscriptions[event_type].append(subscription)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        subscription.cancel()
        with self._lock:
            subscribers = self._subscriptions.get(subscription.event_type, [])
            if subscription in subscribers:
                subscribers.remove(subscription)

    def publish(self, event: DomainEvent) -> None:
        with self._lock:
            matched = [
                subscription
                for event_type in type(event).__mro__
                for subscription in self._subscriptions.get(event_type, ())
            ]
            closed = self._closed

        for subscription in matched:
            if not subscription.active:
                continue
            if not subscription.run_async:
                self._call(subscription.handler, event)
            elif closed:
                self._logger.warning("[EVENTS] Bus is shut down; dropped %s", type(event).__name__)
            else:
                self._executor.submit(self._call, subscription.handler, event)

    def _call(self, handler: Callable[[DomainEvent], None], event: DomainEvent) -> None:
        try:
            handler(event)
        except Exception:
            self._logger.exception("[EVENTS] Handler failed for %s", type(event).__name__)

    def shutdown(self) -> None:
        with self._lock:
            self._closed = True
        self._executor.shutdown(wait=True)
