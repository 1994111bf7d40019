"""Display representation requests and the collapsing of interim deliveries.

Stores may answer one representation request several times: a quick low
quality preview first, the real thing later.  Callers get exactly one
terminal callback.  Interim previews are held back, a final low quality
delivery is forwarded as a degraded success, and any error wins over
whatever payload came with it.
"""

from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Any, Optional, Tuple

from iMedia.application.dtos import DisplayRepresentation, RepresentationQuality
from iMedia.config import DEFAULT_TARGET_SIZE
from iMedia.domain.models.media import MediaObject
from iMedia.domain.models.representation import ContentMode, RepresentationInfo
from iMedia.domain.models.result import Completion, Result
from iMedia.domain.repositories import IAssetStore
from iMedia.errors import RepresentationCancelledError, RepresentationUnavailableError

LOGGER = logging.getLogger(__name__)


class Classification(Enum):
    SUPPRESS = "suppress"
    SUCCESS = "success"
    DEGRADED = "degraded"
    FAILURE = "failure"


class DegradedResultClassifier:
    def classify(self, payload: Optional[Any], info: RepresentationInfo) -> Classification:
        if info.error is not None or info.is_cancelled:
            return Classification.FAILURE
        if info.is_degraded and not info.is_final:
            return Classification.SUPPRESS
        if payload is None:
            return Classification.FAILURE
        if info.is_degraded:
            return Classification.DEGRADED
        return Classification.SUCCESS

    def to_result(self, payload: Optional[Any], info: RepresentationInfo) -> Optional[Result]:
        """Return the terminal result for a delivery, or None to keep waiting."""
        classification = self.classify(payload, info)
        if classification is Classification.SUPPRESS:
            return None
        if classification is Classification.FAILURE:
            if info.error is not None:
                return Result.failure(info.error)
            if info.is_cancelled:
                return Result.failure(RepresentationCancelledError("The store cancelled the request"))
            return Result.failure(RepresentationUnavailableError("The store delivered no data"))
        if classification is Classification.DEGRADED:
            return Result.ok(DisplayRepresentation(payload, RepresentationQuality.LOW), degraded=True)
        return Result.ok(DisplayRepresentation(payload, RepresentationQuality.HIGH))


def invoke_completion(completion: Completion, result: Result, tag: str) -> None:
    """Run a caller callback on a store thread without killing that thread."""
    try:
        completion(result)
    except Exception:
        LOGGER.exception("[%s] Completion callback raised", tag)


class RepresentationRequest:
    """One logical representation request.

    Feeds store deliveries through the classifier and forwards exactly one
    terminal result.  After :meth:`cancel` nothing is forwarded at all.
    """

    def __init__(self, completion: Completion, classifier: Optional[DegradedResultClassifier] = None):
        self._completion = completion
        self._classifier = classifier or DegradedResultClassifier()
        self._lock = threading.Lock()
        self._finished = False
        self._cancelled = False
        self._store: Optional[IAssetStore] = None
        self._request_id: Optional[int] = None
        self.suppressed_count = 0

    @property
    def is_finished(self) -> bool:
        return self._finished

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled

    @property
    def request_id(self) -> Optional[int]:
        return self._request_id

    def attach(self, store: IAssetStore, request_id: int) -> None:
        with self._lock:
            self._store = store
            self._request_id = request_id
            cancel_now = self._cancelled
        if cancel_now:
            store.cancel_representation(request_id)

    def deliver(self, payload: Optional[Any], info: RepresentationInfo) -> None:
        """Store-facing handler."""
        result = self._classifier.to_result(payload, info)
        with self._lock:
            if self._cancelled or self._finished:
                return
            if result is None:
                self.suppressed_count += 1
                return
            self._finished = True
        invoke_completion(self._completion, result, "REPRESENTATION")

    def cancel(self) -> None:
        with self._lock:
            if self._cancelled or self._finished:
                return
            self._cancelled = True
            store, request_id = self._store, self._request_id
        if store is not None and request_id is not None:
            store.cancel_representation(request_id)


class RepresentationService:
    def __init__(self, store: IAssetStore, classifier: Optional[DegradedResultClassifier] = None):
        self._store = store
        self._classifier = classifier or DegradedResultClassifier()

    def request(
        self,
        media: MediaObject,
        completion: Completion,
        target_size: Optional[Tuple[int, int]] = None,
        content_mode: ContentMode = ContentMode.DEFAULT,
    ) -> RepresentationRequest:
        request = RepresentationRequest(completion, self._classifier)
        size = tuple(target_size) if target_size else DEFAULT_TARGET_SIZE
        LOGGER.debug(
            "[REPRESENTATION] Requesting %s for %s (%s)", size, media.local_identifier, content_mode.value
        )
        request_id = self._store.request_representation(media.handle, size, content_mode, request.deliver)
        request.attach(self._store, request_id)
        return request
