"""Single entry point for every change made to the media library."""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Optional

from iMedia.application.services.representation import invoke_completion
from iMedia.domain.models.changes import (
    AlbumCreationRequest,
    AlbumMembershipChangeRequest,
    AssetCreationRequest,
    AssetDeletionRequest,
    ChangeRequest,
    FavoriteChangeRequest,
)
from iMedia.domain.models.media import MediaObject
from iMedia.domain.models.result import Completion, Result
from iMedia.domain.repositories import IAssetStore
from iMedia.errors.handler import ErrorHandler, ErrorSeverity
from iMedia.events.media_events import (
    AlbumCreatedEvent,
    AlbumMembershipChangedEvent,
    AssetCreatedEvent,
    AssetDeletedEvent,
    AssetFavoritedEvent,
)

LOGGER = logging.getLogger(__name__)


class _CompletionOnce:
    """Forward only the first store completion; later ones are logged and dropped."""

    def __init__(self, intent: str, callback: Callable[[Result], None]):
        self._intent = intent
        self._callback = callback
        self._lock = threading.Lock()
        self._called = False

    def __call__(self, result: Result) -> None:
        with self._lock:
            if self._called:
                LOGGER.warning("[MUTATE] Duplicate completion for %s ignored", self._intent)
                return
            self._called = True
        self._callback(result)


class MutationPipeline:
    """Wrap store commits in a uniform ``Result`` completion.

    Every call builds exactly one change request.  A builder that rejects its
    input raises synchronously and the store is never touched.  Store errors
    reach the completion unchanged and are never retried here; a change
    request applies fully or not at all, which is the store's guarantee.
    """

    def __init__(
        self,
        store: IAssetStore,
        event_bus=None,
        error_handler: Optional[ErrorHandler] = None,
    ):
        self._store = store
        self._events = event_bus
        self._error_handler = error_handler

    def mutate(
        self,
        intent: str,
        build_request: Callable[[], ChangeRequest],
        completion: Completion,
        on_success: Optional[Callable[[Any], Any]] = None,
    ) -> ChangeRequest:
        request = build_request()
        LOGGER.info("[MUTATE] Submitting %s (%s)", intent, type(request).__name__)

        def _finish(result: Result) -> None:
            if not result.success:
                self._report_failure(intent, request, result.error)
                invoke_completion(completion, result, "MUTATE")
                return
            value = result.value
            if on_success is not None:
                try:
                    value = on_success(value)
                except Exception as exc:
                    LOGGER.exception("[MUTATE] Post-commit step for %s failed", intent)
                    invoke_completion(completion, Result.failure(exc), "MUTATE")
                    return
            self._publish(request, result.value)
            LOGGER.info("[MUTATE] %s committed", intent)
            invoke_completion(completion, Result.ok(value), "MUTATE")

        self._store.commit(request, _CompletionOnce(intent, _finish))
        return request

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------
    def favorite(self, media: MediaObject, is_favorite: bool, completion: Completion) -> ChangeRequest:
        """Set the favorite flag and, on success only, swap in the new handle."""

        def _build() -> ChangeRequest:
            handle = media.handle
            return FavoriteChangeRequest(handle.local_identifier, bool(is_favorite))

        def _swap(handle) -> None:
            media.replace_handle(handle)

        return self.mutate("favorite", _build, completion, on_success=_swap)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _report_failure(self, intent: str, request: ChangeRequest, error: BaseException) -> None:
        if self._error_handler is not None and isinstance(error, Exception):
            self._error_handler.handle(
                error,
                ErrorSeverity.WARNING,
                context={"intent": intent, "request": type(request).__name__},
            )
        else:
            LOGGER.warning("[MUTATE] %s failed: %s", intent, error)

    def _publish(self, request: ChangeRequest, value: Any) -> None:
        if self._events is None:
            return
        event = None
        if isinstance(request, FavoriteChangeRequest):
            event = AssetFavoritedEvent(
                local_identifier=request.local_identifier, is_favorite=request.is_favorite, source="mutation"
            )
        elif isinstance(request, AssetCreationRequest):
            event = AssetCreatedEvent(
                local_identifier=value.local_identifier, media_type=int(value.media_type), source="mutation"
            )
        elif isinstance(request, AssetDeletionRequest):
            event = AssetDeletedEvent(local_identifiers=request.local_identifiers, source="mutation")
        elif isinstance(request, AlbumCreationRequest):
            event = AlbumCreatedEvent(album_identifier=value.local_identifier, title=request.title, source="mutation")
        elif isinstance(request, AlbumMembershipChangeRequest):
            event = AlbumMembershipChangedEvent(
                album_identifier=request.album_identifier,
                added=request.added,
                removed=request.removed,
                source="mutation",
            )
        if event is not None:
            self._events.publish(event)
