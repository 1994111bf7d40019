"""Shared plumbing for stores that run commits and renders in the background."""

from __future__ import annotations

import itertools
import logging
import threading
from abc import abstractmethod
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Iterator, Optional, Tuple

from iMedia.config import DEFAULT_STORE_WORKERS
from iMedia.domain.models.changes import (
    AlbumCreationRequest,
    AlbumMembershipChangeRequest,
    AssetCreationRequest,
    AssetDeletionRequest,
    ChangeRequest,
    FavoriteChangeRequest,
)
from iMedia.domain.models.core import AssetHandle
from iMedia.domain.models.representation import ContentMode, RepresentationHandler, RepresentationInfo
from iMedia.domain.models.result import Result
from iMedia.domain.repositories import IAssetStore
from iMedia.errors import ChangeRequestError, StoreError

LOGGER = logging.getLogger(__name__)

Delivery = Tuple[Optional[Any], RepresentationInfo]


class BackgroundStore(IAssetStore):
    """Run change requests and representation requests off the caller's thread.

    Commits go through a single worker, so they are applied and reported in
    submission order.  Representation requests use their own pool and stop
    at the next delivery once cancelled.
    """

    def __init__(self, max_workers: int = DEFAULT_STORE_WORKERS):
        self._commit_executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="imedia-commit")
        self._render_executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="imedia-render")
        self._request_ids = itertools.count(1)
        self._running: set[int] = set()
        self._cancelled: set[int] = set()
        self._cancel_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Commits
    # ------------------------------------------------------------------
    def commit(self, request: ChangeRequest, completion: Callable[[Result], None]) -> None:
        self._commit_executor.submit(self._run_commit, request, completion)

    def _run_commit(self, request: ChangeRequest, completion: Callable[[Result], None]) -> None:
        try:
            value = self._apply(request)
        except StoreError as exc:
            LOGGER.info("[STORE-COMMIT] %s rejected: %s", type(request).__name__, exc)
            result = Result.failure(exc)
        except Exception as exc:
            LOGGER.exception("[STORE-COMMIT] %s failed unexpectedly", type(request).__name__)
            error = StoreError(f"Unexpected failure applying {type(request).__name__}: {exc}")
            error.__cause__ = exc
            result = Result.failure(error)
        else:
            result = Result.ok(value)
        completion(result)

    def _apply(self, request: ChangeRequest) -> Any:
        if isinstance(request, FavoriteChangeRequest):
            return self._apply_favorite(request)
        if isinstance(request, AssetCreationRequest):
            return self._apply_creation(request)
        if isinstance(request, AssetDeletionRequest):
            return self._apply_deletion(request)
        if isinstance(request, AlbumCreationRequest):
            return self._apply_album_creation(request)
        if isinstance(request, AlbumMembershipChangeRequest):
            return self._apply_membership(request)
        raise ChangeRequestError(f"Unsupported change request: {type(request).__name__}")

    @abstractmethod
    def _apply_favorite(self, request: FavoriteChangeRequest): ...

    @abstractmethod
    def _apply_creation(self, request: AssetCreationRequest): ...

    @abstractmethod
    def _apply_deletion(self, request: AssetDeletionRequest): ...

    @abstractmethod
    def _apply_album_creation(self, request: AlbumCreationRequest): ...

    @abstractmethod
    def _apply_membership(self, request: AlbumMembershipChangeRequest): ...

    # ------------------------------------------------------------------
    # Representations
    # ------------------------------------------------------------------
    def request_representation(
        self,
        handle: AssetHandle,
        target_size: Tuple[int, int],
        content_mode: ContentMode,
        handler: RepresentationHandler,
    ) -> int:
        request_id = next(self._request_ids)
        with self._cancel_lock:
            self._running.add(request_id)
        self._render_executor.submit(
            self._run_representation, request_id, handle, target_size, content_mode, handler
        )
        return request_id

    def cancel_representation(self, request_id: int) -> None:
        with self._cancel_lock:
            if request_id in self._running:
                self._cancelled.add(request_id)

    def _is_cancelled(self, request_id: int) -> bool:
        with self._cancel_lock:
            return request_id in self._cancelled

    def _run_representation(
        self,
        request_id: int,
        handle: AssetHandle,
        target_size: Tuple[int, int],
        content_mode: ContentMode,
        handler: RepresentationHandler,
    ) -> None:
        last: Optional[Delivery] = None
        try:
            for payload, info in self._representations(handle, target_size, content_mode):
                if self._is_cancelled(request_id):
                    LOGGER.debug("[STORE-RENDER] Request %d cancelled", request_id)
                    return
                handler(payload, info)
                last = (payload, info)
                if info.is_final or info.error is not None or info.is_cancelled:
                    return
            if self._is_cancelled(request_id):
                return
            # The stream ended without a final delivery.
            if last is None:
                LOGGER.debug("[STORE-RENDER] Request %d produced nothing", request_id)
                handler(None, RepresentationInfo())
            else:
                LOGGER.debug("[STORE-RENDER] Request %d ended on an interim delivery", request_id)
                handler(last[0], RepresentationInfo(is_degraded=last[1].is_degraded, is_final=True))
        except StoreError as exc:
            if not self._is_cancelled(request_id):
                handler(None, RepresentationInfo(is_final=True, error=exc))
        except Exception as exc:
            LOGGER.exception("[STORE-RENDER] Request %d failed", request_id)
            if not self._is_cancelled(request_id):
                error = StoreError(f"Representation request {request_id} failed: {exc}")
                error.__cause__ = exc
                handler(None, RepresentationInfo(is_final=True, error=error))
        finally:
            with self._cancel_lock:
                self._running.discard(request_id)
                self._cancelled.discard(request_id)

    def pending_representations(self) -> int:
        """Number of representation requests still running."""
        with self._cancel_lock:
            return len(self._running)

    @abstractmethod
    def _representations(
        self, handle: AssetHandle, target_size: Tuple[int, int], content_mode: ContentMode
    ) -> Iterator[Delivery]:
        """Yield ``(payload, info)`` deliveries for *handle*, best last."""

    def shutdown(self) -> None:
        self._commit_executor.shutdown(wait=True)
        self._render_executor.shutdown(wait=True)
