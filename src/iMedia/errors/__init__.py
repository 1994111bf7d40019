"""Custom exception hierarchy for iMedia."""

from __future__ import annotations


class IMediaError(Exception):
    """Base class for all custom errors raised by iMedia."""


# --- 3-layer hierarchy ---

class DomainError(IMediaError):
    """Base class for domain-level errors."""


class InfrastructureError(IMediaError):
    """Base class for infrastructure-level errors."""


class ApplicationError(IMediaError):
    """Base class for application-level errors."""


# --- Domain errors ---

class InvalidArgumentError(DomainError, ValueError):
    """Raised when a filter, sort or change request is malformed.

    Always raised synchronously, before any store call is made.
    """


class AssetNotFoundError(DomainError):
    """Raised by command surfaces when an identifier names no asset."""


# --- Infrastructure errors ---

class StoreError(InfrastructureError):
    """Failure reported by an asset store.

    The library never retries or reinterprets these; they reach callers
    exactly as the store produced them.
    """


class DatabaseError(StoreError):
    """Raised when a database operation fails."""


class ConnectionPoolExhausted(StoreError):
    """Raised when no connections are available in the pool."""


class ChangeRequestError(StoreError):
    """Raised when a change request cannot be applied (conflict, missing item)."""


class PermissionDeniedError(StoreError):
    """Raised when the store refuses access to the library."""


# --- Application errors ---

class MediaNotBoundError(ApplicationError):
    """Raised when a media object without a library context is asked to mutate."""


class RepresentationError(ApplicationError):
    """Base class for display representation failures."""


class RepresentationUnavailableError(RepresentationError):
    """Raised when the store finished a request without delivering any data."""


class RepresentationCancelledError(RepresentationError):
    """Raised when the store cancelled a representation request on its own."""


# --- Settings ---

class SettingsError(IMediaError):
    """Base class for settings related failures."""


class SettingsLoadError(SettingsError):
    """Raised when the settings file cannot be parsed or loaded."""


class SettingsValidationError(SettingsError):
    """Raised when settings data fails schema validation."""
