"""Tests for the custom error hierarchy."""

from iMedia.errors import (
    ApplicationError,
    ChangeRequestError,
    ConnectionPoolExhausted,
    DatabaseError,
    DomainError,
    IMediaError,
    InfrastructureError,
    InvalidArgumentError,
    AssetNotFoundError,
    MediaNotBoundError,
    PermissionDeniedError,
    RepresentationCancelledError,
    RepresentationError,
    RepresentationUnavailableError,
    SettingsLoadError,
    SettingsValidationError,
    StoreError,
)


def test_layers_share_one_base():
    for layer in (DomainError, InfrastructureError, ApplicationError):
        assert issubclass(layer, IMediaError)
        assert isinstance(layer("x"), IMediaError)


def test_invalid_argument_is_also_a_value_error():
    assert issubclass(InvalidArgumentError, DomainError)
    assert issubclass(InvalidArgumentError, ValueError)
    assert issubclass(AssetNotFoundError, DomainError)


def test_store_errors():
    for error in (DatabaseError, ConnectionPoolExhausted, ChangeRequestError, PermissionDeniedError):
        assert issubclass(error, StoreError)
    assert issubclass(StoreError, InfrastructureError)


def test_application_errors():
    assert issubclass(MediaNotBoundError, ApplicationError)
    assert issubclass(RepresentationUnavailableError, RepresentationError)
    assert issubclass(RepresentationCancelledError, RepresentationError)


def test_settings_errors_are_imedia_errors():
    assert issubclass(SettingsLoadError, IMediaError)
    assert issubclass(SettingsValidationError, IMediaError)


def test_error_message():
    err = ChangeRequestError("album-42 no longer exists")
    assert str(err) == "album-42 no longer exists"
