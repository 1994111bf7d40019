import dataclasses
import itertools

import pytest

from iMedia.application.services.resolver import TypedResultResolver
from iMedia.domain.models.changes import AssetCreationRequest, AssetResource, ResourceType
from iMedia.domain.models.core import AssetHandle, MediaSubtypes, MediaType
from iMedia.domain.models.kinds import MediaKind
from iMedia.domain.models.media import Audio, LivePhoto, Photo, Video
from iMedia.errors import InvalidArgumentError, MediaNotBoundError

ALL_SUBTYPES = [
    MediaSubtypes.NONE,
    MediaSubtypes.PHOTO_PANORAMA,
    MediaSubtypes.PHOTO_HDR,
    MediaSubtypes.PHOTO_LIVE,
    MediaSubtypes.PHOTO_LIVE | MediaSubtypes.PHOTO_HDR,
    MediaSubtypes.PHOTO_DEPTH_EFFECT,
    MediaSubtypes.VIDEO_TIMELAPSE,
    MediaSubtypes.VIDEO_STREAMED | MediaSubtypes.VIDEO_HIGH_FRAME_RATE,
]


@pytest.fixture
def resolver():
    return TypedResultResolver()


def test_every_handle_resolves_to_at_most_one_kind(resolver):
    for media_type, subtypes in itertools.product(MediaType, ALL_SUBTYPES):
        handle = AssetHandle("id", media_type, subtypes)
        resolved = [kind for kind in MediaKind if resolver.resolve(handle, kind) is not None]
        assert len(resolved) <= 1, (media_type, subtypes, resolved)
        if media_type is not MediaType.UNKNOWN:
            assert len(resolved) == 1, (media_type, subtypes)


def test_resolved_classes(resolver, make_handle):
    assert type(resolver.resolve_any(make_handle("p"))) is Photo
    assert type(resolver.resolve_any(make_handle("l", subtypes=MediaSubtypes.PHOTO_LIVE))) is LivePhoto
    assert type(resolver.resolve_any(make_handle("v", MediaType.VIDEO))) is Video
    assert type(resolver.resolve_any(make_handle("a", MediaType.AUDIO))) is Audio
    assert resolver.resolve_any(make_handle("u", MediaType.UNKNOWN)) is None


def test_resolve_all_keeps_order_and_drops_mismatches(resolver, make_handle):
    handles = [make_handle("p1"), make_handle("v1", MediaType.VIDEO), make_handle("p2")]
    assert [m.local_identifier for m in resolver.resolve_all(handles, MediaKind.PHOTO)] == ["p1", "p2"]


def test_metadata_is_a_frozen_copy(resolver, make_handle, dates):
    handle = make_handle("p", creation_date=dates[0], is_favorite=True)
    photo = resolver.resolve(handle, MediaKind.PHOTO)

    assert photo.metadata.creation_date == dates[0]
    assert photo.metadata.is_favorite is True
    assert photo.metadata.type is MediaType.IMAGE
    with pytest.raises(dataclasses.FrozenInstanceError):
        photo.metadata.is_favorite = False


def test_replace_handle_only_accepts_the_same_asset(make_handle):
    photo = Photo(make_handle("p"))

    photo.replace_handle(make_handle("p", is_favorite=True))
    assert photo.metadata.is_favorite is True
    with pytest.raises(ValueError):
        photo.replace_handle(make_handle("other"))


def test_unbound_media_cannot_mutate(make_handle):
    photo = Photo(make_handle("p"))
    with pytest.raises(MediaNotBoundError):
        photo.favorite(True, lambda result: None)


def test_media_equality_is_by_kind_and_identifier(make_handle):
    assert Photo(make_handle("p")) == Photo(make_handle("p", is_favorite=True))
    assert Photo(make_handle("p")) != Video(make_handle("p", MediaType.VIDEO))
    assert len({Photo(make_handle("p")), Photo(make_handle("p"))}) == 1


def test_creation_request_validation(tmp_path):
    with pytest.raises(InvalidArgumentError):
        AssetCreationRequest(resources=())
    with pytest.raises(InvalidArgumentError):
        AssetResource(ResourceType.PHOTO)
    with pytest.raises(InvalidArgumentError):
        AssetCreationRequest(resources=[AssetResource(ResourceType.PAIRED_VIDEO, data=b"mov")])
    with pytest.raises(InvalidArgumentError):
        AssetCreationRequest(
            resources=[AssetResource(ResourceType.PHOTO, data=b"a"), AssetResource(ResourceType.VIDEO, data=b"b")]
        )

    live = AssetCreationRequest(
        resources=[
            AssetResource(ResourceType.PHOTO, data=b"jpg"),
            AssetResource(ResourceType.PAIRED_VIDEO, file_path=tmp_path / "clip.mov", should_move_file=True),
        ]
    )
    assert live.media_type is MediaType.IMAGE
    assert live.media_subtypes == MediaSubtypes.PHOTO_LIVE
    assert live.primary_resource.resource_type is ResourceType.PHOTO
