import itertools

import pytest

from iMedia.application.services.resolver import TypedResultResolver
from iMedia.domain.models.core import LivePhotoSubtype, MediaSubtypes, MediaType, PhotoSubtype, VideoSubtype
from iMedia.domain.models.media import LivePhoto
from iMedia.domain.models.filters import ByIdentifier, ByMediaType, BySubtypes, Custom, compile_filter
from iMedia.domain.models.kinds import MediaKind
from iMedia.domain.models.predicates import TRUE, where
from iMedia.domain.services.query_compiler import QueryCompiler
from iMedia.errors import InvalidArgumentError


@pytest.fixture
def handles(make_handle, dates):
    t1, t2, t3 = dates
    return [
        make_handle("plain", creation_date=t1),
        make_handle("pano", subtypes=MediaSubtypes.PHOTO_PANORAMA, creation_date=t2),
        make_handle("hdr", subtypes=MediaSubtypes.PHOTO_HDR, creation_date=t3, is_favorite=True),
        make_handle("shot", subtypes=MediaSubtypes.PHOTO_SCREENSHOT),
        make_handle("live", subtypes=MediaSubtypes.PHOTO_LIVE, is_favorite=True),
        make_handle("clip", MediaType.VIDEO, MediaSubtypes.VIDEO_TIMELAPSE, creation_date=t2),
    ]


def _matching(query, handles):
    return {h.local_identifier for h in handles if query.predicate.evaluate(h)}


def test_empty_identifier_is_rejected():
    with pytest.raises(InvalidArgumentError):
        ByIdentifier("")
    with pytest.raises(ValueError):
        ByIdentifier("")


def test_empty_subtype_set_places_no_constraint(handles):
    assert BySubtypes([]).compile() is TRUE
    query = QueryCompiler().compile([BySubtypes([])], kind=MediaKind.PHOTO)
    assert _matching(query, handles) == {"plain", "pano", "hdr", "shot"}


def test_subtype_set_matches_any_member(handles):
    query = QueryCompiler().compile(
        [BySubtypes([PhotoSubtype.PANORAMA, PhotoSubtype.HDR])], kind=MediaKind.PHOTO
    )
    assert _matching(query, handles) == {"pano", "hdr"}


def test_subtypes_of_another_kind_match_nothing(handles):
    query = QueryCompiler().compile([BySubtypes([VideoSubtype.TIMELAPSE])], kind=MediaKind.PHOTO)
    assert _matching(query, handles) == set()


def test_by_media_type_accepts_kinds_and_native_types(handles):
    live_only = QueryCompiler().compile([ByMediaType(MediaKind.LIVE_PHOTO)])
    images = QueryCompiler().compile([ByMediaType(MediaType.IMAGE)])

    assert _matching(live_only, handles) == {"live"}
    assert _matching(images, handles) == {"plain", "pano", "hdr", "shot", "live"}


def test_compile_filter_rejects_non_filters():
    with pytest.raises(InvalidArgumentError):
        compile_filter("not a filter")


def test_adding_a_filter_never_widens_the_result(handles):
    candidates = [
        ByIdentifier("hdr"),
        BySubtypes([PhotoSubtype.HDR, PhotoSubtype.SCREENSHOT]),
        BySubtypes([]),
        Custom(where("is_favorite", "=", True)),
        Custom(where("creation_date", ">", handles[0].creation_date) | where("is_favorite", "=", True)),
    ]
    compiler = QueryCompiler()
    for size in range(len(candidates)):
        for base in itertools.combinations(candidates, size):
            before = _matching(compiler.compile(base, kind=MediaKind.PHOTO), handles)
            for extra in candidates:
                after = _matching(compiler.compile(base + (extra,), kind=MediaKind.PHOTO), handles)
                assert after <= before


def test_image_type_with_live_subtype_resolves_only_the_live_photo(make_handle):
    plain = make_handle("plain")
    live = make_handle("live", subtypes=MediaSubtypes.PHOTO_LIVE)
    filters = [ByMediaType(MediaType.IMAGE), BySubtypes({LivePhotoSubtype.LIVE})]

    query = QueryCompiler().compile(filters)
    matched = [h for h in (plain, live) if query.predicate.evaluate(h)]
    resolved = TypedResultResolver().resolve_all(matched, MediaKind.LIVE_PHOTO)

    assert [type(item) for item in resolved] == [LivePhoto]
    assert [item.local_identifier for item in resolved] == ["live"]
