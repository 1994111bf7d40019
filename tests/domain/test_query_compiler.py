import logging

import pytest

from iMedia.domain.models.core import AlbumHandle, AlbumSubtype, AlbumType, MediaSubtypes, MediaType
from iMedia.domain.models.filters import ByIdentifier, ByTitle
from iMedia.domain.models.kinds import MediaKind
from iMedia.domain.models.predicates import Comparison, Op
from iMedia.domain.models.sort import AlbumSortKey, AssetSortKey, Sort, SortDescriptor, SortOrder
from iMedia.domain.services.query_compiler import QueryCompiler, identifier_query
from iMedia.errors import InvalidArgumentError


@pytest.fixture
def compiler():
    return QueryCompiler()


def test_kind_constraint_comes_first(compiler):
    query = compiler.compile([ByIdentifier("abc")], kind=MediaKind.VIDEO)

    assert query.predicate.terms[0] == Comparison("media_type", Op.EQ, MediaType.VIDEO)
    assert query.predicate.terms[-1] == Comparison("local_identifier", Op.EQ, "abc")


def test_live_photo_is_not_a_photo(compiler, make_handle):
    live = make_handle("L1", subtypes=MediaSubtypes.PHOTO_LIVE)

    photo_query = compiler.compile([ByIdentifier("L1")], kind=MediaKind.PHOTO)
    live_query = compiler.compile([ByIdentifier("L1")], kind=MediaKind.LIVE_PHOTO)

    assert not photo_query.predicate.evaluate(live)
    assert live_query.predicate.evaluate(live)


def test_conflicting_identifiers_warn_and_match_nothing(compiler, make_handle, caplog):
    with caplog.at_level(logging.WARNING, logger="iMedia.domain.services.query_compiler"):
        query = compiler.compile([ByIdentifier("a"), ByIdentifier("b")], kind=MediaKind.PHOTO)

    assert "can never match" in caplog.text
    assert not query.predicate.evaluate(make_handle("a"))
    assert not query.predicate.evaluate(make_handle("b"))


def test_repeated_identical_identifier_is_quiet(compiler, caplog):
    with caplog.at_level(logging.WARNING):
        compiler.compile([ByIdentifier("a"), ByIdentifier("a")])
    assert caplog.text == ""


def test_required_ordering(compiler):
    with pytest.raises(InvalidArgumentError):
        compiler.compile([], [], MediaKind.PHOTO, require_ordering=True)


def test_album_scope(compiler):
    query = compiler.compile(kind=MediaKind.PHOTO, album_identifier="album-1")
    assert query.album_identifier == "album-1"
    with pytest.raises(InvalidArgumentError):
        query.in_album("")


def test_pagination_needs_ordering(compiler):
    unordered = compiler.compile(kind=MediaKind.PHOTO)
    with pytest.raises(InvalidArgumentError):
        unordered.paginate(1, 10)

    ordered = compiler.compile([], [Sort(AssetSortKey.CREATION_DATE)], MediaKind.PHOTO)
    page = ordered.paginate(3, 10)
    assert (page.offset, page.limit) == (20, 10)
    with pytest.raises(InvalidArgumentError):
        ordered.paginate(0, 10)


def test_albums_default_to_title_order(compiler):
    query = compiler.compile_albums()
    assert query.ordering == (SortDescriptor("localized_title", SortOrder.ASC),)

    by_date = compiler.compile_albums(sorts=[Sort(AlbumSortKey.CREATION_DATE, ascending=False)])
    assert by_date.ordering == (
        SortDescriptor("creation_date", SortOrder.DESC),
        SortDescriptor("localized_title", SortOrder.ASC),
    )

    by_title_desc = compiler.compile_albums(sorts=[Sort(AlbumSortKey.LOCALIZED_TITLE, ascending=False)])
    assert by_title_desc.ordering == (SortDescriptor("localized_title", SortOrder.DESC),)


def test_album_type_filters_by_subtype(compiler):
    user = AlbumHandle("u", "Trips", AlbumType.USER, AlbumSubtype.REGULAR)
    smart = AlbumHandle("s", "Favorites", AlbumType.SMART, AlbumSubtype.SMART_FAVORITES)
    mislabelled = AlbumHandle("m", "Odd", AlbumType.USER, AlbumSubtype.SMART_FAVORITES)

    query = compiler.compile_albums(AlbumType.USER)

    assert query.predicate.evaluate(user)
    assert not query.predicate.evaluate(smart)
    assert not query.predicate.evaluate(mislabelled)
    assert compiler.compile_albums(filters=[ByTitle("Favorites")]).predicate.evaluate(smart)


def test_identifier_query(make_handle):
    query = identifier_query("v1", MediaKind.VIDEO)
    assert query.predicate.evaluate(make_handle("v1", MediaType.VIDEO))
    assert not query.predicate.evaluate(make_handle("v1", MediaType.IMAGE))
