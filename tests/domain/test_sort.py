from types import SimpleNamespace

import pytest

from iMedia.domain.models.sort import (
    AlbumSortKey,
    AssetSortKey,
    Sort,
    SortDescriptor,
    SortOrder,
    compile_sorts,
    sort_records,
)
from iMedia.errors import InvalidArgumentError


def test_compile_keeps_given_order_and_drops_repeats():
    descriptors = compile_sorts(
        [
            Sort(AssetSortKey.IS_FAVORITE, ascending=False),
            Sort(AssetSortKey.CREATION_DATE),
            Sort(AssetSortKey.IS_FAVORITE),
        ]
    )

    assert descriptors == (
        SortDescriptor("is_favorite", SortOrder.DESC),
        SortDescriptor("creation_date", SortOrder.ASC),
    )


def test_required_ordering_must_not_be_empty():
    assert compile_sorts([]) == ()
    with pytest.raises(InvalidArgumentError):
        compile_sorts([], require=True)


def test_compile_rejects_non_sorts():
    with pytest.raises(InvalidArgumentError):
        compile_sorts([AlbumSortKey.LOCALIZED_TITLE])


def test_creation_date_descending(make_handle, dates):
    t1, t2, t3 = dates
    records = [
        make_handle("a", creation_date=t1),
        make_handle("c", creation_date=t3),
        make_handle("b", creation_date=t2),
    ]

    ordered = sort_records(records, compile_sorts([Sort(AssetSortKey.CREATION_DATE, ascending=False)]))

    assert [r.creation_date for r in ordered] == [t3, t2, t1]


def test_missing_values_sort_first_ascending_and_last_descending():
    records = [SimpleNamespace(k=2), SimpleNamespace(k=None), SimpleNamespace(k=1)]

    ascending = sort_records(records, [SortDescriptor("k", SortOrder.ASC)])
    descending = sort_records(records, [SortDescriptor("k", SortOrder.DESC)])

    assert [r.k for r in ascending] == [None, 1, 2]
    assert [r.k for r in descending] == [2, 1, None]


def test_ties_keep_incoming_order():
    records = [SimpleNamespace(name=n, fav=f) for n, f in [("a", 1), ("b", 0), ("c", 1), ("d", 0)]]

    ordered = sort_records(records, [SortDescriptor("fav", SortOrder.DESC)])

    assert [r.name for r in ordered] == ["a", "c", "b", "d"]


def test_later_keys_break_ties():
    records = [SimpleNamespace(fav=f, n=n) for f, n in [(0, 2), (1, 1), (0, 1), (1, 3)]]

    ordered = sort_records(
        records, [SortDescriptor("fav", SortOrder.DESC), SortDescriptor("n", SortOrder.ASC)]
    )

    assert [(r.fav, r.n) for r in ordered] == [(1, 1), (1, 3), (0, 1), (0, 2)]
