"""
Pagination and browse filter tests
"""
import pytest
from decimal import Decimal
from types import SimpleNamespace

from travelhub.errors import InvalidRequest
from travelhub.services.pagination import (
    BrowseFilter, apply_filter, filter_and_paginate, paginate, resolve_page
)

COUNTRY_NAMES = [
    "Afghanistan", "Austria", "Belgium", "Brazil", "Canada", "Chile", "Denmark",
    "Egypt", "France", "Germany", "Iceland", "India", "Ireland", "Israel",
    "Italy", "Japan", "Kenya", "Mexico", "Morocco", "Norway", "Pakistan",
    "Tajikistan", "Tunisia", "Turkmenistan", "Uzbekistan",
]


def _countries():
    return [SimpleNamespace(id=i + 1, name=name, description="") for i, name in enumerate(COUNTRY_NAMES)]


class TestPaginate:

    def test_empty_sequence(self):
        page = paginate([], 3, 9)
        assert page.items == []
        assert page.page == 1
        assert page.total_pages == 0
        assert page.has_next is False
        assert page.has_prev is False

    def test_page_clamped_to_last(self):
        page = paginate(list(range(20)), 7, 9)
        assert page.page == 3
        assert page.items == [18, 19]
        assert page.has_prev is True
        assert page.has_next is False

    def test_page_below_one_clamped(self):
        page = paginate(list(range(20)), 0, 9)
        assert page.page == 1
        assert page.items == list(range(9))

    def test_invalid_page_size(self):
        with pytest.raises(InvalidRequest):
            paginate([1, 2, 3], 1, 0)

    @pytest.mark.parametrize("length,page_size", [(25, 9), (9, 9), (10, 3), (1, 5)])
    def test_pages_partition_the_input(self, length, page_size):
        items = list(range(length))
        first = paginate(items, 1, page_size)
        pages = [paginate(items, n, page_size) for n in range(1, first.total_pages + 1)]

        rebuilt = [item for p in pages for item in p.items]
        assert rebuilt == items
        for p in pages[:-1]:
            assert len(p.items) == page_size


class TestBrowseFilter:

    def test_text_filter_before_paging(self):
        flt = BrowseFilter(q="is")
        page = filter_and_paginate(_countries(), flt, 1, 9)

        assert page.total_items == 7
        assert page.total_pages == 1
        assert len(page.items) == 7
        assert page.has_next is False

    def test_text_filter_is_case_insensitive(self):
        flt = BrowseFilter(q="ISRAEL")
        assert [c.name for c in apply_filter(_countries(), flt)] == ["Israel"]

    def test_parent_filter(self):
        cities = [
            SimpleNamespace(id=1, name="Porto", description="", country_id=1),
            SimpleNamespace(id=2, name="Madrid", description="", country_id=2),
        ]
        result = apply_filter(cities, BrowseFilter(parent_id=2), parent_attr="country_id")
        assert [c.name for c in result] == ["Madrid"]

    def test_price_range(self):
        hotels = [
            SimpleNamespace(id=1, name="A", description="", price_per_night=Decimal("80")),
            SimpleNamespace(id=2, name="B", description="", price_per_night=Decimal("120")),
            SimpleNamespace(id=3, name="C", description="", price_per_night=Decimal("200")),
        ]
        flt = BrowseFilter(min_price=Decimal("100"), max_price=Decimal("150"))
        assert [h.name for h in apply_filter(hotels, flt, price_attr="price_per_night")] == ["B"]

    def test_category_and_theme(self):
        beach = SimpleNamespace(id=4)
        history = SimpleNamespace(id=5)
        places = [
            SimpleNamespace(id=1, name="Praia", description="", categories=[beach], themes=[]),
            SimpleNamespace(id=2, name="Castle", description="", categories=[], themes=[history]),
        ]
        assert [p.name for p in apply_filter(places, BrowseFilter(category_id=4))] == ["Praia"]
        assert [p.name for p in apply_filter(places, BrowseFilter(theme_id=5))] == ["Castle"]

    def test_filter_key_is_deterministic(self):
        assert BrowseFilter(q="is").filter_key == BrowseFilter(q="is").filter_key
        assert BrowseFilter(q="is").filter_key == BrowseFilter(q=" IS ").filter_key
        assert BrowseFilter(q="is").filter_key != BrowseFilter(q="an").filter_key

    def test_changed_filter_resets_to_first_page(self):
        old = BrowseFilter()
        new = BrowseFilter(q="is")
        assert resolve_page(3, new, old.filter_key) == 1
        assert resolve_page(3, new, new.filter_key) == 3
        assert resolve_page(3, new, None) == 3

    def test_stale_page_never_points_past_filtered_end(self):
        previous = BrowseFilter()
        page = filter_and_paginate(_countries(), BrowseFilter(q="is"), 3, 9,
                                   previous_filter_key=previous.filter_key)
        assert page.page == 1
        assert len(page.items) == 7
