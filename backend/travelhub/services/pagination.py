"""
Pagination and browse filters
Stateless windowing over any ordered sequence; filters are applied strictly before paging
"""
import hashlib
import math
from dataclasses import dataclass, asdict
from decimal import Decimal
from typing import Generic, List, Optional, Sequence, TypeVar

from travelhub.errors import InvalidRequest

T = TypeVar("T")


@dataclass
class Page(Generic[T]):
    """One window of a sequence"""
    items: List[T]
    page: int
    page_size: int
    total_items: int
    total_pages: int
    has_next: bool
    has_prev: bool


def paginate(items: Sequence[T], page: int, page_size: int) -> Page[T]:
    """
    Cut one page out of an ordered sequence

    Args:
        items: the (already filtered) sequence
        page: requested page, 1-based; clamped into [1, total_pages]
        page_size: items per page, at least 1

    Returns:
        Page; every page but the last holds exactly page_size items
    """
    if page_size < 1:
        raise InvalidRequest("page_size must be at least 1")

    total_items = len(items)
    total_pages = math.ceil(total_items / page_size)
    if total_pages == 0:
        page = 1
    else:
        page = max(1, min(page, total_pages))

    start = (page - 1) * page_size
    return Page(
        items=list(items[start:start + page_size]),
        page=page,
        page_size=page_size,
        total_items=total_items,
        total_pages=total_pages,
        has_next=page < total_pages,
        has_prev=page > 1,
    )


@dataclass(frozen=True)
class BrowseFilter:
    """
    Browse predicate

    Attributes:
        q: case-insensitive text matched against name and description
        parent_id: parent entity id (country for cities, city for places, ...)
        category_id: places only
        theme_id: places only
        min_price / max_price: hotels (price_per_night) and trips (price)
    """
    q: Optional[str] = None
    parent_id: Optional[int] = None
    category_id: Optional[int] = None
    theme_id: Optional[int] = None
    min_price: Optional[Decimal] = None
    max_price: Optional[Decimal] = None

    @property
    def filter_key(self) -> str:
        """Deterministic fingerprint of the predicate"""
        normalized = {k: (str(v).strip().lower() if v is not None else "") for k, v in asdict(self).items()}
        canonical = "|".join(f"{k}={normalized[k]}" for k in sorted(normalized))
        return hashlib.sha1(canonical.encode("utf-8")).hexdigest()[:12]

    def is_empty(self) -> bool:
        return all(v is None or v == "" for v in asdict(self).values())

    def matches(self, entity, parent_attr: Optional[str] = None,
                price_attr: Optional[str] = None) -> bool:
        if self.q:
            needle = self.q.strip().lower()
            haystack = f"{getattr(entity, 'name', '') or ''} {getattr(entity, 'description', '') or ''}".lower()
            if needle not in haystack:
                return False

        if self.parent_id is not None and parent_attr:
            if getattr(entity, parent_attr) != self.parent_id:
                return False

        if self.category_id is not None:
            if self.category_id not in {c.id for c in getattr(entity, "categories", [])}:
                return False

        if self.theme_id is not None:
            if self.theme_id not in {t.id for t in getattr(entity, "themes", [])}:
                return False

        if price_attr and (self.min_price is not None or self.max_price is not None):
            price = getattr(entity, price_attr)
            if price is None:
                return False
            if self.min_price is not None and price < self.min_price:
                return False
            if self.max_price is not None and price > self.max_price:
                return False

        return True


def apply_filter(items: Sequence[T], flt: Optional[BrowseFilter],
                 parent_attr: Optional[str] = None,
                 price_attr: Optional[str] = None) -> List[T]:
    """Filter preserving order"""
    if flt is None or flt.is_empty():
        return list(items)
    return [item for item in items if flt.matches(item, parent_attr, price_attr)]


def resolve_page(requested_page: int, flt: BrowseFilter,
                 previous_filter_key: Optional[str]) -> int:
    """
    Page to serve for a request

    A caller echoes the filter_key it received with its last page; when the
    predicate has changed since then, it goes back to page 1.
    """
    if previous_filter_key and previous_filter_key != flt.filter_key:
        return 1
    return requested_page


def filter_and_paginate(items: Sequence[T], flt: BrowseFilter, page: int, page_size: int,
                        previous_filter_key: Optional[str] = None,
                        parent_attr: Optional[str] = None,
                        price_attr: Optional[str] = None) -> Page[T]:
    filtered = apply_filter(items, flt, parent_attr, price_attr)
    return paginate(filtered, resolve_page(page, flt, previous_filter_key), page_size)
