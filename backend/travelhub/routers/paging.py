"""
Helpers shared by paged endpoints
"""
from typing import Callable, Optional

from travelhub.services.pagination import Page


def page_payload(page: Page, convert: Callable, filter_key: Optional[str] = None) -> dict:
    """Page -> body of a PageResponse"""
    return {
        "items": [convert(item) for item in page.items],
        "page": page.page,
        "page_size": page.page_size,
        "total_items": page.total_items,
        "total_pages": page.total_pages,
        "has_next": page.has_next,
        "has_prev": page.has_prev,
        "filter_key": filter_key,
    }
