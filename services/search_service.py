"""
Search Service - In-memory search, filtering and pagination.

Takes the full list of businesses plus a query state and produces the
facet lists (cities, categories) and the page of matching businesses.
All functions here are pure; SearchState is the only mutable holder.
"""

import logging
import math
from typing import Callable, List, Optional, Sequence

from pydantic import BaseModel, Field

from backend.models.business import Business
from services.debounce import Debouncer

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 5
PAGE_SIZE_OPTIONS = (5, 10, 20, 50)
DEFAULT_DEBOUNCE_MS = 300


class SearchQuery(BaseModel):
    """Query state for a directory listing view."""

    query: str = Field('', description="Free-text search")
    city: Optional[str] = Field(None, description="Exact city filter")
    tags: List[str] = Field(default_factory=list, description="Categories that must all be present")
    page: int = Field(1, ge=1, description="Page number (1-indexed)")
    page_size: int = Field(DEFAULT_PAGE_SIZE, ge=1, description="Items per page")


class SearchResult(BaseModel):
    """Filtered page plus facets."""

    items: List[Business]
    total: int
    total_pages: int
    page: int
    page_size: int
    available_cities: List[str]
    available_categories: List[str]


def available_categories(businesses: Sequence[Business]) -> List[str]:
    """Sorted distinct categories across all businesses."""
    return sorted({category for b in businesses for category in (b.categories or [])})


def available_cities(businesses: Sequence[Business]) -> List[str]:
    """Sorted distinct address cities across all businesses."""
    return sorted({address.city for b in businesses for address in b.addresses})


def _contains(haystack: Optional[str], needle: str) -> bool:
    return needle in (haystack or '').lower().strip()


def matches_text(business: Business, query: str) -> bool:
    needle = (query or '').lower().strip()
    if _contains(business.name, needle) or _contains(business.brief, needle):
        return True
    if any(_contains(address.city, needle) for address in business.addresses):
        return True
    return any(_contains(category, needle) for category in (business.categories or []))


def matches_city(business: Business, city: Optional[str]) -> bool:
    # Exact, case-sensitive: "New York City" does not match "New York"
    if not city:
        return True
    return any(address.city == city for address in business.addresses)


def matches_tags(business: Business, tags: Sequence[str]) -> bool:
    if not tags:
        return True
    categories = business.categories or []
    return all(tag in categories for tag in tags)


def filter_businesses(businesses: Sequence[Business], query: SearchQuery) -> List[Business]:
    """Businesses matching text AND city AND tags, in input order."""
    return [
        b for b in businesses
        if matches_text(b, query.query)
        and matches_city(b, query.city)
        and matches_tags(b, query.tags)
    ]


def total_pages(total: int, page_size: int) -> int:
    return math.ceil(total / page_size)


def paginate(items: Sequence, page: int, page_size: int) -> list:
    start = (page - 1) * page_size
    return list(items[start:start + page_size])


def search(businesses: Sequence[Business], query: SearchQuery) -> SearchResult:
    """
    Run the full search pipeline.

    Args:
        businesses: Every business currently loaded
        query: Query state

    Returns:
        SearchResult with the requested page, totals and facets
    """
    filtered = filter_businesses(businesses, query)
    total = len(filtered)

    logger.debug(f"Search '{query.query}' city={query.city!r} tags={query.tags}: "
                 f"{total}/{len(businesses)} matches")

    return SearchResult(
        items=paginate(filtered, query.page, query.page_size),
        total=total,
        total_pages=total_pages(total, query.page_size),
        page=query.page,
        page_size=query.page_size,
        available_cities=available_cities(businesses),
        available_categories=available_categories(businesses),
    )


class SearchState:
    """
    Mutable query state for interactive callers (CLI, admin table).

    Changing the filters or the page size sends the view back to page 1.
    Text updates can be coalesced through a debouncer so that the query
    only applies after a pause in typing.
    """

    def __init__(
        self,
        businesses: Sequence[Business] = (),
        page_size: int = DEFAULT_PAGE_SIZE,
        debounce_ms: int = DEFAULT_DEBOUNCE_MS,
        on_change: Optional[Callable[[SearchResult], None]] = None
    ):
        self.businesses = list(businesses)
        self.query = SearchQuery(page_size=page_size)
        self.on_change = on_change or (lambda result: None)
        self._debouncer = Debouncer(debounce_ms, self.set_query)

    def set_businesses(self, businesses: Sequence[Business]):
        self.businesses = list(businesses)
        self._changed()

    def _update(self, **changes):
        self.query = SearchQuery.model_validate({**self.query.model_dump(), **changes})

    def set_query(self, text: str):
        self._update(query=text, page=1)
        self._changed()

    def set_query_debounced(self, text: str):
        self._debouncer.trigger(text)

    def flush(self):
        """Apply a pending debounced query immediately."""
        self._debouncer.flush()

    def set_city(self, city: Optional[str]):
        self._update(city=city or None, page=1)
        self._changed()

    def set_tags(self, tags: Sequence[str]):
        self._update(tags=list(tags), page=1)
        self._changed()

    def set_page(self, page: int):
        self._update(page=max(1, page))
        self._changed()

    def set_page_size(self, page_size: int):
        """
        Change the page size and go back to page 1.

        Raises:
            ValidationError: If page_size is below 1 (the query is left as it was)
        """
        self._update(page_size=page_size, page=1)
        self._changed()

    def result(self) -> SearchResult:
        return search(self.businesses, self.query)

    def close(self):
        self._debouncer.cancel()

    def _changed(self):
        self.on_change(self.result())
