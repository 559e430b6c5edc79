from __future__ import annotations

import logging
from typing import Any, Callable, List, Optional, Set

from picklist.cache import QueryCache
from picklist.errors import FetchError
from picklist.loader import BackgroundLoader
from picklist.models import Item, Query, ResultSet, SearchPage, annotate

logger = logging.getLogger(__name__)

SearchFn = Callable[[str, int], Any]
PageFilter = Callable[[List[Item], Query], List[Item]]

# load_next_page outcomes.
CACHED = "cached"
STARTED = "started"
IN_FLIGHT = "in_flight"


class PaginationEngine:
    """
    Page-by-page loading for search mode.

    Fetches run through the BackgroundLoader; `apply()` is called on the UI thread
    when a page arrives. A page is only kept if the query it was requested for is
    still the current one (identity check), so a slow response for an old query
    can never show up under a newer one.
    """

    def __init__(
        self,
        search: SearchFn,
        *,
        loader: BackgroundLoader,
        cache: QueryCache,
        current_query: Callable[[], Query],
        page_filter: Optional[PageFilter] = None,
    ) -> None:
        self._search = search
        self._loader = loader
        self._cache = cache
        self._current_query = current_query
        self._page_filter = page_filter
        self._inflight: Set[Query] = set()
        self.results = ResultSet()
        # Query the current results belong to.
        self.owner: Optional[Query] = None

    def reset(self, query: Query) -> None:
        self.results = ResultSet()
        self.owner = query

    def in_flight(self, query: Query) -> bool:
        return query in self._inflight

    @property
    def loading(self) -> bool:
        return self.in_flight(self._current_query())

    def load_next_page(self, query: Query) -> str:
        if self.results.loaded_pages == 0:
            hit = self._cache.get(query.text)
            if hit is not None:
                self.results = hit
                return CACHED

        if query in self._inflight:
            return IN_FLIGHT

        page = self.results.loaded_pages + 1
        self._inflight.add(query)
        logger.debug("fetching page %d for %r", page, query.text)
        text = query.text
        self._loader.submit("page", (query, page), lambda: self._search(text, page))
        return STARTED

    def apply(self, query: Query, page: int, raw: Any) -> bool:
        """
        Append a fetched page. Returns False when the page was discarded.
        """
        self._inflight.discard(query)
        if query is not self._current_query() or query is not self.owner:
            logger.debug("discarding stale page %d for %r", page, query.text)
            return False

        res = self.results
        result = SearchPage.coerce(raw, seen=len(res.found))
        data = list(result.data)
        if self._page_filter is not None:
            data = self._page_filter(data, query)
        added = annotate(data, offset=len(res.found))
        self.results = ResultSet(
            found=res.found + added,
            count=result.total,
            loaded_pages=page,
            more_pages=bool(result.more),
        )
        self._cache.put(query.text, self.results)
        return True

    def fail(self, query: Query, page: int, exc: BaseException) -> FetchError:
        self._inflight.discard(query)
        err = FetchError(query.text, page, str(exc) or type(exc).__name__)
        err.__cause__ = exc
        return err
