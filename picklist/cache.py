from __future__ import annotations

import logging
from typing import Dict, Optional

from picklist.models import ResultSet

logger = logging.getLogger(__name__)


class QueryCache:
    """
    Session-lifetime map from joined query text to accumulated search results.

    Entries are stored and returned as copies, so later pages appended to the
    live result set never leak into a snapshot. There is no eviction.
    """

    def __init__(self, *, enabled: bool = True) -> None:
        self.enabled = enabled
        self._entries: Dict[str, ResultSet] = {}

    def get(self, key: str) -> Optional[ResultSet]:
        if not self.enabled:
            return None
        hit = self._entries.get(key)
        if hit is None:
            return None
        logger.debug("cache hit for %r (%d pages)", key, hit.loaded_pages)
        return hit.copy()

    def put(self, key: str, results: ResultSet) -> None:
        if not self.enabled:
            return
        self._entries[key] = results.copy()

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: object) -> bool:
        return self.enabled and key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
