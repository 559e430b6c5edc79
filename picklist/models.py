from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Sequence, Tuple, Union

# Items are plain dicts with at least a "label" key. The controller only ever
# hands out annotated copies ("index", and "highlight" in fuzzy mode).
Item = Dict[str, Any]


@dataclass(frozen=True, eq=False)
class Query:
    """
    The typed search terms, one entry per input character.

    Queries compare by identity on purpose: every modifying keystroke creates a
    new object, and results fetched for an older object are stale even when the
    text happens to be equal.
    """

    chars: Tuple[str, ...] = ()

    @property
    def text(self) -> str:
        return "".join(self.chars)


@dataclass(frozen=True)
class SearchPage:
    data: List[Item]
    total: int
    more: bool = False

    @classmethod
    def coerce(cls, raw: Union["SearchPage", Mapping[str, Any]], *, seen: int = 0) -> "SearchPage":
        """
        Normalize a search collaborator result.

        Accepts a SearchPage or a mapping shaped like {"data", "total", "more"}.
        A missing total falls back to the number of items seen so far. Items must
        be mappings; they are copied to dicts.
        """
        if isinstance(raw, SearchPage):
            return cls(data=_page_items(raw.data), total=raw.total, more=raw.more)
        if not isinstance(raw, Mapping):
            raise TypeError(f"search result must be a mapping, got {type(raw).__name__}")
        data = raw.get("data") or []
        if not isinstance(data, (list, tuple)):
            raise TypeError("search result 'data' must be a list")
        total = raw.get("total")
        if total is None:
            total = seen + len(data)
        return cls(data=_page_items(data), total=int(total), more=bool(raw.get("more")))


def _page_items(data: Sequence[Any]) -> List[Item]:
    out: List[Item] = []
    for i, item in enumerate(data):
        if not isinstance(item, Mapping):
            raise TypeError(f"search result item {i} must be a mapping, got {type(item).__name__}")
        out.append(dict(item))
    return out


@dataclass
class ResultSet:
    found: List[Item] = field(default_factory=list)
    count: int = 0
    loaded_pages: int = 0
    more_pages: bool = False

    def copy(self) -> "ResultSet":
        return ResultSet(
            found=list(self.found),
            count=self.count,
            loaded_pages=self.loaded_pages,
            more_pages=self.more_pages,
        )


@dataclass(frozen=True)
class Row:
    prefix: str
    label: str
    highlight: Tuple[int, ...] = ()
    selected: bool = False

    @property
    def text(self) -> str:
        return self.prefix + self.label


@dataclass(frozen=True)
class DisplayState:
    """Read-only snapshot handed to the render driver."""

    input_chars: Tuple[str, ...]
    cursor: int
    placeholder: bool
    status: str
    loading: bool
    rows: Tuple[Row, ...]
    size: int

    @property
    def input_text(self) -> str:
        return "".join(self.input_chars)


def annotate(items: Sequence[Mapping[str, Any]], *, offset: int = 0) -> List[Item]:
    """Copy items and number them from `offset` (dense, in order)."""
    return [dict(item, index=offset + i) for i, item in enumerate(items)]
