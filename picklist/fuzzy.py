"""
Default scorer for dataset mode.

`fuzzy_filter(items, chars)` keeps the items whose label contains the query
characters in order (case-insensitive), ranks them best-first and records the
matched offsets in "highlight". Any callable with the same signature can be
passed to the controller instead.
"""

from __future__ import annotations

from typing import Callable, List, Optional, Sequence, Tuple

from picklist.models import Item

FilterFn = Callable[[Sequence[Item], Sequence[str]], List[Item]]

# Scoring weights.
_MATCH = 1
_CONSECUTIVE = 5
_WORD_START = 3
_FIRST_CHAR = 2
_GAP_PENALTY = 1


def _is_word_start(label: str, i: int) -> bool:
    if i == 0:
        return True
    prev = label[i - 1]
    return not prev.isalnum() or (prev.islower() and label[i].isupper())


def _fold(s: str) -> str:
    # One char per char, so offsets into the folded text index the label.
    return "".join(c.lower()[:1] for c in s)


def _match_positions(label: str, needle: str, start: int) -> Optional[List[int]]:
    folded = _fold(label)
    out: List[int] = []
    j = start
    for ch in needle:
        j = folded.find(ch, j)
        if j < 0:
            return None
        out.append(j)
        j += 1
    return out


def _score_positions(label: str, positions: Sequence[int]) -> int:
    score = 0
    prev = -2
    for n, pos in enumerate(positions):
        score += _MATCH
        if pos == prev + 1:
            score += _CONSECUTIVE
        elif n > 0:
            score -= _GAP_PENALTY * min(pos - prev - 1, 5)
        if _is_word_start(label, pos):
            score += _WORD_START
        if pos == 0:
            score += _FIRST_CHAR
        prev = pos
    return score


def fuzzy_match(label: str, needle: str) -> Optional[Tuple[int, List[int]]]:
    """
    Best (score, positions) for `needle` in `label`, or None.

    Every occurrence of the first needle character is tried as an anchor and the
    rest is matched greedily, which is enough to prefer contiguous runs.
    """
    needle = _fold(needle)
    if not needle:
        return 0, []
    best: Optional[Tuple[int, List[int]]] = None
    folded = _fold(label)
    anchor = folded.find(needle[0])
    while anchor >= 0:
        positions = _match_positions(label, needle, anchor)
        if positions is None:
            break
        score = _score_positions(label, positions)
        if best is None or score > best[0]:
            best = (score, positions)
        anchor = folded.find(needle[0], anchor + 1)
    return best


def fuzzy_filter(items: Sequence[Item], chars: Sequence[str]) -> List[Item]:
    needle = "".join(chars).replace(" ", "")
    scored: List[Tuple[int, int, Item]] = []
    for order, item in enumerate(items):
        m = fuzzy_match(str(item.get("label", "")), needle)
        if m is None:
            continue
        score, positions = m
        scored.append((score, order, dict(item, highlight=positions)))
    # Stable on ties: keep dataset order.
    scored.sort(key=lambda t: (-t[0], t[1]))
    return [item for _, _, item in scored]


def identity_filter(items: Sequence[Item], chars: Sequence[str]) -> List[Item]:
    return list(items)


def highlight_items(items: Sequence[Item], chars: Sequence[str]) -> List[Item]:
    """
    Annotate "highlight" without filtering or reordering.

    Used on search pages, where the backend owns ranking and indices must stay
    contiguous across pages.
    """
    needle = "".join(chars).replace(" ", "")
    out: List[Item] = []
    for item in items:
        m = fuzzy_match(str(item.get("label", "")), needle)
        out.append(dict(item, highlight=m[1] if m else []))
    return out
