from __future__ import annotations

from typing import Sequence


def clamp(v: int, lo: int, hi: int) -> int:
    if hi < lo:
        return lo
    return max(lo, min(hi, v))


def truncate_to_width(s: str, width: int) -> str:
    # One column per character; wide unicode is not handled.
    if width <= 0:
        return ""
    return s[:width]


def pad_to_width(s: str, width: int) -> str:
    s = truncate_to_width(s, width)
    return s + " " * (width - len(s))


def count_message(count: int) -> str:
    if count == 0:
        return "No result"
    if count == 1:
        return "1 result"
    return f"{count} results"


def status_message(count: int, loaded: int, *, search_mode: bool) -> str:
    """
    Result count, plus pagination progress in search mode.
    """
    msg = count_message(count)
    if search_mode:
        msg += f" (loaded {loaded} yet)" if loaded < count else " (all loaded)"
    return msg


def printable(s: str) -> str:
    # Control characters (newlines, tabs) would move the curses cursor.
    return "".join(c if c.isprintable() else " " for c in s)


def rank_prefix(index: int, count: int) -> str:
    # 1-based rank, right-aligned to the width of the total count.
    width = len(str(count))
    return str(index + 1).rjust(width) + " > "


def highlight_spans(label: str, highlight: Sequence[int]) -> "list[tuple[str, bool]]":
    """
    Split a label into (text, highlighted) runs.
    """
    marks = set(highlight)
    spans: "list[tuple[str, bool]]" = []
    for i, ch in enumerate(label):
        on = i in marks
        if spans and spans[-1][1] == on:
            spans[-1] = (spans[-1][0] + ch, on)
        else:
            spans.append((ch, on))
    return spans
