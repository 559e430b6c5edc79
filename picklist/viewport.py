from __future__ import annotations

from picklist.formatting import clamp


class Viewport:
    """
    Selected line and first visible line over the current result list.

    Invariant after every move with results present: 0 <= start <= line < start + size.
    """

    def __init__(self, size: int) -> None:
        self.size = max(1, size)
        self.line = 0
        self.start = 0

    def reset(self) -> None:
        self.line = 0
        self.start = 0

    def move(self, d_line: int, d_page: int, n_items: int) -> None:
        if n_items <= 0:
            self.reset()
            return
        self.line = clamp(self.line + d_line + d_page * self.size, 0, n_items - 1)
        # up
        if (d_line < 0 or d_page < 0) and self.line < self.start:
            self.start = self.line
        # down
        elif (d_line > 0 or d_page > 0) and self.line >= self.start + self.size:
            self.start = self.line - self.size + 1

    def at_end(self, n_loaded: int) -> bool:
        # Bottom edge of the window reaches the last loaded result.
        return self.start + self.size >= n_loaded
