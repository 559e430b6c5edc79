from __future__ import annotations

import curses
import logging
import os
from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

from picklist.config import PickerOptions
from picklist.controller import PickerController
from picklist.errors import InputStreamError
from picklist.formatting import highlight_spans, pad_to_width, printable, truncate_to_width
from picklist.fuzzy import FilterFn
from picklist.keys import KeyDecoder, decode_esc_sequence
from picklist.models import DisplayState, Item, Row
from picklist.pagination import SearchFn

logger = logging.getLogger(__name__)

PLACEHOLDER = "Enter your search"

Segment = Tuple[str, int]


@dataclass(frozen=True)
class Theme:
    selected_attr: int = curses.A_REVERSE
    prefix_attr: int = curses.A_DIM
    highlight_attr: int = curses.A_UNDERLINE
    input_attr: int = curses.A_BOLD
    status_attr: int = curses.A_BOLD
    loading_attr: int = curses.A_DIM


def _input_segments(state: DisplayState, theme: Theme) -> List[Segment]:
    if state.placeholder:
        return [(PLACEHOLDER, curses.A_DIM)]
    out: List[Segment] = []
    for i, ch in enumerate(state.input_chars):
        attr = theme.input_attr | (curses.A_REVERSE if i == state.cursor else 0)
        out.append((ch, attr))
    if state.cursor == len(state.input_chars):
        out.append((" ", curses.A_REVERSE))
    return out


def _status_segments(state: DisplayState, theme: Theme) -> List[Segment]:
    out: List[Segment] = []
    if state.status:
        out.append((state.status, theme.status_attr))
    if state.loading:
        out.append((" (loading...)" if state.status else "Loading...", theme.loading_attr))
    return out


def _row_segments(row: Row, theme: Theme) -> List[Segment]:
    base = theme.selected_attr if row.selected else 0
    out: List[Segment] = [(row.prefix, base | theme.prefix_attr)]
    for text, on in highlight_spans(printable(row.label), row.highlight):
        out.append((text, base | (theme.highlight_attr if on else 0)))
    return out


def _screen_lines(state: DisplayState, theme: Theme) -> List[List[Segment]]:
    """
    Input line, one line per viewport row (blank when past the results), status.
    """
    lines: List[List[Segment]] = [_input_segments(state, theme)]
    for i in range(state.size):
        lines.append(_row_segments(state.rows[i], theme) if i < len(state.rows) else [])
    lines.append(_status_segments(state, theme))
    return lines


def _safe_addstr(win: "curses.window", y: int, x: int, s: str, attr: int = 0) -> None:
    try:
        win.addstr(y, x, s, attr)
    except curses.error:
        # Ignore drawing errors at borders / tiny terminals.
        return


class _Screen:
    """
    Draws DisplayState snapshots, rewriting only lines that changed.
    """

    def __init__(self, stdscr: "curses.window", theme: Optional[Theme] = None) -> None:
        self.stdscr = stdscr
        self.theme = theme or Theme()
        self._cache: List[Optional[Tuple[Tuple[Segment, ...], int]]] = []

    def draw(self, state: DisplayState) -> None:
        max_y, max_x = self.stdscr.getmaxyx()
        width = max(0, max_x - 1)
        lines = _screen_lines(state, self.theme)[: max(0, max_y)]
        if len(self._cache) != len(lines):
            self._cache = [None] * len(lines)
        changed = False
        for y, segs in enumerate(lines):
            key = (tuple(segs), width)
            if self._cache[y] == key:
                continue
            self._cache[y] = key
            self._draw_line(y, segs, width)
            changed = True
        if changed:
            try:
                self.stdscr.noutrefresh()
            except curses.error:
                return

    def _draw_line(self, y: int, segs: List[Segment], width: int) -> None:
        x = 0
        for text, attr in segs:
            room = width - x
            if room <= 0:
                break
            text = truncate_to_width(text, room)
            _safe_addstr(self.stdscr, y, x, text, attr)
            x += len(text)
        if x < width:
            _safe_addstr(self.stdscr, y, x, pad_to_width("", width - x), 0)


def _read_key(stdscr: "curses.window") -> Any:
    """
    Next key (str for characters, int for special keys), or None on timeout.
    """
    try:
        key = stdscr.get_wch()
    except curses.error:
        return None
    if key in ("\x1b", 27):
        key = decode_esc_sequence(stdscr)
    return key


def pick(stdscr: "curses.window", controller: PickerController, *, theme: Optional[Theme] = None) -> Optional[Item]:
    """
    Run the picker UI on an initialized curses screen until the user is done.
    """
    try:
        curses.curs_set(0)
    except Exception:
        # Some terminals (or TERM/terminfo combinations) don't support this.
        pass
    stdscr.keypad(True)

    screen = _Screen(stdscr, theme)
    decoder = KeyDecoder()
    controller.start()

    while not controller.done:
        controller.pump()
        if controller.done:
            break
        if controller.state is not None:
            screen.draw(controller.state)
        curses.doupdate()

        try:
            stdscr.timeout(controller.wait_timeout_ms())
        except Exception:
            pass
        try:
            key = _read_key(stdscr)
        except KeyboardInterrupt:
            controller.cancel()
            break
        except OSError as e:
            err = InputStreamError(f"Terminal input failed: {e}")
            err.__cause__ = e
            controller.fail(err)
            break
        if key is None:
            continue
        controller.dispatch(decoder.feed(key))

    return controller.outcome()


def run_picker(
    *,
    data: Any = None,
    search: Optional[SearchFn] = None,
    options: Optional[PickerOptions] = None,
    filter: Optional[FilterFn] = None,
) -> Optional[Item]:
    """
    Show the picker and return the selected item, or None when cancelled.

    Configuration errors are raised before the terminal is touched.
    """
    controller = PickerController(data=data, search=search, options=options, filter=filter)
    # Make a bare Esc register quickly instead of waiting for a sequence.
    os.environ.setdefault("ESCDELAY", "25")
    return curses.wrapper(lambda stdscr: pick(stdscr, controller))
