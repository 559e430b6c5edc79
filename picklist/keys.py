"""
Key decoding: curses key codes in, picker input events out.
"""

from __future__ import annotations

import curses
from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

Key = Union[int, str]

# Large enough to clamp to the first/last result.
_JUMP = 1 << 30

_ESC = 27


@dataclass(frozen=True)
class InputEvent:
    kind: str  # "change" | "line" | "select" | "end"
    args: Tuple[object, ...] = ()


def change(chars: Tuple[str, ...], position: int, modified: bool) -> InputEvent:
    return InputEvent("change", (chars, position, modified))


def line(d_line: int, d_page: int) -> InputEvent:
    return InputEvent("line", (d_line, d_page))


SELECT = InputEvent("select")
END = InputEvent("end")


def _ctrl(c: str) -> str:
    return chr(ord(c) & 0x1F)


_SELECT_KEYS = ("\n", "\r", curses.KEY_ENTER, 10, 13)
_END_KEYS = ("\x1b", _ESC, _ctrl("c"), _ctrl("d"), 3, 4)
_BACKSPACE_KEYS = ("\x7f", "\x08", curses.KEY_BACKSPACE, 127, 8)


class KeyDecoder:
    """
    Line editor over the typed characters.

    Every key that changes the text or the cursor yields a "change" event; only
    edits that alter the characters are flagged as modified.
    """

    def __init__(self) -> None:
        self.chars: List[str] = []
        self.position = 0

    def _change(self, modified: bool) -> InputEvent:
        return change(tuple(self.chars), self.position, modified)

    def feed(self, key: Key) -> Optional[InputEvent]:
        if key == -1 or key == curses.KEY_RESIZE:
            return None
        if key in _SELECT_KEYS:
            return SELECT
        if key in _END_KEYS:
            return END

        # List navigation.
        if key in (curses.KEY_UP, _ctrl("p")):
            return line(-1, 0)
        if key in (curses.KEY_DOWN, _ctrl("n")):
            return line(1, 0)
        if key == curses.KEY_PPAGE:
            return line(0, -1)
        if key == curses.KEY_NPAGE:
            return line(0, 1)
        if key == curses.KEY_HOME:
            return line(-_JUMP, 0)
        if key == curses.KEY_END:
            return line(_JUMP, 0)

        # Cursor movement inside the text.
        if key in (curses.KEY_LEFT, _ctrl("b")):
            self.position = max(0, self.position - 1)
            return self._change(False)
        if key in (curses.KEY_RIGHT, _ctrl("f")):
            self.position = min(len(self.chars), self.position + 1)
            return self._change(False)
        if key == _ctrl("a"):
            self.position = 0
            return self._change(False)
        if key == _ctrl("e"):
            self.position = len(self.chars)
            return self._change(False)

        # Editing.
        if key in _BACKSPACE_KEYS:
            if self.position == 0:
                return self._change(False)
            del self.chars[self.position - 1]
            self.position -= 1
            return self._change(True)
        if key == curses.KEY_DC:
            if self.position >= len(self.chars):
                return self._change(False)
            del self.chars[self.position]
            return self._change(True)
        if key == _ctrl("u"):
            modified = bool(self.chars)
            self.chars = []
            self.position = 0
            return self._change(modified)
        if key == _ctrl("w"):
            return self._delete_word()

        if isinstance(key, int):
            if not (32 <= key <= 126):
                return None
            key = chr(key)
        if len(key) != 1 or not key.isprintable():
            return None
        self.chars.insert(self.position, key)
        self.position += 1
        return self._change(True)

    def _delete_word(self) -> InputEvent:
        end = self.position
        i = end
        while i > 0 and self.chars[i - 1] == " ":
            i -= 1
        while i > 0 and self.chars[i - 1] != " ":
            i -= 1
        if i == end:
            return self._change(False)
        del self.chars[i:end]
        self.position = i
        return self._change(True)


def _map_esc_sequence(seq: str) -> Optional[int]:
    """
    Map the bytes after ESC to a curses key code (for terminals where keypad
    translation didn't happen).
    """
    if seq in ("[A", "OA"):
        return curses.KEY_UP
    if seq in ("[B", "OB"):
        return curses.KEY_DOWN
    if seq in ("[C", "OC"):
        return curses.KEY_RIGHT
    if seq in ("[D", "OD"):
        return curses.KEY_LEFT
    if seq in ("[H", "OH", "[1~", "[7~"):
        return curses.KEY_HOME
    if seq in ("[F", "OF", "[4~", "[8~"):
        return curses.KEY_END
    if seq.startswith("[") and seq.endswith("~"):
        num = seq[1:-1].split(";", 1)[0]
        if num == "3":
            return curses.KEY_DC
        if num == "5":
            return curses.KEY_PPAGE
        if num == "6":
            return curses.KEY_NPAGE
    return None


def _esc_sequence_complete(seq: str) -> bool:
    if len(seq) < 2:
        return False
    if seq[0] == "O":
        return True
    if seq[0] == "[":
        last = seq[-1]
        return last == "~" or last.isalpha()
    return False


def decode_esc_sequence(win: "curses.window", *, timeout_ms: int = 25, restore_timeout_ms: int = -1) -> int:
    """
    Read what follows a bare ESC and return the key it stands for.

    Returns ESC itself when nothing (or nothing known) follows; unknown bytes are
    pushed back with curses.ungetch so they aren't lost.
    """
    read: List[int] = []
    win.timeout(timeout_ms)
    try:
        while len(read) < 8:
            ch = win.getch()
            if ch == -1:
                break
            read.append(ch)
            seq = "".join(chr(c) for c in read if 0 <= c < 256)
            if seq and seq[0] not in "[O":
                break
            if _esc_sequence_complete(seq):
                mapped = _map_esc_sequence(seq)
                if mapped is not None:
                    return mapped
                break
    finally:
        win.timeout(restore_timeout_ms)
    for ch in reversed(read):
        curses.ungetch(ch)
    return _ESC
