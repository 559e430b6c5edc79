"""Trailing debounce handle driven by the UI loop."""

from __future__ import annotations

import time
from typing import Callable, Optional


class Debouncer:
    """
    Reusable trailing debounce timer.

    `trigger()` (re)arms the deadline; the handler runs from `poll()` once
    `delay_ms` passed since the last trigger. There is no timer thread: the event
    loop calls `poll()` and uses `timeout_ms()` as its input timeout.

    Usage:
        self._debounce = Debouncer(delay_ms=300, handler=self._do_filter)

        def on_text_changed(self):
            self._debounce.trigger()  # Restarts timer
    """

    def __init__(
        self,
        delay_ms: int,
        handler: Callable[[], None],
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._delay_s = max(0, delay_ms) / 1000.0
        self._handler = handler
        self._clock = clock
        self._deadline: Optional[float] = None

    @property
    def pending(self) -> bool:
        return self._deadline is not None

    def trigger(self) -> None:
        """Trigger debounce; restarts timer."""
        self._deadline = self._clock() + self._delay_s

    def cancel(self) -> None:
        """Cancel pending trigger."""
        self._deadline = None

    def poll(self) -> bool:
        """Fire the handler if the deadline passed. Returns True if it fired."""
        if self._deadline is None or self._clock() < self._deadline:
            return False
        self._deadline = None
        self._handler()
        return True

    def timeout_ms(self) -> int:
        """Milliseconds until the deadline, or -1 when nothing is pending."""
        if self._deadline is None:
            return -1
        return max(0, int((self._deadline - self._clock()) * 1000 + 0.999))
