from __future__ import annotations

import logging
import queue
import threading
from typing import Any, Callable, List, Optional, Tuple

logger = logging.getLogger(__name__)

# (kind, token, payload). kind is "<name>_ok" or "<name>_err".
Message = Tuple[str, object, Any]
Spawn = Callable[[Callable[[], None]], None]


def _spawn_daemon(fn: Callable[[], None]) -> None:
    threading.Thread(target=fn, daemon=True).start()


class BackgroundLoader:
    """
    Runs blocking collaborator calls off the UI thread.

    Curses is not thread-safe; this class only executes the calls and returns
    results via a queue. The UI thread drains the queue and applies results to
    the controller state. After `close()` nothing is delivered any more.
    """

    def __init__(self, *, spawn: Optional[Spawn] = None) -> None:
        self._spawn = spawn or _spawn_daemon
        self._q: "queue.Queue[Message]" = queue.Queue()
        self._running = 0
        self._closed = False
        self._lock = threading.Lock()

    @property
    def closed(self) -> bool:
        return self._closed

    def has_pending(self) -> bool:
        with self._lock:
            return bool(self._running) or not self._q.empty()

    def submit(self, kind: str, token: object, call: Callable[[], Any]) -> None:
        if self._closed:
            return
        with self._lock:
            self._running += 1

        def _run() -> None:
            try:
                result = call()
                self._put((f"{kind}_ok", token, result))
            except Exception as e:
                self._put((f"{kind}_err", token, e))
            finally:
                with self._lock:
                    self._running -= 1

        self._spawn(_run)

    def _put(self, msg: Message) -> None:
        if self._closed:
            logger.debug("dropping %s after close", msg[0])
            return
        self._q.put(msg)

    def drain(self, *, max_items: int = 50) -> List[Message]:
        out: List[Message] = []
        if self._closed:
            return out
        for _ in range(max_items):
            try:
                out.append(self._q.get_nowait())
            except queue.Empty:
                break
        return out

    def close(self) -> None:
        self._closed = True
        while True:
            try:
                self._q.get_nowait()
            except queue.Empty:
                break
