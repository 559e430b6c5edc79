from __future__ import annotations

import logging
import time
from typing import Any, Callable, List, Optional, Sequence

from picklist.cache import QueryCache
from picklist.config import PickerOptions
from picklist.dataset import check_dataset
from picklist.debounce import Debouncer
from picklist.errors import ConfigurationError, InvalidDatasetError, PickerError
from picklist.formatting import rank_prefix, status_message
from picklist.fuzzy import FilterFn, fuzzy_filter, highlight_items
from picklist.keys import InputEvent
from picklist.loader import BackgroundLoader, Spawn
from picklist.models import DisplayState, Item, Query, ResultSet, Row, annotate
from picklist.pagination import CACHED, PaginationEngine, SearchFn
from picklist.viewport import Viewport

logger = logging.getLogger(__name__)

UpdateFn = Callable[[DisplayState], None]

# How often the UI loop wakes up while background work is outstanding.
POLL_INTERVAL_MS = 80


class PickerController:
    """
    State machine behind the picker.

    Owns the typed query, the result list (local or paginated), the viewport and
    the debounce handle. All methods run on the UI thread; background results
    only enter through `pump()`. The first terminal transition (select, cancel or
    error) wins and detaches everything: later input and late results are ignored.
    """

    def __init__(
        self,
        *,
        data: Any = None,
        search: Optional[SearchFn] = None,
        options: Optional[PickerOptions] = None,
        filter: Optional[FilterFn] = None,
        on_update: Optional[UpdateFn] = None,
        spawn: Optional[Spawn] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if data is None and search is None:
            raise ConfigurationError('Required option "data" or "search"')
        if search is not None and not callable(search):
            raise ConfigurationError(
                f'Option "search" must be a function and a {type(search).__name__} was received'
            )
        self.options = (options or PickerOptions()).validate()
        self.search_mode = data is None

        self._data = data
        self._filter: FilterFn = filter or fuzzy_filter
        self._on_update = on_update
        self._loader = BackgroundLoader(spawn=spawn)
        self._cache = QueryCache(enabled=self.options.cache)
        self._debounce = Debouncer(self.options.debounce_delay, self.filter_dataset, clock=clock)
        self.viewport = Viewport(self.options.size)

        self.query = Query()
        self._input_chars: Sequence[str] = ()
        self._cursor = 0
        self._typed = False
        self._listed = False

        # Dataset mode.
        self._dataset: Optional[List[Item]] = None
        self._dataset_loading = False
        self._local = ResultSet()

        # Search mode.
        self._engine: Optional[PaginationEngine] = None
        if self.search_mode:
            page_filter = None
            if self.options.fuzzy_on_search:
                page_filter = lambda items, q: highlight_items(items, q.chars)  # noqa: E731
            self._engine = PaginationEngine(
                search,  # type: ignore[arg-type]
                loader=self._loader,
                cache=self._cache,
                current_query=lambda: self.query,
                page_filter=page_filter,
            )

        self._started = False
        self.done = False
        self.result: Optional[Item] = None
        self.error: Optional[PickerError] = None
        self.state: Optional[DisplayState] = None

    # -- state ---------------------------------------------------------------

    @property
    def results(self) -> ResultSet:
        if self._engine is not None:
            return self._engine.results
        return self._local

    @property
    def found(self) -> List[Item]:
        return self.results.found

    @property
    def count(self) -> int:
        return self.results.count

    @property
    def loading(self) -> bool:
        if self._engine is not None:
            return self._engine.loading
        return self._dataset_loading

    def wait_timeout_ms(self) -> int:
        """Input timeout for the UI loop: -1 blocks until the next key."""
        t = self._debounce.timeout_ms()
        if self._loader.has_pending():
            t = POLL_INTERVAL_MS if t < 0 else min(t, POLL_INTERVAL_MS)
        return t

    def outcome(self) -> Optional[Item]:
        if self.error is not None:
            raise self.error
        return self.result

    # -- lifecycle -------------------------------------------------------------

    def start(self) -> None:
        if self._started or self.done:
            return
        self._started = True
        if self._engine is not None:
            self._engine.reset(self.query)
            self._load_next_page()
            return
        self._dataset_loading = True
        if callable(self._data):
            self._loader.submit("dataset", None, self._data)
            self._emit()
        else:
            self._set_dataset(self._data)

    def pump(self) -> None:
        """Apply finished background work, then fire a due debounce."""
        if self.done:
            return
        for kind, token, payload in self._loader.drain():
            if self.done:
                return
            if kind == "dataset_ok":
                self._set_dataset(payload)
            elif kind == "dataset_err":
                self._end_with_dataset_error(payload)
            elif kind == "page_ok":
                self._apply_page(token, payload)
            elif kind == "page_err":
                query, page = token  # type: ignore[misc]
                assert self._engine is not None
                self._end(self._engine.fail(query, page, payload))
        if not self.done:
            self._debounce.poll()

    def _set_dataset(self, items: Any) -> None:
        self._dataset_loading = False
        try:
            self._dataset = check_dataset(items)
        except InvalidDatasetError as e:
            self._end(e)
            return
        logger.debug("dataset loaded: %d items", len(self._dataset))
        self.filter_dataset()

    def _end_with_dataset_error(self, exc: BaseException) -> None:
        self._dataset_loading = False
        if isinstance(exc, PickerError):
            self._end(exc)
            return
        err = InvalidDatasetError(f"Failed to load dataset: {exc}")
        err.__cause__ = exc
        self._end(err)

    def _apply_page(self, token: Any, payload: Any) -> None:
        assert self._engine is not None
        query, page = token
        try:
            kept = self._engine.apply(query, page, payload)
        except (TypeError, ValueError) as e:
            self._end(self._engine.fail(query, page, e))
            return
        if kept:
            self.update_list()

    # -- filtering -------------------------------------------------------------

    def filter_dataset(self) -> None:
        """Re-run the current query from scratch."""
        if self.done:
            return
        self.viewport.reset()
        if self._engine is None:
            if self._dataset is None:
                return
            found = annotate(self._filter(self._dataset, self.query.chars))
            self._local = ResultSet(found=found, count=len(found))
            self.update_list()
        else:
            self._engine.reset(self.query)
            self._load_next_page()

    def _load_next_page(self) -> None:
        assert self._engine is not None
        if self._engine.load_next_page(self.query) == CACHED:
            self.update_list()
        else:
            self._emit()

    def update_list(self) -> None:
        self._listed = True
        self._emit()
        # Infinite scroll: prefetch once the window reaches the loaded tail.
        engine = self._engine
        if (
            engine is not None
            and not self.done
            and engine.owner is self.query
            and engine.results.more_pages
            and self.viewport.at_end(len(engine.results.found))
        ):
            self._load_next_page()

    # -- input -----------------------------------------------------------------

    def dispatch(self, event: Optional[InputEvent]) -> None:
        if event is None or self.done:
            return
        if self.options.debug:
            logger.debug("input %s%r", event.kind, event.args)
        if event.kind == "change":
            self.on_change(*event.args)
        elif event.kind == "line":
            self.on_line(*event.args)
        elif event.kind == "select":
            self.select()
        elif event.kind == "end":
            self.cancel()

    def on_change(self, chars: Sequence[str], position: int, modified: bool) -> None:
        if self.done:
            return
        self._input_chars = tuple(chars)
        self._cursor = position
        self._typed = True
        if modified:
            self.query = Query(tuple(chars))
            self._debounce.trigger()
        self._emit()

    def on_line(self, d_line: int, d_page: int) -> None:
        if self.done:
            return
        self.viewport.move(d_line, d_page, len(self.found))
        self.update_list()

    def select(self) -> None:
        found = self.found
        line = self.viewport.line
        self._end(None, found[line] if 0 <= line < len(found) else None)

    def cancel(self) -> None:
        self._end(None, None)

    def fail(self, err: PickerError) -> None:
        self._end(err)

    def _end(self, err: Optional[PickerError], result: Optional[Item] = None) -> None:
        if self.done:
            return
        self.done = True
        self._debounce.cancel()
        self._loader.close()
        if err is not None:
            logger.error("picker failed: %s", err)
            self.error = err
        else:
            self.result = result

    # -- display ---------------------------------------------------------------

    def snapshot(self) -> DisplayState:
        res = self.results
        vp = self.viewport
        rows: List[Row] = []
        for item in res.found[vp.start : vp.start + vp.size]:
            idx = int(item["index"])
            rows.append(
                Row(
                    prefix=rank_prefix(idx, res.count),
                    label=str(item.get("label", "")),
                    highlight=tuple(item.get("highlight") or ()),
                    selected=idx == vp.line,
                )
            )
        status = status_message(res.count, len(res.found), search_mode=self.search_mode) if self._listed else ""
        return DisplayState(
            input_chars=tuple(self._input_chars),
            cursor=self._cursor,
            placeholder=not self._typed,
            status=status,
            loading=self.loading,
            rows=tuple(rows),
            size=vp.size,
        )

    def _emit(self) -> None:
        if self.done:
            return
        self.state = self.snapshot()
        if self._on_update is not None:
            self._on_update(self.state)
