import unittest
from typing import Callable, List, Sequence, Tuple

from picklist.config import PickerOptions
from picklist.controller import PickerController
from picklist.errors import ConfigurationError, InvalidDatasetError
from picklist.fuzzy import fuzzy_filter
from picklist.keys import END, SELECT, change, line
from picklist.models import DisplayState

FRUITS = [{"label": "apple"}, {"label": "banana"}, {"label": "cherry"}]


class _Clock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def _inline(fn: Callable[[], None]) -> None:
    fn()


class TestControllerConfiguration(unittest.TestCase):
    def test_requires_data_or_search(self) -> None:
        with self.assertRaises(ConfigurationError) as cm:
            PickerController()
        self.assertIn('"data" or "search"', str(cm.exception))

    def test_search_must_be_callable(self) -> None:
        with self.assertRaises(ConfigurationError) as cm:
            PickerController(search="https://example.invalid")  # type: ignore[arg-type]
        self.assertIn("must be a function and a str was received", str(cm.exception))

    def test_invalid_options(self) -> None:
        with self.assertRaises(ConfigurationError):
            PickerController(data=FRUITS, options=PickerOptions(size=0))
        with self.assertRaises(ConfigurationError):
            PickerController(data=FRUITS, options=PickerOptions(debounce_delay=-1))

    def test_nothing_is_displayed_before_start(self) -> None:
        updates: List[DisplayState] = []
        ctl = PickerController(data=FRUITS, on_update=updates.append)
        self.assertEqual(updates, [])
        self.assertIsNone(ctl.state)


class TestControllerDatasetMode(unittest.TestCase):
    def setUp(self) -> None:
        self.clock = _Clock()
        self.filter_calls: List[Tuple[str, ...]] = []

        def counting_filter(items: Sequence[dict], chars: Sequence[str]) -> List[dict]:
            self.filter_calls.append(tuple(chars))
            return fuzzy_filter(items, chars)

        self.updates: List[DisplayState] = []
        self.ctl = PickerController(
            data=FRUITS,
            options=PickerOptions(size=2, debounce_delay=300),
            filter=counting_filter,
            on_update=self.updates.append,
            clock=self.clock,
        )

    def _type(self, text: str) -> None:
        chars: Tuple[str, ...] = ()
        for ch in text:
            chars = chars + (ch,)
            self.ctl.dispatch(change(chars, len(chars), True))
            self.clock.now += 0.05
            self.ctl.pump()

    def _settle(self) -> None:
        self.clock.now += 1.0
        self.ctl.pump()

    def test_start_lists_whole_dataset_with_dense_indices(self) -> None:
        self.ctl.start()
        self.assertEqual([it["label"] for it in self.ctl.found], ["apple", "banana", "cherry"])
        self.assertEqual([it["index"] for it in self.ctl.found], [0, 1, 2])
        self.assertEqual(self.ctl.count, 3)
        state = self.ctl.state
        assert state is not None
        self.assertEqual(state.status, "3 results")
        self.assertFalse(state.loading)
        self.assertTrue(state.placeholder)
        # size=2: only the first two rows are visible.
        self.assertEqual([r.text for r in state.rows], ["1 > apple", "2 > banana"])
        self.assertTrue(state.rows[0].selected)

    def test_fuzzy_query_scenario(self) -> None:
        self.ctl.start()
        self._type("an")
        self._settle()
        labels = [it["label"] for it in self.ctl.found]
        self.assertIn("banana", labels)
        self.assertNotIn("cherry", labels)
        banana = self.ctl.found[labels.index("banana")]
        self.assertEqual(banana["highlight"], [1, 2])
        self.assertEqual([it["index"] for it in self.ctl.found], list(range(len(labels))))

    def test_rapid_keystrokes_filter_once_with_final_query(self) -> None:
        self.ctl.start()
        self.assertEqual(self.filter_calls, [()])
        self._type("ban")
        # Still inside the debounce window.
        self.assertEqual(self.filter_calls, [()])
        self._settle()
        self.assertEqual(self.filter_calls, [(), ("b", "a", "n")])
        self._settle()
        self.assertEqual(len(self.filter_calls), 2)

    def test_input_line_updates_immediately(self) -> None:
        self.ctl.start()
        self.ctl.dispatch(change(("x",), 1, True))
        state = self.ctl.state
        assert state is not None
        self.assertEqual(state.input_text, "x")
        self.assertEqual(state.cursor, 1)
        self.assertFalse(state.placeholder)
        # The list is not re-filtered yet.
        self.assertEqual(len(self.ctl.found), 3)

    def test_cursor_only_change_does_not_refilter(self) -> None:
        self.ctl.start()
        self._type("a")
        self._settle()
        calls = len(self.filter_calls)
        self.ctl.dispatch(change(("a",), 0, False))
        self._settle()
        self.assertEqual(len(self.filter_calls), calls)
        state = self.ctl.state
        assert state is not None
        self.assertEqual(state.cursor, 0)

    def test_query_change_resets_viewport(self) -> None:
        self.ctl.start()
        self.ctl.dispatch(line(2, 0))
        self.assertEqual((self.ctl.viewport.line, self.ctl.viewport.start), (2, 1))
        self._type("e")
        self._settle()
        self.assertEqual((self.ctl.viewport.line, self.ctl.viewport.start), (0, 0))

    def test_select_returns_item_at_cursor(self) -> None:
        self.ctl.start()
        self.ctl.dispatch(line(1, 0))
        self.ctl.dispatch(SELECT)
        self.assertTrue(self.ctl.done)
        item = self.ctl.outcome()
        assert item is not None
        self.assertEqual(item["label"], "banana")
        self.assertEqual(item["index"], 1)

    def test_select_with_no_results_returns_none(self) -> None:
        self.ctl.start()
        self._type("zzz")
        self._settle()
        self.assertEqual(self.ctl.found, [])
        self.assertEqual(self.ctl.state.status if self.ctl.state else None, "No result")
        self.ctl.dispatch(SELECT)
        self.assertIsNone(self.ctl.outcome())

    def test_cancel_detaches_input(self) -> None:
        self.ctl.start()
        self.ctl.dispatch(END)
        self.assertTrue(self.ctl.done)
        n_updates = len(self.updates)
        self.ctl.dispatch(change(("a",), 1, True))
        self.ctl.dispatch(line(1, 0))
        self.ctl.dispatch(SELECT)
        self._settle()
        self.assertIsNone(self.ctl.outcome())
        self.assertEqual(len(self.updates), n_updates)
        self.assertEqual(len(self.filter_calls), 1)

    def test_first_terminal_transition_wins(self) -> None:
        self.ctl.start()
        self.ctl.select()
        self.ctl.cancel()
        item = self.ctl.outcome()
        assert item is not None
        self.assertEqual(item["label"], "apple")


class TestControllerDatasetLoading(unittest.TestCase):
    def test_callable_dataset_loads_in_background(self) -> None:
        jobs: List[Callable[[], None]] = []
        ctl = PickerController(data=lambda: FRUITS, spawn=jobs.append, options=PickerOptions(debounce_delay=0))
        ctl.start()
        state = ctl.state
        assert state is not None
        self.assertTrue(state.loading)
        self.assertEqual(state.status, "")
        # Typing before the dataset arrives only records the terms.
        ctl.dispatch(change(("c",), 1, True))
        ctl.pump()
        self.assertEqual(ctl.found, [])

        jobs.pop()()
        ctl.pump()
        self.assertEqual([it["label"] for it in ctl.found], ["cherry"])
        self.assertFalse(ctl.loading)

    def test_invalid_dataset_is_terminal(self) -> None:
        ctl = PickerController(data="not a list")
        ctl.start()
        self.assertTrue(ctl.done)
        with self.assertRaises(InvalidDatasetError):
            ctl.outcome()

    def test_dataset_loader_exception_is_wrapped(self) -> None:
        def broken() -> list:
            raise OSError("no such file")

        ctl = PickerController(data=broken, spawn=_inline)
        ctl.start()
        ctl.pump()
        with self.assertRaises(InvalidDatasetError) as cm:
            ctl.outcome()
        self.assertIsInstance(cm.exception.__cause__, OSError)

    def test_dataset_loader_returning_mapping_is_rejected(self) -> None:
        ctl = PickerController(data=lambda: {"label": "x"}, spawn=_inline)
        ctl.start()
        ctl.pump()
        with self.assertRaises(InvalidDatasetError):
            ctl.outcome()


if __name__ == "__main__":
    unittest.main()
