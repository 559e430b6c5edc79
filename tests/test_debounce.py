import unittest

from picklist.debounce import Debouncer


class _Clock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


class TestDebouncer(unittest.TestCase):
    def setUp(self) -> None:
        self.clock = _Clock()
        self.fired = 0

        def handler() -> None:
            self.fired += 1

        self.deb = Debouncer(300, handler, clock=self.clock)

    def test_rapid_triggers_fire_once_after_quiet_period(self) -> None:
        for _ in range(5):
            self.deb.trigger()
            self.clock.now += 0.1
            self.assertFalse(self.deb.poll())
        self.assertEqual(self.fired, 0)
        self.clock.now += 0.25
        self.assertTrue(self.deb.poll())
        self.assertEqual(self.fired, 1)
        self.assertFalse(self.deb.pending)
        self.assertFalse(self.deb.poll())
        self.assertEqual(self.fired, 1)

    def test_cancel(self) -> None:
        self.deb.trigger()
        self.deb.cancel()
        self.clock.now += 1.0
        self.assertFalse(self.deb.poll())
        self.assertEqual(self.fired, 0)

    def test_timeout_ms(self) -> None:
        self.assertEqual(self.deb.timeout_ms(), -1)
        self.deb.trigger()
        self.assertEqual(self.deb.timeout_ms(), 300)
        self.clock.now += 0.2
        self.assertEqual(self.deb.timeout_ms(), 100)
        self.clock.now += 1.0
        self.assertEqual(self.deb.timeout_ms(), 0)

    def test_zero_delay_still_waits_for_poll(self) -> None:
        deb = Debouncer(0, lambda: None, clock=self.clock)
        deb.trigger()
        self.assertTrue(deb.pending)
        self.assertTrue(deb.poll())


if __name__ == "__main__":
    unittest.main()
