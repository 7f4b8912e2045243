"""
Tests for core/timers.py — cancellable timer handles on both the
simulated and the threaded timer service.
"""

import sys
import threading
import time
import unittest
from datetime import datetime, timedelta
from pathlib import Path

# Ensure project root is on the path
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.timers import ManualTimerService, ThreadingTimerService, TimerHandle, cancel_handle

START = datetime(2026, 10, 18, 14, 0)


class TestTimerHandle(unittest.TestCase):
    """Test handle state and idempotent cancel."""

    def test_cancel_is_idempotent(self):
        """Cancelling twice runs the cancel hook once."""
        calls = []
        handle = TimerHandle("t")
        handle._on_cancel = lambda: calls.append(1)
        handle.cancel()
        handle.cancel()
        self.assertTrue(handle.cancelled)
        self.assertFalse(handle.active)
        self.assertEqual(calls, [1])

    def test_cancel_handle_accepts_none(self):
        """cancel_handle(None) does nothing."""
        cancel_handle(None)


class TestManualTimerService(unittest.TestCase):
    """Test the simulated clock."""

    def setUp(self):
        self.timers = ManualTimerService(START)
        self.fired = []

    def test_call_at_fires_at_instant(self):
        """A one-shot fires once the clock reaches its instant, not before."""
        when = START + timedelta(minutes=5)
        handle = self.timers.call_at(when, lambda: self.fired.append(self.timers.now()))

        self.timers.advance(299)
        self.assertEqual(self.fired, [])
        self.assertTrue(handle.active)

        self.timers.advance(1)
        self.assertEqual(self.fired, [when])
        self.assertFalse(handle.active)
        self.assertFalse(handle.cancelled)

    def test_past_instant_fires_on_next_advance(self):
        """An instant already in the past fires at the current time."""
        self.timers.call_at(START - timedelta(seconds=10), lambda: self.fired.append(self.timers.now()))
        self.timers.advance(0)
        self.assertEqual(self.fired, [START])

    def test_cancelled_timer_never_fires(self):
        """Cancelled one-shots are skipped."""
        handle = self.timers.call_later(10, lambda: self.fired.append("x"))
        handle.cancel()
        self.assertEqual(self.timers.advance(3600), 0)
        self.assertEqual(self.fired, [])

    def test_callbacks_run_in_instant_order(self):
        """Timers fire in instant order regardless of arming order."""
        self.timers.call_later(30, lambda: self.fired.append("b"))
        self.timers.call_later(10, lambda: self.fired.append("a"))
        self.timers.call_later(30, lambda: self.fired.append("c"))
        self.timers.advance(60)
        self.assertEqual(self.fired, ["a", "b", "c"])

    def test_call_every_ticks(self):
        """A recurring timer ticks once per interval."""
        handle = self.timers.call_every(1, lambda: self.fired.append(self.timers.now()))
        self.timers.advance(5)
        self.assertEqual(len(self.fired), 5)
        self.assertEqual(self.fired[0], START + timedelta(seconds=1))
        self.assertTrue(handle.active)

        handle.cancel()
        self.timers.advance(100)
        self.assertEqual(len(self.fired), 5)

    def test_recurring_cancel_from_callback(self):
        """A recurring timer can cancel itself from its own callback."""
        holder = {}

        def tick():
            self.fired.append(1)
            if len(self.fired) == 3:
                holder["handle"].cancel()

        holder["handle"] = self.timers.call_every(1, tick)
        self.timers.advance(10)
        self.assertEqual(len(self.fired), 3)

    def test_callback_can_arm_new_timer(self):
        """Timers armed from a callback fire within the same advance."""
        def first():
            self.fired.append("first")
            self.timers.call_later(5, lambda: self.fired.append("second"))

        self.timers.call_later(5, first)
        self.timers.advance(10)
        self.assertEqual(self.fired, ["first", "second"])

    def test_pending_lists_active_handles(self):
        """pending() excludes cancelled and finished timers."""
        a = self.timers.call_later(5, lambda: None, name="a")
        b = self.timers.call_later(10, lambda: None, name="b")
        self.timers.call_later(1, lambda: None, name="c")
        a.cancel()
        self.timers.advance(2)
        self.assertEqual(self.timers.pending(), [b])

    def test_invalid_interval(self):
        """Non-positive intervals are rejected."""
        with self.assertRaises(ValueError):
            self.timers.call_every(0, lambda: None)

    def test_clock_moves_to_target(self):
        """advance() moves now() even when nothing fires."""
        self.timers.advance(90)
        self.assertEqual(self.timers.now(), START + timedelta(seconds=90))


class TestThreadingTimerService(unittest.TestCase):
    """Smoke tests for the threaded timer service."""

    def setUp(self):
        self.timers = ThreadingTimerService()

    def test_call_later_fires(self):
        """A one-shot fires on its own thread."""
        done = threading.Event()
        handle = self.timers.call_later(0.05, done.set)
        self.assertTrue(done.wait(2))
        time.sleep(0.05)
        self.assertFalse(handle.active)

    def test_cancelled_one_shot_does_not_fire(self):
        """Cancelling before the delay elapses prevents the callback."""
        done = threading.Event()
        handle = self.timers.call_later(0.1, done.set)
        handle.cancel()
        self.assertFalse(done.wait(0.3))

    def test_cancel_while_waiting_for_lock(self):
        """A timer that fires while the lock is held sees the cancel and skips."""
        done = threading.Event()
        with self.timers.lock:
            handle = self.timers.call_later(0, done.set)
            time.sleep(0.1)
            handle.cancel()
        self.assertFalse(done.wait(0.2))

    def test_call_at_past_instant_fires_immediately(self):
        """Instants in the past fire without delay."""
        done = threading.Event()
        self.timers.call_at(datetime.now() - timedelta(seconds=5), done.set)
        self.assertTrue(done.wait(2))

    def test_call_every_ticks_until_cancelled(self):
        """A recurring timer ticks repeatedly and stops on cancel."""
        ticks = []
        handle = self.timers.call_every(0.05, lambda: ticks.append(1))
        time.sleep(0.3)
        handle.cancel()
        count = len(ticks)
        self.assertGreaterEqual(count, 2)
        time.sleep(0.2)
        self.assertEqual(len(ticks), count)

    def test_callback_exception_does_not_stop_ticker(self):
        """A raising callback is logged and the ticker keeps going."""
        ticks = []

        def tick():
            ticks.append(1)
            raise RuntimeError("boom")

        with self.assertLogs("core.timers", level="ERROR"):
            handle = self.timers.call_every(0.05, tick)
            time.sleep(0.3)
            handle.cancel()
        self.assertGreaterEqual(len(ticks), 2)


if __name__ == "__main__":
    unittest.main()
