"""Tests for the terminal front end command handling."""

import sys
import unittest
from datetime import datetime
from pathlib import Path
from unittest.mock import MagicMock, patch

# Ensure project root is on the path
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.engine import CheckInEngine
from core.timers import ManualTimerService
from core.window import TimeWindow
from main import CheckInCLI


class TestCheckInCLI(unittest.TestCase):
    """Test CheckInCLI.handle_command against a simulated engine."""

    def setUp(self):
        rng = MagicMock()
        rng.random.return_value = 0.25
        self.cli = CheckInCLI()
        self.cli.engine = CheckInEngine(
            window=TimeWindow.from_strings("14:00", "16:00"),
            timers=ManualTimerService(datetime(2026, 10, 18, 14, 0)),
            rng=rng,
        )
        self.engine = self.cli.engine
        self.engine.on_popup_shown = self.cli._on_popup_shown

        patcher = patch("builtins.print")
        self.mock_print = patcher.start()
        self.addCleanup(patcher.stop)

    def printed(self) -> str:
        return "\n".join(" ".join(str(a) for a in call.args) for call in self.mock_print.call_args_list)

    def test_quit(self):
        self.assertFalse(self.cli.handle_command("q"))

    def test_break_toggle(self):
        self.assertTrue(self.cli.handle_command("b"))
        self.assertTrue(self.engine.on_break)

    def test_enter_acknowledges_popup(self):
        self.engine.start()
        self.engine.timers.advance_to(self.engine.scheduler.pending)
        self.assertIn("Confirm You're Here", self.printed())

        self.cli.handle_command("")
        self.assertFalse(self.engine.popup_visible)
        self.assertEqual(len(self.engine.acknowledgements), 1)

    def test_ok_without_popup(self):
        self.cli.handle_command("ok")
        self.assertIn("No check-in is waiting.", self.printed())

    def test_window_command(self):
        self.engine.start()
        self.cli.handle_command("w 15:00 15:10")
        self.assertEqual(str(self.engine.window), "15:00-15:10")
        self.assertEqual(self.engine.scheduler.pending, datetime(2026, 10, 18, 15, 2, 30))

    def test_window_command_errors(self):
        self.cli.handle_command("w 15:00")
        self.assertIn("Usage: w HH:MM HH:MM", self.printed())
        self.cli.handle_command("w 15:00 99:99")
        self.assertIn("Time out of range", self.printed())
        self.assertEqual(str(self.engine.window), "14:00-16:00")

    def test_status_command(self):
        self.engine.start()
        self.cli.handle_command("s")
        output = self.printed()
        self.assertIn("[Sun] Mon", output)
        self.assertIn("Next check-in: 2:30:00 PM", output)

    def _run_one_refresh(self):
        """Drive a single iteration of the refresh loop."""
        def stop_after_tick(_seconds):
            self.cli._timer_running = False

        self.cli._timer_running = True
        with patch("main.time.sleep", side_effect=stop_after_tick) as mock_sleep:
            self.cli._timer_loop()
        mock_sleep.assert_called_once()

    def test_refresh_shows_live_missed_time(self):
        """While a popup waits, each tick reprints the clock and missed time."""
        self.engine.start()
        self.engine.timers.advance_to(self.engine.scheduler.pending)
        self.engine.timers.advance(95)
        self.mock_print.reset_mock()

        self._run_one_refresh()

        output = self.printed()
        self.assertIn("2:31:35 PM", output)
        self.assertIn("You missed time: 35 secs", output)
        self.assertFalse(self.cli._timer_running)

    def test_refresh_quiet_without_popup(self):
        """No popup visible means the refresh tick prints nothing."""
        self.engine.start()
        self.mock_print.reset_mock()

        self._run_one_refresh()

        self.mock_print.assert_not_called()

    def test_unknown_command(self):
        self.assertTrue(self.cli.handle_command("dance"))
        self.assertIn("Unknown command: dance", self.printed())


if __name__ == "__main__":
    unittest.main()
