"""Unit tests for the activity log, clock helpers and config parsing."""

import dataclasses
import os
import sys
import unittest
from datetime import datetime
from pathlib import Path
from unittest.mock import patch

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import config
from core.clock import day_index, day_strip, format_clock, render_day_strip
from tracking.activity_log import ActivityLog, format_timestamp


class TestActivityLog(unittest.TestCase):
    """Test the most-recent-first log sink."""

    def setUp(self):
        self.when = datetime(2026, 10, 18, 9, 5, 7)

    def test_most_recent_first(self):
        log = ActivityLog()
        log.log("first", config.LOG_ACTION, self.when)
        log.log("second", config.LOG_INIT, self.when)
        self.assertEqual([e.message for e in log.entries], ["second", "first"])
        self.assertEqual(log.latest().category, config.LOG_INIT)
        self.assertEqual(len(log), 2)

    def test_entry_fields(self):
        event = ActivityLog().log("Popup shown", config.LOG_POPUP, self.when)
        self.assertEqual(event.timestamp, "9:05:07 AM")
        self.assertEqual(event.to_dict(), {
            "timestamp": "9:05:07 AM",
            "message": "Popup shown",
            "category": "popup",
        })
        self.assertEqual(str(event), "9:05:07 AM: Popup shown")

    def test_events_are_immutable(self):
        event = ActivityLog().log("x", config.LOG_ACTION, self.when)
        with self.assertRaises(dataclasses.FrozenInstanceError):
            event.message = "y"

    def test_unbounded_by_default(self):
        log = ActivityLog()
        for i in range(500):
            log.log(str(i))
        self.assertEqual(len(log), 500)

    def test_max_entries_drops_oldest(self):
        log = ActivityLog(max_entries=3)
        for i in range(5):
            log.log(str(i))
        self.assertEqual([e.message for e in log.entries], ["4", "3", "2"])

    def test_unknown_category_warns(self):
        """Unknown categories are logged but still recorded."""
        log = ActivityLog()
        with self.assertLogs("tracking.activity_log", level="WARNING"):
            log.log("odd", "mystery")
        self.assertEqual(log.latest().category, "mystery")

    def test_listeners(self):
        """Listeners get every entry; a broken listener is ignored."""
        log = ActivityLog()
        received = []
        log.add_listener(lambda e: 1 / 0)
        log.add_listener(received.append)
        with self.assertLogs("tracking.activity_log", level="ERROR"):
            log.log("hello")
        self.assertEqual([e.message for e in received], ["hello"])

    def test_empty_latest(self):
        self.assertIsNone(ActivityLog().latest())

    def test_format_timestamp_afternoon(self):
        self.assertEqual(format_timestamp(datetime(2026, 10, 18, 14, 45, 0)), "2:45:00 PM")


class TestClock(unittest.TestCase):
    """Test clock and day strip helpers."""

    def test_format_clock(self):
        self.assertEqual(format_clock(datetime(2026, 10, 18, 14, 5, 7)), "2:05:07 PM")
        self.assertEqual(format_clock(datetime(2026, 10, 18, 11, 59, 59)), "11:59:59 AM")

    def test_day_index_starts_sunday(self):
        self.assertEqual(day_index(datetime(2026, 10, 18)), 0)  # Sunday
        self.assertEqual(day_index(datetime(2026, 10, 19)), 1)  # Monday
        self.assertEqual(day_index(datetime(2026, 10, 24)), 6)  # Saturday

    def test_day_strip(self):
        strip = day_strip(datetime(2026, 10, 20))  # Tuesday
        self.assertEqual([name for name, _ in strip], config.DAY_NAMES)
        self.assertEqual([name for name, today in strip if today], ["Tue"])
        self.assertEqual(
            render_day_strip(datetime(2026, 10, 20)),
            "Sun Mon [Tue] Wed Thu Fri Sat",
        )


class TestConfigParsing(unittest.TestCase):
    """Test environment overrides for numeric settings."""

    def test_get_int_default_when_unset(self):
        with patch.dict(os.environ, {}, clear=False):
            os.environ.pop("CHECKIN_TEST_VALUE", None)
            self.assertEqual(config._get_int("CHECKIN_TEST_VALUE", 60), 60)

    def test_get_int_reads_env(self):
        with patch.dict(os.environ, {"CHECKIN_TEST_VALUE": "90"}):
            self.assertEqual(config._get_int("CHECKIN_TEST_VALUE", 60), 90)

    def test_get_int_invalid_falls_back(self):
        with patch.dict(os.environ, {"CHECKIN_TEST_VALUE": "soon"}):
            with self.assertLogs("config", level="WARNING"):
                self.assertEqual(config._get_int("CHECKIN_TEST_VALUE", 60), 60)

    def test_get_int_below_minimum_falls_back(self):
        with patch.dict(os.environ, {"CHECKIN_TEST_VALUE": "0"}):
            with self.assertLogs("config", level="WARNING"):
                self.assertEqual(config._get_int("CHECKIN_TEST_VALUE", 2, minimum=1), 2)

    def test_optional_int(self):
        with patch.dict(os.environ, {"CHECKIN_TEST_VALUE": "0"}):
            self.assertIsNone(config._get_optional_int("CHECKIN_TEST_VALUE"))
        with patch.dict(os.environ, {"CHECKIN_TEST_VALUE": "200"}):
            self.assertEqual(config._get_optional_int("CHECKIN_TEST_VALUE"), 200)


if __name__ == "__main__":
    unittest.main()
