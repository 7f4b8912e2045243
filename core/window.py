"""
Daily check-in window and random trigger selection.

A TimeWindow holds two wall-clock times of day. They carry no date: each
evaluation reapplies them to the calendar date of the instant being
evaluated.
"""

import logging
import random
from dataclasses import dataclass
from datetime import datetime, time, timedelta
from typing import Optional

logger = logging.getLogger(__name__)


def parse_time_of_day(value: str) -> time:
    """
    Parse an "HH:MM" 24-hour string.

    Args:
        value: Time string such as "09:05" or "14:45".

    Returns:
        datetime.time with seconds set to zero.

    Raises:
        ValueError: If the string is not a valid HH:MM time.
    """
    text = (value or "").strip()
    parts = text.split(":")
    if len(parts) != 2 or not all(p.isdigit() for p in parts):
        raise ValueError(f"Expected HH:MM, got {value!r}")
    hour, minute = int(parts[0]), int(parts[1])
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        raise ValueError(f"Time out of range: {value!r}")
    return time(hour, minute)


@dataclass(frozen=True)
class TimeWindow:
    """Daily interval during which a popup may be triggered."""

    start: time
    end: time

    @classmethod
    def from_strings(cls, start: str, end: str) -> "TimeWindow":
        """Build a window from two "HH:MM" strings (raises ValueError)."""
        return cls(parse_time_of_day(start), parse_time_of_day(end))

    def resolve(self, now: datetime):
        """Return (start, end) as datetimes on now's calendar date."""
        start = now.replace(hour=self.start.hour, minute=self.start.minute,
                            second=0, microsecond=0)
        end = now.replace(hour=self.end.hour, minute=self.end.minute,
                          second=0, microsecond=0)
        return start, end

    def __str__(self) -> str:
        return f"{self.start:%H:%M}-{self.end:%H:%M}"


class WindowPicker:
    """
    Picks a uniformly random future instant inside a TimeWindow.

    The randomness source is injectable; pass random.Random(seed) for
    reproducible draws. The default draws from the OS entropy source.
    """

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self.rng = rng if rng is not None else random.SystemRandom()

    def pick_instant(self, window: TimeWindow, now: datetime) -> Optional[datetime]:
        """
        Pick the next trigger instant.

        The effective lower bound is max(now, window start), so the window
        never starts in the past.

        Args:
            window: Daily window to draw from.
            now: Current local instant.

        Returns:
            An instant T with max(now, start) <= T < end, or None when the
            window has already elapsed or is empty/inverted.
        """
        start, end = window.resolve(now)
        lower = max(now, start)
        if lower >= end:
            logger.debug(f"Window {window} has no room left at {now:%H:%M:%S}")
            return None

        span = end - lower
        instant = lower + span * self.rng.random()
        # Float rounding on microseconds can land exactly on the end bound
        if instant >= end:
            instant = end - timedelta(microseconds=1)
        return instant
