"""Live clock and day-of-week strip shown by the front ends."""

from datetime import datetime
from typing import List, Tuple

import config


def format_clock(now: datetime) -> str:
    """Format the clock like "2:45:07 PM"."""
    return now.strftime(config.TIME_DISPLAY_FORMAT).lstrip('0')


def day_index(now: datetime) -> int:
    """Day of week with Sunday as 0."""
    return (now.weekday() + 1) % 7


def day_strip(now: datetime) -> List[Tuple[str, bool]]:
    """Return (day name, is_today) pairs from Sunday to Saturday."""
    today = day_index(now)
    return [(name, index == today) for index, name in enumerate(config.DAY_NAMES)]


def render_day_strip(now: datetime) -> str:
    """Render the strip as text, today in brackets: "Sun [Mon] Tue ..."."""
    return " ".join(f"[{name}]" if is_today else name for name, is_today in day_strip(now))
