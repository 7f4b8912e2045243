"""Activity log shown to the user (most recent entry first)."""

import logging
import threading
from collections import deque
from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Callable, Deque, Dict, List, Optional

import config

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LogEvent:
    """One activity log line."""

    timestamp: str
    message: str
    category: str

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)

    def __str__(self) -> str:
        return f"{self.timestamp}: {self.message}"


class ActivityLog:
    """
    Append-only, most-recent-first log sink (thread-safe).

    Entries are never edited or removed, except that the oldest entries
    fall off when max_entries is set.
    """

    def __init__(self, max_entries: Optional[int] = None) -> None:
        """
        Initialize an empty log.

        Args:
            max_entries: Optional cap on retained entries. None keeps everything.
        """
        self._entries: Deque[LogEvent] = deque(maxlen=max_entries)
        self._lock = threading.Lock()
        self._listeners: List[Callable[[LogEvent], None]] = []

    def add_listener(self, listener: Callable[[LogEvent], None]) -> None:
        """Register a callable invoked with every new entry."""
        self._listeners.append(listener)

    def log(self, message: str, category: str = config.LOG_ACTION,
            timestamp: Optional[datetime] = None) -> LogEvent:
        """
        Append a new entry.

        Args:
            message: Text of the entry.
            category: One of config.LOG_CATEGORIES.
            timestamp: Optional time of the entry. If None, uses current time.

        Returns:
            The LogEvent that was recorded.
        """
        if category not in config.LOG_CATEGORIES:
            # Log warning but don't crash
            logger.warning(f"Unknown log category: {category}")

        when = timestamp or datetime.now()
        event = LogEvent(
            timestamp=format_timestamp(when),
            message=message,
            category=category,
        )
        with self._lock:
            self._entries.appendleft(event)

        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                logger.error(f"Activity log listener failed: {e}")
        return event

    @property
    def entries(self) -> List[LogEvent]:
        """Snapshot of the log, most recent first."""
        with self._lock:
            return list(self._entries)

    def latest(self) -> Optional[LogEvent]:
        with self._lock:
            return self._entries[0] if self._entries else None

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


def format_timestamp(when: datetime) -> str:
    """Format an instant like "2:45:07 PM" (no leading zero)."""
    return when.strftime(config.TIME_DISPLAY_FORMAT).lstrip('0')
