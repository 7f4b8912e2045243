"""MissedTimeTracker - grace period and missed-time counter for one popup."""

import logging
from typing import Optional

import config
from core.scheduler import PopupScheduler, PopupState
from core.timers import TimerHandle, cancel_handle

logger = logging.getLogger(__name__)


class MissedTimeTracker:
    """
    Counts how long a popup stays unacknowledged past its grace period.

    Firing a popup arms a single grace timer. If it elapses before
    acknowledgement the popup becomes overdue and a recurring tick adds
    one unit to missed_seconds per tick interval.
    """

    def __init__(
        self,
        scheduler: PopupScheduler,
        timers,
        grace_period: float = config.GRACE_PERIOD_SECONDS,
        tick_interval: float = config.MISSED_TICK_SECONDS,
    ) -> None:
        self.scheduler = scheduler
        self.timers = timers
        self.grace_period = grace_period
        self.tick_interval = tick_interval

        self.missed_seconds: int = 0
        self._grace: Optional[TimerHandle] = None
        self._ticker: Optional[TimerHandle] = None

    @property
    def is_counting(self) -> bool:
        return self._ticker is not None and self._ticker.active

    @property
    def is_in_grace(self) -> bool:
        return self._grace is not None and self._grace.active

    def on_popup_fired(self) -> None:
        """Start the grace period for a popup that just fired."""
        self._cancel_timers()
        self.missed_seconds = 0
        self._grace = self.timers.call_later(self.grace_period, self._on_grace_elapsed, name="grace")
        logger.debug(f"Grace period of {self.grace_period}s started")

    def on_acknowledge(self) -> int:
        """
        Stop counting and report.

        Safe to call when neither timer is running.

        Returns:
            Missed seconds accumulated for this popup (0 if acknowledged
            within the grace period).
        """
        self._cancel_timers()
        missed = self.missed_seconds
        self.missed_seconds = 0
        return missed

    def reset(self) -> None:
        """Cancel everything without reporting (session reset)."""
        self._cancel_timers()
        self.missed_seconds = 0

    def _on_grace_elapsed(self) -> None:
        self._grace = None
        self.scheduler.popup_state = PopupState.OVERDUE
        logger.info("Grace period elapsed, counting missed time")
        self._ticker = self.timers.call_every(self.tick_interval, self._on_tick, name="missed-time")

    def _on_tick(self) -> None:
        self.missed_seconds += 1

    def _cancel_timers(self) -> None:
        cancel_handle(self._grace)
        cancel_handle(self._ticker)
        self._grace = None
        self._ticker = None
