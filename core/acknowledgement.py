"""AcknowledgementHandler - the user's "I'm here" response to a popup."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

import config
from core.missed_time import MissedTimeTracker
from core.scheduler import PopupScheduler, PopupState
from core.window import TimeWindow
from tracking.activity_log import ActivityLog
from tracking.analytics import format_duration

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AcknowledgementResult:
    """Outcome of acknowledging one popup."""

    missed_seconds: int
    late: bool
    acknowledged_at: datetime
    fired_at: Optional[datetime] = None


class AcknowledgementHandler:
    """
    Closes the active popup and continues the popup cycle.

    This is the only path back into scheduling once a popup has fired.
    """

    def __init__(
        self,
        scheduler: PopupScheduler,
        tracker: MissedTimeTracker,
        activity_log: ActivityLog,
        get_window: Callable[[], TimeWindow],
    ) -> None:
        self.scheduler = scheduler
        self.tracker = tracker
        self.activity_log = activity_log
        self.get_window = get_window

        # Hides the confirmation surface (set by the engine)
        self.on_hide: Optional[Callable[[], None]] = None

    def on_ack(self) -> Optional[AcknowledgementResult]:
        """
        Acknowledge the active popup.

        Returns:
            The AcknowledgementResult, or None if no popup was waiting
            (a redundant acknowledgement is a no-op).
        """
        state = self.scheduler.popup_state
        if state == PopupState.IDLE:
            logger.debug("Acknowledgement ignored: no popup is waiting")
            return None

        if self.on_hide:
            self.on_hide()

        missed = self.tracker.on_acknowledge()
        now = self.scheduler.timers.now()
        late = missed > 0 or state == PopupState.OVERDUE

        if late:
            self.activity_log.log(
                f"Popup clicked after {format_duration(missed)}", config.LOG_POPUP_LATE, now
            )
        else:
            self.activity_log.log("I'm Here", config.LOG_POPUP_PROMPT, now)

        result = AcknowledgementResult(
            missed_seconds=missed,
            late=late,
            acknowledged_at=now,
            fired_at=self.scheduler.fired_at,
        )
        logger.info(f"Popup acknowledged ({'late' if late else 'prompt'}, missed {missed}s)")

        self.scheduler.popup_state = PopupState.IDLE
        self.scheduler.fired_at = None

        if not self.scheduler.cap_reached:
            self.scheduler.schedule_next(self.get_window(), now)
        return result
