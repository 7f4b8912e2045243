"""
PopupScheduler - owns the popup session state.

State:
    session_count  popups fired this session, capped at max_popups
    pending        instant of the armed trigger, or None
    popup_state    idle / awaiting-ack / overdue
    fired_at       actual instant the current popup fired

Only this object, the MissedTimeTracker and the AcknowledgementHandler
mutate that state. At most one trigger timer is ever outstanding.
"""

import logging
from datetime import datetime
from enum import Enum
from typing import Callable, Optional

import config
from core.notifier import Notifier, send_best_effort
from core.timers import TimerHandle, cancel_handle
from core.window import TimeWindow, WindowPicker
from tracking.activity_log import ActivityLog, format_timestamp

logger = logging.getLogger(__name__)


class PopupState(str, Enum):
    """Confirmation popup lifecycle."""

    IDLE = "idle"
    AWAITING_ACK = "awaiting-ack"
    OVERDUE = "overdue"


class PopupScheduler:
    """
    Arms a one-shot timer for a random instant in the window and fires the
    confirmation popup when it elapses.

    Callbacks:
        on_fired(fired_at: datetime) - invoked after the popup state flips to
                                       awaiting-ack; used to start the grace period.
    """

    def __init__(
        self,
        picker: WindowPicker,
        timers,
        activity_log: ActivityLog,
        notifier: Optional[Notifier] = None,
        max_popups: int = config.MAX_POPUPS_PER_SESSION,
    ) -> None:
        self.picker = picker
        self.timers = timers
        self.activity_log = activity_log
        self.notifier = notifier
        self.max_popups = max_popups

        self.session_count: int = 0
        self.pending: Optional[datetime] = None
        self.popup_state: PopupState = PopupState.IDLE
        self.fired_at: Optional[datetime] = None
        self._trigger: Optional[TimerHandle] = None

        self.on_fired: Optional[Callable[[datetime], None]] = None

    @property
    def cap_reached(self) -> bool:
        return self.session_count >= self.max_popups

    @property
    def is_armed(self) -> bool:
        """True while a trigger timer is outstanding."""
        return self._trigger is not None and self._trigger.active

    def schedule_next(self, window: TimeWindow, now: Optional[datetime] = None) -> Optional[datetime]:
        """
        Pick and arm the next trigger instant.

        Does nothing once the session cap is reached. When the window has no
        room left, logs "not checked in" and leaves no trigger armed.

        Args:
            window: Daily window to pick from.
            now: Current instant. If None, uses the timer service clock.

        Returns:
            The armed trigger instant, or None if nothing was armed.
        """
        if self.cap_reached:
            logger.debug(f"Popup cap reached ({self.session_count}/{self.max_popups}), not scheduling")
            return None

        now = now or self.timers.now()
        instant = self.picker.pick_instant(window, now)

        # Supersede whatever was armed before
        self._cancel_trigger()

        if instant is None:
            self.activity_log.log("You are not checked in", config.LOG_ACTION, now)
            logger.info(f"No popup scheduled: window {window} is not active")
            return None

        self.pending = instant
        self.activity_log.log(
            f"Random popup scheduled at: {format_timestamp(instant)}", config.LOG_ACTION, now
        )
        self.activity_log.log("You are checked in.", config.LOG_INIT, now)
        self._trigger = self.timers.call_at(instant, self._on_trigger, name="popup-trigger")
        logger.info(f"Popup {self.session_count + 1}/{self.max_popups} scheduled at {instant:%H:%M:%S}")
        return instant

    def reset(self) -> None:
        """Start a new session: zero the count and drop any armed trigger."""
        self._cancel_trigger()
        self.session_count = 0
        logger.debug("Popup scheduler reset")

    def _cancel_trigger(self) -> None:
        cancel_handle(self._trigger)
        self._trigger = None
        self.pending = None

    def _on_trigger(self) -> None:
        """Timer callback: show the popup."""
        self._trigger = None
        self.pending = None
        self.session_count += 1
        self.popup_state = PopupState.AWAITING_ACK

        # The timer may fire late; the real instant is what gets reported
        fired_at = self.timers.now()
        self.fired_at = fired_at
        self.activity_log.log(
            f"Popup shown at {format_timestamp(fired_at)}", config.LOG_POPUP, fired_at
        )
        logger.info(f"Popup {self.session_count}/{self.max_popups} shown at {fired_at:%H:%M:%S}")

        send_best_effort(self.notifier, config.NOTIFICATION_TITLE, config.NOTIFICATION_BODY)

        if self.on_fired:
            self.on_fired(fired_at)
