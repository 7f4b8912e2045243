"""
CheckInEngine — headless orchestration for Work Check In.

Wires the window picker, popup scheduler, missed-time tracker and
acknowledgement handler together with the activity log and notifier,
and adds the break toggle, window reconfiguration and a status snapshot.

This module has ZERO UI dependencies. The CLI and the tray app call
engine methods and receive updates via callbacks.

Callbacks:
    on_popup_shown(message: str)
    on_popup_hidden()
    on_log(event: LogEvent)
"""

import logging
import random
from datetime import datetime
from typing import Callable, Dict, List, Optional

import config
from core.acknowledgement import AcknowledgementHandler, AcknowledgementResult
from core.clock import day_index, day_strip, format_clock
from core.missed_time import MissedTimeTracker
from core.notifier import Notifier, NullNotifier
from core.scheduler import PopupScheduler, PopupState
from core.timers import ThreadingTimerService
from core.window import TimeWindow, WindowPicker
from tracking.activity_log import ActivityLog, LogEvent, format_timestamp
from tracking.analytics import compute_checkin_summary, format_duration

logger = logging.getLogger(__name__)


class CheckInEngine:
    """
    Core check-in engine.

    Handles:
    - Session lifecycle (start, stop, window reconfiguration)
    - Random popup scheduling inside the daily window, capped per session
    - Grace period and missed-time counting
    - Acknowledgement logging (prompt vs. late)
    - Break toggle

    Every public method runs under the timer service lock, so user actions
    and timer callbacks are processed one at a time.
    """

    # ------------------------------------------------------------------
    # Initialisation
    # ------------------------------------------------------------------

    def __init__(
        self,
        window: Optional[TimeWindow] = None,
        timers=None,
        notifier: Optional[Notifier] = None,
        rng: Optional[random.Random] = None,
        activity_log: Optional[ActivityLog] = None,
        grace_period: float = config.GRACE_PERIOD_SECONDS,
        max_popups: int = config.MAX_POPUPS_PER_SESSION,
    ) -> None:
        """Initialise the engine with default state (nothing scheduled yet)."""
        self.timers = timers or ThreadingTimerService()
        self.window: TimeWindow = window or TimeWindow.from_strings(
            config.DEFAULT_START_TIME, config.DEFAULT_END_TIME
        )
        self.activity_log: ActivityLog = activity_log or ActivityLog(config.LOG_MAX_ENTRIES)
        self.notifier: Notifier = notifier or NullNotifier()
        self.grace_period = grace_period

        # Core state machine
        self.picker = WindowPicker(rng)
        self.scheduler = PopupScheduler(
            self.picker, self.timers, self.activity_log, self.notifier, max_popups
        )
        self.tracker = MissedTimeTracker(self.scheduler, self.timers, grace_period)
        self.ack_handler = AcknowledgementHandler(
            self.scheduler, self.tracker, self.activity_log, lambda: self.window
        )
        self.scheduler.on_fired = self._handle_popup_fired
        self.ack_handler.on_hide = self._hide_popup

        # Session state
        self.is_running: bool = False
        self.on_break: bool = False
        self.popup_visible: bool = False
        self.popup_message: str = ""

        # Totals for the whole run (not reset by window updates)
        self.popups_shown: int = 0
        self.acknowledgements: List[AcknowledgementResult] = []

        # ---- Callbacks (set by the CLI / tray app) ----
        self.on_popup_shown: Optional[Callable[[str], None]] = None
        self.on_popup_hidden: Optional[Callable[[], None]] = None
        self.on_log: Optional[Callable[[LogEvent], None]] = None

        self.activity_log.add_listener(self._notify_log)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def start(self) -> Dict:
        """
        Start checking in: report notification permission and schedule
        the first popup.

        Returns:
            {"success": bool, "error_type": str | None, "next_popup": datetime | None}
        """
        with self.timers.lock:
            if self.is_running:
                return {"success": False, "error_type": "already_running", "next_popup": None}

            self.is_running = True
            self.activity_log.log(
                f"Notification permission: {self.notifier.permission}",
                config.LOG_ACTION,
                self.timers.now(),
            )
            logger.info(f"Check-in started for window {self.window}")
            next_popup = self.scheduler.schedule_next(self.window)
            return {"success": True, "error_type": None, "next_popup": next_popup}

    def stop(self) -> Dict:
        """
        Stop checking in and cancel every outstanding timer.

        Returns:
            {"success": bool, "summary": dict}
        """
        with self.timers.lock:
            if not self.is_running:
                return {"success": False, "summary": self.get_summary()}
            self._reset_session()
            self.is_running = False
            logger.info("Check-in stopped")
            return {"success": True, "summary": self.get_summary()}

    def update_window(self, start: str, end: str) -> Optional[datetime]:
        """
        Apply a new window from "HH:MM" strings.

        Starts a new session: every timer is cancelled, the popup count
        goes back to zero and the next popup is scheduled.

        Raises:
            ValueError: If either time is malformed. The current session
                        is left untouched.

        Returns:
            The newly scheduled popup instant, or None.
        """
        window = TimeWindow.from_strings(start, end)
        with self.timers.lock:
            self.window = window
            logger.info(f"Window updated to {window}")
            if not self.is_running:
                return None
            self._reset_session()
            return self.scheduler.schedule_next(self.window)

    def restart_window(self) -> Optional[datetime]:
        """Re-submit the current window (new session, same bounds)."""
        with self.timers.lock:
            return self.update_window(f"{self.window.start:%H:%M}", f"{self.window.end:%H:%M}")

    def toggle_break(self) -> bool:
        """
        Flip the break state.

        Returns:
            True if now on break.
        """
        with self.timers.lock:
            self.on_break = not self.on_break
            self.activity_log.log(
                f"Break {'In' if self.on_break else 'Out'} clicked",
                config.LOG_ACTION,
                self.timers.now(),
            )
            return self.on_break

    def acknowledge(self) -> Optional[AcknowledgementResult]:
        """
        Acknowledge the active popup ("I'm Here").

        Returns:
            AcknowledgementResult, or None if no popup was waiting.
        """
        with self.timers.lock:
            result = self.ack_handler.on_ack()
            if result is not None:
                self.acknowledgements.append(result)
            return result

    def popup_detail(self) -> str:
        """Second line of the popup: time left to answer or time missed."""
        if self.scheduler.popup_state == PopupState.OVERDUE:
            return f"You missed time: {format_duration(self.tracker.missed_seconds)}"
        return f"You have {format_duration(self.grace_period)} to click"

    def get_status(self) -> Dict:
        """
        Snapshot of everything a front end needs to draw.

        Returns:
            Dictionary of clock, break, popup and scheduling state.
        """
        with self.timers.lock:
            now = self.timers.now()
            state = self.scheduler.popup_state
            return {
                "is_running": self.is_running,
                "on_break": self.on_break,
                "clock": format_clock(now),
                "day_index": day_index(now),
                "day_strip": day_strip(now),
                "window": str(self.window),
                "popup_visible": self.popup_visible,
                "popup_message": self.popup_message,
                "popup_detail": self.popup_detail() if self.popup_visible else "",
                "popup_state": state.value,
                "missed_seconds": self.tracker.missed_seconds,
                "session_count": self.scheduler.session_count,
                "max_popups": self.scheduler.max_popups,
                "next_popup": self.scheduler.pending,
            }

    def get_summary(self) -> Dict:
        """Statistics for every popup shown since the engine was created."""
        return compute_checkin_summary(self.acknowledgements, self.popups_shown)

    # ------------------------------------------------------------------
    # State machine hooks
    # ------------------------------------------------------------------

    def _handle_popup_fired(self, fired_at: datetime) -> None:
        """Scheduler hook: start the grace period and show the popup."""
        self.popups_shown += 1
        self.tracker.on_popup_fired()
        self.popup_visible = True
        self.popup_message = f"Popup at {format_timestamp(fired_at)}"
        self._safe_call(self.on_popup_shown, self.popup_message)

    def _hide_popup(self) -> None:
        if not self.popup_visible:
            return
        self.popup_visible = False
        self.popup_message = ""
        self._safe_call(self.on_popup_hidden)

    def _reset_session(self) -> None:
        """Cancel trigger, grace and counter timers and zero all counters."""
        self.tracker.reset()
        self.scheduler.reset()
        self.scheduler.popup_state = PopupState.IDLE
        self.scheduler.fired_at = None
        self._hide_popup()

    # ------------------------------------------------------------------
    # Callbacks
    # ------------------------------------------------------------------

    def _notify_log(self, event: LogEvent) -> None:
        self._safe_call(self.on_log, event)

    @staticmethod
    def _safe_call(callback: Optional[Callable], *args) -> None:
        """Invoke a front-end callback; a broken callback never stops the engine."""
        if not callback:
            return
        try:
            callback(*args)
        except Exception as e:
            logger.error(f"Engine callback error: {e}")
