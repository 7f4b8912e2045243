"""
Work Check In system tray application using pystray.

Shows the live clock in the tooltip, the active window and next popup in
the menu, a break toggle, and an "I'm Here" item while a check-in popup
is waiting. Popups are announced with tray notifications.
"""

import time
import logging
import threading
from typing import Optional

import pystray
from PIL import Image, ImageDraw

import config
from core.engine import CheckInEngine
from core.notifier import Notifier, PERMISSION_DENIED, PERMISSION_GRANTED
from core.window import TimeWindow
from tracking.activity_log import LogEvent, format_timestamp

logger = logging.getLogger(__name__)

# Resolve icon path
_ICON_PATH = config.ASSETS_DIR / "tray_icon.png"


def _load_icon_image() -> Image.Image:
    """Load the tray icon image, drawing a simple clock face if missing."""
    if _ICON_PATH.exists():
        return Image.open(str(_ICON_PATH))
    image = Image.new("RGBA", (64, 64), (0, 0, 0, 0))
    draw = ImageDraw.Draw(image)
    draw.ellipse((4, 4, 60, 60), fill=(30, 58, 138, 255), outline=(255, 255, 255, 255), width=4)
    draw.line((32, 32, 32, 14), fill=(255, 255, 255, 255), width=4)
    draw.line((32, 32, 46, 32), fill=(255, 255, 255, 255), width=4)
    return image


class TrayNotifier(Notifier):
    """Sends notifications through the pystray icon."""

    def __init__(self) -> None:
        self.icon: Optional[pystray.Icon] = None

    @property
    def permission(self) -> str:
        if self.icon is not None and getattr(self.icon, "HAS_NOTIFICATION", True):
            return PERMISSION_GRANTED
        return PERMISSION_DENIED

    def send(self, title: str, body: str) -> bool:
        if self.icon is None:
            return False
        self.icon.notify(body, title)
        return True


class CheckInTray:
    """System tray application for Work Check In."""

    def __init__(self, window: Optional[TimeWindow] = None,
                 grace_period: float = config.GRACE_PERIOD_SECONDS) -> None:
        """Initialise the tray app and engine."""
        self.notifier = TrayNotifier()
        self.engine = CheckInEngine(window=window, notifier=self.notifier, grace_period=grace_period)
        self.engine.on_popup_shown = self._on_popup_shown
        self.engine.on_popup_hidden = self._on_popup_hidden
        self.engine.on_log = self._on_log

        self.icon = pystray.Icon(
            name="WorkCheckIn",
            icon=_load_icon_image(),
            title=config.APP_NAME,
            menu=self._build_menu(),
        )
        self.notifier.icon = self.icon

        # Timer thread for the clock tooltip
        self._timer_running: bool = True
        self._timer_thread = threading.Thread(target=self._timer_loop, daemon=True)

    # ------------------------------------------------------------------
    # Menu
    # ------------------------------------------------------------------

    def _build_menu(self) -> pystray.Menu:
        return pystray.Menu(
            pystray.MenuItem(lambda item: self._clock_text(), None, enabled=False),
            pystray.MenuItem(lambda item: f"Window {self.engine.window}", None, enabled=False),
            pystray.MenuItem(lambda item: self._next_popup_text(), None, enabled=False),
            pystray.Menu.SEPARATOR,
            pystray.MenuItem(
                "I'm Here",
                self._acknowledge,
                default=True,
                visible=lambda item: self.engine.popup_visible,
            ),
            pystray.MenuItem(
                lambda item: "Break Out" if self.engine.on_break else "Break In",
                self._toggle_break,
            ),
            pystray.MenuItem("Restart Window", self._restart_window),
            pystray.Menu.SEPARATOR,
            pystray.MenuItem(f"Quit {config.APP_NAME}", self._quit_app),
        )

    def _clock_text(self) -> str:
        status = self.engine.get_status()
        today = next(name for name, is_today in status["day_strip"] if is_today)
        return f"{today} {status['clock']}"

    def _next_popup_text(self) -> str:
        status = self.engine.get_status()
        if status["popup_visible"]:
            return status["popup_detail"]
        if status["next_popup"] is not None:
            return f"Next check-in: {format_timestamp(status['next_popup'])}"
        return "You are not checked in"

    # ------------------------------------------------------------------
    # Timer loop (background thread)
    # ------------------------------------------------------------------

    def _timer_loop(self) -> None:
        """Background thread: update tray tooltip with the clock."""
        while self._timer_running:
            status = self.engine.get_status()
            title = f"{config.APP_NAME} — {status['clock']}"
            if status["popup_visible"]:
                title += f" — {status['popup_detail']}"
            elif status["on_break"]:
                title += " — On break"
            self.icon.title = title
            time.sleep(config.CLOCK_TICK_SECONDS)

    # ------------------------------------------------------------------
    # Menu actions
    # ------------------------------------------------------------------

    def _acknowledge(self, icon, item) -> None:
        self.engine.acknowledge()
        self.icon.update_menu()

    def _toggle_break(self, icon, item) -> None:
        self.engine.toggle_break()
        self.icon.update_menu()

    def _restart_window(self, icon, item) -> None:
        self.engine.restart_window()
        self.icon.update_menu()

    # ------------------------------------------------------------------
    # Engine callbacks
    # ------------------------------------------------------------------

    def _on_popup_shown(self, message: str) -> None:
        self.icon.update_menu()

    def _on_popup_hidden(self) -> None:
        self.icon.update_menu()

    def _on_log(self, event: LogEvent) -> None:
        logger.info(f"[{event.category}] {event.message}")

    # ------------------------------------------------------------------
    # Quit / Run
    # ------------------------------------------------------------------

    def _quit_app(self, icon, item) -> None:
        """Clean up and quit."""
        self._timer_running = False
        self.engine.stop()
        self.icon.stop()

    def run(self) -> None:
        """Start the tray application."""
        def _setup(icon: pystray.Icon) -> None:
            icon.visible = True
            self.engine.start()
            icon.update_menu()

        self._timer_thread.start()
        self.icon.run(setup=_setup)
