"""
System tray package for Work Check In.

Provides a pystray-based tray icon on every platform pystray supports.
"""

import logging
from typing import Optional

import config
from core.window import TimeWindow

logger = logging.getLogger(__name__)


def run_tray_app(window: Optional[TimeWindow] = None,
                 grace_period: float = config.GRACE_PERIOD_SECONDS) -> None:
    """Launch the tray app."""
    from menubar.tray_app import CheckInTray
    app = CheckInTray(window=window, grace_period=grace_period)
    app.run()
