"""
Desktop notification adapters.

Notifications are best-effort: a missing notifier, a denied permission or
a notifier that raises never blocks the popup or the activity log.
"""

import logging
import sys
from typing import Optional

logger = logging.getLogger(__name__)

PERMISSION_GRANTED = "granted"
PERMISSION_DENIED = "denied"
PERMISSION_DEFAULT = "default"


class Notifier:
    """Base class for notification back ends."""

    permission: str = PERMISSION_DEFAULT

    def send(self, title: str, body: str) -> bool:
        """
        Show a notification.

        Returns:
            True if the notification was handed to the platform.
        """
        raise NotImplementedError


class NullNotifier(Notifier):
    """Notifier used when no notification channel is available."""

    permission = PERMISSION_DENIED

    def send(self, title: str, body: str) -> bool:
        return False


class ConsoleNotifier(Notifier):
    """Rings the terminal bell and prints the notification (CLI mode)."""

    permission = PERMISSION_GRANTED

    def __init__(self, stream=None) -> None:
        self.stream = stream or sys.stdout

    def send(self, title: str, body: str) -> bool:
        self.stream.write(f"\a\n🔔 {title}: {body}\n")
        self.stream.flush()
        return True


def send_best_effort(notifier: Optional[Notifier], title: str, body: str) -> bool:
    """
    Send a notification, ignoring every failure.

    Returns:
        True if the notifier accepted the notification.
    """
    if notifier is None:
        return False
    if notifier.permission != PERMISSION_GRANTED:
        logger.debug(f"Notification skipped (permission: {notifier.permission})")
        return False
    try:
        return bool(notifier.send(title, body))
    except Exception as e:
        logger.debug(f"Notification failed: {e}")
        return False
