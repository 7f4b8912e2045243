"""Configuration settings for Work Check In."""

import os
import sys
import logging
from pathlib import Path
from typing import Optional
from dotenv import load_dotenv


def is_bundled() -> bool:
    """
    Check if the application is running from a PyInstaller bundle.

    Returns:
        True if running from a bundled executable, False otherwise.
    """
    return getattr(sys, 'frozen', False) and hasattr(sys, '_MEIPASS')


def get_base_dir() -> Path:
    """
    Get the base directory for bundled resources (icons).

    Returns:
        Path to the base directory.
    """
    if is_bundled():
        meipass = getattr(sys, '_MEIPASS', None)
        if meipass:
            return Path(meipass)
    return Path(__file__).parent


def _get_int(env_var: str, default: int, minimum: int = 0) -> int:
    """
    Read an integer setting from the environment.

    Args:
        env_var: Environment variable name.
        default: Value used when the variable is unset or invalid.
        minimum: Smallest accepted value.

    Returns:
        The parsed integer, or default.
    """
    raw = os.getenv(env_var, "")
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        logging.getLogger(__name__).warning(
            f"{env_var}={raw!r} is not an integer, using {default}"
        )
        return default
    if value < minimum:
        logging.getLogger(__name__).warning(
            f"{env_var}={value} is below {minimum}, using {default}"
        )
        return default
    return value


def _get_optional_int(env_var: str) -> Optional[int]:
    """Read an optional positive integer; unset or 0 means no limit."""
    value = _get_int(env_var, 0)
    return value or None


# Load environment variables from .env file (only in development)
if not is_bundled():
    _env_path = Path(__file__).parent / ".env"
    load_dotenv(_env_path)

BASE_DIR = get_base_dir()
ASSETS_DIR = BASE_DIR / "assets"

APP_NAME = "Work Check In"

# Daily check-in window (HH:MM, 24-hour, local wall clock)
DEFAULT_START_TIME = os.getenv("CHECKIN_START_TIME", "14:45")
DEFAULT_END_TIME = os.getenv("CHECKIN_END_TIME", "14:55")

# Seconds after a popup before missed time starts counting
GRACE_PERIOD_SECONDS = _get_int("CHECKIN_GRACE_SECONDS", 60)

# Popups shown per session (process start or window update)
MAX_POPUPS_PER_SESSION = _get_int("CHECKIN_MAX_POPUPS", 2, minimum=1)

# Missed-time counter granularity
MISSED_TICK_SECONDS = 1

# Front-end clock refresh
CLOCK_TICK_SECONDS = 1

# Notification text
NOTIFICATION_TITLE = "Work Check In"
NOTIFICATION_BODY = "A random popup appeared!"

# Activity log categories
LOG_ACTION = "action"
LOG_INIT = "init"
LOG_POPUP = "popup"
LOG_POPUP_LATE = "popup-late"
LOG_POPUP_PROMPT = "popup-prompt"

LOG_CATEGORIES = (LOG_ACTION, LOG_INIT, LOG_POPUP, LOG_POPUP_LATE, LOG_POPUP_PROMPT)

# Activity log size (None keeps every entry)
LOG_MAX_ENTRIES = _get_optional_int("CHECKIN_LOG_MAX_ENTRIES")

# Timestamp format for activity log lines and popup messages
TIME_DISPLAY_FORMAT = "%I:%M:%S %p"

DAY_NAMES = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")  # Can override in .env: DEBUG, INFO, WARNING, ERROR
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
