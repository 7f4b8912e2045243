#!/usr/bin/env python3
"""
Work Check In - Main Entry Point

A reminder that asks you twice, at random moments inside a daily window,
to confirm you are still working, and counts the time you miss when you
don't answer within the grace period.

Usage:
    python main.py                          # Launch tray app (default)
    python main.py --cli                    # Launch CLI mode
    python main.py --cli --start 09:00 --end 17:00
"""

import logging
import argparse
import threading
import time
from typing import Optional

import config
from core.engine import CheckInEngine
from core.notifier import ConsoleNotifier
from core.clock import render_day_strip
from core.window import TimeWindow
from tracking.activity_log import LogEvent, format_timestamp
from tracking.analytics import format_duration, generate_summary_text

# Configure logging
logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
    format=config.LOG_FORMAT
)
logger = logging.getLogger(__name__)

# Suppress noisy third-party library logs
logging.getLogger("PIL").setLevel(logging.WARNING)
logging.getLogger("pystray").setLevel(logging.WARNING)

CLI_HELP = """Commands:
  <Enter> / ok          I'm here (answer the check-in popup)
  b                     Break In / Break Out
  w HH:MM HH:MM         Update the check-in window
  s                     Show status
  l                     Show the activity log
  h                     Show this help
  q                     Quit"""


class CheckInCLI:
    """
    Terminal front end for the check-in engine.
    """

    def __init__(self, window: Optional[TimeWindow] = None,
                 grace_period: float = config.GRACE_PERIOD_SECONDS) -> None:
        """Initialize the CLI and its engine."""
        self.engine = CheckInEngine(
            window=window, notifier=ConsoleNotifier(), grace_period=grace_period
        )
        self.engine.on_log = self._on_log
        self.engine.on_popup_shown = self._on_popup_shown

        # Clock refresh thread
        self._timer_running = False
        self._timer_thread: Optional[threading.Thread] = None

    def display_welcome(self) -> None:
        """Display welcome message and instructions."""
        print("\n" + "=" * 60)
        print(f"🕒 {config.APP_NAME}")
        print("=" * 60)
        print(f"\nWindow: {self.engine.window}")
        print(f"Up to {self.engine.scheduler.max_popups} random check-ins; "
              f"answer each within {format_duration(self.engine.grace_period)}")
        print("\n" + CLI_HELP)
        print("\n" + "=" * 60)

    def run(self) -> None:
        """Start the engine and process commands until quit."""
        self.engine.start()
        self._timer_running = True
        self._timer_thread = threading.Thread(target=self._timer_loop, daemon=True)
        self._timer_thread.start()
        try:
            while True:
                try:
                    line = input().strip()
                except EOFError:
                    break
                if not self.handle_command(line):
                    break
        except KeyboardInterrupt:
            print("\n\n👋 Goodbye!")
        finally:
            self._timer_running = False
            result = self.engine.stop()
            print("\n" + generate_summary_text(result["summary"]))

    def handle_command(self, line: str) -> bool:
        """
        Run one command line.

        Returns:
            False when the user asked to quit.
        """
        parts = line.split()
        command = parts[0].lower() if parts else ""

        if command in ("", "ok"):
            if self.engine.acknowledge() is None and command == "ok":
                print("No check-in is waiting.")
        elif command == "b":
            self.engine.toggle_break()
        elif command == "w":
            if len(parts) != 3:
                print("Usage: w HH:MM HH:MM")
            else:
                try:
                    self.engine.update_window(parts[1], parts[2])
                except ValueError as e:
                    print(f"❌ {e}")
        elif command == "s":
            self._print_status()
        elif command == "l":
            for event in self.engine.activity_log.entries:
                print(f"  {event}")
        elif command == "h":
            print(CLI_HELP)
        elif command == "q":
            return False
        else:
            print(f"Unknown command: {command} (h for help)")
        return True

    def _print_status(self) -> None:
        status = self.engine.get_status()
        print(f"\n{render_day_strip(self.engine.timers.now())}")
        print(f"{status['clock']}  {'☕ On break' if status['on_break'] else '💼 Working'}")
        print(f"Window: {status['window']}  "
              f"Check-ins: {status['session_count']}/{status['max_popups']}")
        if status["popup_visible"]:
            print(f"⏳ {status['popup_message']} - {status['popup_detail']}")
        elif status["next_popup"] is not None:
            print(f"Next check-in: {format_timestamp(status['next_popup'])}")
        else:
            print("No check-in scheduled")

    def _timer_loop(self) -> None:
        """Background thread: reprint the clock and popup detail while a popup waits."""
        while self._timer_running:
            self._refresh_clock()
            time.sleep(config.CLOCK_TICK_SECONDS)

    def _refresh_clock(self) -> None:
        status = self.engine.get_status()
        if status["popup_visible"]:
            print(f"⏳ {status['clock']}  {status['popup_detail']}")

    def _on_log(self, event: LogEvent) -> None:
        print(f"  {event}")

    def _on_popup_shown(self, message: str) -> None:
        print("\n" + "-" * 44)
        print("  Confirm You're Here")
        print("  Please press Enter to confirm you're still working.")
        print(f"  {message}")
        print(f"  {self.engine.popup_detail()}")
        print("-" * 44)


def main_cli(window: Optional[TimeWindow], grace_period: float) -> None:
    """Run the CLI version of the application."""
    cli = CheckInCLI(window=window, grace_period=grace_period)
    cli.display_welcome()
    cli.run()


def main_tray(window: Optional[TimeWindow], grace_period: float) -> None:
    """Run the system tray application."""
    from menubar import run_tray_app
    run_tray_app(window=window, grace_period=grace_period)


def main() -> None:
    """
    Main entry point — parses arguments and launches appropriate mode.

    Default mode is tray unless --cli is specified.
    """
    parser = argparse.ArgumentParser(
        description=f"{config.APP_NAME} - random check-in reminders",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py                              Launch tray app (default)
  python main.py --cli                        Launch CLI mode
  python main.py --cli --start 09:00 --end 17:00
        """
    )
    parser.add_argument("--cli", action="store_true", help="Run in CLI mode (terminal-based)")
    parser.add_argument("--start", default=config.DEFAULT_START_TIME,
                        help="Window start, HH:MM (default: %(default)s)")
    parser.add_argument("--end", default=config.DEFAULT_END_TIME,
                        help="Window end, HH:MM (default: %(default)s)")
    parser.add_argument("--grace", type=int, default=config.GRACE_PERIOD_SECONDS,
                        help="Seconds to answer before missed time counts (default: %(default)s)")

    args = parser.parse_args()

    try:
        window = TimeWindow.from_strings(args.start, args.end)
    except ValueError as e:
        parser.error(str(e))
    if args.grace < 0:
        parser.error("--grace must not be negative")

    if args.cli:
        main_cli(window, args.grace)
    else:
        main_tray(window, args.grace)


if __name__ == "__main__":
    main()
