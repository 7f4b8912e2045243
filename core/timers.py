"""
Cancellable timers for the check-in engine.

Every "arm" call returns a TimerHandle; cancel() on a handle is idempotent
and a cancelled handle never runs its callback, even if its timer thread
was already waiting to fire.

Two services share the same interface:

- ThreadingTimerService: production timers. Each timer waits on its own
  daemon thread but callbacks run while holding the service lock, so state
  transitions are processed one at a time.
- ManualTimerService: simulated wall clock advanced explicitly. Used by
  tests and for dry runs; fires due callbacks in instant order.
"""

import heapq
import itertools
import logging
import threading
import time
from datetime import datetime, timedelta
from typing import Callable, List, Optional, Tuple

logger = logging.getLogger(__name__)

TimerCallback = Callable[[], None]


class TimerHandle:
    """Handle for one armed timer (one-shot or recurring)."""

    def __init__(self, name: str, when: Optional[datetime] = None,
                 interval: Optional[float] = None) -> None:
        self.name = name
        self.when = when
        self.interval = interval
        self._cancelled = False
        self._finished = False
        self._on_cancel: Optional[Callable[[], None]] = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def active(self) -> bool:
        """True while the timer can still fire."""
        return not self._cancelled and not self._finished

    def cancel(self) -> None:
        """Cancel the timer. Safe to call any number of times."""
        if self._cancelled:
            return
        self._cancelled = True
        if self._on_cancel is not None:
            self._on_cancel()
            self._on_cancel = None

    def _mark_finished(self) -> None:
        self._finished = True

    def __repr__(self) -> str:
        state = "cancelled" if self._cancelled else ("done" if self._finished else "armed")
        return f"<TimerHandle {self.name} {state}>"


def cancel_handle(handle: Optional[TimerHandle]) -> None:
    """Cancel a handle that may be None."""
    if handle is not None:
        handle.cancel()


class ThreadingTimerService:
    """
    Timer service backed by threading.Timer and daemon threads.

    Attributes:
        lock: Re-entrant lock held while any callback runs. Code that
              mutates state shared with timer callbacks must hold it too.
    """

    def __init__(self, now_fn: Callable[[], datetime] = datetime.now) -> None:
        self.lock = threading.RLock()
        self._now_fn = now_fn

    def now(self) -> datetime:
        return self._now_fn()

    def call_later(self, delay: float, callback: TimerCallback,
                   name: str = "timer") -> TimerHandle:
        """Run callback once after delay seconds (negative delays fire immediately)."""
        delay = max(delay, 0.0)
        handle = TimerHandle(name, when=self.now() + timedelta(seconds=delay))
        timer = threading.Timer(delay, self._run_once, args=(handle, callback))
        timer.daemon = True
        handle._on_cancel = timer.cancel
        timer.start()
        return handle

    def call_at(self, when: datetime, callback: TimerCallback,
                name: str = "timer") -> TimerHandle:
        """Run callback once at a wall-clock instant."""
        delay = (when - self.now()).total_seconds()
        handle = self.call_later(delay, callback, name)
        handle.when = when
        return handle

    def call_every(self, interval: float, callback: TimerCallback,
                   name: str = "ticker") -> TimerHandle:
        """Run callback every interval seconds, first run one interval from now."""
        if interval <= 0:
            raise ValueError(f"Interval must be positive, got {interval}")
        handle = TimerHandle(name, interval=interval)
        stop = threading.Event()
        handle._on_cancel = stop.set
        thread = threading.Thread(
            target=self._run_every,
            args=(handle, interval, callback, stop),
            name=f"checkin-{name}",
            daemon=True,
        )
        thread.start()
        return handle

    def _run_once(self, handle: TimerHandle, callback: TimerCallback) -> None:
        with self.lock:
            if handle.cancelled:
                return
            handle._mark_finished()
            self._invoke(handle, callback)

    def _run_every(self, handle: TimerHandle, interval: float,
                   callback: TimerCallback, stop: threading.Event) -> None:
        # Ticks are scheduled from the start time so they don't drift
        started = time.monotonic()
        for tick in itertools.count(1):
            delay = started + tick * interval - time.monotonic()
            if stop.wait(max(delay, 0.0)):
                return
            with self.lock:
                if handle.cancelled:
                    return
                self._invoke(handle, callback)

    @staticmethod
    def _invoke(handle: TimerHandle, callback: TimerCallback) -> None:
        try:
            callback()
        except Exception:
            logger.exception(f"Timer callback failed ({handle.name})")


class ManualTimerService:
    """
    Timer service driven by an explicit simulated clock.

    Nothing fires until advance() or advance_to() moves the clock past a
    timer's instant. Callbacks then run in instant order (ties in arming
    order) with now() reporting the instant being fired.
    """

    def __init__(self, start: datetime) -> None:
        self.lock = threading.RLock()
        self._now = start
        self._queue: List[Tuple[datetime, int, TimerHandle, TimerCallback]] = []
        self._seq = itertools.count()

    def now(self) -> datetime:
        return self._now

    def call_at(self, when: datetime, callback: TimerCallback,
                name: str = "timer") -> TimerHandle:
        handle = TimerHandle(name, when=max(when, self._now))
        self._push(handle.when, handle, callback)
        return handle

    def call_later(self, delay: float, callback: TimerCallback,
                   name: str = "timer") -> TimerHandle:
        return self.call_at(self._now + timedelta(seconds=max(delay, 0.0)), callback, name)

    def call_every(self, interval: float, callback: TimerCallback,
                   name: str = "ticker") -> TimerHandle:
        if interval <= 0:
            raise ValueError(f"Interval must be positive, got {interval}")
        handle = TimerHandle(name, interval=interval)
        self._push(self._now + timedelta(seconds=interval), handle, callback)
        return handle

    def _push(self, when: datetime, handle: TimerHandle, callback: TimerCallback) -> None:
        heapq.heappush(self._queue, (when, next(self._seq), handle, callback))

    def advance(self, seconds: float) -> int:
        """Move the clock forward by seconds. Returns the number of callbacks run."""
        return self.advance_to(self._now + timedelta(seconds=seconds))

    def advance_to(self, target: datetime) -> int:
        """Move the clock to target, firing every timer due on the way."""
        fired = 0
        while self._queue and self._queue[0][0] <= target:
            when, _, handle, callback = heapq.heappop(self._queue)
            if handle.cancelled:
                continue
            self._now = max(self._now, when)
            with self.lock:
                if handle.interval is None:
                    handle._mark_finished()
                else:
                    self._push(when + timedelta(seconds=handle.interval), handle, callback)
                callback()
            fired += 1
        self._now = max(self._now, target)
        return fired

    def pending(self) -> List[TimerHandle]:
        """Handles that can still fire, earliest first."""
        return [entry[2] for entry in sorted(self._queue) if entry[2].active]
