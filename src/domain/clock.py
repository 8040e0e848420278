"""
Clock abstraction for wall-clock vs simulated time.

Everything time-driven in the board (refresh polling, the deferred
overlay clear after a collapse animation) goes through a Clock so the
cadence can be driven by a fake clock in tests.

Usage:
    # Live dashboard
    clock = SystemClock()
    timer_id = clock.set_timer(60, refresh)

    # Tests
    clock = SimulatedClock(start_time=datetime(2024, 1, 1, 9, 30))
    clock.set_timer(0.4, clear_selection)
    clock.advance_by(timedelta(seconds=0.4))  # fires clear_selection
"""

import asyncio
import heapq
import time
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional, Set, Tuple

from ..utils.logging_setup import get_logger

logger = get_logger(__name__)


class Clock(ABC):
    """
    Abstract clock interface.

    Timers are one-shot; periodic behaviour is built by re-arming a timer
    from its own callback.
    """

    @abstractmethod
    def now(self) -> datetime:
        """Current time."""
        ...

    @abstractmethod
    def timestamp(self) -> float:
        """Current time as seconds since epoch."""
        ...

    @abstractmethod
    async def sleep(self, seconds: float) -> None:
        """
        Sleep for the given duration.

        In simulated mode this advances time immediately.
        """
        ...

    @abstractmethod
    def set_timer(self, delay: float, callback: Callable[[], None]) -> str:
        """
        Set a one-shot timer.

        Args:
            delay: Delay in seconds before callback fires.
            callback: Function to call when timer fires.

        Returns:
            Timer ID for cancellation.
        """
        ...

    @abstractmethod
    def cancel_timer(self, timer_id: str) -> bool:
        """
        Cancel a timer.

        Returns:
            True if the timer was pending and is now cancelled.
        """
        ...

    def elapsed_since(self, reference: datetime) -> float:
        """Seconds elapsed since ``reference``."""
        return (self.now() - reference).total_seconds()


class SystemClock(Clock):
    """Wall clock backed by the running asyncio loop."""

    def __init__(self) -> None:
        self._timers: Dict[str, asyncio.TimerHandle] = {}
        self._next_timer_id = 0

    def now(self) -> datetime:
        return datetime.now()

    def timestamp(self) -> float:
        return time.time()

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)

    def set_timer(self, delay: float, callback: Callable[[], None]) -> str:
        """Schedule a timer on the running loop (must be called from inside it)."""
        timer_id = f"sys-timer-{self._next_timer_id}"
        self._next_timer_id += 1

        loop = asyncio.get_running_loop()
        handle = loop.call_later(delay, self._execute_timer, timer_id, callback)
        self._timers[timer_id] = handle

        logger.debug(f"Timer {timer_id} scheduled for {delay}s from now")
        return timer_id

    def _execute_timer(self, timer_id: str, callback: Callable[[], None]) -> None:
        self._timers.pop(timer_id, None)
        try:
            callback()
        except Exception as e:
            logger.exception(f"Timer {timer_id} callback error: {e}")

    def cancel_timer(self, timer_id: str) -> bool:
        handle = self._timers.pop(timer_id, None)
        if handle:
            handle.cancel()
            logger.debug(f"Timer {timer_id} cancelled")
            return True
        return False

    @property
    def pending_timers(self) -> int:
        return len(self._timers)


class SimulatedClock(Clock):
    """
    Fake clock for tests.

    Time moves only through advance_to()/advance_by(). Timers due within
    the advanced span fire in schedule order; a timer armed from inside a
    callback fires in the same advance if it falls due before the target.
    """

    def __init__(self, start_time: Optional[datetime] = None):
        self._current_time = start_time or datetime(2024, 1, 2, 9, 30)
        # min-heap of (fire_time, seq, timer_id, callback)
        self._timers: List[Tuple[datetime, int, str, Callable[[], None]]] = []
        self._next_timer_id = 0
        self._cancelled_timers: Set[str] = set()

    def now(self) -> datetime:
        return self._current_time

    def timestamp(self) -> float:
        return self._current_time.timestamp()

    async def sleep(self, seconds: float) -> None:
        self.advance_by(timedelta(seconds=seconds))

    def set_timer(self, delay: float, callback: Callable[[], None]) -> str:
        fire_time = self._current_time + timedelta(seconds=delay)
        seq = self._next_timer_id
        timer_id = f"sim-timer-{seq}"
        self._next_timer_id += 1

        heapq.heappush(self._timers, (fire_time, seq, timer_id, callback))
        logger.debug(f"Simulated timer {timer_id} scheduled for {fire_time}")
        return timer_id

    def cancel_timer(self, timer_id: str) -> bool:
        """Mark a pending timer cancelled; it is skipped when it falls due."""
        if timer_id in self._cancelled_timers:
            return False
        if not any(tid == timer_id for _, _, tid, _ in self._timers):
            return False
        self._cancelled_timers.add(timer_id)
        logger.debug(f"Simulated timer {timer_id} cancelled")
        return True

    def advance_to(self, new_time: datetime) -> int:
        """
        Advance to ``new_time``, firing due timers in order.

        Returns:
            Number of timers that fired.

        Raises:
            ValueError: If new_time is before current time.
        """
        if new_time < self._current_time:
            raise ValueError(f"Cannot advance backwards: {self._current_time} -> {new_time}")

        timers_fired = 0
        while self._timers and self._timers[0][0] <= new_time:
            fire_time, _, timer_id, callback = heapq.heappop(self._timers)

            if timer_id in self._cancelled_timers:
                self._cancelled_timers.discard(timer_id)
                continue

            self._current_time = fire_time
            try:
                callback()
                timers_fired += 1
            except Exception as e:
                logger.exception(f"Timer {timer_id} callback error: {e}")

        self._current_time = new_time
        return timers_fired

    def advance_by(self, delta: "timedelta | float") -> int:
        """Advance by a timedelta or a number of seconds."""
        if not isinstance(delta, timedelta):
            delta = timedelta(seconds=delta)
        return self.advance_to(self._current_time + delta)

    @property
    def pending_timers(self) -> int:
        """Count of pending (non-cancelled) timers."""
        return sum(1 for _, _, tid, _ in self._timers if tid not in self._cancelled_timers)
