"""
Refresh Scheduler - fixed-interval polling with guaranteed teardown.

Each widget owns one scheduler: fetch once immediately on start, then
again every ``interval`` seconds until stopped. Intervals are independent
per widget; nothing coordinates ticks across schedulers.

Ticks are spawned as tasks from a Clock timer that re-arms itself, so a
slow fetch never delays the next tick (and two ticks may overlap; callers
that care apply a staleness guard on their own state).

Usage:
    scheduler = RefreshScheduler("market_heatmap", 60, service.refresh, SystemClock())
    await scheduler.start()
    ...
    await scheduler.stop()

    # or
    async with RefreshScheduler("news", 300, news.refresh, clock):
        ...
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Optional, Set

from ..domain.clock import Clock
from ..utils.logging_setup import get_logger
from ..utils.trace_context import new_cycle

logger = get_logger(__name__)

FetchCallback = Callable[[], Awaitable[object]]


class RefreshScheduler:
    """Periodic fetch loop driven by a Clock."""

    def __init__(
        self,
        name: str,
        interval: float,
        fetch: FetchCallback,
        clock: Clock,
    ) -> None:
        if interval <= 0:
            raise ValueError(f"Refresh interval must be positive, got {interval}")
        self._name = name
        self._interval = interval
        self._fetch = fetch
        self._clock = clock

        self._running = False
        self._timer_id: Optional[str] = None
        self._in_flight: Set[asyncio.Task] = set()
        self._ticks = 0
        self._failures = 0

    @property
    def name(self) -> str:
        return self._name

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def tick_count(self) -> int:
        """Number of ticks started since creation."""
        return self._ticks

    @property
    def failure_count(self) -> int:
        return self._failures

    async def start(self) -> None:
        """Fetch immediately, then every ``interval`` seconds."""
        if self._running:
            return

        self._running = True
        self._spawn_tick()
        self._arm()
        logger.info(f"Scheduler {self._name} started (every {self._interval:g}s)")

    async def stop(self) -> None:
        """Cancel the pending timer and any in-flight tick."""
        if not self._running and not self._in_flight:
            return
        self._running = False

        if self._timer_id is not None:
            self._clock.cancel_timer(self._timer_id)
            self._timer_id = None

        tasks = list(self._in_flight)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._in_flight.clear()

        logger.info(f"Scheduler {self._name} stopped after {self._ticks} ticks")

    async def run_once(self) -> None:
        """Run one tick inline (manual refresh)."""
        await self._tick()

    async def __aenter__(self) -> "RefreshScheduler":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()

    def _arm(self) -> None:
        self._timer_id = self._clock.set_timer(self._interval, self._on_timer)

    def _on_timer(self) -> None:
        self._timer_id = None
        if not self._running:
            return
        self._spawn_tick()
        self._arm()

    def _spawn_tick(self) -> None:
        task = asyncio.get_running_loop().create_task(self._tick())
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)

    async def _tick(self) -> None:
        self._ticks += 1
        with new_cycle():
            try:
                await self._fetch()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                self._failures += 1
                logger.warning(f"Scheduler {self._name} fetch failed: {e}")
