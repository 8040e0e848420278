"""Tests for RefreshScheduler driven by a SimulatedClock."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest

from src.services.refresh_scheduler import RefreshScheduler


async def _drain(rounds: int = 5) -> None:
    for _ in range(rounds):
        await asyncio.sleep(0)


class TestRefreshScheduler:
    """Immediate fetch, fixed cadence, teardown."""

    def test_rejects_non_positive_interval(self, simulated_clock):
        with pytest.raises(ValueError):
            RefreshScheduler("bad", 0, AsyncMock(), simulated_clock)

    @pytest.mark.asyncio
    async def test_fetches_immediately_on_start(self, simulated_clock):
        fetch = AsyncMock()
        scheduler = RefreshScheduler("market_heatmap", 60, fetch, simulated_clock)

        await scheduler.start()
        await _drain()

        assert fetch.await_count == 1
        assert scheduler.is_running
        await scheduler.stop()

    @pytest.mark.asyncio
    async def test_fetches_every_interval(self, simulated_clock):
        fetch = AsyncMock()
        scheduler = RefreshScheduler("market_heatmap", 60, fetch, simulated_clock)
        await scheduler.start()
        await _drain()

        simulated_clock.advance_by(59)
        await _drain()
        assert fetch.await_count == 1

        simulated_clock.advance_by(1)
        await _drain()
        assert fetch.await_count == 2

        simulated_clock.advance_by(120)
        await _drain()
        assert fetch.await_count == 4
        assert scheduler.tick_count == 4

        await scheduler.stop()

    @pytest.mark.asyncio
    async def test_independent_intervals(self, simulated_clock):
        fast, slow = AsyncMock(), AsyncMock()
        news = RefreshScheduler("news", 30, fast, simulated_clock)
        grid = RefreshScheduler("grid", 90, slow, simulated_clock)
        await news.start()
        await grid.start()

        simulated_clock.advance_by(90)
        await _drain()

        assert fast.await_count == 4
        assert slow.await_count == 2
        await news.stop()
        await grid.stop()

    @pytest.mark.asyncio
    async def test_no_ticks_after_stop(self, simulated_clock):
        fetch = AsyncMock()
        scheduler = RefreshScheduler("market_heatmap", 60, fetch, simulated_clock)
        await scheduler.start()
        await _drain()

        await scheduler.stop()
        simulated_clock.advance_by(600)
        await _drain()

        assert fetch.await_count == 1
        assert not scheduler.is_running
        assert simulated_clock.pending_timers == 0

    @pytest.mark.asyncio
    async def test_stop_cancels_in_flight_fetch(self, simulated_clock):
        started = asyncio.Event()
        cancelled = asyncio.Event()

        async def slow_fetch():
            started.set()
            try:
                await asyncio.sleep(3600)
            except asyncio.CancelledError:
                cancelled.set()
                raise

        scheduler = RefreshScheduler("slow", 60, slow_fetch, simulated_clock)
        await scheduler.start()
        await started.wait()

        await scheduler.stop()

        assert cancelled.is_set()

    @pytest.mark.asyncio
    async def test_fetch_failure_keeps_polling(self, simulated_clock):
        fetch = AsyncMock(side_effect=[ConnectionError("down"), None])
        scheduler = RefreshScheduler("flaky", 10, fetch, simulated_clock)
        await scheduler.start()
        await _drain()

        assert scheduler.failure_count == 1

        simulated_clock.advance_by(10)
        await _drain()

        assert fetch.await_count == 2
        assert scheduler.failure_count == 1
        await scheduler.stop()

    @pytest.mark.asyncio
    async def test_start_twice_is_noop(self, simulated_clock):
        fetch = AsyncMock()
        scheduler = RefreshScheduler("grid", 60, fetch, simulated_clock)
        await scheduler.start()
        await scheduler.start()
        await _drain()

        assert fetch.await_count == 1
        assert simulated_clock.pending_timers == 1
        await scheduler.stop()

    @pytest.mark.asyncio
    async def test_run_once(self, simulated_clock):
        fetch = AsyncMock()
        scheduler = RefreshScheduler("grid", 60, fetch, simulated_clock)

        await scheduler.run_once()

        fetch.assert_awaited_once()
        assert not scheduler.is_running

    @pytest.mark.asyncio
    async def test_context_manager(self, simulated_clock):
        fetch = AsyncMock()

        async with RefreshScheduler("grid", 60, fetch, simulated_clock) as scheduler:
            await _drain()
            assert scheduler.is_running

        assert not scheduler.is_running
        assert fetch.await_count == 1
