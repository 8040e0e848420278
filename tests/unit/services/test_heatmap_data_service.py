"""Tests for HeatmapDataService: atomic replacement and the staleness guard."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.domain.exceptions import FeedUnavailableError
from src.services.heatmap_data_service import HeatmapDataService, LoadStatus


def _source(*results):
    source = MagicMock()
    source.fetch_records = AsyncMock(side_effect=list(results))
    return source


class TestRefresh:
    """Tests for refresh()."""

    @pytest.mark.asyncio
    async def test_first_load(self, sample_records):
        service = HeatmapDataService("market", _source(sample_records))
        assert service.status is LoadStatus.LOADING

        assert await service.refresh()

        assert service.records == tuple(sample_records)
        assert service.status is LoadStatus.READY
        assert service.last_updated is not None
        assert service.has_data

    @pytest.mark.asyncio
    async def test_empty_feed(self):
        service = HeatmapDataService("market", _source([]))

        await service.refresh()

        assert service.status is LoadStatus.EMPTY
        assert service.records == ()

    @pytest.mark.asyncio
    async def test_first_load_failure(self):
        error = FeedUnavailableError("http://feed", "HTTP 503")
        service = HeatmapDataService("market", _source(error))

        assert not await service.refresh()

        assert service.status is LoadStatus.EMPTY
        assert "HTTP 503" in service.last_error

    @pytest.mark.asyncio
    async def test_failure_keeps_previous_records(self, sample_records):
        service = HeatmapDataService("market", _source(sample_records, ConnectionError("reset")))
        await service.refresh()

        assert not await service.refresh()

        assert service.records == tuple(sample_records)
        assert service.status is LoadStatus.READY
        assert service.last_error == "reset"

    @pytest.mark.asyncio
    async def test_success_clears_error(self, sample_records):
        service = HeatmapDataService("market", _source(ConnectionError("reset"), sample_records))
        await service.refresh()

        await service.refresh()

        assert service.last_error is None
        assert service.status is LoadStatus.READY

    @pytest.mark.asyncio
    async def test_replacement_is_whole(self, make_record, sample_records):
        newer = [make_record("NVDA", change=4.0)]
        service = HeatmapDataService("market", _source(sample_records, newer))
        await service.refresh()
        before = service.records

        await service.refresh()

        assert [r.symbol for r in service.records] == ["NVDA"]
        # Earlier snapshot is untouched
        assert len(before) == len(sample_records)

    @pytest.mark.asyncio
    async def test_slow_older_response_is_discarded(self, make_record):
        """A refresh started earlier but finishing later must not win."""
        release_slow = asyncio.Event()
        slow_batch = [make_record("OLD")]
        fast_batch = [make_record("NEW")]
        calls = 0

        async def fetch_records():
            nonlocal calls
            calls += 1
            if calls == 1:
                await release_slow.wait()
                return slow_batch
            return fast_batch

        source = MagicMock()
        source.fetch_records = fetch_records
        service = HeatmapDataService("market", source)

        slow = asyncio.ensure_future(service.refresh())
        await asyncio.sleep(0)
        assert await service.refresh()

        release_slow.set()
        assert not await slow

        assert [r.symbol for r in service.records] == ["NEW"]

    @pytest.mark.asyncio
    async def test_stale_failure_ignored(self, make_record):
        release_slow = asyncio.Event()
        calls = 0

        async def fetch_records():
            nonlocal calls
            calls += 1
            if calls == 1:
                await release_slow.wait()
                raise ConnectionError("late")
            return [make_record("NEW")]

        source = MagicMock()
        source.fetch_records = fetch_records
        service = HeatmapDataService("market", source)

        slow = asyncio.ensure_future(service.refresh())
        await asyncio.sleep(0)
        await service.refresh()
        release_slow.set()
        await slow

        assert service.last_error is None


class TestListeners:
    @pytest.mark.asyncio
    async def test_notified_on_apply_and_failure(self, sample_records):
        service = HeatmapDataService("market", _source(sample_records, ConnectionError("x")))
        listener = MagicMock()
        service.subscribe(listener)

        await service.refresh()
        await service.refresh()

        assert listener.call_count == 2
        listener.assert_called_with(service)

    @pytest.mark.asyncio
    async def test_failing_listener_is_contained(self, sample_records):
        service = HeatmapDataService("market", _source(sample_records))
        service.subscribe(MagicMock(side_effect=RuntimeError("boom")))

        assert await service.refresh()


class TestFind:
    @pytest.mark.asyncio
    async def test_find(self, sample_records):
        service = HeatmapDataService("market", _source(sample_records))
        await service.refresh()

        assert service.find("JPM").company == "JPMorgan"
        assert service.find("ZZZ") is None
