"""Tests for NewsService."""

from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from src.domain.exceptions import EnrichmentError, MarketDataError
from src.services.news_service import NewsService


class TestMarketNews:
    @pytest.mark.asyncio
    async def test_refresh(self, mock_provider, sample_news):
        service = NewsService(mock_provider)

        assert await service.refresh_market_news()

        assert service.market_news == tuple(sample_news)
        assert service.loaded
        mock_provider.get_market_news.assert_awaited_once_with("general")

    @pytest.mark.asyncio
    async def test_failure_keeps_last_good_list(self, mock_provider, sample_news):
        service = NewsService(mock_provider)
        await service.refresh_market_news()
        mock_provider.get_market_news.side_effect = MarketDataError("HTTP 429")

        assert not await service.refresh_market_news()

        assert service.market_news == tuple(sample_news)
        assert "429" in service.last_error

    @pytest.mark.asyncio
    async def test_category(self, mock_provider):
        service = NewsService(mock_provider, category="forex")

        await service.refresh_market_news()

        mock_provider.get_market_news.assert_awaited_once_with("forex")


class TestCompanyNews:
    @pytest.mark.asyncio
    async def test_lookback_window(self, mock_provider, sample_news):
        service = NewsService(mock_provider, lookback_days=7)

        items = await service.company_news("AAPL", today=date(2024, 1, 10))

        assert items == sample_news
        symbol, since, until = mock_provider.get_recent_news.await_args.args
        assert symbol == "AAPL"
        assert since == datetime(2024, 1, 3, tzinfo=timezone.utc)
        assert until.date() == date(2024, 1, 10)
        assert until.hour == 23

    @pytest.mark.asyncio
    async def test_failure_raises_enrichment_error(self, mock_provider):
        mock_provider.get_recent_news.side_effect = MarketDataError("down")
        service = NewsService(mock_provider)

        with pytest.raises(EnrichmentError, match="AAPL"):
            await service.company_news("AAPL")

    @pytest.mark.asyncio
    async def test_news_for_symbols(self, mock_provider, sample_news):
        async def get_recent_news(symbol, since, until):
            if symbol == "BAD":
                raise MarketDataError("down")
            return sample_news

        mock_provider.get_recent_news.side_effect = get_recent_news
        service = NewsService(mock_provider)

        news = await service.news_for_symbols(["AAPL", "BAD"])

        assert news == {"AAPL": sample_news, "BAD": []}
