"""Pytest configuration and fixtures."""

from datetime import datetime, timezone
from typing import Callable, Dict, Optional
from unittest.mock import AsyncMock

import pytest

from src.domain.clock import SimulatedClock
from src.domain.interfaces import QuoteNewsProvider
from src.models.quote import ExtendedProfile, NewsItem, Quote
from src.models.stock_record import PeriodKey, StockRecord


def _make_record(
    symbol: str = "AAPL",
    price: float = 178.52,
    change: float = 0.0,
    sector: str = "Technology",
    market_cap: float = 0.0,
    rank: int = 0,
    periods: Optional[Dict[PeriodKey, float]] = None,
    **kwargs,
) -> StockRecord:
    """StockRecord with a 1D change and optional extra horizons."""
    period_changes = {PeriodKey.D1: change}
    period_changes.update(periods or {})
    return StockRecord(
        symbol=symbol,
        price=price,
        period_changes=period_changes,
        sector=sector,
        market_cap=market_cap,
        rank=rank,
        **kwargs,
    )


@pytest.fixture
def make_record() -> Callable[..., StockRecord]:
    """Factory for StockRecords with a 1D change and optional extra horizons."""
    return _make_record


@pytest.fixture
def sample_records() -> list:
    """Small mixed-sector batch in source order."""
    return [
        _make_record("AAPL", 178.52, 1.33, "Technology", 2.8e12, rank=0, company="Apple Inc."),
        _make_record("XOM", 104.10, -0.80, "Energy", 4.2e11, rank=1, company="Exxon Mobil"),
        _make_record("MSFT", 410.20, 0.20, "Technology", 3.0e12, rank=2, company="Microsoft"),
        _make_record("CVX", 151.00, -2.50, "Energy", 2.9e11, rank=3, company="Chevron"),
        _make_record("JPM", 195.40, 3.10, "Financial", 5.6e11, rank=4, company="JPMorgan"),
    ]


@pytest.fixture
def simulated_clock() -> SimulatedClock:
    """Fake clock; timers fire only on advance_by/advance_to."""
    return SimulatedClock(start_time=datetime(2024, 1, 2, 14, 30, tzinfo=timezone.utc))


@pytest.fixture
def sample_quote() -> Quote:
    return Quote(
        symbol="AAPL",
        price=178.52,
        change_absolute=2.34,
        change_percent=1.33,
        open=176.10,
        high=179.00,
        low=175.80,
        previous_close=176.18,
    )


@pytest.fixture
def sample_profile() -> ExtendedProfile:
    return ExtendedProfile(
        symbol="AAPL",
        company_name="Apple Inc",
        market_cap=2.8e12,
        sector="Technology",
        website="https://www.apple.com/",
        exchange="NASDAQ NMS - GLOBAL MARKET",
        country="US",
    )


@pytest.fixture
def sample_news() -> list:
    return [
        NewsItem(
            headline="Apple unveils new product line",
            url="https://example.com/a",
            source="Reuters",
            published_at=datetime(2024, 1, 2, 14, 0, tzinfo=timezone.utc),
        ),
        NewsItem(
            headline="Analysts raise targets",
            url="https://example.com/b",
            source="Bloomberg",
            published_at=datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc),
        ),
    ]


@pytest.fixture
def mock_provider(sample_quote, sample_profile, sample_news) -> AsyncMock:
    """Quote/news provider whose calls succeed with the sample payloads."""
    provider = AsyncMock(spec=QuoteNewsProvider)
    provider.get_quote.return_value = sample_quote
    provider.get_extended_profile.return_value = sample_profile
    provider.get_recent_news.return_value = sample_news
    provider.get_market_news.return_value = sample_news
    return provider
