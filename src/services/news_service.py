"""
News service.

Three consumers:
- the market news panel (polled general news, last good list retained),
- the drill-down overlay (recent company news for one symbol),
- the watchlist panel (company news for every watched symbol, fetched jointly).
"""

from __future__ import annotations

import asyncio
from datetime import date, datetime, time
from typing import Dict, List, Optional, Sequence, Tuple

from ..domain.exceptions import EnrichmentError
from ..domain.interfaces.quote_news_provider import QuoteNewsProvider
from ..models.quote import NewsItem
from ..utils.logging_setup import get_logger
from ..utils.timezone import UTC, lookback_window

logger = get_logger(__name__)

DEFAULT_LOOKBACK_DAYS = 7


def _day_bounds(since: date, until: date) -> Tuple[datetime, datetime]:
    return (
        datetime.combine(since, time.min, tzinfo=UTC),
        datetime.combine(until, time.max, tzinfo=UTC),
    )


class NewsService:
    """Market and company news on top of a QuoteNewsProvider."""

    def __init__(
        self,
        provider: QuoteNewsProvider,
        lookback_days: int = DEFAULT_LOOKBACK_DAYS,
        category: str = "general",
    ) -> None:
        self._provider = provider
        self._lookback_days = lookback_days
        self._category = category
        self._market_news: Tuple[NewsItem, ...] = ()
        self._loaded = False
        self._last_error: Optional[str] = None

    @property
    def market_news(self) -> Tuple[NewsItem, ...]:
        return self._market_news

    @property
    def loaded(self) -> bool:
        return self._loaded

    @property
    def last_error(self) -> Optional[str]:
        return self._last_error

    async def refresh_market_news(self) -> bool:
        """
        Poll general market news.

        Returns:
            True if the list was replaced; failures keep the last good list.
        """
        try:
            items = await self._provider.get_market_news(self._category)
        except Exception as e:
            self._last_error = str(e)
            logger.warning(f"Market news refresh failed: {e}")
            return False

        self._market_news = tuple(items)
        self._loaded = True
        self._last_error = None
        logger.info(f"Market news: {len(items)} items")
        return True

    async def company_news(self, symbol: str, today: Optional[date] = None) -> List[NewsItem]:
        """
        Recent news for one symbol over the lookback window.

        Raises:
            EnrichmentError: The provider call failed.
        """
        since, until = _day_bounds(*lookback_window(self._lookback_days, today))
        try:
            return await self._provider.get_recent_news(symbol, since, until)
        except Exception as e:
            raise EnrichmentError(f"News lookup for {symbol} failed: {e}") from e

    async def news_for_symbols(
        self, symbols: Sequence[str], today: Optional[date] = None
    ) -> Dict[str, List[NewsItem]]:
        """
        Company news for several symbols, fetched concurrently.

        Symbols whose lookup fails map to an empty list.
        """
        results = await asyncio.gather(
            *(self.company_news(symbol, today) for symbol in symbols),
            return_exceptions=True,
        )

        news: Dict[str, List[NewsItem]] = {}
        for symbol, result in zip(symbols, results):
            if isinstance(result, BaseException):
                logger.warning(f"{result}")
                news[symbol] = []
            else:
                news[symbol] = result
        return news
