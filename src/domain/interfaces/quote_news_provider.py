"""Quote/news provider interface for dependency injection."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from ...models.quote import ExtendedProfile, NewsItem, Quote


class QuoteNewsProvider(ABC):
    """Interface for quote, company profile and news sources (Finnhub, test fakes)."""

    @abstractmethod
    async def get_quote(self, symbol: str) -> Optional[Quote]:
        """
        Fetch a real-time quote.

        Returns:
            Quote, or None when the provider does not know the symbol.

        Raises:
            MarketDataError: If the provider could not be reached.
        """
        pass

    @abstractmethod
    async def get_extended_profile(self, symbol: str) -> Optional[ExtendedProfile]:
        """Fetch company profile fields; None when the provider has none."""
        pass

    @abstractmethod
    async def get_recent_news(
        self, symbol: str, since: datetime, until: datetime
    ) -> List[NewsItem]:
        """
        Fetch company news published between ``since`` and ``until``.

        Returns:
            Items ordered newest first; empty when there is nothing.
        """
        pass

    @abstractmethod
    async def get_market_news(self, category: str = "general") -> List[NewsItem]:
        """Fetch general market news, newest first."""
        pass
