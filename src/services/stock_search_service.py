"""
Stock search service.

The only user-initiated lookup in the board, and so the only place where
an unknown symbol is surfaced as an error instead of silently skipped.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import List, Optional

from ..domain.exceptions import EnrichmentError, SymbolNotFoundError
from ..domain.interfaces.quote_news_provider import QuoteNewsProvider
from ..models.quote import ExtendedProfile, Quote
from ..utils.logging_setup import get_logger
from .sparkline import generate_sparkline

logger = get_logger(__name__)


@dataclass(frozen=True)
class SearchResult:
    """Quote card content for one searched symbol."""

    quote: Quote
    profile: Optional[ExtendedProfile] = None
    sparkline: List[float] = field(default_factory=list)

    @property
    def display_name(self) -> str:
        if self.quote.display_name:
            return self.quote.display_name
        if self.profile is not None:
            return self.profile.company_name
        return self.quote.symbol


class StockSearchService:
    """Explicit symbol lookup for the search box."""

    def __init__(self, provider: QuoteNewsProvider, sparkline_seed: Optional[int] = None) -> None:
        self._provider = provider
        self._sparkline_seed = sparkline_seed

    async def search(self, query: str) -> SearchResult:
        """
        Look up a symbol.

        Raises:
            ValueError: Empty query.
            SymbolNotFoundError: Provider has no quote for the symbol.
            MarketDataError: Provider unreachable.
        """
        symbol = query.strip().upper()
        if not symbol:
            raise ValueError("Enter a stock symbol")

        quote = await self._provider.get_quote(symbol)
        if quote is None:
            logger.info(f"Search: {symbol} not found")
            raise SymbolNotFoundError(symbol)

        profile: Optional[ExtendedProfile] = None
        try:
            profile = await self.profile(symbol)
        except EnrichmentError as e:
            logger.warning(f"{e}")

        if profile is not None and not quote.display_name:
            quote = replace(quote, display_name=profile.company_name)

        sparkline = generate_sparkline(
            quote.price, quote.change_percent, seed=self._sparkline_seed
        )
        logger.info(f"Search: {symbol} @ {quote.price:.2f}")
        return SearchResult(quote=quote, profile=profile, sparkline=sparkline)

    async def profile(self, symbol: str) -> Optional[ExtendedProfile]:
        """
        Extended company profile (drill-down enrichment).

        Raises:
            EnrichmentError: The provider call failed.
        """
        try:
            return await self._provider.get_extended_profile(symbol)
        except Exception as e:
            raise EnrichmentError(f"Profile lookup for {symbol} failed: {e}") from e
