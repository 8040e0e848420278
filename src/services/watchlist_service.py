"""
Watchlist service.

In-memory list of symbols the user picked from the search card. Nothing
is persisted: the list starts empty on every run.

Refreshing re-quotes every symbol and pulls its company news, all lookups
issued together. A symbol whose quote lookup fails keeps its last quote
and is flagged, so one bad ticker never empties the panel.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Callable, Dict, List, Optional, Tuple

from ..domain.interfaces.quote_news_provider import QuoteNewsProvider
from ..models.quote import NewsItem, Quote
from ..utils.logging_setup import get_logger
from ..utils.timezone import now_utc
from .news_service import NewsService
from .sparkline import generate_sparkline
from .stock_search_service import SearchResult

logger = get_logger(__name__)


@dataclass(frozen=True)
class WatchlistEntry:
    """One watched symbol with its latest quote, trend line and news."""

    quote: Quote
    sparkline: Tuple[float, ...] = ()
    news: Tuple[NewsItem, ...] = ()
    error: Optional[str] = None  # last refresh failed for this symbol

    @property
    def symbol(self) -> str:
        return self.quote.symbol

    @property
    def display_name(self) -> str:
        return self.quote.display_name or self.quote.symbol


WatchlistListener = Callable[["WatchlistService"], None]


class WatchlistService:
    """Ordered, duplicate-free set of watched symbols."""

    def __init__(
        self,
        provider: QuoteNewsProvider,
        news: Optional[NewsService] = None,
        sparkline_seed: Optional[int] = None,
    ) -> None:
        self._provider = provider
        self._news = news
        self._sparkline_seed = sparkline_seed

        self._entries: Tuple[WatchlistEntry, ...] = ()
        self._last_refreshed: Optional[datetime] = None
        self._next_seq = 0
        self._applied_seq = -1
        self._listeners: List[WatchlistListener] = []

    @property
    def entries(self) -> Tuple[WatchlistEntry, ...]:
        return self._entries

    @property
    def symbols(self) -> List[str]:
        return [entry.symbol for entry in self._entries]

    @property
    def last_refreshed(self) -> Optional[datetime]:
        return self._last_refreshed

    @property
    def failed_symbols(self) -> List[str]:
        return [entry.symbol for entry in self._entries if entry.error]

    def __contains__(self, symbol: str) -> bool:
        return any(entry.symbol == symbol for entry in self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def subscribe(self, listener: WatchlistListener) -> None:
        self._listeners.append(listener)

    def add(self, result: SearchResult) -> bool:
        """
        Add a searched symbol.

        Returns:
            False if the symbol is already watched (the list is unchanged).
        """
        symbol = result.quote.symbol
        if symbol in self:
            logger.debug(f"Watchlist: {symbol} already watched")
            return False

        quote = result.quote
        if not quote.display_name:
            quote = replace(quote, display_name=result.display_name)
        sparkline = tuple(result.sparkline) or self._sparkline_for(quote)

        self._entries = self._entries + (WatchlistEntry(quote=quote, sparkline=sparkline),)
        logger.info(f"Watchlist: added {symbol} ({len(self._entries)} symbols)")
        self._notify()
        return True

    def remove(self, symbol: str) -> bool:
        """Drop a symbol; returns False if it was not watched."""
        remaining = tuple(entry for entry in self._entries if entry.symbol != symbol)
        if len(remaining) == len(self._entries):
            return False
        self._entries = remaining
        logger.info(f"Watchlist: removed {symbol} ({len(self._entries)} symbols)")
        self._notify()
        return True

    async def refresh(self) -> bool:
        """
        Re-quote every watched symbol and reload its news.

        Quote and news lookups for all symbols run concurrently. Symbols
        removed while the lookups were in flight are not re-added, and a
        result older than one already applied is discarded.

        Returns:
            True if at least one quote was updated.
        """
        symbols = self.symbols
        if not symbols:
            return False

        seq = self._next_seq
        self._next_seq += 1

        quote_results, news_by_symbol = await asyncio.gather(
            asyncio.gather(
                *(self._provider.get_quote(symbol) for symbol in symbols),
                return_exceptions=True,
            ),
            self._fetch_news(symbols),
        )

        if seq <= self._applied_seq:
            logger.debug(f"Watchlist: discarded stale refresh #{seq}")
            return False
        self._applied_seq = seq

        results = dict(zip(symbols, quote_results))
        updated = 0
        entries = []
        for entry in self._entries:
            if entry.symbol not in results:
                entries.append(entry)  # added while this refresh was running
                continue
            entry = self._apply_quote(entry, results[entry.symbol])
            if entry.error is None:
                updated += 1
            if entry.symbol in news_by_symbol:
                entry = replace(entry, news=tuple(news_by_symbol[entry.symbol]))
            entries.append(entry)

        self._entries = tuple(entries)
        self._last_refreshed = now_utc()
        failed = len(symbols) - updated
        if failed:
            logger.warning(f"Watchlist: {updated} quotes updated, {failed} kept from last refresh")
        else:
            logger.info(f"Watchlist: {updated} quotes updated")
        self._notify()
        return updated > 0

    def _apply_quote(self, entry: WatchlistEntry, result: object) -> WatchlistEntry:
        if isinstance(result, BaseException):
            logger.warning(f"Watchlist quote {entry.symbol} failed: {result}")
            return replace(entry, error=str(result) or type(result).__name__)
        if result is None:
            logger.warning(f"Watchlist quote {entry.symbol}: symbol not found")
            return replace(entry, error="not found")

        assert isinstance(result, Quote)
        quote = result
        if not quote.display_name:
            quote = replace(quote, display_name=entry.quote.display_name)
        return WatchlistEntry(
            quote=quote,
            sparkline=self._sparkline_for(quote),
            news=entry.news,
        )

    async def _fetch_news(self, symbols: List[str]) -> Dict[str, List[NewsItem]]:
        if self._news is None:
            return {}
        return await self._news.news_for_symbols(symbols)

    def _sparkline_for(self, quote: Quote) -> Tuple[float, ...]:
        # No intraday history source; the synthetic walk stands in for it
        return tuple(generate_sparkline(quote.price, quote.change_percent, seed=self._sparkline_seed))

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception as e:
                logger.warning(f"Watchlist: listener failed: {e}")
