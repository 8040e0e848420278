"""
Index quote service for the ticker strip.

Looks up every configured index concurrently and keeps the latest
successful set. One slow index bounds the refresh latency, not the sum.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, replace
from typing import List, Optional, Sequence, Tuple

from ..domain.interfaces.quote_news_provider import QuoteNewsProvider
from ..models.quote import Quote
from ..utils.logging_setup import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class IndexSpec:
    symbol: str
    name: str


DEFAULT_INDICES: Tuple[IndexSpec, ...] = (
    IndexSpec("^DJI", "Dow Jones"),
    IndexSpec("^GSPC", "S&P 500"),
    IndexSpec("^IXIC", "Nasdaq"),
)


class IndexQuoteService:
    """Latest quotes for the index strip."""

    def __init__(
        self,
        provider: QuoteNewsProvider,
        indices: Sequence[IndexSpec] = DEFAULT_INDICES,
    ) -> None:
        self._provider = provider
        self._indices = tuple(indices)
        self._quotes: Tuple[Quote, ...] = ()
        self._loaded = False
        self._next_seq = 0
        self._applied_seq = -1

    @property
    def quotes(self) -> Tuple[Quote, ...]:
        return self._quotes

    @property
    def loaded(self) -> bool:
        return self._loaded

    @property
    def indices(self) -> Tuple[IndexSpec, ...]:
        return self._indices

    async def refresh(self) -> bool:
        """
        Fetch all index quotes jointly.

        Indices the provider does not know (or that fail) are left out. If
        every lookup raised, the previous quotes are kept.

        Returns:
            True if the quote set was replaced.
        """
        seq = self._next_seq
        self._next_seq += 1

        results = await asyncio.gather(
            *(self._provider.get_quote(spec.symbol) for spec in self._indices),
            return_exceptions=True,
        )

        quotes: List[Quote] = []
        failures = 0
        for spec, result in zip(self._indices, results):
            if isinstance(result, BaseException):
                failures += 1
                logger.warning(f"Index quote {spec.symbol} failed: {result}")
                continue
            if result is None:
                logger.debug(f"Index {spec.symbol} not found")
                continue
            quotes.append(replace(result, display_name=spec.name))

        if self._indices and failures == len(self._indices):
            return False
        if seq <= self._applied_seq:
            return False

        self._applied_seq = seq
        self._quotes = tuple(quotes)
        self._loaded = True
        return True

    def get(self, symbol: str) -> Optional[Quote]:
        for quote in self._quotes:
            if quote.symbol == symbol:
                return quote
        return None
