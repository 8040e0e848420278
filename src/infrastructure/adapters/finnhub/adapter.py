"""
Finnhub quote/news adapter.

Implements QuoteNewsProvider on top of the blocking FinnhubClient. Each
call runs in a worker thread so the event loop never blocks on HTTP.
Payload decoding (sentinel handling, unit conversion, source filtering)
lives here so the services only see typed models.
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence

from ....domain.interfaces.quote_news_provider import QuoteNewsProvider
from ....models.quote import ExtendedProfile, NewsItem, Quote
from ....utils.logging_setup import get_logger
from ....utils.timezone import from_epoch
from .client import FinnhubClient

logger = get_logger(__name__)

DEFAULT_MAX_ITEMS = 10
DEFAULT_EXCLUDED_SOURCES = ("MarketWatch",)


def _num(payload: Dict[str, Any], key: str) -> float:
    value = payload.get(key)
    if value is None:
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def parse_quote(symbol: str, payload: Dict[str, Any]) -> Optional[Quote]:
    """
    Decode a /quote payload.

    Finnhub answers unknown symbols with an all-zero body instead of an
    error, so current price == 0 and day high == 0 means "not found".
    """
    price = _num(payload, "c")
    high = _num(payload, "h")
    if price == 0 and high == 0:
        return None
    return Quote(
        symbol=symbol,
        price=price,
        change_absolute=_num(payload, "d"),
        change_percent=_num(payload, "dp"),
        open=_num(payload, "o"),
        high=high,
        low=_num(payload, "l"),
        previous_close=_num(payload, "pc"),
    )


def parse_profile(symbol: str, payload: Dict[str, Any]) -> Optional[ExtendedProfile]:
    """Decode a /stock/profile2 payload; an empty object means no profile."""
    if not payload or not payload.get("name"):
        return None
    return ExtendedProfile(
        symbol=symbol,
        company_name=str(payload.get("name", "")),
        # Finnhub reports market cap in millions
        market_cap=_num(payload, "marketCapitalization") * 1_000_000,
        sector=str(payload.get("finnhubIndustry") or ""),
        website=str(payload.get("weburl") or ""),
        exchange=str(payload.get("exchange") or ""),
        country=str(payload.get("country") or ""),
        logo_url=str(payload.get("logo") or ""),
    )


def parse_news(
    payload: Iterable[Dict[str, Any]],
    max_items: int = DEFAULT_MAX_ITEMS,
    excluded_sources: Sequence[str] = (),
) -> List[NewsItem]:
    """Decode a news list, newest first, dropping excluded sources and bad rows."""
    items: List[NewsItem] = []
    for raw in payload:
        headline = str(raw.get("headline") or "").strip()
        url = str(raw.get("url") or "")
        source = str(raw.get("source") or "")
        if not headline or not url or source in excluded_sources:
            continue
        items.append(
            NewsItem(
                headline=headline,
                url=url,
                source=source,
                published_at=from_epoch(_num(raw, "datetime")),
                category=str(raw.get("category") or ""),
                image_url=str(raw.get("image") or ""),
                summary=str(raw.get("summary") or ""),
            )
        )
    items.sort(key=lambda n: n.published_at, reverse=True)
    return items[:max_items]


class FinnhubAdapter(QuoteNewsProvider):
    """Async QuoteNewsProvider backed by Finnhub."""

    def __init__(
        self,
        client: FinnhubClient,
        max_items: int = DEFAULT_MAX_ITEMS,
        excluded_sources: Sequence[str] = DEFAULT_EXCLUDED_SOURCES,
    ) -> None:
        self._client = client
        self._max_items = max_items
        self._excluded_sources = tuple(excluded_sources)

    async def get_quote(self, symbol: str) -> Optional[Quote]:
        payload = await asyncio.to_thread(self._client.quote, symbol)
        quote = parse_quote(symbol, payload)
        if quote is None:
            logger.debug(f"Finnhub has no quote for {symbol}")
        return quote

    async def get_extended_profile(self, symbol: str) -> Optional[ExtendedProfile]:
        payload = await asyncio.to_thread(self._client.profile, symbol)
        return parse_profile(symbol, payload)

    async def get_recent_news(
        self, symbol: str, since: datetime, until: datetime
    ) -> List[NewsItem]:
        payload = await asyncio.to_thread(
            self._client.company_news, symbol, since.date(), until.date()
        )
        items = parse_news(payload, max_items=self._max_items)
        logger.debug(f"Finnhub company news {symbol}: {len(items)} items")
        return items

    async def get_market_news(self, category: str = "general") -> List[NewsItem]:
        payload = await asyncio.to_thread(self._client.market_news, category)
        return parse_news(
            payload, max_items=self._max_items, excluded_sources=self._excluded_sources
        )

    def close(self) -> None:
        self._client.close()
