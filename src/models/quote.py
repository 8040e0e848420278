"""Quote, company profile and news models returned by the quote/news provider."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class Quote:
    """Real-time quote for one symbol."""

    symbol: str
    price: float
    change_absolute: float
    change_percent: float
    open: float
    high: float
    low: float
    previous_close: float
    display_name: Optional[str] = None

    @property
    def is_up(self) -> bool:
        return self.change_absolute >= 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "symbol": self.symbol,
            "price": self.price,
            "change_absolute": self.change_absolute,
            "change_percent": self.change_percent,
            "open": self.open,
            "high": self.high,
            "low": self.low,
            "previous_close": self.previous_close,
            "display_name": self.display_name,
        }


@dataclass(frozen=True)
class ExtendedProfile:
    """Company profile fields shown in the stock detail overlay."""

    symbol: str
    company_name: str
    market_cap: float = 0.0
    sector: str = ""
    website: str = ""
    exchange: str = ""
    country: str = ""
    logo_url: str = ""


@dataclass(frozen=True)
class NewsItem:
    """Single news headline."""

    headline: str
    url: str
    source: str
    published_at: datetime
    category: str = ""
    image_url: str = ""
    summary: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "headline": self.headline,
            "url": self.url,
            "source": self.source,
            "published_at": self.published_at.isoformat(),
            "category": self.category,
            "image_url": self.image_url,
        }
