"""Infrastructure adapters for external systems."""

from .finnhub import FinnhubAdapter, FinnhubClient
from .sheet_feed import SheetFeedAdapter

__all__ = ["FinnhubAdapter", "FinnhubClient", "SheetFeedAdapter"]
