"""Domain interfaces for dependency injection."""

from .quote_news_provider import QuoteNewsProvider

__all__ = [
    "QuoteNewsProvider",
]
