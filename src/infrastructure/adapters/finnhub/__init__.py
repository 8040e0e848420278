"""Finnhub quote, profile and news adapter."""

from .adapter import FinnhubAdapter, parse_news, parse_profile, parse_quote
from .client import FinnhubClient, load_finnhub_key

__all__ = [
    "FinnhubAdapter",
    "FinnhubClient",
    "load_finnhub_key",
    "parse_quote",
    "parse_profile",
    "parse_news",
]
