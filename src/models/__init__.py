"""Data models for the heat board."""

from .quote import ExtendedProfile, NewsItem, Quote
from .stock_record import PERIOD_KEYS, LabelMode, PeriodKey, StockRecord, zero_period_changes

__all__ = [
    "StockRecord",
    "PeriodKey",
    "LabelMode",
    "PERIOD_KEYS",
    "zero_period_changes",
    "Quote",
    "ExtendedProfile",
    "NewsItem",
]
