"""
Plain-text formatting shared by the dashboard and the HTML snapshot.

Prices, percents and market caps are rendered the same way on both
surfaces; absent or non-finite values get a placeholder.
"""

from __future__ import annotations

import math
from datetime import datetime

from .timezone import now_utc


def format_price(price: float | None, decimals: int = 2) -> str:
    """Format a price with a dollar sign, or "-" when absent."""
    if price is None or not math.isfinite(price):
        return "-"
    return f"${price:,.{decimals}f}"


def format_percent(value: float | None, signed: bool = True) -> str:
    """Format a percent change: "+1.33%", "-0.50%"."""
    if value is None or not math.isfinite(value):
        return "-"
    if signed:
        return f"{value:+.2f}%"
    return f"{abs(value):.2f}%"


def format_change(value: float | None) -> str:
    """Format an absolute change with explicit sign."""
    if value is None or not math.isfinite(value):
        return "-"
    return f"{value:+.2f}"


def format_market_cap(value: float | None, prefix: str = "$") -> str:
    """
    Abbreviate a market cap.

    Trillions and millions keep three decimals, billions one:
    2.91e12 → "$2.910T", 812.4e9 → "$812.4B", 950e6 → "$950.000M".
    """
    if not value or not math.isfinite(value):
        return "N/A"
    if value >= 1e12:
        return f"{prefix}{value / 1e12:.3f}T"
    if value >= 1e9:
        return f"{prefix}{value / 1e9:.1f}B"
    if value >= 1e6:
        return f"{prefix}{value / 1e6:.3f}M"
    return f"{prefix}{value:.0f}"


def format_volume(value: float | None) -> str:
    """Abbreviate a share volume: 12.3M, 456.7K."""
    if not value or not math.isfinite(value):
        return "-"
    if value >= 1e9:
        return f"{value / 1e9:.1f}B"
    if value >= 1e6:
        return f"{value / 1e6:.1f}M"
    if value >= 1e3:
        return f"{value / 1e3:.1f}K"
    return f"{value:.0f}"


def format_relative_volume(value: float | None) -> str:
    if not value or not math.isfinite(value):
        return "-"
    return f"{value:.2f}x"


def format_time_ago(published_at: datetime, now: datetime | None = None) -> str:
    """Minutes under an hour, hours under a day, else days: "5m ago", "3h ago", "2d ago"."""
    now = now or now_utc()
    seconds = max((now - published_at).total_seconds(), 0)
    minutes = int(seconds // 60)
    hours = int(seconds // 3600)
    days = int(seconds // 86400)

    if minutes < 60:
        return f"{minutes}m ago"
    if hours < 24:
        return f"{hours}h ago"
    return f"{days}d ago"


def truncate(text: str, width: int) -> str:
    """Cut text to ``width`` characters, marking the cut with an ellipsis."""
    if width <= 0:
        return ""
    if len(text) <= width:
        return text
    if width == 1:
        return "…"
    return text[: width - 1] + "…"
