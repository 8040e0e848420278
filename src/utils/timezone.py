"""
Timezone helpers.

Internal timestamps are timezone-aware UTC. News timestamps from the
quote/news API arrive as Unix epoch seconds.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

UTC = timezone.utc


def now_utc() -> datetime:
    """Get current time in UTC (timezone-aware)."""
    return datetime.now(UTC)


def from_epoch(seconds: float) -> datetime:
    """Convert Unix epoch seconds to an aware UTC datetime."""
    return datetime.fromtimestamp(seconds, UTC)


def lookback_window(days: int, today: date | None = None) -> tuple[date, date]:
    """Return the (since, until) date pair covering the last ``days`` days."""
    until = today or now_utc().date()
    return until - timedelta(days=days), until
