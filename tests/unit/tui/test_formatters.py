"""Tests for the shared display formatters."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from src.tui.formatters import markup_change, sparkline_text
from src.utils.formatters import (
    format_change,
    format_market_cap,
    format_percent,
    format_price,
    format_relative_volume,
    format_time_ago,
    format_volume,
    truncate,
)

NOW = datetime(2024, 1, 2, 15, 0, tzinfo=timezone.utc)


class TestNumbers:
    def test_price(self):
        assert format_price(1410.2) == "$1,410.20"
        assert format_price(None) == "-"
        assert format_price(float("nan")) == "-"

    def test_percent(self):
        assert format_percent(1.333) == "+1.33%"
        assert format_percent(-0.5) == "-0.50%"
        assert format_percent(-0.5, signed=False) == "0.50%"

    def test_change(self):
        assert format_change(2.34) == "+2.34"
        assert format_change(None) == "-"

    @pytest.mark.parametrize(
        "value,expected",
        [
            (2.91e12, "$2.910T"),
            (812.4e9, "$812.4B"),
            (950e6, "$950.000M"),
            (5000, "$5000"),
            (0, "N/A"),
            (None, "N/A"),
        ],
    )
    def test_market_cap(self, value, expected):
        assert format_market_cap(value) == expected

    def test_market_cap_without_prefix(self):
        assert format_market_cap(2.8e12, prefix="") == "2.800T"

    def test_volume(self):
        assert format_volume(12_300_000) == "12.3M"
        assert format_volume(456_700) == "456.7K"
        assert format_volume(0) == "-"

    def test_relative_volume(self):
        assert format_relative_volume(1.456) == "1.46x"


class TestTimeAgo:
    @pytest.mark.parametrize(
        "delta,expected",
        [
            (timedelta(minutes=5), "5m ago"),
            (timedelta(minutes=59), "59m ago"),
            (timedelta(hours=3, minutes=10), "3h ago"),
            (timedelta(days=2, hours=5), "2d ago"),
        ],
    )
    def test_buckets(self, delta, expected):
        assert format_time_ago(NOW - delta, now=NOW) == expected

    def test_future_clamps_to_zero(self):
        assert format_time_ago(NOW + timedelta(minutes=3), now=NOW) == "0m ago"


class TestMarkup:
    def test_change_colors(self):
        assert markup_change(1.5) == "[green]▲ 1.50%[/]"
        assert markup_change(-2.0) == "[red]▼ 2.00%[/]"
        assert markup_change(0.0) == "[dim]0.00%[/]"

    def test_custom_text(self):
        assert markup_change(-1.0, "-2.34") == "[red]▼ -2.34[/]"


class TestTruncate:
    @pytest.mark.parametrize(
        "text,width,expected",
        [("abcdef", 10, "abcdef"), ("abcdef", 4, "abc…"), ("abcdef", 1, "…"), ("abcdef", 0, "")],
    )
    def test_truncate(self, text, width, expected):
        assert truncate(text, width) == expected


class TestSparklineText:
    def test_scaled_to_range(self):
        assert sparkline_text([0.0, 7.0, 3.5]) == "▁█▅"

    def test_keeps_latest_points(self):
        assert sparkline_text([0.0, 1.0, 2.0, 3.0], width=2) == "▁█"

    def test_flat_and_empty(self):
        assert sparkline_text([5.0, 5.0]) == "▅▅"
        assert sparkline_text([]) == ""
        assert sparkline_text([1.0, 2.0], width=0) == ""
