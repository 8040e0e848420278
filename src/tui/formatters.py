"""
Formatting utilities for the dashboard.

The ``markup_*`` helpers use Textual markup syntax (same as Rich markup);
the plain-text helpers live in ``src.utils.formatters`` and are re-exported
here for the widgets.
"""

from __future__ import annotations

from typing import Sequence

from ..utils.formatters import (
    format_change,
    format_market_cap,
    format_percent,
    format_price,
    format_relative_volume,
    format_time_ago,
    format_volume,
    truncate,
)

__all__ = [
    "format_change",
    "format_market_cap",
    "format_percent",
    "format_price",
    "format_relative_volume",
    "format_time_ago",
    "format_volume",
    "markup_change",
    "sparkline_text",
    "truncate",
]


def markup_change(value: float, text: str | None = None) -> str:
    """Color a change green/red with an arrow."""
    label = text if text is not None else format_percent(value, signed=False)
    if value > 0:
        return f"[green]▲ {label}[/]"
    if value < 0:
        return f"[red]▼ {label}[/]"
    return f"[dim]{label}[/]"


SPARK_BLOCKS = "▁▂▃▄▅▆▇█"


def sparkline_text(values: Sequence[float], width: int = 12) -> str:
    """
    Inline block-character trend line for table cells.

    Uses the last ``width`` values; a flat series renders at mid height.
    """
    points = list(values)[-width:] if width > 0 else []
    if not points:
        return ""
    low, high = min(points), max(points)
    if high == low:
        return SPARK_BLOCKS[len(SPARK_BLOCKS) // 2] * len(points)
    top = len(SPARK_BLOCKS) - 1
    return "".join(SPARK_BLOCKS[round((p - low) / (high - low) * top)] for p in points)
