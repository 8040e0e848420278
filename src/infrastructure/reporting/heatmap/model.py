"""
Heatmap Data Model for the HTML snapshot.

Pure data structures (no rendering logic) that can be:
1. Serialized and embedded in the page for client-side use
2. Built by the builder without coupling to HTML
3. Tested independently of the template

Architecture:
    records + color scales
        ↓
    builder.py (aggregates, colors)
        ↓
    HeatmapModel (pure data)
        ↓
    html_template.py (renders)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from src.models.stock_record import LabelMode


@dataclass
class TileNode:
    """Single stock tile."""

    # Identity
    symbol: str
    label: str  # Text shown under the symbol (depends on LabelMode)
    sector: str

    # Values
    change_pct: float
    price: float
    market_cap: float

    # Coloring
    background: str  # CSS gradient
    foreground: str  # CSS color
    intensity: float = 0.0

    # Tooltip
    company: str = ""
    industry: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for JSON/frontend consumption."""
        return {
            "symbol": self.symbol,
            "label": self.label,
            "sector": self.sector,
            "change_pct": self.change_pct,
            "price": self.price,
            "market_cap": self.market_cap,
            "background": self.background,
            "foreground": self.foreground,
            "intensity": self.intensity,
            "company": self.company,
            "industry": self.industry,
        }


@dataclass
class SectorGroup:
    """Sector block with its member tiles."""

    sector_name: str
    average_change: float
    total_market_cap: float
    background: str
    foreground: str
    stocks: List[TileNode] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for JSON."""
        return {
            "sector_name": self.sector_name,
            "average_change": self.average_change,
            "total_market_cap": self.total_market_cap,
            "background": self.background,
            "foreground": self.foreground,
            "stocks": [s.to_dict() for s in self.stocks],
        }


@dataclass
class LegendStop:
    value: float
    background: str

    def to_dict(self) -> Dict[str, Any]:
        return {"value": self.value, "background": self.background}


@dataclass
class IndexCard:
    """Ticker-strip entry (optional; only when quotes were fetched)."""

    name: str
    price: float
    change_pct: float

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "price": self.price, "change_pct": self.change_pct}


@dataclass
class HeatmapModel:
    """
    Complete heatmap snapshot.

    ``tiles`` is the flat market grid in source order; ``sectors`` is the
    sector-grouped view in display order (descending total market cap).
    """

    title: str = "Market Heat Map"
    period: str = "1D"
    label_mode: LabelMode = LabelMode.PERCENT

    tiles: List[TileNode] = field(default_factory=list)
    sectors: List[SectorGroup] = field(default_factory=list)
    legend: List[LegendStop] = field(default_factory=list)
    indices: List[IndexCard] = field(default_factory=list)

    # Summary statistics
    overall_average: float = 0.0
    advancers: int = 0
    decliners: int = 0
    symbol_count: int = 0

    # Metadata
    generated_at: Optional[datetime] = None
    generated_at_str: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for JSON."""
        return {
            "title": self.title,
            "period": self.period,
            "label_mode": self.label_mode.value,
            "tiles": [t.to_dict() for t in self.tiles],
            "sectors": [s.to_dict() for s in self.sectors],
            "legend": [s.to_dict() for s in self.legend],
            "indices": [i.to_dict() for i in self.indices],
            "overall_average": self.overall_average,
            "advancers": self.advancers,
            "decliners": self.decliners,
            "symbol_count": self.symbol_count,
            "generated_at": self.generated_at.isoformat() if self.generated_at else None,
        }
