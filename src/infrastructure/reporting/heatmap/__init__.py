"""
Heatmap Sub-Package.

Static HTML snapshot of the market and sector heat maps.
"""

from __future__ import annotations

from src.models.stock_record import LabelMode

from .builder import HeatmapBuilder
from .css import HEATMAP_CSS
from .html_template import render_heatmap_template
from .model import (
    HeatmapModel,
    IndexCard,
    LegendStop,
    SectorGroup,
    TileNode,
)

__all__ = [
    # Main builder
    "HeatmapBuilder",
    # CSS
    "HEATMAP_CSS",
    # Model classes
    "HeatmapModel",
    "TileNode",
    "SectorGroup",
    "LegendStop",
    "IndexCard",
    "LabelMode",
    # Module functions
    "render_heatmap_template",
]
