"""
Reporting Package.

Provides HTML report generation for the heat board:
- HeatmapBuilder: static snapshot of the market grid and sector view
"""

from .heatmap import HeatmapBuilder, HeatmapModel, LabelMode

__all__ = [
    "HeatmapBuilder",
    "HeatmapModel",
    "LabelMode",
]
