"""
Heat-map domain logic: aggregation, tile coloring and drill-down state.
"""

from .aggregation import (
    AggregationResult,
    GroupBy,
    SectorAggregate,
    aggregate,
    average_change,
)
from .color_scale import (
    DEFAULT_SCALES,
    NEUTRAL_TILE,
    ColorMode,
    ColorScale,
    ColorSpec,
    GradientSpec,
    TileColor,
    color_for,
    default_scales,
    legend_stops,
    scales_from_config,
)
from .drilldown import (
    DEFAULT_COLLAPSE_DELAY,
    GRID,
    DrillDownController,
    GridState,
    InteractionState,
    Point,
    Rect,
    SectorExpanded,
    StockExpanded,
)

__all__ = [
    # Aggregation
    "aggregate",
    "average_change",
    "AggregationResult",
    "GroupBy",
    "SectorAggregate",
    # Colors
    "color_for",
    "default_scales",
    "legend_stops",
    "scales_from_config",
    "ColorMode",
    "ColorScale",
    "ColorSpec",
    "GradientSpec",
    "TileColor",
    "DEFAULT_SCALES",
    "NEUTRAL_TILE",
    # Drill-down
    "DrillDownController",
    "DEFAULT_COLLAPSE_DELAY",
    "InteractionState",
    "GridState",
    "SectorExpanded",
    "StockExpanded",
    "GRID",
    "Point",
    "Rect",
]
