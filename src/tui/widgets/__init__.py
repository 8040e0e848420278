"""
Textual widgets for the heat board.
"""

from .header import HeaderWidget
from .heatmap_grid import HeatmapGrid, HeatTile
from .index_strip import IndexStrip
from .news_panel import NewsPanel
from .search_box import SearchBox
from .stock_detail import StockDetail
from .watchlist_panel import WatchlistPanel

__all__ = [
    "HeaderWidget",
    "HeatmapGrid",
    "HeatTile",
    "IndexStrip",
    "NewsPanel",
    "SearchBox",
    "StockDetail",
    "WatchlistPanel",
]
