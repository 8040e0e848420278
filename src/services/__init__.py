"""Service layer for business logic."""

from src.services.heatmap_data_service import HeatmapDataService, LoadStatus, RecordSource
from src.services.index_quote_service import DEFAULT_INDICES, IndexQuoteService, IndexSpec
from src.services.news_service import NewsService
from src.services.refresh_scheduler import RefreshScheduler
from src.services.sparkline import generate_intraday_series, generate_sparkline
from src.services.stock_search_service import SearchResult, StockSearchService
from src.services.watchlist_service import WatchlistEntry, WatchlistService

__all__ = [
    "HeatmapDataService",
    "LoadStatus",
    "RecordSource",
    "IndexQuoteService",
    "IndexSpec",
    "DEFAULT_INDICES",
    "NewsService",
    "RefreshScheduler",
    "SearchResult",
    "StockSearchService",
    "WatchlistEntry",
    "WatchlistService",
    "generate_sparkline",
    "generate_intraday_series",
]
