"""Configuration data models."""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional


@dataclass
class FeedConfig:
    """One published-spreadsheet CSV feed."""
    url: str
    row_limit: Optional[int] = None  # Only the first N data rows of the sheet
    per_sector_limit: Optional[int] = None  # Sector view: first N members per sector
    timeout_sec: float = 15.0


@dataclass
class FeedColumnsConfig:
    """Header title / fallback position overrides, keyed by field name or period label."""
    overrides: Dict[str, Dict[str, Any]] = field(default_factory=dict)


@dataclass
class RefreshConfig:
    """Polling interval per widget (seconds)."""
    market_heatmap_sec: float = 60
    sector_heatmap_sec: float = 180
    news_sec: float = 300
    index_quotes_sec: float = 60
    watchlist_sec: float = 60


@dataclass
class ColorScaleConfig:
    """Per-period color scale overrides: {"1D": {"neutral_threshold": .., "max_up": .., "max_down": ..}}."""
    scales: Dict[str, Dict[str, float]] = field(default_factory=dict)
    default_period: str = "1D"


@dataclass
class NewsConfig:
    """News panel and drill-down news settings."""
    max_items: int = 10
    lookback_days: int = 7
    category: str = "general"
    excluded_sources: List[str] = field(default_factory=lambda: ["MarketWatch"])


@dataclass
class FinnhubConfig:
    """Finnhub quote/news API."""
    api_key: str = ""  # Usually supplied by secrets.yaml or FINNHUB_API_KEY
    base_url: str = "https://finnhub.io/api/v1"
    timeout_sec: float = 10.0


@dataclass
class IndexConfig:
    """Index shown in the ticker strip."""
    symbol: str
    name: str


@dataclass
class DrillDownConfig:
    """Overlay behaviour."""
    collapse_delay_sec: float = 0.4


@dataclass
class ReportConfig:
    """Static HTML heat-map snapshot."""
    output: str = "./reports/heatmap.html"
    title: str = "Market Heat Map"


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "INFO"
    dir: str = "./logs"
    timezone: str = "local"  # Timezone for log timestamps (e.g., "America/New_York", "UTC", or "local")
    console: bool = False


@dataclass
class AppConfig:
    """Complete application configuration."""
    market_feed: FeedConfig
    sector_feed: FeedConfig
    feed_columns: FeedColumnsConfig
    refresh: RefreshConfig
    colors: ColorScaleConfig
    news: NewsConfig
    finnhub: FinnhubConfig
    indices: List[IndexConfig]
    drilldown: DrillDownConfig
    report: ReportConfig
    logging: LoggingConfig
    raw: Dict[str, Any]  # Merged config dict as loaded
