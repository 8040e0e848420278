"""
Configuration manager with environment-based loading.

Supports:
- Base configuration (base.yaml)
- Environment-specific overrides (dev.yaml, prod.yaml)
- Secrets loading (secrets.yaml - gitignored)
"""

from __future__ import annotations
from pathlib import Path
from typing import Dict, Any
import yaml

from src.domain.exceptions import ConfigurationError
from src.domain.feed import SchemaResolver
from src.domain.heatmap import scales_from_config
from src.models.stock_record import PeriodKey
from src.utils.logging_setup import get_logger

from .models import (
    AppConfig,
    FeedConfig,
    FeedColumnsConfig,
    RefreshConfig,
    ColorScaleConfig,
    NewsConfig,
    FinnhubConfig,
    IndexConfig,
    DrillDownConfig,
    ReportConfig,
    LoggingConfig,
)


logger = get_logger(__name__)

DEFAULT_CONFIG_DIR = Path(__file__).resolve().parent


class ConfigManager:
    """
    Configuration manager with environment support.

    Loads configuration in this order:
    1. base.yaml (default config)
    2. {env}.yaml (environment-specific, e.g., dev.yaml)
    3. secrets.yaml (if exists, gitignored)

    Later configs override earlier ones.
    """

    def __init__(self, config_dir: str | Path = DEFAULT_CONFIG_DIR, env: str = "dev"):
        """
        Initialize config manager.

        Args:
            config_dir: Directory containing config files.
            env: Environment name (dev, prod, etc).
        """
        self.config_dir = Path(config_dir)
        self.env = env
        self.config: Dict[str, Any] = {}

    def load(self) -> AppConfig:
        """
        Load configuration from YAML files.

        Returns:
            AppConfig object.

        Raises:
            ConfigurationError: If base config is missing or invalid.
        """
        base_path = self.config_dir / "base.yaml"
        if not base_path.exists():
            raise ConfigurationError(f"Base config not found: {base_path}")

        self.config = self._load_yaml(base_path)
        logger.info(f"Loaded base config from {base_path}")

        # Load environment-specific config (optional)
        env_path = self.config_dir / f"{self.env}.yaml"
        if env_path.exists():
            env_config = self._load_yaml(env_path)
            self.config = self._merge_dicts(self.config, env_config)
            logger.info(f"Loaded {self.env} config from {env_path}")

        # Load secrets (optional, gitignored)
        secrets_path = self.config_dir / "secrets.yaml"
        if secrets_path.exists():
            secrets = self._load_yaml(secrets_path)
            self.config = self._merge_dicts(self.config, secrets)
            logger.info("Loaded secrets")

        return self._parse_config()

    def _load_yaml(self, path: Path) -> Dict[str, Any]:
        """Load YAML file."""
        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"Top level of {path} must be a mapping")
        return data

    def _merge_dicts(self, base: Dict, override: Dict) -> Dict:
        """Deep merge two dicts (override wins)."""
        result = base.copy()
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_dicts(result[key], value)
            else:
                result[key] = value
        return result

    def _parse_feed(self, raw: Dict[str, Any], name: str) -> FeedConfig:
        url = raw.get("url", "")
        if not url:
            raise ConfigurationError(f"feeds.{name}.url is required")
        return FeedConfig(
            url=url,
            row_limit=raw.get("row_limit"),
            per_sector_limit=raw.get("per_sector_limit"),
            timeout_sec=float(raw.get("timeout_sec", 15.0)),
        )

    def _validate_display(self, feed_columns: FeedColumnsConfig, colors: ColorScaleConfig) -> None:
        """
        Check settings that are only converted when the app starts.

        Column overrides, color scales and the default period are resolved
        here once so a bad value fails config loading instead of a run mode.
        The default period is normalized to its label ("ytd" -> "YTD").
        """
        try:
            SchemaResolver.from_overrides(feed_columns.overrides)
        except (ValueError, TypeError, AttributeError) as e:
            raise ConfigurationError(f"Invalid feed_columns: {e}") from e

        try:
            scales_from_config(colors.scales)
        except (ValueError, TypeError, AttributeError) as e:
            raise ConfigurationError(f"Invalid colors.scales: {e}") from e

        try:
            colors.default_period = PeriodKey.parse(colors.default_period).value
        except ValueError as e:
            raise ConfigurationError(f"Invalid colors.default_period: {colors.default_period!r}") from e

    def _parse_config(self) -> AppConfig:
        """Parse raw dict into AppConfig."""
        try:
            feeds_raw = self.config.get("feeds", {})
            market_feed = self._parse_feed(feeds_raw.get("market_heatmap", {}), "market_heatmap")
            sector_feed = self._parse_feed(feeds_raw.get("sector_heatmap", {}), "sector_heatmap")

            feed_columns = FeedColumnsConfig(
                overrides=self.config.get("feed_columns", {}) or {},
            )

            refresh_raw = self.config.get("refresh", {})
            refresh = RefreshConfig(
                market_heatmap_sec=float(refresh_raw.get("market_heatmap_sec", 60)),
                sector_heatmap_sec=float(refresh_raw.get("sector_heatmap_sec", 180)),
                news_sec=float(refresh_raw.get("news_sec", 300)),
                index_quotes_sec=float(refresh_raw.get("index_quotes_sec", 60)),
                watchlist_sec=float(refresh_raw.get("watchlist_sec", 60)),
            )
            for name, value in vars(refresh).items():
                if value <= 0:
                    raise ConfigurationError(f"refresh.{name} must be positive, got {value}")

            colors_raw = self.config.get("colors", {})
            colors = ColorScaleConfig(
                scales=colors_raw.get("scales", {}) or {},
                default_period=str(colors_raw.get("default_period", "1D")),
            )
            self._validate_display(feed_columns, colors)

            news_raw = self.config.get("news", {})
            news = NewsConfig(
                max_items=int(news_raw.get("max_items", 10)),
                lookback_days=int(news_raw.get("lookback_days", 7)),
                category=news_raw.get("category", "general"),
                excluded_sources=list(news_raw.get("excluded_sources", ["MarketWatch"])),
            )

            finnhub_raw = self.config.get("finnhub", {})
            finnhub = FinnhubConfig(
                api_key=finnhub_raw.get("api_key", "") or "",
                base_url=finnhub_raw.get("base_url", "https://finnhub.io/api/v1"),
                timeout_sec=float(finnhub_raw.get("timeout_sec", 10.0)),
            )

            indices = [
                IndexConfig(symbol=item["symbol"], name=item.get("name", item["symbol"]))
                for item in self.config.get("indices", [])
            ]

            drilldown_raw = self.config.get("drilldown", {})
            drilldown = DrillDownConfig(
                collapse_delay_sec=float(drilldown_raw.get("collapse_delay_sec", 0.4)),
            )

            report_raw = self.config.get("report", {})
            report = ReportConfig(
                output=report_raw.get("output", "./reports/heatmap.html"),
                title=report_raw.get("title", "Market Heat Map"),
            )

            logging_raw = self.config.get("logging", {})
            logging_config = LoggingConfig(
                level=logging_raw.get("level", "INFO"),
                dir=logging_raw.get("dir", "./logs"),
                timezone=logging_raw.get("timezone", "local"),
                console=bool(logging_raw.get("console", False)),
            )

            return AppConfig(
                market_feed=market_feed,
                sector_feed=sector_feed,
                feed_columns=feed_columns,
                refresh=refresh,
                colors=colors,
                news=news,
                finnhub=finnhub,
                indices=indices,
                drilldown=drilldown,
                report=report,
                logging=logging_config,
                raw=self.config,
            )

        except ConfigurationError:
            raise
        except Exception as e:
            raise ConfigurationError(f"Failed to parse config: {e}") from e
