"""
Market Heat Board - Main Entry Point

Usage:
    python main.py --env dev                 # Terminal dashboard
    python main.py --mode html               # One-shot HTML snapshot
    python main.py --mode headless -v        # Poll feeds, log to console
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from config.config_manager import DEFAULT_CONFIG_DIR, ConfigManager
from config.models import AppConfig
from src.domain.clock import SystemClock
from src.domain.exceptions import ConfigurationError
from src.domain.feed import SchemaResolver
from src.domain.heatmap import scales_from_config
from src.infrastructure.adapters import FinnhubAdapter, FinnhubClient, SheetFeedAdapter
from src.infrastructure.reporting.heatmap import HeatmapBuilder
from src.models.stock_record import LabelMode, PeriodKey
from src.services import (
    HeatmapDataService,
    IndexQuoteService,
    IndexSpec,
    NewsService,
    RefreshScheduler,
    StockSearchService,
    WatchlistService,
)
from src.utils import get_logger, set_log_timezone, setup_category_logging, shutdown_logging

logger = get_logger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Market Heat Board",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py                                  # Terminal dashboard
  python main.py --mode html --output out/hm.html # Static snapshot
  python main.py --mode headless --log-level DEBUG
        """,
    )

    parser.add_argument(
        "--mode",
        type=str,
        default="tui",
        choices=["tui", "html", "headless"],
        help="Run mode: tui (default), html snapshot, or headless polling",
    )

    parser.add_argument(
        "--env",
        type=str,
        default="dev",
        help="Environment config to layer over base.yaml (default: dev)",
    )

    parser.add_argument(
        "--config-dir",
        type=str,
        default=str(DEFAULT_CONFIG_DIR),
        help="Directory holding base.yaml, {env}.yaml and secrets.yaml",
    )

    parser.add_argument(
        "--output",
        type=str,
        help="HTML snapshot path (html mode; default from report.output)",
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging (DEBUG level for all categories)",
    )

    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set log level (default: logging.level from config, ignored if --verbose is set)",
    )

    return parser.parse_args(argv)


@dataclass
class HeatBoardServices:
    """Everything the run modes share, built once from config."""

    market: HeatmapDataService
    sectors: HeatmapDataService
    feeds: List[SheetFeedAdapter]
    provider: Optional[FinnhubAdapter] = None
    index_quotes: Optional[IndexQuoteService] = None
    news: Optional[NewsService] = None
    search: Optional[StockSearchService] = None
    watchlist: Optional[WatchlistService] = None

    def close(self) -> None:
        for feed in self.feeds:
            feed.close()
        if self.provider is not None:
            self.provider.close()


def build_provider(config: AppConfig) -> Optional[FinnhubAdapter]:
    """Finnhub adapter, or None when no API key is configured."""
    try:
        client = FinnhubClient(
            api_key=config.finnhub.api_key or None,
            base_url=config.finnhub.base_url,
            timeout=config.finnhub.timeout_sec,
        )
    except ConfigurationError as e:
        logger.warning(f"{e}; index quotes, news and search are disabled")
        return None
    return FinnhubAdapter(
        client,
        max_items=config.news.max_items,
        excluded_sources=config.news.excluded_sources,
    )


def build_services(config: AppConfig) -> HeatBoardServices:
    """Wire feed adapters and quote/news services from config."""
    resolver = SchemaResolver.from_overrides(config.feed_columns.overrides)

    market_feed = SheetFeedAdapter(
        config.market_feed.url,
        resolver=resolver,
        row_limit=config.market_feed.row_limit,
        timeout=config.market_feed.timeout_sec,
    )
    sector_feed = SheetFeedAdapter(
        config.sector_feed.url,
        resolver=resolver,
        row_limit=config.sector_feed.row_limit,
        timeout=config.sector_feed.timeout_sec,
    )

    services = HeatBoardServices(
        market=HeatmapDataService("market_heatmap", market_feed),
        sectors=HeatmapDataService("sector_heatmap", sector_feed),
        feeds=[market_feed, sector_feed],
    )

    provider = build_provider(config)
    if provider is not None:
        services.provider = provider
        services.index_quotes = IndexQuoteService(
            provider, [IndexSpec(symbol=i.symbol, name=i.name) for i in config.indices]
        )
        services.news = NewsService(
            provider,
            lookback_days=config.news.lookback_days,
            category=config.news.category,
        )
        services.search = StockSearchService(provider)
        services.watchlist = WatchlistService(provider, services.news)
    return services


# =============================================================================
# RUN MODES
# =============================================================================


async def run_tui(args: argparse.Namespace, config: AppConfig, services: HeatBoardServices) -> int:
    """Run the Textual dashboard until the user quits."""
    # Imported here so html/headless runs never load Textual
    from src.tui.app import HeatBoardApp

    app = HeatBoardApp(
        market=services.market,
        sectors=services.sectors,
        index_quotes=services.index_quotes,
        news=services.news,
        search=services.search,
        watchlist=services.watchlist,
        refresh=config.refresh,
        clock=SystemClock(),
        scales=scales_from_config(config.colors.scales),
        per_sector_limit=config.sector_feed.per_sector_limit,
        collapse_delay=config.drilldown.collapse_delay_sec,
        default_period=PeriodKey.parse(config.colors.default_period),
        env=args.env,
    )
    await app.run_async()
    return 0


async def run_html(args: argparse.Namespace, config: AppConfig, services: HeatBoardServices) -> int:
    """Fetch both feeds once and write the HTML snapshot."""
    fetches = [services.market.refresh(), services.sectors.refresh()]
    if services.index_quotes is not None:
        fetches.append(services.index_quotes.refresh())
    await asyncio.gather(*fetches)

    if not services.market.has_data and not services.sectors.has_data:
        logger.error("Both feeds are unavailable; no snapshot written")
        return 1

    builder = HeatmapBuilder(
        period=PeriodKey.parse(config.colors.default_period),
        label_mode=LabelMode.PERCENT,
        scales=scales_from_config(config.colors.scales),
        title=config.report.title,
    )
    model = builder.build_heatmap_model(
        services.market.records,
        sector_records=services.sectors.records,
        per_sector_limit=config.sector_feed.per_sector_limit,
        index_quotes=services.index_quotes.quotes if services.index_quotes else (),
    )

    output = Path(args.output or config.report.output)
    path = builder.save_heatmap(model, output.parent, output.name)
    print(f"Heat map written to {path}")
    return 0


async def run_headless(args: argparse.Namespace, config: AppConfig, services: HeatBoardServices) -> int:
    """Poll every source on its interval and log, until interrupted."""
    clock = SystemClock()
    refresh = config.refresh

    schedulers = [
        RefreshScheduler("market_heatmap", refresh.market_heatmap_sec, services.market.refresh, clock),
        RefreshScheduler("sector_heatmap", refresh.sector_heatmap_sec, services.sectors.refresh, clock),
    ]
    if services.index_quotes is not None:
        schedulers.append(
            RefreshScheduler("index_quotes", refresh.index_quotes_sec, services.index_quotes.refresh, clock)
        )
    if services.news is not None:
        schedulers.append(
            RefreshScheduler("market_news", refresh.news_sec, services.news.refresh_market_news, clock)
        )

    for scheduler in schedulers:
        await scheduler.start()
    try:
        while True:
            await asyncio.sleep(1)
    except asyncio.CancelledError:
        logger.info("Received shutdown signal")
    finally:
        for scheduler in schedulers:
            await scheduler.stop()
    return 0


def create_runner(mode: str):
    """
    Factory function to create the appropriate runner for the given mode.

    Args:
        mode: Run mode (tui, html, headless).

    Returns:
        Async function to run the mode.
    """
    runners = {
        "tui": run_tui,
        "html": run_html,
        "headless": run_headless,
    }
    return runners.get(mode, run_tui)


async def main_async(args: argparse.Namespace) -> int:
    """Main async entry point."""
    # Load configuration first to get timezone and logging settings
    config = ConfigManager(config_dir=args.config_dir, env=args.env).load()

    log_tz = config.logging.timezone
    if log_tz and log_tz.lower() != "local":
        set_log_timezone(log_tz)
    else:
        set_log_timezone(None)  # Use local time

    setup_category_logging(
        env=args.env,
        log_dir=config.logging.dir,
        level=args.log_level or config.logging.level,
        console=args.mode != "tui" or config.logging.console,
        verbose=args.verbose,
    )
    logger.info(f"Starting Market Heat Board (mode={args.mode}, env={args.env})")

    services = build_services(config)
    try:
        return await create_runner(args.mode)(args, config, services)
    finally:
        services.close()
        logger.info("Shutdown complete")
        shutdown_logging()


def main() -> None:
    """Main entry point."""
    args = parse_args()
    try:
        sys.exit(asyncio.run(main_async(args)))
    except KeyboardInterrupt:
        print("Shutdown requested")
        sys.exit(0)
    except ConfigurationError as e:
        print(f"Configuration error: {e}")
        sys.exit(2)
    except Exception as e:
        print(f"Fatal error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
