"""
Heat Board Dashboard - Textual implementation.

Terminal UI with two heat-map tabs:
- Tab 1: Market (one tile per stock, feed order)
- Tab 2: Sectors (one tile per sector; drill into members)

Around the tabs: index strip, symbol search with a watchlist, market news
panel, and the stock detail overlay shared by both heat maps.

Each data source is polled by its own RefreshScheduler; the schedulers
start when the app mounts and are stopped when it unmounts.
"""

from __future__ import annotations

import asyncio
from typing import List, Mapping, Optional

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.reactive import reactive
from textual.widgets import Footer, TabbedContent, TabPane

from config.models import RefreshConfig

from ..domain.clock import Clock, SystemClock
from ..domain.exceptions import SymbolNotFoundError
from ..domain.heatmap import (
    DEFAULT_COLLAPSE_DELAY,
    ColorMode,
    ColorScale,
    DrillDownController,
    StockExpanded,
)
from ..models.stock_record import PERIOD_KEYS, LabelMode, PeriodKey
from ..services.heatmap_data_service import HeatmapDataService, LoadStatus
from ..services.index_quote_service import IndexQuoteService
from ..services.news_service import NewsService
from ..services.refresh_scheduler import RefreshScheduler
from ..services.stock_search_service import SearchResult, StockSearchService
from ..services.watchlist_service import WatchlistService
from ..utils.logging_setup import get_logger
from .widgets import (
    HeaderWidget,
    HeatmapGrid,
    IndexStrip,
    NewsPanel,
    SearchBox,
    StockDetail,
    WatchlistPanel,
)

logger = get_logger(__name__)

LABEL_MODES: List[LabelMode] = list(LabelMode)


class HeatBoardApp(App):
    """
    Market Heat Board.

    Provides:
    - Market and sector heat maps with drill-down
    - Index quotes and market news
    - Symbol search with a quote card and an in-memory watchlist
    """

    CSS_PATH = "css/heatboard.tcss"
    TITLE = "Market Heat Board"

    BINDINGS = [
        Binding("1", "switch_tab('market')", "Market", show=True),
        Binding("2", "switch_tab('sectors')", "Sectors", show=True),
        Binding("p", "cycle_period", "Period", show=True),
        Binding("l", "cycle_label", "Label", show=True),
        Binding("v", "toggle_color_mode", "Volume", show=True),
        Binding("escape", "back", "Back", show=True),
        Binding("slash", "focus_search", "Search", show=True),
        Binding("a", "add_to_watchlist", "Watch", show=True),
        Binding("x", "remove_from_watchlist", "Unwatch", show=False),
        Binding("r", "refresh", "Refresh", show=True),
        Binding("q", "quit", "Quit", show=True),
    ]

    period: reactive[PeriodKey] = reactive(PeriodKey.D1, init=False)
    label_mode: reactive[LabelMode] = reactive(LabelMode.PERCENT, init=False)
    color_mode: reactive[ColorMode] = reactive(ColorMode.HEAT, init=False)

    def __init__(
        self,
        market: HeatmapDataService,
        sectors: HeatmapDataService,
        index_quotes: Optional[IndexQuoteService] = None,
        news: Optional[NewsService] = None,
        search: Optional[StockSearchService] = None,
        watchlist: Optional[WatchlistService] = None,
        refresh: Optional[RefreshConfig] = None,
        clock: Optional[Clock] = None,
        scales: Optional[Mapping[PeriodKey, ColorScale]] = None,
        per_sector_limit: Optional[int] = None,
        collapse_delay: float = DEFAULT_COLLAPSE_DELAY,
        default_period: PeriodKey = PeriodKey.D1,
        env: str = "dev",
        **kwargs,
    ):
        """
        Initialize the dashboard.

        Args:
            market: Record service behind the market grid.
            sectors: Record service behind the sector grid.
            index_quotes: Index strip quotes (strip stays empty when None).
            news: Market news and drill-down company news.
            search: Symbol search and drill-down company profiles.
            watchlist: Symbols added from the search card (panel hidden when None).
            refresh: Poll intervals per data source.
            clock: Clock driving the schedulers and collapse timers.
            scales: Per-period color scales.
            per_sector_limit: Keep the first N members of each sector.
            collapse_delay: Seconds before a collapsed overlay is cleared.
            default_period: Period shown at startup.
            env: Environment name (dev, prod).
        """
        super().__init__(**kwargs)
        self.env = env
        self._market = market
        self._sectors = sectors
        self._index_quotes = index_quotes
        self._news = news
        self._search = search
        self._watchlist = watchlist
        self._last_result: Optional[SearchResult] = None
        self._refresh = refresh or RefreshConfig()
        self._clock = clock or SystemClock()
        self._scales = scales
        self._per_sector_limit = per_sector_limit
        self._default_period = default_period
        self._schedulers: List[RefreshScheduler] = []

        news_fetcher = news.company_news if news is not None else None
        profile_fetcher = search.profile if search is not None else None
        self._market_drilldown = DrillDownController(
            self._clock,
            news_fetcher=news_fetcher,
            profile_fetcher=profile_fetcher,
            sector_view=False,
            collapse_delay=collapse_delay,
        )
        self._sector_drilldown = DrillDownController(
            self._clock,
            news_fetcher=news_fetcher,
            profile_fetcher=profile_fetcher,
            sector_view=True,
            collapse_delay=collapse_delay,
        )

    @property
    def schedulers(self) -> List[RefreshScheduler]:
        return list(self._schedulers)

    @property
    def market_drilldown(self) -> DrillDownController:
        return self._market_drilldown

    @property
    def sector_drilldown(self) -> DrillDownController:
        return self._sector_drilldown

    def compose(self) -> ComposeResult:
        """Compose the dashboard layout."""
        yield HeaderWidget(env=self.env, id="header")
        yield IndexStrip(id="index-strip")
        with Horizontal(id="main-row"):
            with TabbedContent(initial="market", id="main-tabs"):
                with TabPane("Market", id="market"):
                    yield HeatmapGrid(
                        "Market Heat Map",
                        scales=self._scales,
                        id="market-grid",
                    )
                with TabPane("Sectors", id="sectors"):
                    yield HeatmapGrid(
                        "Sector Heat Map",
                        sector_view=True,
                        scales=self._scales,
                        per_sector_limit=self._per_sector_limit,
                        id="sector-grid",
                    )
            with Vertical(id="side-column"):
                yield SearchBox(id="search-box")
                if self._watchlist is not None:
                    yield WatchlistPanel(id="watchlist-panel")
                yield NewsPanel(id="news-panel")
        yield StockDetail(id="stock-detail")
        yield Footer()

    async def on_mount(self) -> None:
        """Wire services to widgets and start polling."""
        self._market.subscribe(self._on_market_data)
        self._sectors.subscribe(self._on_sector_data)
        self._market_drilldown.subscribe(self._on_drilldown_changed)
        self._sector_drilldown.subscribe(self._on_drilldown_changed)
        if self._watchlist is not None:
            self._watchlist.subscribe(self._on_watchlist_changed)

        self.period = self._default_period

        self._schedulers = self._build_schedulers()
        for scheduler in self._schedulers:
            await scheduler.start()
        logger.info(f"Dashboard started with {len(self._schedulers)} schedulers")

    async def on_unmount(self) -> None:
        """Stop polling and drop in-flight enrichment."""
        for scheduler in self._schedulers:
            await scheduler.stop()
        self._market_drilldown.close()
        self._sector_drilldown.close()
        logger.info("Dashboard stopped")

    def _build_schedulers(self) -> List[RefreshScheduler]:
        refresh = self._refresh
        schedulers = [
            RefreshScheduler("market_heatmap", refresh.market_heatmap_sec, self._market.refresh, self._clock),
            RefreshScheduler("sector_heatmap", refresh.sector_heatmap_sec, self._sectors.refresh, self._clock),
        ]
        if self._index_quotes is not None:
            schedulers.append(
                RefreshScheduler("index_quotes", refresh.index_quotes_sec, self._refresh_indices, self._clock)
            )
        if self._news is not None:
            schedulers.append(
                RefreshScheduler("market_news", refresh.news_sec, self._refresh_news, self._clock)
            )
        if self._watchlist is not None:
            schedulers.append(
                RefreshScheduler("watchlist", refresh.watchlist_sec, self._watchlist.refresh, self._clock)
            )
        return schedulers

    # -------------------------------------------------------------------------
    # Data updates
    # -------------------------------------------------------------------------

    def _on_market_data(self, service: HeatmapDataService) -> None:
        self._update_grid("#market-grid", service)
        try:
            self.query_one("#header", HeaderWidget).last_updated = service.last_updated
        except Exception:
            pass  # Widget not mounted yet

    def _on_sector_data(self, service: HeatmapDataService) -> None:
        self._update_grid("#sector-grid", service)

    def _update_grid(self, selector: str, service: HeatmapDataService) -> None:
        try:
            grid = self.query_one(selector, HeatmapGrid)
        except Exception:
            return  # Widget not mounted yet
        grid.records = service.records
        grid.status_text = self._status_line(service)

    @staticmethod
    def _status_line(service: HeatmapDataService) -> str:
        if service.status is LoadStatus.LOADING:
            return "[dim]Loading...[/]"
        if service.status is LoadStatus.EMPTY:
            return "[yellow]No data available[/]"
        text = f"[dim]{len(service.records)} stocks[/]"
        if service.last_error:
            text += "  [yellow]refresh failed, showing last update[/]"
        return text

    async def _refresh_indices(self) -> None:
        assert self._index_quotes is not None
        if await self._index_quotes.refresh():
            try:
                self.query_one("#index-strip", IndexStrip).set_quotes(self._index_quotes.quotes)
            except Exception:
                pass  # Widget not mounted yet

    async def _refresh_news(self) -> None:
        assert self._news is not None
        updated = await self._news.refresh_market_news()
        try:
            panel = self.query_one("#news-panel", NewsPanel)
        except Exception:
            return  # Widget not mounted yet
        if updated:
            panel.set_items(self._news.market_news)
        if self._news.last_error:
            panel.set_status("[yellow]News refresh failed, showing last update[/]")
        else:
            panel.set_status("")

    def _on_watchlist_changed(self, watchlist: WatchlistService) -> None:
        try:
            self.query_one("#watchlist-panel", WatchlistPanel).set_entries(watchlist.entries)
        except Exception:
            pass  # Widget not mounted yet
        if self._last_result is not None:
            self._show_search_result(self._last_result)

    # -------------------------------------------------------------------------
    # Drill-down
    # -------------------------------------------------------------------------

    def _active_controller(self) -> DrillDownController:
        try:
            active = self.query_one("#main-tabs", TabbedContent).active
        except Exception:
            active = "market"
        return self._sector_drilldown if active == "sectors" else self._market_drilldown

    def _controller_for(self, grid: HeatmapGrid) -> DrillDownController:
        return self._sector_drilldown if grid.sector_view else self._market_drilldown

    def on_heatmap_grid_stock_selected(self, event: HeatmapGrid.StockSelected) -> None:
        self._controller_for(event.grid).open_stock(event.record, event.tile_rect, event.container_rect)

    def on_heatmap_grid_sector_selected(self, event: HeatmapGrid.SectorSelected) -> None:
        self._sector_drilldown.open_sector(event.sector, event.tile_rect, event.container_rect)

    def on_stock_detail_backdrop_clicked(self, event: StockDetail.BackdropClicked) -> None:
        self._active_controller().backdrop_click(event.point, event.content_rect)

    def on_tabbed_content_tab_activated(self, event: TabbedContent.TabActivated) -> None:
        self._sync_detail()

    def _on_drilldown_changed(self, controller: DrillDownController) -> None:
        if controller is self._sector_drilldown:
            try:
                self.query_one("#sector-grid", HeatmapGrid).expanded_sector = controller.selected_sector
            except Exception:
                pass  # Widget not mounted yet
        if controller is self._active_controller():
            self._sync_detail()

    def _sync_detail(self) -> None:
        """Show the active controller's stock overlay, or hide it."""
        controller = self._active_controller()
        try:
            detail = self.query_one("#stock-detail", StockDetail)
        except Exception:
            return  # Widget not mounted yet
        state = controller.state
        if isinstance(state, StockExpanded):
            detail.show(state, collapsing=controller.collapsing)
        else:
            detail.hide()

    # -------------------------------------------------------------------------
    # Display settings
    # -------------------------------------------------------------------------

    def watch_period(self, period: PeriodKey) -> None:
        for grid in self.query(HeatmapGrid):
            grid.period = period
        try:
            self.query_one("#header", HeaderWidget).period = period
        except Exception:
            pass  # Widget not mounted yet

    def watch_label_mode(self, label_mode: LabelMode) -> None:
        for grid in self.query(HeatmapGrid):
            grid.label_mode = label_mode
        try:
            self.query_one("#header", HeaderWidget).label_mode = label_mode
        except Exception:
            pass  # Widget not mounted yet

    def watch_color_mode(self, color_mode: ColorMode) -> None:
        for grid in self.query(HeatmapGrid):
            grid.color_mode = color_mode
        try:
            self.query_one("#header", HeaderWidget).color_mode = color_mode
        except Exception:
            pass  # Widget not mounted yet

    # -------------------------------------------------------------------------
    # Actions
    # -------------------------------------------------------------------------

    def action_switch_tab(self, tab_id: str) -> None:
        """Switch to a specific tab."""
        self.query_one("#main-tabs", TabbedContent).active = tab_id
        self._sync_detail()

    def action_cycle_period(self) -> None:
        idx = PERIOD_KEYS.index(self.period)
        self.period = PERIOD_KEYS[(idx + 1) % len(PERIOD_KEYS)]

    def action_cycle_label(self) -> None:
        idx = LABEL_MODES.index(self.label_mode)
        self.label_mode = LABEL_MODES[(idx + 1) % len(LABEL_MODES)]

    def action_toggle_color_mode(self) -> None:
        if self.color_mode is ColorMode.HEAT:
            self.color_mode = ColorMode.RELATIVE_VOLUME
        else:
            self.color_mode = ColorMode.HEAT

    def action_back(self) -> None:
        self._active_controller().back()

    def action_focus_search(self) -> None:
        self.query_one("#search-box", SearchBox).focus_input()

    async def action_refresh(self) -> None:
        """Run every scheduler's fetch once, outside the regular interval."""
        logger.info("Manual refresh requested")
        await asyncio.gather(*(s.run_once() for s in self._schedulers))

    # -------------------------------------------------------------------------
    # Search
    # -------------------------------------------------------------------------

    def on_search_box_submitted(self, event: SearchBox.Submitted) -> None:
        box = self.query_one("#search-box", SearchBox)
        if self._search is None:
            box.show_error("Search unavailable: no quote provider configured")
            return
        self.run_worker(self.run_search(event.value), exclusive=True, group="search")

    async def run_search(self, query: str) -> None:
        """Look up a symbol and fill the search card."""
        assert self._search is not None
        box = self.query_one("#search-box", SearchBox)
        self._last_result = None
        try:
            result = await self._search.search(query)
        except SymbolNotFoundError as e:
            box.show_error(str(e))
            return
        except ValueError as e:
            box.show_error(str(e))
            return
        except Exception as e:
            logger.warning(f"Search for {query!r} failed: {e}")
            box.show_error("Quote service unavailable, try again later")
            return
        self._last_result = result
        self._show_search_result(result)
        if self._watchlist is not None:
            # Hand keys back to the app so "a" adds instead of typing
            self.set_focus(None)

    def _show_search_result(self, result: SearchResult) -> None:
        try:
            box = self.query_one("#search-box", SearchBox)
        except Exception:
            return  # Widget not mounted yet
        box.show_result(result, watch_hint=self._watch_hint(result))

    def _watch_hint(self, result: SearchResult) -> str:
        if self._watchlist is None:
            return ""
        if result.quote.symbol in self._watchlist:
            return "In watchlist"
        return "a: add to watchlist"

    # -------------------------------------------------------------------------
    # Watchlist
    # -------------------------------------------------------------------------

    def action_add_to_watchlist(self) -> None:
        if self._watchlist is None or self._last_result is None:
            return
        if self._watchlist.add(self._last_result):
            self.notify(f"Watching {self._last_result.quote.symbol}", severity="information", timeout=2.0)

    def action_remove_from_watchlist(self) -> None:
        if self._watchlist is None:
            return
        try:
            symbol = self.query_one("#watchlist-panel", WatchlistPanel).selected_symbol
        except Exception:
            return  # Widget not mounted yet
        if symbol is not None:
            self._watchlist.remove(symbol)
