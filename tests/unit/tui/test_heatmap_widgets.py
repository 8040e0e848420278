"""Unit tests for the heat board widgets."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone

import pytest
from rich.text import Text
from textual.app import App, ComposeResult
from textual.color import Color
from textual.widgets import DataTable, Sparkline

from src.domain.heatmap import ColorMode, Rect, SectorAggregate, StockExpanded, color_for
from src.models.quote import Quote
from src.models.stock_record import LabelMode, PeriodKey
from src.services.watchlist_service import WatchlistEntry
from src.tui.widgets import (
    HeaderWidget,
    HeatmapGrid,
    HeatTile,
    IndexStrip,
    NewsPanel,
    StockDetail,
    WatchlistPanel,
)
from src.tui.widgets.watchlist_panel import EMPTY_HINT


class GridTestApp(App):
    """Test app for HeatmapGrid."""

    def __init__(self, sector_view: bool = False):
        super().__init__()
        self._sector_view = sector_view
        self.stock_events = []
        self.sector_events = []

    def compose(self) -> ComposeResult:
        yield HeatmapGrid("Test Grid", sector_view=self._sector_view, id="test-grid")

    def on_heatmap_grid_stock_selected(self, event: HeatmapGrid.StockSelected) -> None:
        self.stock_events.append(event)

    def on_heatmap_grid_sector_selected(self, event: HeatmapGrid.SectorSelected) -> None:
        self.sector_events.append(event)


class WidgetTestApp(App):
    """Test app for the side widgets and the overlay."""

    def compose(self) -> ComposeResult:
        yield HeaderWidget(env="prod", id="test-header")
        yield IndexStrip(id="test-strip")
        yield NewsPanel(id="test-news")
        yield StockDetail(id="test-detail")


class WatchlistTestApp(App):
    """Test app for WatchlistPanel."""

    def compose(self) -> ComposeResult:
        yield WatchlistPanel(id="test-watchlist")


def _click(tile: HeatTile) -> None:
    tile.post_message(HeatTile.Clicked(tile))


class TestHeatmapGrid:
    """Tests for HeatmapGrid."""

    @pytest.mark.asyncio
    async def test_empty_on_mount(self) -> None:
        async with GridTestApp().run_test() as pilot:
            grid = pilot.app.query_one("#test-grid", HeatmapGrid)

            assert grid.tile_items == []
            for i in range(3):
                assert grid.query_one(f"#tile-{i}").display is False

    @pytest.mark.asyncio
    async def test_records_fill_pool_in_order(self, sample_records) -> None:
        async with GridTestApp().run_test() as pilot:
            grid = pilot.app.query_one("#test-grid", HeatmapGrid)
            grid.records = tuple(sample_records)
            await pilot.pause()

            assert [r.symbol for r in grid.tile_items] == ["AAPL", "XOM", "MSFT", "CVX", "JPM"]
            assert grid.query_one("#tile-4").display is True
            assert grid.query_one("#tile-5").display is False

    @pytest.mark.asyncio
    async def test_tile_colors(self, sample_records) -> None:
        async with GridTestApp().run_test() as pilot:
            grid = pilot.app.query_one("#test-grid", HeatmapGrid)
            grid.records = tuple(sample_records)
            await pilot.pause()

            expected = color_for(1.33, PeriodKey.D1).background.base.rgb
            assert grid.query_one("#tile-0").styles.background == Color(*expected)

    @pytest.mark.asyncio
    async def test_shrinking_batch_hides_tiles(self, sample_records) -> None:
        async with GridTestApp().run_test() as pilot:
            grid = pilot.app.query_one("#test-grid", HeatmapGrid)
            grid.records = tuple(sample_records)
            await pilot.pause()

            grid.records = tuple(sample_records[:1])
            await pilot.pause()

            assert grid.query_one("#tile-0").display is True
            assert grid.query_one("#tile-1").display is False

    @pytest.mark.asyncio
    async def test_tile_content_follows_label_mode(self, sample_records) -> None:
        async with GridTestApp().run_test() as pilot:
            grid = pilot.app.query_one("#test-grid", HeatmapGrid)
            aapl = sample_records[0]

            text, _ = grid._tile_content(aapl)
            assert text == "[b]AAPL[/b]\n+1.33%"

            grid.label_mode = LabelMode.PRICE
            text, _ = grid._tile_content(aapl)
            assert text.endswith("$178.52")

            grid.label_mode = LabelMode.MARKET_CAP
            text, _ = grid._tile_content(aapl)
            assert text.endswith("2.800T")

    @pytest.mark.asyncio
    async def test_period_changes_tile_value(self, make_record) -> None:
        async with GridTestApp().run_test() as pilot:
            grid = pilot.app.query_one("#test-grid", HeatmapGrid)
            record = make_record("AAPL", change=0.1, periods={PeriodKey.Y1: 42.0})

            grid.period = PeriodKey.Y1
            text, color = grid._tile_content(record)

            assert "+42.00%" in text
            assert not color.is_neutral

    @pytest.mark.asyncio
    async def test_relative_volume_mode(self, make_record) -> None:
        async with GridTestApp().run_test() as pilot:
            grid = pilot.app.query_one("#test-grid", HeatmapGrid)
            record = make_record("AAPL", change=4.0, relative_volume=1.0)

            grid.color_mode = ColorMode.RELATIVE_VOLUME
            _, color = grid._tile_content(record)

            assert color.is_neutral

    @pytest.mark.asyncio
    async def test_click_posts_stock_selected(self, sample_records) -> None:
        async with GridTestApp().run_test() as pilot:
            app = pilot.app
            grid = app.query_one("#test-grid", HeatmapGrid)
            grid.records = tuple(sample_records)
            await pilot.pause()

            _click(grid.query_one("#tile-1", HeatTile))
            await pilot.pause()

            assert len(app.stock_events) == 1
            event = app.stock_events[0]
            assert event.record.symbol == "XOM"
            assert event.grid is grid
            assert isinstance(event.tile_rect, Rect)

    @pytest.mark.asyncio
    async def test_click_on_unused_tile_ignored(self, sample_records) -> None:
        async with GridTestApp().run_test() as pilot:
            app = pilot.app
            grid = app.query_one("#test-grid", HeatmapGrid)
            grid.records = tuple(sample_records[:1])
            await pilot.pause()

            _click(grid.query_one("#tile-3", HeatTile))
            await pilot.pause()

            assert app.stock_events == []


class TestSectorGrid:
    """Tests for HeatmapGrid in sector view."""

    @pytest.mark.asyncio
    async def test_one_tile_per_sector(self, sample_records) -> None:
        async with GridTestApp(sector_view=True).run_test() as pilot:
            grid = pilot.app.query_one("#test-grid", HeatmapGrid)
            grid.records = tuple(sample_records)
            await pilot.pause()

            items = grid.tile_items
            assert all(isinstance(i, SectorAggregate) for i in items)
            assert [i.sector_name for i in items] == ["Technology", "Energy", "Financial"]
            assert grid.has_class("-sectors")

    @pytest.mark.asyncio
    async def test_expanded_sector_shows_members(self, sample_records) -> None:
        async with GridTestApp(sector_view=True).run_test() as pilot:
            grid = pilot.app.query_one("#test-grid", HeatmapGrid)
            grid.records = tuple(sample_records)
            grid.expanded_sector = "Energy"
            await pilot.pause()

            assert [r.symbol for r in grid.tile_items] == ["XOM", "CVX"]
            assert grid.has_class("-expanded")

            grid.expanded_sector = None
            await pilot.pause()

            assert len(grid.tile_items) == 3
            assert not grid.has_class("-expanded")

    @pytest.mark.asyncio
    async def test_sector_click(self, sample_records) -> None:
        async with GridTestApp(sector_view=True).run_test() as pilot:
            app = pilot.app
            grid = app.query_one("#test-grid", HeatmapGrid)
            grid.records = tuple(sample_records)
            await pilot.pause()

            _click(grid.query_one("#tile-2", HeatTile))
            await pilot.pause()

            assert [e.sector for e in app.sector_events] == ["Financial"]
            assert app.stock_events == []

    @pytest.mark.asyncio
    async def test_sector_tile_content(self, sample_records) -> None:
        async with GridTestApp(sector_view=True).run_test() as pilot:
            grid = pilot.app.query_one("#test-grid", HeatmapGrid)
            grid.records = tuple(sample_records)
            await pilot.pause()

            text, _ = grid._tile_content(grid.tile_items[1])

            assert text.startswith("[b]Energy[/b]")
            assert "-1.65%" in text


class TestIndexStrip:
    @pytest.mark.asyncio
    async def test_placeholder_until_quotes(self, sample_quote) -> None:
        async with WidgetTestApp().run_test() as pilot:
            strip = pilot.app.query_one("#test-strip", IndexStrip)

            assert strip.query_one("#index-placeholder").display is True
            assert strip.query_one("#index-0").display is False

            strip.set_quotes([
                replace(sample_quote, symbol="^DJI", display_name="Dow Jones"),
                replace(sample_quote, symbol="^GSPC", display_name="S&P 500", change_percent=-0.4),
            ])
            await pilot.pause()

            assert strip.query_one("#index-placeholder").display is False
            assert strip.query_one("#index-1").display is True
            assert strip.query_one("#index-2").display is False

    def test_format_quote(self, sample_quote) -> None:
        text = IndexStrip._format_quote(replace(sample_quote, display_name="Nasdaq"))

        assert text.startswith("[b]Nasdaq[/b] $178.52")
        assert "[green]▲ 1.33%[/]" in text


class TestNewsPanel:
    @pytest.mark.asyncio
    async def test_rows(self, sample_news) -> None:
        async with WidgetTestApp().run_test() as pilot:
            panel = pilot.app.query_one("#test-news", NewsPanel)
            table = panel.query_one("#news-table", DataTable)
            assert table.row_count == 0

            panel.set_items(sample_news)
            await pilot.pause()
            assert table.row_count == 2

            panel.set_items(sample_news[:1])
            await pilot.pause()
            assert table.row_count == 1


class TestWatchlistPanel:
    @staticmethod
    def _entry(symbol: str, price: float = 100.0, change: float = 1.0, **kwargs) -> WatchlistEntry:
        quote = Quote(
            symbol=symbol,
            price=price,
            change_absolute=price * change / 100,
            change_percent=change,
            open=price,
            high=price,
            low=price,
            previous_close=price,
        )
        kwargs.setdefault("sparkline", (price - 2, price - 1, price))
        return WatchlistEntry(quote=quote, **kwargs)

    @pytest.mark.asyncio
    async def test_empty_state(self) -> None:
        async with WatchlistTestApp().run_test() as pilot:
            panel = pilot.app.query_one("#test-watchlist", WatchlistPanel)

            assert panel.query_one("#watchlist-table", DataTable).row_count == 0
            assert panel.selected_symbol is None
            assert WatchlistPanel._hints_line(()) == EMPTY_HINT

    @pytest.mark.asyncio
    async def test_rows_and_selection(self) -> None:
        async with WatchlistTestApp().run_test() as pilot:
            panel = pilot.app.query_one("#test-watchlist", WatchlistPanel)
            table = panel.query_one("#watchlist-table", DataTable)

            panel.set_entries([self._entry("AAPL"), self._entry("MSFT")])
            await pilot.pause()
            assert table.row_count == 2
            assert panel.selected_symbol == "AAPL"

            panel.set_entries([self._entry("MSFT")])
            await pilot.pause()
            assert table.row_count == 1
            assert panel.selected_symbol == "MSFT"

    def test_row_text(self, sample_news) -> None:
        news = (replace(sample_news[0], headline="Apple [AAPL] rallies"),)
        entry = self._entry("AAPL", 178.52, -1.2, sparkline=(0.0, 1.0, 7.0), news=news)
        cells = WatchlistPanel._format_row(entry)
        symbol, price, change, trend, headline = (Text.from_markup(c).plain for c in cells)

        assert symbol == "AAPL"
        assert price == "$178.52"
        assert change == "▼ 1.20%"
        assert trend == "▁▂█"
        assert headline == "Apple [AAPL] rallies"

    def test_failed_symbols_in_hints(self) -> None:
        entries = (self._entry("AAPL"), self._entry("MSFT", error="HTTP 429"))

        hints = Text.from_markup(WatchlistPanel._hints_line(entries)).plain

        assert "Refresh failed for MSFT" in hints
        assert "AAPL" not in hints
        assert "x: remove" in hints


class TestHeaderWidget:
    @pytest.mark.asyncio
    async def test_header_text(self) -> None:
        async with WidgetTestApp().run_test() as pilot:
            header = pilot.app.query_one("#test-header", HeaderWidget)

            text = header._build_header_text()
            assert "[bold red]PROD[/]" in text
            assert "Waiting for feed" in text
            assert "\\[p]Period" in text

            header.period = PeriodKey.YTD
            header.color_mode = ColorMode.RELATIVE_VOLUME
            header.last_updated = datetime(2024, 1, 2, 14, 30, tzinfo=timezone.utc)
            text = header._build_header_text()

            assert "Period: [b]YTD[/b]" in text
            assert "rel. volume" in text
            assert "Updated" in text


class TestStockDetail:
    """Tests for the StockDetail overlay."""

    @pytest.mark.asyncio
    async def test_hidden_until_shown(self, make_record) -> None:
        async with WidgetTestApp().run_test() as pilot:
            detail = pilot.app.query_one("#test-detail", StockDetail)
            assert detail.display is False

            detail.show(StockExpanded(stock=make_record("AAPL", change=1.33), origin=Rect(0, 0, 4, 2)))
            await pilot.pause()

            assert detail.display is True
            assert len(detail.query_one("#detail-sparkline", Sparkline).data) == 78

            detail.hide()
            await pilot.pause()
            assert detail.display is False

    @pytest.mark.asyncio
    async def test_collapsing_class(self, make_record) -> None:
        async with WidgetTestApp().run_test() as pilot:
            detail = pilot.app.query_one("#test-detail", StockDetail)
            state = StockExpanded(stock=make_record(), origin=Rect(0, 0, 4, 2))

            detail.show(state, collapsing=True)
            await pilot.pause()

            assert detail.has_class("-collapsing")
            assert detail.display is True

    @pytest.mark.asyncio
    async def test_sparkline_kept_on_enrichment_update(self, make_record, sample_news) -> None:
        async with WidgetTestApp().run_test() as pilot:
            detail = pilot.app.query_one("#test-detail", StockDetail)
            state = StockExpanded(stock=make_record(), origin=Rect(0, 0, 4, 2), news_loading=True)
            detail.show(state)
            await pilot.pause()
            before = list(detail.query_one("#detail-sparkline", Sparkline).data)

            detail.show(replace(state, news_items=tuple(sample_news), news_loading=False))
            await pilot.pause()

            assert list(detail.query_one("#detail-sparkline", Sparkline).data) == before

    def test_news_lines(self, make_record, sample_news) -> None:
        detail = StockDetail()
        state = StockExpanded(stock=make_record(), origin=Rect(0, 0, 1, 1))

        assert "Loading news" in detail._format_news(replace(state, news_loading=True))
        assert "No recent news" in detail._format_news(state)

        text = detail._format_news(replace(state, news_items=tuple(sample_news)))
        assert "Reuters" in text
        assert "Apple unveils new product line" in text

    def test_profile_lines(self, make_record, sample_profile) -> None:
        detail = StockDetail()
        state = StockExpanded(stock=make_record(industry="Consumer Electronics"), origin=Rect(0, 0, 1, 1))

        assert "Loading profile" in detail._format_profile(replace(state, profile_loading=True))
        assert "Consumer Electronics" in detail._format_profile(state)

        text = detail._format_profile(replace(state, extended_profile=sample_profile))
        assert "NASDAQ" in text
        assert "https://www.apple.com/" in text

    def test_title_uses_profile_name_and_sector(self, make_record, sample_profile) -> None:
        detail = StockDetail()
        state = StockExpanded(
            stock=make_record(company="Apple"),
            origin=Rect(0, 0, 1, 1),
            sector="Technology",
            extended_profile=sample_profile,
        )

        title = detail._format_title(state)

        assert title.startswith("[b]AAPL[/b]  Apple Inc")
        assert "(Technology)" in title

    def test_feed_and_profile_text_is_escaped(self, make_record, sample_profile) -> None:
        detail = StockDetail()
        stock = make_record(industry="Chips [Semis]")
        state = StockExpanded(stock=stock, origin=Rect(0, 0, 1, 1), sector="Tech [US]")
        profile = replace(sample_profile, sector="", exchange="NYSE [b]", country="[US]")

        industry = Text.from_markup(detail._format_profile(state)).plain
        enriched = Text.from_markup(detail._format_profile(replace(state, extended_profile=profile))).plain
        title = Text.from_markup(detail._format_title(state)).plain

        assert "Chips [Semis]" in industry
        assert "Chips [Semis]" in enriched
        assert "NYSE [b]" in enriched
        assert "[US]" in enriched
        assert "(Tech [US])" in title
