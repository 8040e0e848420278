"""
Heat-map grid widget with tile pooling.

Two flavors share the same widget:
- Market grid: one tile per stock, in feed order.
- Sector grid: one tile per sector (ranked by total market cap); selecting
  a sector swaps the tiles for that sector's members until it collapses.

Tiles are pre-allocated and restyled in place on every refresh, the same
way the other pooled widgets avoid DOM churn.
"""

from __future__ import annotations

from typing import List, Mapping, Optional, Tuple, Union

from rich.markup import escape
from textual import events
from textual.app import ComposeResult
from textual.color import Color
from textual.containers import Grid
from textual.message import Message
from textual.reactive import reactive
from textual.widget import Widget
from textual.widgets import Static

from ...domain.heatmap import (
    ColorMode,
    ColorScale,
    Rect,
    SectorAggregate,
    TileColor,
    aggregate,
    color_for,
)
from ...models.stock_record import LabelMode, PeriodKey, StockRecord
from ..formatters import format_market_cap, format_percent, format_price, truncate

TileItem = Union[StockRecord, SectorAggregate]


def region_rect(widget: Widget) -> Rect:
    """Screen region of a widget as a drill-down Rect."""
    region = widget.region
    return Rect(region.x, region.y, region.width, region.height)


class HeatTile(Static):
    """One pooled tile. Clicks are reported with the tile's pool index."""

    class Clicked(Message):
        def __init__(self, tile: "HeatTile") -> None:
            self.tile = tile
            super().__init__()

    def __init__(self, index: int, **kwargs) -> None:
        super().__init__("", **kwargs)
        self.index = index

    def on_click(self, event: events.Click) -> None:
        event.stop()
        self.post_message(self.Clicked(self))


class HeatmapGrid(Widget):
    """
    Pooled tile grid for the market or sector heat map.

    Emits:
        StockSelected: A stock tile was clicked
        SectorSelected: A sector tile was clicked (sector grid only)
    """

    class StockSelected(Message):
        """Posted when a stock tile is clicked."""

        def __init__(self, grid: "HeatmapGrid", record: StockRecord, tile_rect: Rect, container_rect: Rect) -> None:
            self.grid = grid
            self.record = record
            self.tile_rect = tile_rect
            self.container_rect = container_rect
            super().__init__()

    class SectorSelected(Message):
        """Posted when a sector tile is clicked."""

        def __init__(self, grid: "HeatmapGrid", sector: str, tile_rect: Rect, container_rect: Rect) -> None:
            self.grid = grid
            self.sector = sector
            self.tile_rect = tile_rect
            self.container_rect = container_rect
            super().__init__()

    # Market rows are capped well below this by the feed row limit
    MAX_TILES = 120

    # Reactive state
    records: reactive[Tuple[StockRecord, ...]] = reactive(tuple, init=False)
    period: reactive[PeriodKey] = reactive(PeriodKey.D1, init=False)
    label_mode: reactive[LabelMode] = reactive(LabelMode.PERCENT, init=False)
    color_mode: reactive[ColorMode] = reactive(ColorMode.HEAT, init=False)
    expanded_sector: reactive[Optional[str]] = reactive(None, init=False)
    status_text: reactive[str] = reactive("Loading...", init=False)

    def __init__(
        self,
        title: str,
        sector_view: bool = False,
        scales: Optional[Mapping[PeriodKey, ColorScale]] = None,
        per_sector_limit: Optional[int] = None,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self._title = title
        self._sector_view = sector_view
        self._scales = scales
        self._per_sector_limit = per_sector_limit
        self._tile_items: List[TileItem] = []
        if sector_view:
            self.add_class("-sectors")

    @property
    def sector_view(self) -> bool:
        return self._sector_view

    @property
    def tile_items(self) -> List[TileItem]:
        """What each visible tile currently stands for, in pool order."""
        return list(self._tile_items)

    def compose(self) -> ComposeResult:
        """Pre-allocate the tile pool."""
        yield Static(self._title, id="grid-title", classes="panel-title")
        yield Static("", id="grid-status", classes="grid-status")
        with Grid(id="grid-tiles"):
            for i in range(self.MAX_TILES):
                yield HeatTile(i, id=f"tile-{i}", classes="heat-tile")

    def on_mount(self) -> None:
        self._render_tiles()
        self._render_status()

    # -------------------------------------------------------------------------
    # Watchers
    # -------------------------------------------------------------------------

    def watch_records(self, records: Tuple[StockRecord, ...]) -> None:
        self._render_tiles()

    def watch_period(self, period: PeriodKey) -> None:
        self._render_tiles()

    def watch_label_mode(self, label_mode: LabelMode) -> None:
        self._render_tiles()

    def watch_color_mode(self, color_mode: ColorMode) -> None:
        self._render_tiles()

    def watch_expanded_sector(self, sector: Optional[str]) -> None:
        self.set_class(sector is not None, "-expanded")
        self._render_tiles()
        self._render_status()

    def watch_status_text(self, text: str) -> None:
        self._render_status()

    # -------------------------------------------------------------------------
    # Click handling
    # -------------------------------------------------------------------------

    def on_heat_tile_clicked(self, event: HeatTile.Clicked) -> None:
        event.stop()
        if event.tile.index >= len(self._tile_items):
            return
        item = self._tile_items[event.tile.index]
        tile_rect = region_rect(event.tile)
        container_rect = region_rect(self)
        if isinstance(item, SectorAggregate):
            self.post_message(self.SectorSelected(self, item.sector_name, tile_rect, container_rect))
        else:
            self.post_message(self.StockSelected(self, item, tile_rect, container_rect))

    # -------------------------------------------------------------------------
    # Rendering
    # -------------------------------------------------------------------------

    def _visible_items(self) -> List[TileItem]:
        if not self._sector_view:
            return list(self.records)

        result = aggregate(self.records, per_group_limit=self._per_sector_limit)
        if self.expanded_sector is not None:
            group = result.group(self.expanded_sector)
            return list(group.members) if group else []
        return list(result.groups)

    def _render_tiles(self) -> None:
        """Restyle pooled tiles instead of rebuilding the grid."""
        self._tile_items = self._visible_items()[: self.MAX_TILES]
        for i in range(self.MAX_TILES):
            try:
                tile = self.query_one(f"#tile-{i}", HeatTile)
            except Exception:
                return  # Widget not mounted yet
            if i < len(self._tile_items):
                text, color = self._tile_content(self._tile_items[i])
                tile.update(text)
                tile.styles.background = Color(*color.background.base.rgb)
                fg = color.foreground
                tile.styles.color = Color(fg.r, fg.g, fg.b, fg.alpha)
                tile.display = True
            else:
                tile.update("")
                tile.display = False

    def _tile_content(self, item: TileItem) -> Tuple[str, TileColor]:
        if isinstance(item, SectorAggregate):
            avg = item.average_change(self.period)
            color = color_for(avg, self.period, scales=self._scales)
            text = (
                f"[b]{escape(truncate(item.sector_name, 22))}[/b]\n"
                f"{format_percent(avg)}  {format_market_cap(item.total_market_cap)}"
            )
            return text, color

        change = item.change_for(self.period)
        if self.color_mode is ColorMode.RELATIVE_VOLUME:
            color = color_for(
                item.relative_volume, self.period, mode=ColorMode.RELATIVE_VOLUME, sector=item.sector
            )
        else:
            color = color_for(change, self.period, scales=self._scales)
        return f"[b]{escape(item.symbol)}[/b]\n{self._label(item, change)}", color

    def _label(self, record: StockRecord, change: float) -> str:
        if self.label_mode is LabelMode.PRICE:
            return format_price(record.price)
        if self.label_mode is LabelMode.MARKET_CAP:
            return format_market_cap(record.market_cap, prefix="")
        return format_percent(change)

    def _render_status(self) -> None:
        text = self.status_text
        if self.expanded_sector is not None:
            text = f"[b]{escape(self.expanded_sector)}[/b]  [dim]esc: back[/]"
        try:
            self.query_one("#grid-status", Static).update(text)
        except Exception:
            pass  # Widget not mounted yet

