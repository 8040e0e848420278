"""
Stock detail overlay.

Full-screen layer with a centered card for the selected stock:
- Quote line (price, change, market cap, volume)
- Period change row
- Synthetic intraday sparkline
- Company profile and recent news (each shows a loading line until
  its enrichment arrives)

Clicks anywhere on the overlay are reported with the card's region so
the drill-down controller can tell backdrop clicks from card clicks.
"""

from __future__ import annotations

from typing import Optional

from rich.markup import escape
from textual import events
from textual.app import ComposeResult
from textual.containers import Vertical
from textual.message import Message
from textual.reactive import reactive
from textual.widget import Widget
from textual.widgets import Sparkline, Static

from ...domain.heatmap import Point, Rect, StockExpanded
from ...models.stock_record import PERIOD_KEYS
from ...services.sparkline import generate_intraday_series
from ..formatters import (
    format_change,
    format_market_cap,
    format_price,
    format_relative_volume,
    format_time_ago,
    format_volume,
    markup_change,
    truncate,
)


class StockDetail(Widget):
    """
    Drill-down overlay for one stock.

    Emits:
        BackdropClicked: Any click on the overlay, with the card region
    """

    class BackdropClicked(Message):
        """Posted on every click; the controller decides whether it closes."""

        def __init__(self, point: Point, content_rect: Rect) -> None:
            self.point = point
            self.content_rect = content_rect
            super().__init__()

    MAX_NEWS = 10

    detail: reactive[Optional[StockExpanded]] = reactive(None, init=False)
    collapsing: reactive[bool] = reactive(False, init=False)

    def compose(self) -> ComposeResult:
        with Vertical(id="detail-content"):
            yield Static("", id="detail-title")
            yield Static("", id="detail-quote")
            yield Static("", id="detail-periods")
            yield Sparkline([], id="detail-sparkline")
            yield Static("", id="detail-profile")
            yield Static("", id="detail-news")
            yield Static("esc / click outside: close", classes="panel-hints")

    def on_mount(self) -> None:
        self._render_detail(self.detail)

    def show(self, detail: StockExpanded, collapsing: bool = False) -> None:
        self.detail = detail
        self.collapsing = collapsing

    def hide(self) -> None:
        self.detail = None
        self.collapsing = False

    # -------------------------------------------------------------------------
    # Watchers / events
    # -------------------------------------------------------------------------

    def watch_detail(self, old: Optional[StockExpanded], new: Optional[StockExpanded]) -> None:
        # The chart is regenerated only when the stock changes, not on enrichment updates
        if new is not None and (old is None or old.stock.symbol != new.stock.symbol):
            self._render_sparkline(new)
        self._render_detail(new)

    def watch_collapsing(self, collapsing: bool) -> None:
        self.set_class(collapsing, "-collapsing")

    def on_click(self, event: events.Click) -> None:
        if self.detail is None:
            return
        event.stop()
        try:
            region = self.query_one("#detail-content").region
        except Exception:
            return
        self.post_message(
            self.BackdropClicked(
                Point(event.screen_x, event.screen_y),
                Rect(region.x, region.y, region.width, region.height),
            )
        )

    # -------------------------------------------------------------------------
    # Rendering
    # -------------------------------------------------------------------------

    def _render_sparkline(self, detail: StockExpanded) -> None:
        stock = detail.stock
        try:
            self.query_one("#detail-sparkline", Sparkline).data = generate_intraday_series(
                stock.price, stock.change_percent
            )
        except Exception:
            pass  # Widget not mounted yet

    def _render_detail(self, detail: Optional[StockExpanded]) -> None:
        self.display = detail is not None
        if detail is None:
            return

        try:
            self.query_one("#detail-title", Static).update(self._format_title(detail))
            self.query_one("#detail-quote", Static).update(self._format_quote(detail))
            self.query_one("#detail-periods", Static).update(self._format_periods(detail))
            self.query_one("#detail-profile", Static).update(self._format_profile(detail))
            self.query_one("#detail-news", Static).update(self._format_news(detail))
        except Exception as e:
            self.log.error(f"Failed to render stock detail: {e}")

    def _format_title(self, detail: StockExpanded) -> str:
        stock = detail.stock
        name = stock.company
        if detail.extended_profile is not None:
            name = detail.extended_profile.company_name or name
        title = f"[b]{escape(stock.symbol)}[/b]"
        if name:
            title += f"  {escape(name)}"
        if detail.sector:
            title += f"  [dim]({escape(detail.sector)})[/]"
        return title

    def _format_quote(self, detail: StockExpanded) -> str:
        stock = detail.stock
        return (
            f"{format_price(stock.price)}  "
            f"{markup_change(stock.change_percent, format_change(stock.change_absolute))}  "
            f"{markup_change(stock.change_percent)}\n"
            f"[dim]Mkt Cap[/] {format_market_cap(stock.market_cap)}  "
            f"[dim]Vol[/] {format_volume(stock.volume)}  "
            f"[dim]Rel Vol[/] {format_relative_volume(stock.relative_volume)}"
        )

    def _format_periods(self, detail: StockExpanded) -> str:
        stock = detail.stock
        return "  ".join(
            f"[dim]{key.value}[/] {markup_change(stock.change_for(key))}" for key in PERIOD_KEYS
        )

    def _format_profile(self, detail: StockExpanded) -> str:
        if detail.profile_loading:
            return "[dim]Loading profile...[/]"
        profile = detail.extended_profile
        if profile is None:
            industry = detail.stock.industry
            return f"[dim]Industry[/] {escape(industry)}" if industry else ""

        lines = []
        if profile.sector or detail.stock.industry:
            lines.append(f"[dim]Industry[/] {escape(profile.sector or detail.stock.industry)}")
        if profile.exchange or profile.country:
            lines.append(
                f"[dim]Exchange[/] {escape(profile.exchange)}  [dim]Country[/] {escape(profile.country)}"
            )
        if profile.website:
            lines.append(f"[dim]Web[/] {escape(profile.website)}")
        return "\n".join(lines)

    def _format_news(self, detail: StockExpanded) -> str:
        if detail.news_loading:
            return "[dim]Loading news...[/]"
        if not detail.news_items:
            return "[dim]No recent news[/]"
        lines = ["[b]News[/b]"]
        for item in list(detail.news_items)[: self.MAX_NEWS]:
            lines.append(
                f"[dim]{format_time_ago(item.published_at):>7}[/] "
                f"[cyan]{escape(truncate(item.source, 14))}[/] {escape(truncate(item.headline, 70))}"
            )
        return "\n".join(lines)
