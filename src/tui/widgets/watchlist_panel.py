"""
Watchlist panel.

Symbols added from the search card, one DataTable row each: price, day
change, an inline trend line and the latest company headline.

Layout:
- Title with symbol count
- Symbol DataTable with cursor navigation
- Keyboard hints / refresh status
"""

from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from rich.markup import escape
from textual.app import ComposeResult
from textual.reactive import reactive
from textual.widget import Widget
from textual.widgets import DataTable, Static

from ...services.watchlist_service import WatchlistEntry
from ..formatters import format_price, markup_change, sparkline_text, truncate

EMPTY_HINT = "Search a symbol and press a to add"
HINTS = "x: remove"


class WatchlistPanel(Widget):
    """Watched symbols with quotes, trend and headline."""

    entries: reactive[Tuple[WatchlistEntry, ...]] = reactive(tuple, init=False)
    selected_symbol: reactive[Optional[str]] = reactive(None, init=False)

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._row_keys: List[str] = []

    def compose(self) -> ComposeResult:
        yield Static("Watchlist", id="watchlist-title", classes="panel-title")
        yield DataTable(id="watchlist-table", cursor_type="row")
        yield Static(EMPTY_HINT, id="watchlist-hints", classes="panel-hints")

    def on_mount(self) -> None:
        table = self.query_one("#watchlist-table", DataTable)
        table.add_column("Symbol", width=7, key="symbol")
        table.add_column("Price", width=10, key="price")
        table.add_column("Chg", width=9, key="change")
        table.add_column("Trend", width=12, key="trend")
        table.add_column("News", key="news")
        self._render_entries(self.entries)

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def set_entries(self, entries: Sequence[WatchlistEntry]) -> None:
        self.entries = tuple(entries)

    def watch_entries(self, entries: Tuple[WatchlistEntry, ...]) -> None:
        self._render_entries(entries)

    # -------------------------------------------------------------------------
    # Event handlers
    # -------------------------------------------------------------------------

    def on_data_table_row_selected(self, event: DataTable.RowSelected) -> None:
        self._handle_row_event(event.row_key)

    def on_data_table_row_highlighted(self, event: DataTable.RowHighlighted) -> None:
        self._handle_row_event(event.row_key)

    def _handle_row_event(self, row_key) -> None:
        if row_key is None:
            return
        key_str = str(row_key.value) if hasattr(row_key, "value") else str(row_key)
        if key_str not in self._row_keys:
            return
        self.selected_symbol = key_str

    # -------------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------------

    def _render_entries(self, entries: Tuple[WatchlistEntry, ...]) -> None:
        try:
            title = self.query_one("#watchlist-title", Static)
            table = self.query_one("#watchlist-table", DataTable)
            hints = self.query_one("#watchlist-hints", Static)
        except Exception:
            return  # Widget not mounted yet

        title.update(f"Watchlist ({len(entries)})" if entries else "Watchlist")

        table.clear()
        self._row_keys = [entry.symbol for entry in entries]
        for entry in entries:
            table.add_row(*self._format_row(entry), key=entry.symbol)

        if self.selected_symbol not in self._row_keys:
            self.selected_symbol = self._row_keys[0] if self._row_keys else None
        if self.selected_symbol is not None:
            table.move_cursor(row=self._row_keys.index(self.selected_symbol))

        hints.update(self._hints_line(entries))

    @staticmethod
    def _format_row(entry: WatchlistEntry) -> Tuple[str, str, str, str, str]:
        quote = entry.quote
        symbol = f"[b]{escape(entry.symbol)}[/b]"
        if entry.error:
            symbol = f"[yellow]{escape(entry.symbol)}[/]"
        headline = escape(truncate(entry.news[0].headline, 60)) if entry.news else "[dim]-[/]"
        trend_color = "green" if quote.change_percent >= 0 else "red"
        trend = sparkline_text(entry.sparkline)
        return (
            symbol,
            format_price(quote.price),
            markup_change(quote.change_percent),
            f"[{trend_color}]{trend}[/]" if trend else "",
            headline,
        )

    @staticmethod
    def _hints_line(entries: Tuple[WatchlistEntry, ...]) -> str:
        if not entries:
            return EMPTY_HINT
        failed = [entry.symbol for entry in entries if entry.error]
        if failed:
            names = ", ".join(escape(symbol) for symbol in failed)
            return f"[yellow]Refresh failed for {names}, showing last quote[/]  {HINTS}"
        return HINTS
