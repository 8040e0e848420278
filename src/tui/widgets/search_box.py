"""
Stock search box.

Input field plus a result card. The widget only collects the query; the
app runs the lookup and calls back with a result or an error line.
"""

from __future__ import annotations

from rich.markup import escape
from textual.app import ComposeResult
from textual.message import Message
from textual.widget import Widget
from textual.widgets import Input, Sparkline, Static

from ...services.stock_search_service import SearchResult
from ..formatters import format_market_cap, format_price, markup_change


class SearchBox(Widget):
    """
    Symbol search with an inline result card.

    Emits:
        Submitted: The user pressed enter on a query
    """

    class Submitted(Message):
        """Posted when a query is submitted."""

        def __init__(self, value: str) -> None:
            self.value = value
            super().__init__()

    def compose(self) -> ComposeResult:
        yield Input(placeholder="Search symbol (e.g. AAPL)", id="search-input")
        yield Static("", id="search-result")
        yield Sparkline([], id="search-sparkline")

    def on_mount(self) -> None:
        self.query_one("#search-sparkline", Sparkline).display = False

    def on_input_submitted(self, event: Input.Submitted) -> None:
        event.stop()
        query = event.value.strip()
        if query:
            self.show_pending(query.upper())
        self.post_message(self.Submitted(query))

    def focus_input(self) -> None:
        self.query_one("#search-input", Input).focus()

    # -------------------------------------------------------------------------
    # Result display
    # -------------------------------------------------------------------------

    def show_pending(self, symbol: str) -> None:
        self._set_result(f"[dim]Looking up {escape(symbol)}...[/]", show_chart=False)

    def show_error(self, message: str) -> None:
        self._set_result(f"[red]{escape(message)}[/]", show_chart=False)

    def show_result(self, result: SearchResult, watch_hint: str = "") -> None:
        quote = result.quote
        text = (
            f"[b]{escape(quote.symbol)}[/b] {escape(result.display_name)}\n"
            f"{format_price(quote.price)} {markup_change(quote.change_percent)}"
        )
        if result.profile is not None and result.profile.market_cap:
            text += f"  [dim]Mkt Cap[/] {format_market_cap(result.profile.market_cap)}"
        text += (
            f"\n[dim]O[/] {format_price(quote.open)}  [dim]H[/] {format_price(quote.high)}  "
            f"[dim]L[/] {format_price(quote.low)}  [dim]PC[/] {format_price(quote.previous_close)}"
        )
        if watch_hint:
            text += f"\n[dim]{escape(watch_hint)}[/]"
        self._set_result(text, show_chart=bool(result.sparkline))
        try:
            self.query_one("#search-sparkline", Sparkline).data = list(result.sparkline)
        except Exception:
            pass  # Widget not mounted yet

    def _set_result(self, text: str, show_chart: bool) -> None:
        try:
            self.query_one("#search-result", Static).update(text)
            self.query_one("#search-sparkline", Sparkline).display = show_chart
        except Exception:
            pass  # Widget not mounted yet
