"""
Index strip widget with widget pooling.

Horizontal ticker of the major indices: name, last price and a colored
arrow with the day's percent change.
"""

from __future__ import annotations

from typing import Sequence, Tuple

from rich.markup import escape
from textual.app import ComposeResult
from textual.containers import Horizontal
from textual.reactive import reactive
from textual.widget import Widget
from textual.widgets import Static

from ...models.quote import Quote
from ..formatters import format_price, markup_change


class IndexStrip(Widget):
    """Index quotes across the top of the dashboard."""

    MAX_INDICES = 6

    quotes: reactive[Tuple[Quote, ...]] = reactive(tuple, init=False)

    def compose(self) -> ComposeResult:
        with Horizontal(id="index-content"):
            yield Static("[dim]Loading indices...[/]", id="index-placeholder", classes="index-item")
            for i in range(self.MAX_INDICES):
                yield Static("", id=f"index-{i}", classes="index-item")

    def on_mount(self) -> None:
        self._render_quotes(self.quotes)

    def set_quotes(self, quotes: Sequence[Quote]) -> None:
        self.quotes = tuple(quotes)

    def watch_quotes(self, quotes: Tuple[Quote, ...]) -> None:
        self._render_quotes(quotes)

    def _render_quotes(self, quotes: Tuple[Quote, ...]) -> None:
        try:
            self.query_one("#index-placeholder", Static).display = not quotes
        except Exception:
            return  # Widget not mounted yet

        for i in range(self.MAX_INDICES):
            try:
                item = self.query_one(f"#index-{i}", Static)
            except Exception as e:
                self.log.error(f"Failed to update index item {i}: {e}")
                continue
            if i < len(quotes):
                item.update(self._format_quote(quotes[i]))
                item.display = True
            else:
                item.update("")
                item.display = False

    @staticmethod
    def _format_quote(quote: Quote) -> str:
        name = quote.display_name or quote.symbol
        return f"[b]{escape(name)}[/b] {format_price(quote.price)} {markup_change(quote.change_percent)}"
