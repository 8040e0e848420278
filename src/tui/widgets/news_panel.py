"""
Market news panel.

DataTable of the latest general-market headlines, newest first, with a
relative age column ("5m ago", "3h ago").
"""

from __future__ import annotations

from typing import Sequence, Tuple

from rich.markup import escape
from textual.app import ComposeResult
from textual.reactive import reactive
from textual.widget import Widget
from textual.widgets import DataTable, Static

from ...models.quote import NewsItem
from ..formatters import format_time_ago, truncate


class NewsPanel(Widget):
    """Market news headlines."""

    items: reactive[Tuple[NewsItem, ...]] = reactive(tuple, init=False)

    def compose(self) -> ComposeResult:
        yield Static("Market News", id="news-title", classes="panel-title")
        yield DataTable(id="news-table", cursor_type="row", zebra_stripes=True)
        yield Static("", id="news-status", classes="panel-hints")

    def on_mount(self) -> None:
        table = self.query_one("#news-table", DataTable)
        table.add_column("Age", width=8, key="age")
        table.add_column("Source", width=12, key="source")
        table.add_column("Headline", key="headline")
        self._render_items(self.items)

    def set_items(self, items: Sequence[NewsItem]) -> None:
        self.items = tuple(items)

    def set_status(self, text: str) -> None:
        try:
            self.query_one("#news-status", Static).update(text)
        except Exception:
            pass  # Widget not mounted yet

    def watch_items(self, items: Tuple[NewsItem, ...]) -> None:
        self._render_items(items)

    def _render_items(self, items: Tuple[NewsItem, ...]) -> None:
        try:
            table = self.query_one("#news-table", DataTable)
        except Exception:
            return  # Widget not mounted yet

        table.clear()
        for i, item in enumerate(items):
            table.add_row(
                format_time_ago(item.published_at),
                escape(truncate(item.source, 12)),
                escape(truncate(item.headline, 90)),
                key=f"news-{i}",
            )
