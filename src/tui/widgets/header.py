"""
Header widget for the heat board.

Displays:
- Title
- Environment indicator
- Active period, tile label and color mode
- Time of the last market feed update
- Key hints
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from rich.markup import escape
from textual.app import ComposeResult
from textual.reactive import reactive
from textual.widget import Widget
from textual.widgets import Static

from ...domain.heatmap import ColorMode
from ...models.stock_record import LabelMode, PeriodKey


class HeaderWidget(Widget):
    """Header bar with display settings and key hints."""

    DEFAULT_CSS = """
    HeaderWidget {
        height: 3;
        background: $surface;
        border-bottom: solid $primary;
    }

    HeaderWidget #header-content {
        width: 100%;
        height: 100%;
        content-align: center middle;
    }
    """

    period: reactive[PeriodKey] = reactive(PeriodKey.D1, init=False)
    label_mode: reactive[LabelMode] = reactive(LabelMode.PERCENT, init=False)
    color_mode: reactive[ColorMode] = reactive(ColorMode.HEAT, init=False)
    last_updated: reactive[Optional[datetime]] = reactive(None, init=False)

    def __init__(self, env: str = "dev", title: str = "Market Heat Board", **kwargs):
        """
        Initialize header widget.

        Args:
            env: Environment name (dev, prod).
            title: Dashboard title.
        """
        super().__init__(**kwargs)
        self.env = env
        self._title = title

    def compose(self) -> ComposeResult:
        """Compose the header layout."""
        yield Static(self._build_header_text(), id="header-content")

    def watch_period(self, period: PeriodKey) -> None:
        self.refresh_header()

    def watch_label_mode(self, label_mode: LabelMode) -> None:
        self.refresh_header()

    def watch_color_mode(self, color_mode: ColorMode) -> None:
        self.refresh_header()

    def watch_last_updated(self, last_updated: Optional[datetime]) -> None:
        self.refresh_header()

    def _build_header_text(self) -> str:
        """Build the header text with all components."""
        parts = [f"[bold cyan]{self._title}[/]", "  |  "]

        env_upper = self.env.upper()
        if self.env == "prod":
            parts.append(f"[bold red]{env_upper}[/]")
        else:
            parts.append(f"[bold yellow]{env_upper}[/]")
        parts.append("  |  ")

        parts.append(f"Period: [b]{self.period.value}[/b]  ")
        parts.append(f"Label: [b]{self.label_mode.value}[/b]  ")
        color = "rel. volume" if self.color_mode is ColorMode.RELATIVE_VOLUME else "change"
        parts.append(f"Color: [b]{color}[/b]")
        parts.append("  |  ")

        if self.last_updated is not None:
            parts.append(f"Updated [white]{self.last_updated.astimezone().strftime('%H:%M:%S')}[/]")
        else:
            parts.append("[dim]Waiting for feed...[/]")
        parts.append("  |  ")

        hints = [("1", "Market"), ("2", "Sectors"), ("p", "Period"), ("l", "Label"), ("/", "Search")]
        for key, label in hints:
            parts.append(f"[dim]{escape(f'[{key}]')}{label}[/]  ")

        return "".join(parts)

    def refresh_header(self) -> None:
        """Re-render the header text."""
        try:
            content = self.query_one("#header-content", Static)
            content.update(self._build_header_text())
        except Exception:
            pass
