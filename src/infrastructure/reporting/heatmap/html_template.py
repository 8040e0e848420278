"""
HTML Template - Generates the complete heatmap HTML page.

Static snapshot: the market grid, the sector view (each sector is a
<details> block that expands into its member tiles) and a color legend.
The serialized model is embedded for any client-side tooling.
"""

from __future__ import annotations

import json
from html import escape
from typing import List

from src.utils.formatters import format_market_cap, format_percent, format_price

from .model import HeatmapModel, SectorGroup, TileNode


def _tile_html(tile: TileNode) -> str:
    tooltip = " | ".join(
        part
        for part in (
            tile.company,
            tile.industry,
            format_price(tile.price),
            format_percent(tile.change_pct),
            f"Mkt Cap {format_market_cap(tile.market_cap)}",
        )
        if part
    )
    return (
        f'<div class="hm-tile" title="{escape(tooltip)}" '
        f'style="background: {tile.background}; color: {tile.foreground};">'
        f'<span class="hm-tile-symbol">{escape(tile.symbol)}</span>'
        f'<span class="hm-tile-label">{escape(tile.label)}</span>'
        f"</div>"
    )


def _sector_html(sector: SectorGroup) -> str:
    tiles = "".join(_tile_html(t) for t in sector.stocks)
    return (
        f'<details class="hm-sector">'
        f'<summary style="background: {sector.background}; color: {sector.foreground};">'
        f'<span class="hm-sector-name">{escape(sector.sector_name)}</span>'
        f'<span class="hm-sector-change">{format_percent(sector.average_change)}</span>'
        f'<span class="hm-sector-cap">{format_market_cap(sector.total_market_cap)}'
        f" &middot; {len(sector.stocks)} stocks</span>"
        f"</summary>"
        f'<div class="hm-grid">{tiles}</div>'
        f"</details>"
    )


def _index_strip_html(model: HeatmapModel) -> str:
    if not model.indices:
        return ""
    items: List[str] = []
    for card in model.indices:
        css_class = "positive" if card.change_pct >= 0 else "negative"
        arrow = "▲" if card.change_pct >= 0 else "▼"
        items.append(
            f'<div class="hm-index">'
            f'<span class="hm-index-name">{escape(card.name)}</span>'
            f'<span class="hm-index-price">{format_price(card.price)}</span>'
            f'<span class="hm-index-change {css_class}">{arrow} {format_percent(card.change_pct, signed=False)}</span>'
            f"</div>"
        )
    return f'<div class="hm-index-strip">{"".join(items)}</div>'


def render_heatmap_template(model: HeatmapModel, css_path: str) -> str:
    """
    Render the HTML page with external CSS.

    Args:
        model: HeatmapModel to render
        css_path: Relative path to external CSS file

    Returns:
        Complete HTML page content
    """
    # No raw "<" inside the script element; JSON decoders read < back as "<"
    model_json = json.dumps(model.to_dict()).replace("<", "\\u003c")

    tiles_html = "".join(_tile_html(t) for t in model.tiles)
    sectors_html = "".join(_sector_html(s) for s in model.sectors)
    legend_html = "".join(
        f'<div class="hm-legend-item">'
        f'<div class="hm-legend-color" style="background: {stop.background};"></div>'
        f"<span>{format_percent(stop.value)}</span>"
        f"</div>"
        for stop in model.legend
    )

    html = f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{escape(model.title)} - {model.generated_at.strftime('%Y-%m-%d') if model.generated_at else 'N/A'}</title>
    <link rel="stylesheet" href="{escape(css_path)}">
</head>
<body class="heatboard">
    <div class="hm-header">
        <h1>{escape(model.title)}</h1>
        <div class="meta">
            Generated: {escape(model.generated_at_str or 'N/A')} &middot; Period: {escape(model.period)}
        </div>
    </div>

    {_index_strip_html(model)}

    <!-- Stats -->
    <div class="hm-stats">
        <div class="hm-stat"><span>Symbols:</span><span class="hm-stat-value">{model.symbol_count}</span></div>
        <div class="hm-stat"><span>Average:</span><span class="hm-stat-value">{format_percent(model.overall_average)}</span></div>
        <div class="hm-stat"><span>Advancers:</span><span class="hm-stat-value positive">{model.advancers}</span></div>
        <div class="hm-stat"><span>Decliners:</span><span class="hm-stat-value negative">{model.decliners}</span></div>
    </div>

    <div class="hm-legend">{legend_html}</div>

    <h2>Market</h2>
    <div class="hm-grid" id="market-grid">{tiles_html}</div>

    <h2>Sectors</h2>
    <div class="hm-sectors" id="sector-grid">{sectors_html}</div>

    <script type="application/json" id="heatmap-model">{model_json}</script>
</body>
</html>"""

    return html
