"""
Heatmap Builder - Orchestrator for the static HTML snapshot.

Two-Layer Architecture:
1. build_heatmap_model() - Transforms records into HeatmapModel (pure data)
2. render_heatmap_html() - Renders HeatmapModel to HTML with embedded data

Colors and sector ranking come from the same domain functions the
terminal dashboard uses, so a snapshot matches what is on screen.
"""

from __future__ import annotations

from pathlib import Path
from typing import Mapping, Optional, Sequence

from src.domain.heatmap import (
    ColorMode,
    ColorScale,
    GroupBy,
    aggregate,
    color_for,
    legend_stops,
)
from src.models.quote import Quote
from src.models.stock_record import LabelMode, PeriodKey, StockRecord
from src.utils.formatters import format_market_cap, format_percent, format_price
from src.utils.logging_setup import get_logger
from src.utils.timezone import now_utc

from .css import HEATMAP_CSS
from .html_template import render_heatmap_template
from .model import (
    HeatmapModel,
    IndexCard,
    LegendStop,
    SectorGroup,
    TileNode,
)

logger = get_logger(__name__)


class HeatmapBuilder:
    """
    Builds the heat-map snapshot from a record batch.

    This builder follows the two-layer architecture:
    1. Model building (pure data transformation)
    2. HTML rendering (template-based)
    """

    def __init__(
        self,
        period: PeriodKey = PeriodKey.D1,
        label_mode: LabelMode = LabelMode.PERCENT,
        color_mode: ColorMode = ColorMode.HEAT,
        scales: Optional[Mapping[PeriodKey, ColorScale]] = None,
        title: str = "Market Heat Map",
    ) -> None:
        """
        Initialize heatmap builder.

        Args:
            period: Period whose change colors the tiles
            label_mode: Secondary tile line (percent, price or market cap)
            color_mode: Heat (price move) or relative volume
            scales: Per-period color scales (defaults when None)
            title: Page title
        """
        self._period = period
        self._label_mode = label_mode
        self._color_mode = color_mode
        self._scales = scales
        self._title = title

    def build_heatmap_model(
        self,
        records: Sequence[StockRecord],
        sector_records: Optional[Sequence[StockRecord]] = None,
        per_sector_limit: Optional[int] = None,
        index_quotes: Sequence[Quote] = (),
    ) -> HeatmapModel:
        """
        Build HeatmapModel from record batches.

        Args:
            records: Market grid records (source order)
            sector_records: Records for the sector view; defaults to ``records``
            per_sector_limit: Keep the first N members of each sector
            index_quotes: Optional index quotes for the header strip

        Returns:
            HeatmapModel ready for rendering
        """
        gen_time = now_utc()
        if not records and not sector_records:
            logger.warning("No records for heatmap snapshot")
            return HeatmapModel(
                title=self._title,
                period=self._period.value,
                generated_at=gen_time,
                generated_at_str=gen_time.strftime("%Y-%m-%d %H:%M %Z"),
            )

        tiles = [self._tile(r) for r in records]

        grouped = aggregate(
            sector_records if sector_records is not None else records,
            group_by=GroupBy.SECTOR,
            per_group_limit=per_sector_limit,
        )
        sectors = []
        for group in grouped.groups:
            avg = group.average_change(self._period)
            color = color_for(avg, self._period, scales=self._scales)
            sectors.append(
                SectorGroup(
                    sector_name=group.sector_name,
                    average_change=avg,
                    total_market_cap=group.total_market_cap,
                    background=color.background.css(),
                    foreground=color.foreground.css(),
                    stocks=[self._tile(r) for r in group.members],
                )
            )

        overall = aggregate(records, group_by=GroupBy.NONE).overall_averages
        legend = [
            LegendStop(value=v, background=c.background.css())
            for v, c in legend_stops(self._period, scales=self._scales)
        ]
        indices = [
            IndexCard(name=q.display_name or q.symbol, price=q.price, change_pct=q.change_percent)
            for q in index_quotes
        ]

        changes = [r.change_for(self._period) for r in records]
        return HeatmapModel(
            title=self._title,
            period=self._period.value,
            label_mode=self._label_mode,
            tiles=tiles,
            sectors=sectors,
            legend=legend,
            indices=indices,
            overall_average=overall.get(self._period, 0.0),
            advancers=sum(1 for c in changes if c > 0),
            decliners=sum(1 for c in changes if c < 0),
            symbol_count=len(records),
            generated_at=gen_time,
            generated_at_str=gen_time.strftime("%Y-%m-%d %H:%M %Z"),
        )

    def _tile(self, record: StockRecord) -> TileNode:
        change = record.change_for(self._period)
        if self._color_mode is ColorMode.RELATIVE_VOLUME:
            color = color_for(
                record.relative_volume,
                self._period,
                mode=ColorMode.RELATIVE_VOLUME,
                sector=record.sector,
            )
        else:
            color = color_for(change, self._period, scales=self._scales)

        return TileNode(
            symbol=record.symbol,
            label=self._label(record, change),
            sector=record.sector,
            change_pct=change,
            price=record.price,
            market_cap=record.market_cap,
            background=color.background.css(),
            foreground=color.foreground.css(),
            intensity=color.intensity,
            company=record.company,
            industry=record.industry,
        )

    def _label(self, record: StockRecord, change: float) -> str:
        if self._label_mode is LabelMode.PRICE:
            return format_price(record.price)
        if self._label_mode is LabelMode.MARKET_CAP:
            return format_market_cap(record.market_cap, prefix="")
        return format_percent(change)

    def _ensure_css_asset(self, output_dir: Path) -> str:
        """
        Write CSS to assets/ directory and return relative path.

        Args:
            output_dir: Snapshot output directory

        Returns:
            Relative path to CSS file (e.g., "assets/heatmap-theme.css")
        """
        assets_dir = output_dir / "assets"
        assets_dir.mkdir(parents=True, exist_ok=True)

        css_path = assets_dir / "heatmap-theme.css"
        css_path.write_text(HEATMAP_CSS, encoding="utf-8")

        logger.debug(f"Wrote heatmap CSS to {css_path}")
        return "assets/heatmap-theme.css"

    def render_heatmap_html(self, model: HeatmapModel, output_dir: Path) -> str:
        """
        Render HeatmapModel to an HTML page.

        Args:
            model: HeatmapModel to render
            output_dir: Directory where HTML will be written

        Returns:
            HTML content as string
        """
        css_path = self._ensure_css_asset(output_dir)
        return render_heatmap_template(model, css_path)

    def save_heatmap(
        self,
        model: HeatmapModel,
        output_dir: Path,
        filename: str = "heatmap.html",
    ) -> Path:
        """
        Build and save heatmap HTML to file.

        Args:
            model: HeatmapModel to render
            output_dir: Output directory
            filename: Output filename

        Returns:
            Path to saved file
        """
        output_dir.mkdir(parents=True, exist_ok=True)
        output_path = output_dir / filename

        html = self.render_heatmap_html(model, output_dir)
        output_path.write_text(html, encoding="utf-8")

        logger.info(f"Saved heatmap to {output_path}")
        return output_path
