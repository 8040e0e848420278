"""
Color/intensity mapper for heat-map tiles.

Pure functions: a numeric change plus a period scale in, a three-stop
vertical gradient and a text color out. No rendering context is needed,
so the TUI and the HTML snapshot share the exact same colors.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from ...models.stock_record import PeriodKey

RGB = Tuple[int, int, int]

SHADE_STEP = 30

NEUTRAL_STOPS: Tuple[RGB, RGB, RGB] = ((56, 56, 56), (26, 26, 26), (10, 10, 10))
NEUTRAL_OPACITY = 0.5

POSITIVE_LOW: RGB = (30, 80, 80)
POSITIVE_HIGH: RGB = (20, 200, 50)
NEGATIVE_LOW: RGB = (80, 50, 70)
NEGATIVE_HIGH: RGB = (220, 50, 50)

# Relative volume: 1x is the neutral floor, 3x saturates
REL_VOLUME_FLOOR = 1.0
REL_VOLUME_CEILING = 3.0
REL_VOLUME_LOW: RGB = (60, 60, 80)
REL_VOLUME_DEFAULT_HIGH: RGB = (255, 160, 0)

SECTOR_COLORS: Dict[str, RGB] = {
    "Technology": (0, 150, 255),
    "Communication Services": (170, 90, 255),
    "Consumer Cyclical": (255, 110, 180),
    "Consumer Defensive": (120, 200, 120),
    "Healthcare": (0, 200, 200),
    "Financial": (255, 200, 0),
    "Industrials": (200, 140, 80),
    "Energy": (255, 90, 40),
    "Basic Materials": (180, 180, 90),
    "Real Estate": (150, 120, 220),
    "Utilities": (90, 170, 255),
}


class ColorMode(Enum):
    """What the tile color encodes."""

    HEAT = "heat"
    RELATIVE_VOLUME = "relative_volume"


@dataclass(frozen=True)
class ColorScale:
    """Neutral dead zone and saturation points for one period."""

    neutral_threshold: float
    max_up: float
    max_down: float

    def max_for(self, value: float) -> float:
        return self.max_up if value >= 0 else self.max_down


@dataclass(frozen=True)
class ColorSpec:
    """Single RGBA color."""

    r: int
    g: int
    b: int
    alpha: float = 1.0

    @property
    def rgb(self) -> RGB:
        return (self.r, self.g, self.b)

    def css(self) -> str:
        if self.alpha >= 1.0:
            return f"rgb({self.r}, {self.g}, {self.b})"
        return f"rgba({self.r}, {self.g}, {self.b}, {self.alpha:g})"

    def hex(self) -> str:
        return f"#{self.r:02x}{self.g:02x}{self.b:02x}"


@dataclass(frozen=True)
class GradientSpec:
    """Three-stop vertical gradient: light at the top, dark at the bottom."""

    light: ColorSpec
    base: ColorSpec
    dark: ColorSpec

    def css(self) -> str:
        return (
            f"linear-gradient(180deg, {self.light.css()} 0%, "
            f"{self.base.css()} 50%, {self.dark.css()} 100%)"
        )


@dataclass(frozen=True)
class TileColor:
    """Background gradient plus text color for one tile."""

    background: GradientSpec
    foreground: ColorSpec
    intensity: float = 0.0

    @property
    def is_neutral(self) -> bool:
        return self == NEUTRAL_TILE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "background": self.background.css(),
            "base": self.background.base.hex(),
            "foreground": self.foreground.css(),
            "intensity": self.intensity,
        }


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def interpolate(low: RGB, high: RGB, intensity: float) -> RGB:
    """Per-channel linear interpolation from ``low`` (0.0) to ``high`` (1.0)."""
    return tuple(  # type: ignore[return-value]
        _round_half_up(lo + (hi - lo) * intensity) for lo, hi in zip(low, high)
    )


def shade(base: RGB) -> GradientSpec:
    """Light/base/dark gradient around a base color."""
    light = tuple(min(c + SHADE_STEP, 255) for c in base)
    dark = tuple(max(c - SHADE_STEP, 0) for c in base)
    return GradientSpec(
        light=ColorSpec(*light),
        base=ColorSpec(*base),
        dark=ColorSpec(*dark),
    )


def text_color(intensity: float) -> ColorSpec:
    """White text whose opacity rises from 0.5 to 1.0 with intensity."""
    return ColorSpec(255, 255, 255, alpha=0.5 + 0.5 * intensity)


NEUTRAL_GRADIENT = GradientSpec(
    light=ColorSpec(*NEUTRAL_STOPS[0]),
    base=ColorSpec(*NEUTRAL_STOPS[1]),
    dark=ColorSpec(*NEUTRAL_STOPS[2]),
)
NEUTRAL_TILE = TileColor(
    background=NEUTRAL_GRADIENT,
    foreground=ColorSpec(255, 255, 255, alpha=NEUTRAL_OPACITY),
    intensity=0.0,
)


def default_scales() -> Dict[PeriodKey, ColorScale]:
    """Built-in per-period scales; longer horizons need bigger moves to saturate."""
    return {
        PeriodKey.D1: ColorScale(0.49, 5.0, 5.0),
        PeriodKey.W1: ColorScale(1.0, 10.0, 10.0),
        PeriodKey.M1: ColorScale(2.0, 15.0, 15.0),
        PeriodKey.M3: ColorScale(3.0, 25.0, 25.0),
        PeriodKey.M6: ColorScale(5.0, 35.0, 35.0),
        PeriodKey.YTD: ColorScale(5.0, 40.0, 40.0),
        PeriodKey.Y1: ColorScale(5.0, 50.0, 50.0),
        PeriodKey.Y3: ColorScale(10.0, 100.0, 80.0),
        PeriodKey.Y5: ColorScale(15.0, 150.0, 90.0),
        PeriodKey.Y10: ColorScale(20.0, 300.0, 95.0),
    }


DEFAULT_SCALES: Mapping[PeriodKey, ColorScale] = default_scales()


def scales_from_config(overrides: Optional[Mapping[str, Mapping[str, float]]]) -> Dict[PeriodKey, ColorScale]:
    """
    Merge YAML overrides onto the default scales.

    Args:
        overrides: ``{"1D": {"neutral_threshold": .., "max_up": .., "max_down": ..}}``;
            omitted keys keep their defaults.

    Raises:
        ValueError: Unknown period key or a max not above the neutral threshold.
    """
    scales = default_scales()
    for key, values in (overrides or {}).items():
        period = PeriodKey.parse(key)
        current = scales[period]
        scale = ColorScale(
            neutral_threshold=float(values.get("neutral_threshold", current.neutral_threshold)),
            max_up=float(values.get("max_up", current.max_up)),
            max_down=float(values.get("max_down", current.max_down)),
        )
        if scale.max_up <= scale.neutral_threshold or scale.max_down <= scale.neutral_threshold:
            raise ValueError(f"Color scale {period.value}: max must exceed neutral threshold")
        scales[period] = scale
    return scales


def heat_intensity(value: float, scale: ColorScale) -> float:
    """Normalized distance past the neutral threshold, clamped to [0, 1]."""
    span = scale.max_for(value) - scale.neutral_threshold
    if span <= 0:
        return 1.0
    return _clamp((abs(value) - scale.neutral_threshold) / span, 0.0, 1.0)


def _heat_color(value: float, scale: ColorScale) -> TileColor:
    if not math.isfinite(value) or abs(value) <= scale.neutral_threshold:
        return NEUTRAL_TILE

    intensity = heat_intensity(value, scale)
    if value >= 0:
        base = interpolate(POSITIVE_LOW, POSITIVE_HIGH, intensity)
    else:
        base = interpolate(NEGATIVE_LOW, NEGATIVE_HIGH, intensity)
    return TileColor(background=shade(base), foreground=text_color(intensity), intensity=intensity)


def _relative_volume_color(rel_volume: float, sector: Optional[str]) -> TileColor:
    if not math.isfinite(rel_volume) or rel_volume <= REL_VOLUME_FLOOR:
        return NEUTRAL_TILE

    intensity = _clamp(
        (rel_volume - REL_VOLUME_FLOOR) / (REL_VOLUME_CEILING - REL_VOLUME_FLOOR), 0.0, 1.0
    )
    high = SECTOR_COLORS.get(sector or "", REL_VOLUME_DEFAULT_HIGH)
    base = interpolate(REL_VOLUME_LOW, high, intensity)
    return TileColor(background=shade(base), foreground=text_color(intensity), intensity=intensity)


def color_for(
    value: float,
    scale_key: PeriodKey,
    mode: ColorMode = ColorMode.HEAT,
    sector: Optional[str] = None,
    scales: Optional[Mapping[PeriodKey, ColorScale]] = None,
) -> TileColor:
    """
    Map a value onto a tile color.

    Args:
        value: Percent change (HEAT) or relative volume multiple (RELATIVE_VOLUME).
        scale_key: Period whose scale applies; unknown keys use the 1D scale.
        mode: HEAT or RELATIVE_VOLUME.
        sector: Sector name, used for the relative-volume saturation color.
        scales: Per-period scales; defaults to the built-in table.

    Returns:
        TileColor with a three-stop gradient and a white text color.
    """
    if mode is ColorMode.RELATIVE_VOLUME:
        return _relative_volume_color(value, sector)

    table = scales if scales is not None else DEFAULT_SCALES
    scale = table.get(scale_key) or table.get(PeriodKey.D1) or DEFAULT_SCALES[PeriodKey.D1]
    return _heat_color(value, scale)


def legend_stops(
    scale_key: PeriodKey,
    scales: Optional[Mapping[PeriodKey, ColorScale]] = None,
) -> List[Tuple[float, TileColor]]:
    """
    Sample values for a legend, from full negative to full positive.

    Returns:
        ``[(value, color), ...]`` at -max_down, -neutral, 0, +neutral, +max_up
        plus the midpoints of each saturated half.
    """
    table = scales if scales is not None else DEFAULT_SCALES
    scale = table.get(scale_key) or DEFAULT_SCALES[PeriodKey.D1]
    mid_down = (scale.neutral_threshold + scale.max_down) / 2
    mid_up = (scale.neutral_threshold + scale.max_up) / 2
    values = [
        -scale.max_down,
        -mid_down,
        -scale.neutral_threshold,
        0.0,
        scale.neutral_threshold,
        mid_up,
        scale.max_up,
    ]
    return [(v, color_for(v, scale_key, scales=table)) for v in values]
