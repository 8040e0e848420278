"""
Stock record model.

One normalized row of the heat-map feed. Records are value objects:
every refresh builds a fresh batch and replaces the previous one, so
there is no field-level mutation anywhere in the pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping


class PeriodKey(Enum):
    """Time horizon used to select which percent change a tile shows."""

    D1 = "1D"
    W1 = "1W"
    M1 = "1M"
    M3 = "3M"
    M6 = "6M"
    YTD = "YTD"
    Y1 = "1Y"
    Y3 = "3Y"
    Y5 = "5Y"
    Y10 = "10Y"

    @classmethod
    def parse(cls, value: "str | PeriodKey") -> "PeriodKey":
        """Accept either a PeriodKey or its label ("1D", "YTD", ...)."""
        if isinstance(value, cls):
            return value
        return cls(str(value).strip().upper())


class LabelMode(Enum):
    """Secondary line shown on each tile."""

    PERCENT = "pct"
    PRICE = "price"
    MARKET_CAP = "marketcap"


# Display order, shortest horizon first
PERIOD_KEYS: tuple[PeriodKey, ...] = tuple(PeriodKey)


def zero_period_changes() -> Dict[PeriodKey, float]:
    """A period mapping with every horizon present and set to 0."""
    return {key: 0.0 for key in PERIOD_KEYS}


@dataclass(frozen=True)
class StockRecord:
    """
    Normalized stock row.

    All fields are always present. Numeric fields that were missing or
    unparseable in the feed are 0; text fields are "".
    """

    symbol: str
    price: float
    change_absolute: float = 0.0
    period_changes: Mapping[PeriodKey, float] = field(default_factory=zero_period_changes, hash=False)
    market_cap: float = 0.0
    volume: float = 0.0
    relative_volume: float = 0.0
    company: str = ""
    sector: str = ""
    industry: str = ""
    rank: int = 0

    def __post_init__(self) -> None:
        # Fill missing horizons and freeze the mapping
        changes = zero_period_changes()
        changes.update(self.period_changes)
        object.__setattr__(self, "period_changes", MappingProxyType(changes))

    @property
    def change_percent(self) -> float:
        """Default-period (1D) percent change."""
        return self.period_changes[PeriodKey.D1]

    def change_for(self, period: "PeriodKey | str") -> float:
        """Percent change for the given horizon."""
        return self.period_changes[PeriodKey.parse(period)]

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for JSON/frontend consumption."""
        return {
            "symbol": self.symbol,
            "price": self.price,
            "change_absolute": self.change_absolute,
            "period_changes": {k.value: v for k, v in self.period_changes.items()},
            "market_cap": self.market_cap,
            "volume": self.volume,
            "relative_volume": self.relative_volume,
            "company": self.company,
            "sector": self.sector,
            "industry": self.industry,
            "rank": self.rank,
        }
