"""
Feed schema resolution.

The spreadsheet feed is positionally stable but inconsistently named
across revisions, so each logical field is looked up by its documented
header title first and, for a few fields, falls back to a fixed column
position. All header matching lives here: the record builder only ever
sees resolved column indices.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Sequence

from ...models.stock_record import PeriodKey
from ...utils.logging_setup import get_logger

logger = get_logger(__name__)

# Logical scalar fields, in resolution order
SYMBOL = "symbol"
PRICE = "price"
CHANGE_PERCENT = "change_percent"
CHANGE_ABSOLUTE = "change_absolute"
MARKET_CAP = "market_cap"
VOLUME = "volume"
RELATIVE_VOLUME = "relative_volume"
COMPANY = "company"
SECTOR = "sector"
INDUSTRY = "industry"


@dataclass(frozen=True)
class ColumnSpec:
    """Documented header title plus optional fixed fallback position."""

    title: str
    fallback: Optional[int] = None


# Column H holds market cap; columns U..AC hold the 1W..10Y performance
DEFAULT_COLUMNS: Dict[str, ColumnSpec] = {
    SYMBOL: ColumnSpec("Ticker"),
    PRICE: ColumnSpec("Gprice"),
    CHANGE_PERCENT: ColumnSpec("Gchangepct"),
    CHANGE_ABSOLUTE: ColumnSpec("Gchange"),
    MARKET_CAP: ColumnSpec("Market Cap", fallback=7),
    VOLUME: ColumnSpec("Volume"),
    RELATIVE_VOLUME: ColumnSpec("Rel Volume"),
    COMPANY: ColumnSpec("Company"),
    SECTOR: ColumnSpec("Sector"),
    INDUSTRY: ColumnSpec("Industry"),
}

DEFAULT_PERIOD_COLUMNS: Dict[PeriodKey, ColumnSpec] = {
    PeriodKey.W1: ColumnSpec("Perf Week", fallback=20),
    PeriodKey.M1: ColumnSpec("Perf Month", fallback=21),
    PeriodKey.M3: ColumnSpec("Perf Quarter", fallback=22),
    PeriodKey.M6: ColumnSpec("Perf Half", fallback=23),
    PeriodKey.YTD: ColumnSpec("Perf YTD", fallback=24),
    PeriodKey.Y1: ColumnSpec("Perf Year", fallback=25),
    PeriodKey.Y3: ColumnSpec("Perf 3Y", fallback=26),
    PeriodKey.Y5: ColumnSpec("Perf 5Y", fallback=27),
    PeriodKey.Y10: ColumnSpec("Perf 10Y", fallback=28),
}


@dataclass(frozen=True)
class FeedSchema:
    """
    Resolved column positions for one refresh batch.

    ``None`` marks a field that is absent from this feed revision.
    """

    columns: Mapping[str, Optional[int]] = field(default_factory=dict)
    period_columns: Mapping[PeriodKey, Optional[int]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "columns", MappingProxyType(dict(self.columns)))
        object.__setattr__(self, "period_columns", MappingProxyType(dict(self.period_columns)))

    def index_of(self, name: str) -> Optional[int]:
        return self.columns.get(name)

    def period_index(self, period: PeriodKey) -> Optional[int]:
        return self.period_columns.get(period)

    @property
    def missing(self) -> list[str]:
        """Names of fields that could not be resolved."""
        names = [name for name, idx in self.columns.items() if idx is None]
        names.extend(p.value for p, idx in self.period_columns.items() if idx is None)
        return names


class SchemaResolver:
    """
    Resolves header titles to column positions.

    The resolver is configured once with the documented titles; ``resolve``
    is then called once per fetched document, never per row.
    """

    def __init__(
        self,
        columns: Optional[Mapping[str, ColumnSpec]] = None,
        period_columns: Optional[Mapping[PeriodKey, ColumnSpec]] = None,
    ) -> None:
        self._columns = dict(DEFAULT_COLUMNS)
        if columns:
            self._columns.update(columns)
        self._period_columns = dict(DEFAULT_PERIOD_COLUMNS)
        if period_columns:
            self._period_columns.update(period_columns)

    @classmethod
    def from_overrides(cls, overrides: Optional[Mapping[str, Mapping[str, object]]]) -> "SchemaResolver":
        """
        Build a resolver from YAML-style overrides.

        Keys are logical field names ("market_cap") or period labels ("1W");
        values hold ``title`` and/or ``fallback``. Omitted parts keep the
        documented defaults.

        Raises:
            ValueError: Unknown field name or period label.
        """
        columns: Dict[str, ColumnSpec] = {}
        period_columns: Dict[PeriodKey, ColumnSpec] = {}
        for key, values in (overrides or {}).items():
            if key in DEFAULT_COLUMNS:
                base = DEFAULT_COLUMNS[key]
                columns[key] = _override(base, values)
                continue
            try:
                period = PeriodKey.parse(key)
            except ValueError:
                raise ValueError(f"Unknown feed column: {key}") from None
            if period not in DEFAULT_PERIOD_COLUMNS:
                raise ValueError(f"Period {period.value} always comes from the change column")
            period_columns[period] = _override(DEFAULT_PERIOD_COLUMNS[period], values)
        return cls(columns=columns, period_columns=period_columns)

    def resolve(self, header_fields: Sequence[str]) -> FeedSchema:
        """
        Build the schema for a header row.

        Matching is exact and case-sensitive on trimmed header values; the
        first matching column wins.
        """
        positions: Dict[str, int] = {}
        for idx, title in enumerate(header_fields):
            positions.setdefault(title.strip(), idx)

        columns = {
            name: self._lookup(positions, spec) for name, spec in self._columns.items()
        }
        period_columns = {
            period: self._lookup(positions, spec)
            for period, spec in self._period_columns.items()
        }
        schema = FeedSchema(columns=columns, period_columns=period_columns)

        if schema.missing:
            logger.debug(f"Feed schema: unresolved columns {schema.missing}")
        return schema

    @staticmethod
    def _lookup(positions: Mapping[str, int], spec: ColumnSpec) -> Optional[int]:
        idx = positions.get(spec.title)
        if idx is not None:
            return idx
        return spec.fallback


def _override(base: ColumnSpec, values: Mapping[str, object]) -> ColumnSpec:
    title = values.get("title", base.title)
    fallback = values.get("fallback", base.fallback)
    return ColumnSpec(
        title=str(title),
        fallback=int(fallback) if fallback is not None else None,  # type: ignore[call-overload]
    )


def resolve(header_fields: Sequence[str]) -> FeedSchema:
    """Resolve a header row against the default column layout."""
    return SchemaResolver().resolve(header_fields)
