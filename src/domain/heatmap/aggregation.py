"""
Heat-map aggregation engine.

Computes per-period average changes over a record set, optionally grouped
by the named sector column. Output is recomputed from scratch for every
render pass; nothing here is cached across refreshes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from ...models.stock_record import PERIOD_KEYS, PeriodKey, StockRecord


class GroupBy(Enum):
    """Grouping applied by ``aggregate``."""

    SECTOR = "sector"
    NONE = "none"


@dataclass(frozen=True)
class SectorAggregate:
    """Derived view of one sector for a single render pass."""

    sector_name: str
    average_change_by_period: Mapping[PeriodKey, float]
    total_market_cap: float
    members: Sequence[StockRecord] = field(default_factory=tuple)

    @property
    def member_symbols(self) -> List[str]:
        """Member symbols ordered by source rank."""
        return [r.symbol for r in self.members]

    def average_change(self, period: PeriodKey) -> float:
        return self.average_change_by_period.get(period, 0.0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sector_name": self.sector_name,
            "average_change_by_period": {
                p.value: v for p, v in self.average_change_by_period.items()
            },
            "total_market_cap": self.total_market_cap,
            "member_symbols": self.member_symbols,
        }


@dataclass(frozen=True)
class AggregationResult:
    """Overall averages plus ranked sector groups."""

    overall_averages: Mapping[PeriodKey, float]
    groups: Sequence[SectorAggregate] = field(default_factory=tuple)

    @property
    def sector_names(self) -> List[str]:
        """Sector display order."""
        return [g.sector_name for g in self.groups]

    def group(self, sector_name: str) -> Optional[SectorAggregate]:
        for g in self.groups:
            if g.sector_name == sector_name:
                return g
        return None


def average_change(records: Sequence[StockRecord], period: PeriodKey) -> float:
    """Arithmetic mean of one period's change; 0.0 for an empty set."""
    if not records:
        return 0.0
    return sum(r.change_for(period) for r in records) / len(records)


def _averages(records: Sequence[StockRecord]) -> Dict[PeriodKey, float]:
    return {period: average_change(records, period) for period in PERIOD_KEYS}


def aggregate(
    records: Iterable[StockRecord],
    group_by: GroupBy = GroupBy.SECTOR,
    per_group_limit: Optional[int] = None,
) -> AggregationResult:
    """
    Aggregate a record set.

    Args:
        records: Records in source order.
        group_by: SECTOR groups by the record's sector name; NONE only
            computes the overall averages.
        per_group_limit: Keep only the first N members (by source rank)
            of each sector.

    Returns:
        AggregationResult whose groups are ordered by descending total
        market cap. Equal totals keep first-encountered order.
    """
    record_list = list(records)
    overall = _averages(record_list)

    if group_by is GroupBy.NONE:
        return AggregationResult(overall_averages=overall, groups=())

    # dict preserves first-encountered sector order for the stable sort
    buckets: Dict[str, List[StockRecord]] = {}
    for record in record_list:
        if not record.sector:
            continue
        buckets.setdefault(record.sector, []).append(record)

    groups: List[SectorAggregate] = []
    for sector_name, members in buckets.items():
        members.sort(key=lambda r: r.rank)
        if per_group_limit is not None:
            members = members[:per_group_limit]
        groups.append(
            SectorAggregate(
                sector_name=sector_name,
                average_change_by_period=_averages(members),
                total_market_cap=sum(r.market_cap for r in members),
                members=tuple(members),
            )
        )

    groups.sort(key=lambda g: g.total_market_cap, reverse=True)
    return AggregationResult(overall_averages=overall, groups=tuple(groups))
