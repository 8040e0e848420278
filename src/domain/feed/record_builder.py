"""
Stock record builder.

Turns raw CSV field arrays plus a resolved FeedSchema into StockRecords.

Degradation rules:
- empty symbol or unparseable/non-finite price → row dropped
- any other numeric field unparseable → 0
- short rows (fewer columns than the header) → missing fields, never an error
"""

from __future__ import annotations

import math
from typing import List, Optional, Sequence, Set

from ...models.stock_record import PERIOD_KEYS, PeriodKey, StockRecord
from ...utils.logging_setup import get_logger
from . import schema as fields
from .schema import FeedSchema

logger = get_logger(__name__)

_STRIP_CHARS = str.maketrans("", "", ",%")


def parse_number(raw: Optional[str]) -> Optional[float]:
    """
    Parse a feed number, tolerating thousands separators and a percent sign.

    Returns:
        The finite float value, or None when the text is missing,
        unparseable, NaN or infinite.
    """
    if raw is None:
        return None
    text = raw.translate(_STRIP_CHARS).strip()
    if not text:
        return None
    try:
        value = float(text)
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return value


def _field(raw_fields: Sequence[str], idx: Optional[int]) -> Optional[str]:
    """Column value, or None when the column is absent or past the row end."""
    if idx is None or idx < 0 or idx >= len(raw_fields):
        return None
    return raw_fields[idx]


def _number(raw_fields: Sequence[str], idx: Optional[int]) -> float:
    value = parse_number(_field(raw_fields, idx))
    return value if value is not None else 0.0


def _text(raw_fields: Sequence[str], idx: Optional[int]) -> str:
    value = _field(raw_fields, idx)
    return value.strip() if value is not None else ""


def build(raw_fields: Sequence[str], schema: FeedSchema, rank: int = 0) -> Optional[StockRecord]:
    """
    Build one StockRecord from a parsed row.

    Args:
        raw_fields: Field strings from ``parse_line``.
        schema: Column positions resolved from the header.
        rank: Source position of the row (0-based, data rows only).

    Returns:
        The record, or None when the row has no symbol or no usable price
        (unparseable or negative).
    """
    symbol = _text(raw_fields, schema.index_of(fields.SYMBOL))
    if not symbol:
        return None

    price = parse_number(_field(raw_fields, schema.index_of(fields.PRICE)))
    if price is None or price < 0:
        return None

    period_changes = {}
    for period in PERIOD_KEYS:
        if period is PeriodKey.D1:
            continue
        period_changes[period] = _number(raw_fields, schema.period_index(period))
    # 1D always comes from the dedicated percent-change column
    period_changes[PeriodKey.D1] = _number(raw_fields, schema.index_of(fields.CHANGE_PERCENT))

    return StockRecord(
        symbol=symbol,
        price=price,
        change_absolute=_number(raw_fields, schema.index_of(fields.CHANGE_ABSOLUTE)),
        period_changes=period_changes,
        market_cap=_number(raw_fields, schema.index_of(fields.MARKET_CAP)),
        volume=_number(raw_fields, schema.index_of(fields.VOLUME)),
        relative_volume=_number(raw_fields, schema.index_of(fields.RELATIVE_VOLUME)),
        company=_text(raw_fields, schema.index_of(fields.COMPANY)),
        sector=_text(raw_fields, schema.index_of(fields.SECTOR)),
        industry=_text(raw_fields, schema.index_of(fields.INDUSTRY)),
        rank=rank,
    )


def build_records(
    rows: Sequence[Sequence[str]],
    schema: FeedSchema,
    limit: Optional[int] = None,
) -> List[StockRecord]:
    """
    Build a record batch from data rows.

    Args:
        rows: Parsed data rows (header excluded).
        schema: Schema resolved once for this batch.
        limit: Only consider the first ``limit`` data rows of the sheet.

    Returns:
        Retained records in source order. Symbols are unique; the first
        occurrence of a duplicated symbol wins.
    """
    candidate_rows = rows if limit is None else rows[:limit]

    records: List[StockRecord] = []
    seen: Set[str] = set()
    dropped = 0

    for rank, raw_fields in enumerate(candidate_rows):
        record = build(raw_fields, schema, rank=rank)
        if record is None:
            dropped += 1
            continue
        if record.symbol in seen:
            logger.debug(f"Duplicate symbol {record.symbol} at row {rank} skipped")
            dropped += 1
            continue
        seen.add(record.symbol)
        records.append(record)

    if dropped:
        logger.debug(f"Record batch: {len(records)} kept, {dropped} dropped")
    return records
