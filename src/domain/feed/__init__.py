"""
Feed Sub-Package.

CSV line parsing, header → column resolution and record building for
the published-spreadsheet heat-map feed.
"""

from __future__ import annotations

from typing import List, Optional

from ...models.stock_record import StockRecord
from .csv_line import parse_csv, parse_line
from .record_builder import build, build_records, parse_number
from .schema import (
    DEFAULT_COLUMNS,
    DEFAULT_PERIOD_COLUMNS,
    ColumnSpec,
    FeedSchema,
    SchemaResolver,
    resolve,
)


def parse_feed(
    text: str,
    resolver: Optional[SchemaResolver] = None,
    limit: Optional[int] = None,
) -> List[StockRecord]:
    """Parse a whole CSV document into a record batch."""
    header, rows = parse_csv(text)
    if not header:
        return []
    schema = (resolver or SchemaResolver()).resolve(header)
    return build_records(rows, schema, limit=limit)


__all__ = [
    "parse_line",
    "parse_csv",
    "parse_feed",
    "parse_number",
    "build",
    "build_records",
    "ColumnSpec",
    "FeedSchema",
    "SchemaResolver",
    "resolve",
    "DEFAULT_COLUMNS",
    "DEFAULT_PERIOD_COLUMNS",
]
