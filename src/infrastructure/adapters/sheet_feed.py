"""
Published-spreadsheet CSV feed adapter.

Downloads the sheet's CSV export and turns it into a StockRecord batch:
header row → FeedSchema (once per document) → record builder per row.
"""

from __future__ import annotations

import asyncio
from typing import List, Optional

import requests

from ...domain.exceptions import FeedUnavailableError
from ...domain.feed import SchemaResolver, build_records, parse_csv
from ...models.stock_record import StockRecord
from ...utils.logging_setup import get_logger

logger = get_logger(__name__)

DEFAULT_TIMEOUT = 15.0


class SheetFeedAdapter:
    """
    Fetches one spreadsheet feed.

    One adapter per widget: the market heat map and the sector view point
    at different sheets with different row caps.
    """

    def __init__(
        self,
        url: str,
        resolver: Optional[SchemaResolver] = None,
        row_limit: Optional[int] = None,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._url = url
        self._resolver = resolver or SchemaResolver()
        self._row_limit = row_limit
        self._timeout = timeout
        self._session = session or requests.Session()

    @property
    def url(self) -> str:
        return self._url

    async def fetch_records(self) -> List[StockRecord]:
        """
        Fetch and parse the feed.

        Raises:
            FeedUnavailableError: Network failure, non-success status or a
                document without a header row.
        """
        text = await asyncio.to_thread(self._download)
        return self.parse(text)

    def parse(self, text: str) -> List[StockRecord]:
        header, rows = parse_csv(text)
        if not header:
            raise FeedUnavailableError(self._url, "empty document")

        schema = self._resolver.resolve(header)
        records = build_records(rows, schema, limit=self._row_limit)
        logger.info(f"Feed parsed: {len(records)} records from {len(rows)} rows")
        return records

    def close(self) -> None:
        self._session.close()

    def _download(self) -> str:
        try:
            resp = self._session.get(self._url, timeout=self._timeout)
        except requests.RequestException as e:
            raise FeedUnavailableError(self._url, type(e).__name__) from e

        if not resp.ok:
            raise FeedUnavailableError(self._url, f"HTTP {resp.status_code}")
        # Sheets exports are UTF-8 but often omit the charset header
        if "charset" not in resp.headers.get("content-type", ""):
            resp.encoding = "utf-8"
        return resp.text
