"""
Heat-map data service.

Owns the current record collection for one heat-map widget. The
collection is a tuple that is only ever replaced as a whole, so a render
pass reading ``records`` never sees a half-applied refresh.

Refreshes are sequence-numbered: a response is applied only if no newer
response has been applied already. A slow fetch that started before a
faster one therefore cannot overwrite fresher data.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Callable, List, Optional, Protocol, Sequence, Tuple

from ..models.stock_record import StockRecord
from ..utils.logging_setup import get_logger
from ..utils.timezone import now_utc

logger = get_logger(__name__)


class RecordSource(Protocol):
    """Anything that can produce a fresh record batch (e.g. SheetFeedAdapter)."""

    async def fetch_records(self) -> List[StockRecord]:
        ...


class LoadStatus(Enum):
    LOADING = "loading"  # first load still in flight
    READY = "ready"
    EMPTY = "empty"  # first load failed or the feed has no rows


DataListener = Callable[["HeatmapDataService"], None]


class HeatmapDataService:
    """In-memory record collection with a staleness guard."""

    def __init__(self, name: str, source: RecordSource) -> None:
        self._name = name
        self._source = source

        self._records: Tuple[StockRecord, ...] = ()
        self._status = LoadStatus.LOADING
        self._last_error: Optional[str] = None
        self._last_updated: Optional[datetime] = None

        self._next_seq = 0
        self._applied_seq = -1
        self._listeners: List[DataListener] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def records(self) -> Tuple[StockRecord, ...]:
        return self._records

    @property
    def status(self) -> LoadStatus:
        return self._status

    @property
    def last_error(self) -> Optional[str]:
        """Message of the most recent failed refresh, cleared on success."""
        return self._last_error

    @property
    def last_updated(self) -> Optional[datetime]:
        return self._last_updated

    @property
    def has_data(self) -> bool:
        return bool(self._records)

    def subscribe(self, listener: DataListener) -> None:
        self._listeners.append(listener)

    def find(self, symbol: str) -> Optional[StockRecord]:
        for record in self._records:
            if record.symbol == symbol:
                return record
        return None

    async def refresh(self) -> bool:
        """
        Fetch a new batch and apply it unless a newer one already landed.

        Failures are logged and leave the current records in place; they
        never propagate to the caller.

        Returns:
            True if this call replaced the record collection.
        """
        seq = self._next_seq
        self._next_seq += 1

        try:
            records = await self._source.fetch_records()
        except Exception as e:
            return self._apply_failure(seq, e)

        return self._apply(seq, records)

    def _apply(self, seq: int, records: Sequence[StockRecord]) -> bool:
        if seq <= self._applied_seq:
            logger.debug(f"{self._name}: discarded stale refresh #{seq} (applied #{self._applied_seq})")
            return False

        self._applied_seq = seq
        self._records = tuple(records)
        self._status = LoadStatus.READY if self._records else LoadStatus.EMPTY
        self._last_error = None
        self._last_updated = now_utc()
        logger.info(f"{self._name}: applied refresh #{seq} ({len(self._records)} records)")
        self._notify()
        return True

    def _apply_failure(self, seq: int, error: Exception) -> bool:
        if seq <= self._applied_seq:
            logger.debug(f"{self._name}: ignored failure of stale refresh #{seq}")
            return False

        self._last_error = str(error)
        if self._status is LoadStatus.LOADING:
            self._status = LoadStatus.EMPTY
            logger.warning(f"{self._name}: first load failed: {error}")
        else:
            logger.warning(
                f"{self._name}: refresh failed, keeping {len(self._records)} records: {error}"
            )
        self._notify()
        return False

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception as e:
                logger.warning(f"{self._name}: listener failed: {e}")
