"""
Drill-down interaction state for the heat-map views.

One explicit state value replaces the scattered "selected sector /
selected stock / expanded / origin" flags of a typical widget:

    GridState ──open_sector──▶ SectorExpanded ──open_stock──▶ StockExpanded
        │                                                          ▲
        └──────────────────────────open_stock──────────────────────┘

``back()`` always returns one level up (StockExpanded entered from a
sector goes back to that sector, never straight to the grid). The
transition is deferred by ``collapse_delay`` so the collapse animation
still has the old selection to draw from; ``collapsing`` is True while
the deferral is pending.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field, replace
from typing import Awaitable, Callable, List, Optional, Sequence, Set, Union

from ...models.quote import ExtendedProfile, NewsItem
from ...models.stock_record import StockRecord
from ...utils.logging_setup import get_logger
from ..clock import Clock

logger = get_logger(__name__)

DEFAULT_COLLAPSE_DELAY = 0.4

NewsFetcher = Callable[[str], Awaitable[Sequence[NewsItem]]]
ProfileFetcher = Callable[[str], Awaitable[Optional[ExtendedProfile]]]


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class Rect:
    """Screen rectangle; (x, y) is the top-left corner."""

    x: float
    y: float
    width: float
    height: float

    def relative_to(self, container: "Rect") -> "Rect":
        """This rectangle in the container's coordinate space."""
        return Rect(self.x - container.x, self.y - container.y, self.width, self.height)

    def contains(self, point: Point) -> bool:
        return (
            self.x <= point.x < self.x + self.width
            and self.y <= point.y < self.y + self.height
        )


@dataclass(frozen=True)
class GridState:
    """Idle state: the full tile grid."""


@dataclass(frozen=True)
class SectorExpanded:
    sector: str
    origin: Rect


@dataclass(frozen=True)
class StockExpanded:
    """
    Stock detail overlay.

    ``sector`` is set when the overlay was opened from an expanded sector;
    ``sector_origin`` keeps that sector's geometry for the way back.
    """

    stock: StockRecord
    origin: Rect
    sector: Optional[str] = None
    sector_origin: Optional[Rect] = None
    news_items: Sequence[NewsItem] = field(default_factory=tuple)
    extended_profile: Optional[ExtendedProfile] = None
    news_loading: bool = False
    profile_loading: bool = False

    @property
    def loading(self) -> bool:
        return self.news_loading or self.profile_loading


InteractionState = Union[GridState, SectorExpanded, StockExpanded]
StateListener = Callable[["DrillDownController"], None]

GRID = GridState()


class DrillDownController:
    """
    Owns the drill-down state of one heat-map widget.

    Enrichment (news, extended profile) is fetched in background tasks that
    never block a transition. Results are tagged with a selection token and
    dropped if the selection changed while they were in flight.
    """

    def __init__(
        self,
        clock: Clock,
        news_fetcher: Optional[NewsFetcher] = None,
        profile_fetcher: Optional[ProfileFetcher] = None,
        sector_view: bool = False,
        collapse_delay: float = DEFAULT_COLLAPSE_DELAY,
    ) -> None:
        self._clock = clock
        self._news_fetcher = news_fetcher
        self._profile_fetcher = profile_fetcher
        self._sector_view = sector_view
        self._collapse_delay = collapse_delay

        self._state: InteractionState = GRID
        self._collapsing = False
        self._collapse_timer: Optional[str] = None
        self._token = 0
        self._tasks: Set[asyncio.Task] = set()
        self._listeners: List[StateListener] = []

    # -------------------------------------------------------------------------
    # Read access
    # -------------------------------------------------------------------------

    @property
    def state(self) -> InteractionState:
        return self._state

    @property
    def collapsing(self) -> bool:
        return self._collapsing

    @property
    def sector_view(self) -> bool:
        return self._sector_view

    @property
    def selected_stock(self) -> Optional[StockRecord]:
        return self._state.stock if isinstance(self._state, StockExpanded) else None

    @property
    def selected_sector(self) -> Optional[str]:
        if isinstance(self._state, SectorExpanded):
            return self._state.sector
        if isinstance(self._state, StockExpanded):
            return self._state.sector
        return None

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """
        Register a state-change callback.

        Returns:
            A function that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def open_sector(self, sector: str, tile_rect: Rect, container_rect: Rect) -> bool:
        """
        Expand a sector block. Only valid in the sector view, from the grid.

        Returns:
            True if the transition happened.
        """
        if not self._sector_view or not isinstance(self._state, GridState):
            logger.debug(f"open_sector({sector}) ignored in {type(self._state).__name__}")
            return False

        self._cancel_collapse()
        self._set_state(SectorExpanded(sector=sector, origin=tile_rect.relative_to(container_rect)))
        logger.info(f"Sector expanded: {sector}")
        return True

    def open_stock(self, stock: StockRecord, tile_rect: Rect, container_rect: Rect) -> bool:
        """
        Open the stock overlay from any state.

        Re-entry while a stock is already open replaces the stock and its
        origin outright; only the parent sector carries over.
        """
        self._cancel_collapse()

        sector: Optional[str] = None
        sector_origin: Optional[Rect] = None
        if isinstance(self._state, SectorExpanded):
            sector, sector_origin = self._state.sector, self._state.origin
        elif isinstance(self._state, StockExpanded):
            sector, sector_origin = self._state.sector, self._state.sector_origin

        self._token += 1
        token = self._token

        self._set_state(
            StockExpanded(
                stock=stock,
                origin=tile_rect.relative_to(container_rect),
                sector=sector,
                sector_origin=sector_origin,
                news_items=(),
                extended_profile=None,
                news_loading=self._news_fetcher is not None,
                profile_loading=self._profile_fetcher is not None,
            )
        )
        logger.info(f"Stock expanded: {stock.symbol}" + (f" (sector {sector})" if sector else ""))

        if self._news_fetcher is not None:
            self._spawn(self._load_news(stock.symbol, token), "news_loading")
        if self._profile_fetcher is not None:
            self._spawn(self._load_profile(stock.symbol, token), "profile_loading")
        return True

    def back(self) -> bool:
        """
        Go one level up after the collapse delay.

        Returns:
            True if a collapse was started.
        """
        state = self._state
        if isinstance(state, GridState) or self._collapsing:
            return False

        if isinstance(state, StockExpanded):
            # Enrichment is cleared now; the stock itself stays for the animation
            self._token += 1
            if state.sector is not None and state.sector_origin is not None:
                parent: InteractionState = SectorExpanded(state.sector, state.sector_origin)
            else:
                parent = GRID
            self._collapsing = True
            self._set_state(
                replace(
                    state,
                    news_items=(),
                    extended_profile=None,
                    news_loading=False,
                    profile_loading=False,
                )
            )
        else:
            parent = GRID
            self._collapsing = True
            self._notify()

        self._collapse_timer = self._clock.set_timer(
            self._collapse_delay, lambda: self._finish_collapse(parent)
        )
        return True

    def backdrop_click(self, point: Point, content_rect: Rect) -> bool:
        """
        Handle a click on the overlay backdrop.

        Clicks that land inside the overlay content are not a close request.

        Returns:
            True if the click started a collapse.
        """
        if content_rect.contains(point):
            return False
        return self.back()

    def close(self) -> None:
        """Cancel the pending collapse and any in-flight enrichment."""
        self._cancel_collapse()
        self._token += 1
        for task in list(self._tasks):
            task.cancel()
        self._tasks.clear()
        self._listeners.clear()

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _finish_collapse(self, parent: InteractionState) -> None:
        self._collapse_timer = None
        self._collapsing = False
        self._set_state(parent)
        logger.debug(f"Collapsed to {type(parent).__name__}")

    def _cancel_collapse(self) -> None:
        if self._collapse_timer is not None:
            self._clock.cancel_timer(self._collapse_timer)
            self._collapse_timer = None
        self._collapsing = False

    def _set_state(self, state: InteractionState) -> None:
        self._state = state
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception as e:
                logger.warning(f"Drill-down listener failed: {e}")

    def _spawn(self, coro: Awaitable[None], loading_flag: str) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            coro.close()  # type: ignore[attr-defined]
            logger.warning("No running event loop; overlay enrichment skipped")
            self._update_current(self._token, **{loading_flag: False})
            return
        task = loop.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _update_current(self, token: int, **changes: object) -> bool:
        """Apply changes to the overlay if it still belongs to ``token``."""
        if token != self._token or not isinstance(self._state, StockExpanded):
            return False
        self._set_state(replace(self._state, **changes))
        return True

    async def _load_news(self, symbol: str, token: int) -> None:
        assert self._news_fetcher is not None
        try:
            items = await self._news_fetcher(symbol)
        except Exception as e:
            logger.warning(f"News fetch failed for {symbol}: {e}")
            self._update_current(token, news_loading=False)
            return
        if not self._update_current(token, news_items=tuple(items), news_loading=False):
            logger.debug(f"Discarded stale news for {symbol}")

    async def _load_profile(self, symbol: str, token: int) -> None:
        assert self._profile_fetcher is not None
        try:
            profile = await self._profile_fetcher(symbol)
        except Exception as e:
            logger.warning(f"Profile fetch failed for {symbol}: {e}")
            self._update_current(token, profile_loading=False)
            return
        if not self._update_current(token, extended_profile=profile, profile_loading=False):
            logger.debug(f"Discarded stale profile for {symbol}")
