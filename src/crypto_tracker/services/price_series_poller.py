"""Live price chart for one selected coin: full load, then fast-interval ticks.

A poller belongs to one mounted chart view. Selecting a coin (or a display
range) issues a full-range load; once the load lands the view is live and a
repeating timer fetches a narrow range and appends the newest sample to a
bounded window.

Every request is tagged with the generation it was issued under. Selecting,
changing range and stopping all bump the generation, so a result that arrives
after the selection moved on is dropped instead of merged.
"""
import asyncio
import logging
from collections.abc import Callable, Coroutine
from typing import Any

from crypto_tracker.formatting import format_price
from crypto_tracker.providers.core import MarketDataClientABC, TransportError
from crypto_tracker.providers.core.utils import normalize_crypto_id
from crypto_tracker.schemas import (ChartView, DisplayRange, PollerState,
                                    PricePoint)
from crypto_tracker.services.price_series import (DEFAULT_WINDOW_CAP,
                                                  PriceSeries)

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_MS = 15_000
# Roughly half an hour of history: enough to contain the most recent sample.
TICK_RANGE_DAYS = 0.02

_MESSAGES = {
    PollerState.IDLE: "Select a coin to see chart.",
    PollerState.LOADING: "Loading chart...",
    PollerState.LOAD_FAILED: "Could not load chart data.",
}

ChartListener = Callable[[ChartView], None]


class PriceSeriesPoller:
    """Owns the fetch-merge-render loop for the selected coin's price history."""

    def __init__(
        self,
        client: MarketDataClientABC,
        *,
        poll_interval_ms: int = DEFAULT_POLL_INTERVAL_MS,
        window_cap: int = DEFAULT_WINDOW_CAP,
        currency: str = "usd",
        display_range: DisplayRange = DisplayRange.ONE_DAY,
        on_change: ChartListener | None = None,
    ) -> None:
        """Initialize an idle poller.

        Args:
            client: Market data client used for both the full load and ticks.
            poll_interval_ms: Tick period; 0 or less disables ticking.
            window_cap: Maximum number of retained points.
            currency: Quote currency for every request.
            display_range: Range used by the full load.
            on_change: Called with the new ChartView after every applied change.
        """
        self._client = client
        self._poll_interval_ms = poll_interval_ms
        self._window_cap = window_cap
        self._currency = currency
        self._range = DisplayRange(display_range)
        self._on_change = on_change

        self._series = PriceSeries(window_cap)
        self._state = PollerState.IDLE
        self._coin_id: str | None = None
        self._generation = 0
        self._started = False
        self._stopped = False
        self._timer: asyncio.Task | None = None
        self._tasks: set[asyncio.Task] = set()

    @property
    def state(self) -> PollerState:
        return self._state

    @property
    def coin_id(self) -> str | None:
        return self._coin_id

    @property
    def display_range(self) -> DisplayRange:
        return self._range

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def series(self) -> PriceSeries:
        return self._series

    @property
    def stopped(self) -> bool:
        return self._stopped

    def view(self) -> ChartView:
        """Render model for the current state."""
        latest = self._series.latest
        return ChartView(
            state=self._state,
            coin_id=self._coin_id,
            range=self._range,
            points=self._series.points,
            message=_MESSAGES.get(self._state),
            last_price_display=format_price(latest.price) if latest else None,
        )

    # ---- Lifecycle ----
    def start(self) -> None:
        """Mount: start the repeating tick timer. Must run inside an event loop."""
        if self._started or self._stopped:
            return
        self._started = True
        if self._poll_interval_ms > 0:
            self._timer = asyncio.create_task(self._run_timer())

    async def stop(self) -> None:
        """Unmount: stop the timer and drop every in-flight request.

        After this returns no callback, late response or timer tick can change
        the poller's state.
        """
        if self._stopped:
            return
        self._stopped = True
        self._generation += 1
        pending = list(self._tasks)
        if self._timer is not None:
            pending.append(self._timer)
            self._timer = None
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        self._tasks.clear()

    async def __aenter__(self) -> "PriceSeriesPoller":
        self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        await self.stop()

    # ---- Selection ----
    def select(self, coin_id: str | None) -> asyncio.Task | None:
        """Observe a different coin (None to clear the selection).

        The previous series is discarded immediately. Returns the task running
        the full load so callers can await it; None when nothing was issued.
        """
        if self._stopped:
            logger.debug("Ignoring selection of %s on a stopped poller", coin_id)
            return None
        normalized = normalize_crypto_id(coin_id) if coin_id else None
        self._generation += 1
        self._coin_id = normalized or None
        self._series = PriceSeries(self._window_cap)
        if self._coin_id is None:
            self._state = PollerState.IDLE
            self._notify()
            return None
        return self._begin_load()

    def set_range(self, display_range: DisplayRange | str) -> asyncio.Task | None:
        """Switch the display range and reload the current coin."""
        if self._stopped:
            return None
        self._range = DisplayRange(display_range)
        if self._coin_id is None:
            self._notify()
            return None
        return self.select(self._coin_id)

    def _begin_load(self) -> asyncio.Task:
        self._state = PollerState.LOADING
        self._notify()
        return self._spawn(self._load(self._generation, self._coin_id, self._range))

    async def _load(self, generation: int, coin_id: str, display_range: DisplayRange) -> None:
        try:
            points = await self._client.fetch_series(
                coin_id, self._currency, display_range.days
            )
        except TransportError as exc:
            if not self._is_current(generation):
                return
            logger.warning("Chart load failed for %s (%s): %s", coin_id, display_range.label, exc)
            self._state = PollerState.LOAD_FAILED
            self._notify()
            return
        if not self._is_current(generation):
            logger.debug("Discarding stale chart load for %s", coin_id)
            return
        self._series.replace(points)
        self._state = PollerState.LIVE
        self._notify()

    # ---- Ticking ----
    async def tick(self) -> bool:
        """Fetch the newest sample and merge it into the live window.

        Only acts while live. Failures are logged and leave the series as is.
        Returns True when the series changed.
        """
        if self._stopped or self._state is not PollerState.LIVE or self._coin_id is None:
            return False
        generation = self._generation
        coin_id = self._coin_id
        try:
            points = await self._client.fetch_series(coin_id, self._currency, TICK_RANGE_DAYS)
        except TransportError as exc:
            logger.debug("Skipping chart tick for %s: %s", coin_id, exc)
            return False
        if not self._is_current(generation) or self._state is not PollerState.LIVE:
            logger.debug("Discarding stale chart tick for %s", coin_id)
            return False
        if not points:
            return False
        latest: PricePoint = max(points, key=lambda p: p.timestamp)
        if not self._series.append(latest):
            return False
        self._notify()
        return True

    async def _run_timer(self) -> None:
        interval = self._poll_interval_ms / 1000
        while True:
            await asyncio.sleep(interval)
            # Ticks are not queued behind each other; a slow one may overlap the next.
            self._spawn(self.tick())

    # ---- Internals ----
    def _is_current(self, generation: int) -> bool:
        return not self._stopped and generation == self._generation

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def _notify(self) -> None:
        if self._on_change is None or self._stopped:
            return
        self._on_change(self.view())
