"""Trailing-edge debouncer for free-text search input."""
import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_SECONDS = 0.35

SearchCallback = Callable[[str], Awaitable[None] | None]


class Debouncer:
    """Delays search dispatch until input has been quiet for `delay` seconds.

    Only the last value pushed before the quiet period is dispatched.
    """

    def __init__(self, callback: SearchCallback, delay: float = DEFAULT_DEBOUNCE_SECONDS) -> None:
        self._callback = callback
        self._delay = delay
        self._pending: str | None = None
        self._timer: asyncio.Task | None = None
        # Timers and dispatches still running, including detached ones.
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> str | None:
        return self._pending

    def push(self, value: str) -> None:
        """Record a keystroke's value and restart the quiet period."""
        self._pending = (value or "").strip()
        if self._timer is not None:
            self._timer.cancel()
        self._timer = asyncio.create_task(self._fire_later())
        self._tasks.add(self._timer)
        self._timer.add_done_callback(self._task_done)

    async def flush(self) -> None:
        """Dispatch the pending value now, if any."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self._pending is not None:
            await self._dispatch()

    def cancel(self) -> None:
        """Drop the pending value and cancel any dispatch already running."""
        for task in self._tasks:
            task.cancel()
        self._timer = None
        self._pending = None

    async def aclose(self) -> None:
        """Cancel everything and wait until no dispatch is running."""
        tasks = list(self._tasks)
        self.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    async def _fire_later(self) -> None:
        await asyncio.sleep(self._delay)
        # Detach first so a push() during dispatch starts a fresh timer
        # instead of cancelling this one.
        self._timer = None
        await self._dispatch()

    async def _dispatch(self) -> None:
        value, self._pending = self._pending, None
        if value is None:
            return
        logger.debug("Dispatching search query %r", value)
        result = self._callback(value)
        if inspect.isawaitable(result):
            await result

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Search dispatch failed", exc_info=task.exception())
