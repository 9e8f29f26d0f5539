"""Bounded, timestamp-ordered window of price points."""
from collections import deque
from collections.abc import Iterable, Iterator

from crypto_tracker.schemas import PricePoint

DEFAULT_WINDOW_CAP = 240


class PriceSeries:
    """Sliding window over the most recent price points.

    Points are kept in non-decreasing timestamp order and the window never
    holds more than `cap` points; when full, the oldest points go first.
    """

    def __init__(self, cap: int = DEFAULT_WINDOW_CAP) -> None:
        if cap < 1:
            raise ValueError(f"Window cap must be at least 1, got {cap}")
        self._cap = cap
        self._points: deque[PricePoint] = deque(maxlen=cap)

    @property
    def cap(self) -> int:
        return self._cap

    @property
    def points(self) -> list[PricePoint]:
        return list(self._points)

    @property
    def latest(self) -> PricePoint | None:
        return self._points[-1] if self._points else None

    def replace(self, points: Iterable[PricePoint]) -> None:
        """Replace the contents, keeping only the `cap` most recent points."""
        ordered = sorted(points, key=lambda p: p.timestamp)
        self._points = deque(ordered, maxlen=self._cap)

    def append(self, point: PricePoint) -> bool:
        """Merge one new sample at the end of the window.

        A sample older than the current latest is ignored. A sample with the
        same timestamp as the latest replaces it. Returns True when the window
        changed.
        """
        latest = self.latest
        if latest is not None:
            if point.timestamp < latest.timestamp:
                return False
            if point.timestamp == latest.timestamp:
                if point.price == latest.price:
                    return False
                self._points[-1] = point
                return True
        self._points.append(point)
        return True

    def as_pairs(self) -> list[list[float]]:
        """The window as `[epoch_ms, price]` pairs."""
        return [p.to_pair() for p in self._points]

    def __len__(self) -> int:
        return len(self._points)

    def __iter__(self) -> Iterator[PricePoint]:
        return iter(self._points)
