"""Bounded in-memory history of market data points for one symbol."""

from collections import deque
from typing import Any, Iterable, Iterator, Mapping, Optional, Union

from stockpulse.models import Candle, HistoricalPoint


DEFAULT_MAX_POINTS = 100

PointLike = Union[HistoricalPoint, Mapping[str, Any]]


class TimeSeriesStore:
    """Rolling window of HistoricalPoints in arrival order.

    Points are never re-sorted. Once ``max_points`` is reached, each
    append evicts the oldest point.
    """

    def __init__(self, symbol: str, max_points: int = DEFAULT_MAX_POINTS):
        """Initialize the store.

        Args:
            symbol: Trading symbol this store belongs to.
            max_points: Maximum number of points retained.

        Raises:
            ValueError: If max_points is less than 1.
        """
        if max_points < 1:
            raise ValueError(f"max_points must be at least 1, got {max_points}")

        self.symbol = symbol
        self.max_points = max_points
        self._points: deque[HistoricalPoint] = deque(maxlen=max_points)

    def __len__(self) -> int:
        return len(self._points)

    def __iter__(self) -> Iterator[HistoricalPoint]:
        return iter(self._points)

    def __repr__(self) -> str:
        return f"TimeSeriesStore({self.symbol!r}, {len(self)}/{self.max_points})"

    def is_empty(self) -> bool:
        return not self._points

    def append(self, point: PointLike) -> HistoricalPoint:
        """Append a point, evicting the oldest one if the store is full.

        Args:
            point: A HistoricalPoint or a mapping of its fields. The
                timestamp is normalized to epoch milliseconds.

        Returns:
            The stored HistoricalPoint.
        """
        if not isinstance(point, HistoricalPoint):
            point = HistoricalPoint.model_validate(dict(point))
        self._points.append(point)
        return point

    def extend(self, points: Iterable[PointLike]) -> None:
        """Append several points in order."""
        for point in points:
            self.append(point)

    def latest(self) -> Optional[HistoricalPoint]:
        """Get the most recently appended point, or None if empty."""
        return self._points[-1] if self._points else None

    def prices(self) -> list[float]:
        """Closing prices, oldest first."""
        return [p.price for p in self._points]

    def candles(self) -> list[Candle]:
        """Candle projections of all points, oldest first."""
        return [p.to_candle() for p in self._points]
