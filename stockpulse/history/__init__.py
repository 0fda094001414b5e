"""Per-symbol market data history."""

from stockpulse.history.store import DEFAULT_MAX_POINTS, TimeSeriesStore

__all__ = ["DEFAULT_MAX_POINTS", "TimeSeriesStore"]
