"""Market data providers for StockPulse."""

from stockpulse.brokers.base import BaseDataProvider
from stockpulse.brokers.upstox import NIFTY_50, UpstoxDataProvider

__all__ = [
    "BaseDataProvider",
    "NIFTY_50",
    "UpstoxDataProvider",
]
