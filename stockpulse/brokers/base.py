"""Base market data provider interface for StockPulse."""

from abc import ABC, abstractmethod

from stockpulse.models import MarketData


class BaseDataProvider(ABC):
    """Abstract base class for market data providers.

    Implementations fetch the latest intraday candle for a symbol along
    with the session's candle history.
    """

    @abstractmethod
    def fetch(self, symbol: str) -> MarketData:
        """Fetch the latest market data for a symbol.

        Args:
            symbol: Trading symbol.

        Returns:
            MarketData with the latest candle and history, oldest first.

        Raises:
            FetchError: A subclass describing why the fetch failed.
        """
        pass

    def close(self) -> None:
        """Release any resources held by the provider."""
