"""Signal aggregation for monitored symbols.

The aggregator owns one TimeSeriesStore per registered symbol. Each
update appends the freshly fetched point, runs every indicator and
pattern detector over the store's window and assembles a Snapshot.
"""

import logging
from typing import Optional

from stockpulse.agents.commentary import CommentarySink
from stockpulse.brokers.base import BaseDataProvider
from stockpulse.errors import CommentaryServiceError
from stockpulse.history import DEFAULT_MAX_POINTS, TimeSeriesStore
from stockpulse.indicators.patterns import (
    analyze_patterns,
    degrade,
    determine_chart_pattern,
    determine_trend,
)
from stockpulse.indicators.technical import (
    DEFAULT_RSI_PERIOD,
    DEFAULT_SMA_PERIOD,
    calculate_indicators,
)
from stockpulse.models import (
    INSUFFICIENT_DATA,
    MarketData,
    PatternSummary,
    Snapshot,
    TechnicalIndicators,
)
from stockpulse.reporting import SnapshotReporter


logger = logging.getLogger(__name__)


class SignalAggregator:
    """Builds per-symbol snapshots from fetched market data."""

    def __init__(
        self,
        provider: BaseDataProvider,
        commentary: Optional[CommentarySink] = None,
        reporter: Optional[SnapshotReporter] = None,
        max_points: int = DEFAULT_MAX_POINTS,
        sma_period: int = DEFAULT_SMA_PERIOD,
        rsi_period: int = DEFAULT_RSI_PERIOD,
        seed_history: bool = True,
    ):
        """Initialize the aggregator.

        Args:
            provider: Market data provider.
            commentary: Optional commentary sink. Snapshots carry no
                commentary when omitted.
            reporter: Optional reporter that receives every snapshot.
            max_points: History size per symbol.
            sma_period: SMA window.
            rsi_period: RSI window.
            seed_history: Seed an empty store from the fetched session
                candles on the first update.
        """
        self.provider = provider
        self.commentary = commentary
        self.reporter = reporter
        self.max_points = max_points
        self.sma_period = sma_period
        self.rsi_period = rsi_period
        self.seed_history = seed_history
        self._stores: dict[str, TimeSeriesStore] = {}

    @property
    def symbols(self) -> list[str]:
        return list(self._stores)

    def register(self, symbol: str) -> TimeSeriesStore:
        """Register a symbol for monitoring, creating its store once."""
        if symbol not in self._stores:
            self._stores[symbol] = TimeSeriesStore(symbol, self.max_points)
        return self._stores[symbol]

    def store(self, symbol: str) -> TimeSeriesStore:
        """Get the store for a registered symbol.

        Raises:
            KeyError: If the symbol is not registered.
        """
        try:
            return self._stores[symbol]
        except KeyError:
            raise KeyError(f"No stock data found for symbol: {symbol}") from None

    def _seed(self, store: TimeSeriesStore, data: MarketData) -> None:
        older = [c for c in data.historical_candles if c.timestamp < data.timestamp]
        if older:
            store.extend(older)
            logger.debug("Seeded %s with %d historical candles", store.symbol, len(store))

    def build_snapshot(self, symbol: str, data: MarketData) -> Snapshot:
        """Append fetched data to the symbol's store and derive a snapshot.

        Args:
            symbol: Registered trading symbol.
            data: Freshly fetched market data.

        Returns:
            Snapshot without commentary.
        """
        store = self.store(symbol)
        if self.seed_history and store.is_empty():
            self._seed(store, data)

        point = store.append(data.point)

        candles = store.candles()
        patterns = analyze_patterns(candles)
        levels = patterns.support_resistance

        prices = store.prices()
        indicators = degrade(
            "Technical indicators",
            lambda: calculate_indicators(prices, self.sma_period, self.rsi_period),
            TechnicalIndicators(sma_period=self.sma_period, rsi_period=self.rsi_period),
        )

        summary = PatternSummary(
            candle_pattern=patterns.candle_pattern.pattern,
            chart_pattern=degrade(
                "Chart pattern",
                lambda: determine_chart_pattern(candles, levels),
                INSUFFICIENT_DATA,
            ),
            trend_status=degrade(
                "Trend",
                lambda: determine_trend(candles, slow_period=self.sma_period),
                INSUFFICIENT_DATA,
            ),
            support_levels=levels.support,
            resistance_levels=levels.resistance,
            volume_trend=patterns.volume_analysis.trend,
        )

        return Snapshot(
            symbol=symbol,
            point=point,
            indicators=indicators,
            patterns=patterns,
            summary=summary,
        )

    def _commentary_for(self, snapshot: Snapshot) -> Optional[str]:
        if self.commentary is None:
            return None
        try:
            return self.commentary.analyze(
                snapshot.symbol, snapshot.indicators, snapshot.point, snapshot.summary
            )
        except CommentaryServiceError as e:
            logger.warning("Commentary unavailable for %s: %s", snapshot.symbol, e)
            return None

    def update(self, symbol: str) -> Snapshot:
        """Fetch, analyze and report one symbol.

        Args:
            symbol: Registered trading symbol.

        Returns:
            The completed snapshot, with commentary None if the
            commentary service failed.

        Raises:
            KeyError: If the symbol is not registered.
            FetchError: If market data could not be fetched.
        """
        self.store(symbol)
        data = self.provider.fetch(symbol)
        snapshot = self.build_snapshot(symbol, data)

        commentary = self._commentary_for(snapshot)
        if commentary is not None:
            snapshot = snapshot.model_copy(update={"commentary": commentary})

        if self.reporter is not None:
            self.reporter.report(snapshot)
        return snapshot
