"""Tests for snapshot aggregation, including an end-to-end reference check."""

from unittest.mock import MagicMock, patch

import numpy as np
import pandas as pd
import pytest

from stockpulse.engine import SignalAggregator
from stockpulse.errors import CommentaryServiceError, RateLimitedError

from fakes import (
    FakeCommentary,
    FakeProvider,
    make_market_data,
    make_point,
    synthetic_prices,
)


def feed(provider: FakeProvider, symbol: str, prices: list[float]) -> None:
    for i, price in enumerate(prices):
        provider.queue(symbol, make_market_data(symbol, make_point(price, index=i)))


def reference_indicators(prices: list[float]) -> dict:
    """Compute indicators independently with pandas."""
    s = pd.Series(prices)
    diff = s.diff().dropna()
    avg_gain = diff.clip(lower=0).tail(14).mean()
    avg_loss = (-diff).clip(lower=0).tail(14).mean()
    log_returns = np.log(s / s.shift(1)).dropna()
    return {
        "sma": s.tail(20).mean(),
        "rsi": 100 - 100 / (1 + avg_gain / avg_loss),
        "price_change": s.pct_change().iloc[-1] * 100,
        "volatility": log_returns.std(ddof=0) * np.sqrt(252) * 100,
    }


class TestEndToEnd:
    """25 synthetic points produce reference indicator values."""

    def test_snapshot_matches_reference(self):
        prices = synthetic_prices(25)
        provider = FakeProvider()
        feed(provider, "SBIN", prices)
        aggregator = SignalAggregator(provider, seed_history=False)
        aggregator.register("SBIN")

        for _ in prices:
            snapshot = aggregator.update("SBIN")

        expected = reference_indicators(prices)
        ind = snapshot.indicators
        assert ind.sma == pytest.approx(expected["sma"], abs=1e-9)
        assert ind.rsi == pytest.approx(expected["rsi"], abs=1e-9)
        assert ind.price_change == pytest.approx(expected["price_change"], abs=1e-9)
        assert ind.volatility == pytest.approx(expected["volatility"], abs=1e-9)

        assert snapshot.point.price == prices[-1]
        assert len(aggregator.store("SBIN")) == 25
        assert snapshot.summary.trend_status in {"Uptrend", "Downtrend", "Sideways"}
        assert snapshot.summary.volume_trend == snapshot.patterns.volume_analysis.trend

    def test_indicators_fill_in_as_history_grows(self):
        prices = synthetic_prices(21)
        provider = FakeProvider()
        feed(provider, "SBIN", prices)
        aggregator = SignalAggregator(provider, seed_history=False)
        aggregator.register("SBIN")

        snapshots = [aggregator.update("SBIN") for _ in prices]

        first = snapshots[0]
        assert first.indicators.sma is None
        assert first.indicators.rsi is None
        assert first.indicators.price_change == 0.0
        assert first.patterns.candle_pattern.pattern == "Insufficient data"
        assert first.summary.trend_status == "Insufficient data"

        # RSI(14) needs 15 prices, SMA(20) needs 20
        assert snapshots[13].indicators.rsi is None
        assert snapshots[14].indicators.rsi is not None
        assert snapshots[18].indicators.sma is None
        assert snapshots[19].indicators.sma is not None
        assert snapshots[19].indicators.volatility is not None


class TestHistorySeeding:
    """An empty store is seeded from the session's candles."""

    def test_first_update_seeds_history(self):
        history = [make_point(p, index=i) for i, p in enumerate(synthetic_prices(30))]
        latest = history[-1]
        provider = FakeProvider()
        provider.queue("INFY", make_market_data("INFY", latest, history))

        aggregator = SignalAggregator(provider, max_points=100)
        aggregator.register("INFY")
        snapshot = aggregator.update("INFY")

        store = aggregator.store("INFY")
        assert len(store) == 30
        assert store.latest() == latest
        assert snapshot.indicators.sma is not None

    def test_seeding_respects_bound(self):
        history = [make_point(p, index=i) for i, p in enumerate(synthetic_prices(30))]
        provider = FakeProvider()
        provider.queue("INFY", make_market_data("INFY", history[-1], history))

        aggregator = SignalAggregator(provider, max_points=10)
        aggregator.register("INFY")
        aggregator.update("INFY")

        assert list(aggregator.store("INFY")) == history[-10:]

    def test_seeding_only_happens_once(self):
        history = [make_point(p, index=i) for i, p in enumerate(synthetic_prices(5))]
        provider = FakeProvider()
        provider.queue("INFY", make_market_data("INFY", history[-1], history))
        provider.queue("INFY", make_market_data("INFY", make_point(110.0, index=5), history))

        aggregator = SignalAggregator(provider)
        aggregator.register("INFY")
        aggregator.update("INFY")
        aggregator.update("INFY")

        assert len(aggregator.store("INFY")) == 6


class TestSinks:
    """Commentary and reporting hand-off."""

    def test_commentary_receives_summary(self):
        provider = FakeProvider()
        feed(provider, "TCS", synthetic_prices(6))
        commentary = FakeCommentary(text="Buy above resistance.")
        reporter = MagicMock()
        aggregator = SignalAggregator(provider, commentary=commentary, reporter=reporter)
        aggregator.register("TCS")

        for _ in range(6):
            snapshot = aggregator.update("TCS")

        assert snapshot.commentary == "Buy above resistance."
        symbol, indicators, point, summary = commentary.calls[-1]
        assert symbol == "TCS"
        assert indicators == snapshot.indicators
        assert point == snapshot.point
        assert summary.support_levels == snapshot.patterns.support_resistance.support
        assert reporter.report.call_count == 6
        reporter.report.assert_called_with(snapshot)

    def test_commentary_failure_degrades(self):
        provider = FakeProvider()
        feed(provider, "TCS", [100.0])
        reporter = MagicMock()
        aggregator = SignalAggregator(
            provider,
            commentary=FakeCommentary(error=CommentaryServiceError("quota exceeded")),
            reporter=reporter,
        )
        aggregator.register("TCS")

        snapshot = aggregator.update("TCS")

        assert snapshot.commentary is None
        reporter.report.assert_called_once_with(snapshot)


class TestFailures:
    """Fetch errors propagate; calculation errors degrade."""

    def test_unregistered_symbol(self):
        aggregator = SignalAggregator(FakeProvider())
        with pytest.raises(KeyError):
            aggregator.update("UNKNOWN")

    def test_fetch_error_leaves_store_untouched(self):
        provider = FakeProvider()
        provider.queue("SBIN", RateLimitedError("SBIN", "slow down", status_code=429))
        aggregator = SignalAggregator(provider)
        aggregator.register("SBIN")

        with pytest.raises(RateLimitedError):
            aggregator.update("SBIN")
        assert aggregator.store("SBIN").is_empty()

    def test_calculation_error_degrades_to_unavailable(self):
        provider = FakeProvider()
        feed(provider, "SBIN", [100.0])
        aggregator = SignalAggregator(provider)
        aggregator.register("SBIN")

        with patch(
            "stockpulse.engine.aggregator.calculate_indicators",
            side_effect=ZeroDivisionError("boom"),
        ):
            snapshot = aggregator.update("SBIN")

        assert snapshot.indicators.sma is None
        assert snapshot.indicators.price_change is None
        assert len(aggregator.store("SBIN")) == 1

    def test_detector_error_degrades_only_that_detector(self):
        provider = FakeProvider()
        feed(provider, "SBIN", [100.0])
        aggregator = SignalAggregator(provider)
        aggregator.register("SBIN")

        with patch(
            "stockpulse.indicators.patterns.find_support_resistance",
            side_effect=ZeroDivisionError("boom"),
        ):
            snapshot = aggregator.update("SBIN")

        assert snapshot.summary.support_levels == []
        assert snapshot.summary.resistance_levels == []
        assert snapshot.indicators.price_change == 0.0

    def test_register_is_idempotent(self):
        aggregator = SignalAggregator(FakeProvider())
        store = aggregator.register("SBIN")
        assert aggregator.register("SBIN") is store
        assert aggregator.symbols == ["SBIN"]
