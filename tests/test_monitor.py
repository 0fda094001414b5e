"""Tests for the monitoring loop."""

import threading
from unittest.mock import MagicMock

import pytest

from stockpulse.engine import Monitor, SignalAggregator
from stockpulse.errors import SymbolNotFoundError, UnauthorizedError

from fakes import FakeProvider, make_market_data, make_point


def market_data(symbol: str, price: float = 100.0, index: int = 0):
    return make_market_data(symbol, make_point(price, index=index))


class SteppingClock:
    """A clock that advances a fixed step every time it is read."""

    def __init__(self, step: float):
        self.now = 0.0
        self.step = step

    def __call__(self) -> float:
        self.now += self.step
        return self.now


class TestCycle:
    """A cycle updates every symbol and isolates failures."""

    def test_failures_do_not_stop_other_symbols(self):
        provider = FakeProvider()
        provider.queue("SBIN", market_data("SBIN"))
        provider.queue("BAD", SymbolNotFoundError("BAD", "no such symbol", status_code=404))
        provider.queue("INFY", market_data("INFY"))
        reporter = MagicMock()

        monitor = Monitor(
            SignalAggregator(provider),
            ["SBIN", "BAD", "INFY"],
            symbol_delay=0,
            reporter=reporter,
        )
        snapshots = monitor.run_cycle()

        assert [s.symbol for s in snapshots] == ["SBIN", "INFY"]
        assert provider.calls == ["SBIN", "BAD", "INFY"]
        reporter.report_error.assert_called_once()
        assert reporter.report_error.call_args[0][0] == "BAD"

    def test_unexpected_errors_are_isolated(self):
        provider = FakeProvider()
        provider.queue("SBIN", RuntimeError("provider bug"))
        provider.queue("INFY", market_data("INFY"))

        monitor = Monitor(SignalAggregator(provider), ["SBIN", "INFY"], symbol_delay=0)
        snapshots = monitor.run_cycle()

        assert [s.symbol for s in snapshots] == ["INFY"]

    def test_error_does_not_corrupt_store(self):
        provider = FakeProvider()
        provider.queue(
            "SBIN",
            market_data("SBIN", 100.0, 0),
            UnauthorizedError("SBIN", "bad token", status_code=401),
            market_data("SBIN", 101.0, 1),
        )
        aggregator = SignalAggregator(provider)
        monitor = Monitor(aggregator, ["SBIN"], symbol_delay=0)

        for _ in range(3):
            monitor.run_cycle()

        assert aggregator.store("SBIN").prices() == [100.0, 101.0]
        assert monitor.cycles_completed == 3

    def test_duplicate_symbols_are_dropped(self):
        monitor = Monitor(SignalAggregator(FakeProvider()), ["SBIN", "INFY", "SBIN"])
        assert monitor.symbols == ["SBIN", "INFY"]

    def test_requires_symbols(self):
        with pytest.raises(ValueError):
            Monitor(SignalAggregator(FakeProvider()), [])

    def test_requires_positive_interval(self):
        with pytest.raises(ValueError):
            Monitor(SignalAggregator(FakeProvider()), ["SBIN"], interval=0)


class TestCancellation:
    """stop() lets the in-flight update finish and prevents further work."""

    def test_stop_before_run(self):
        provider = FakeProvider()
        stop = threading.Event()
        stop.set()

        monitor = Monitor(SignalAggregator(provider), ["SBIN"], stop_event=stop)

        assert monitor.run() == 0
        assert provider.calls == []

    def test_stop_during_cycle_skips_remaining_symbols(self):
        provider = FakeProvider()
        monitor = Monitor(SignalAggregator(provider), ["SBIN", "INFY"], symbol_delay=0)

        def fetch_then_stop():
            monitor.stop()
            return market_data("SBIN")

        provider.queue("SBIN", fetch_then_stop)
        provider.queue("INFY", market_data("INFY"))

        cycles = monitor.run()

        assert cycles == 1
        assert provider.calls == ["SBIN"]
        assert len(monitor.aggregator.store("SBIN")) == 1
        assert monitor.cycles_completed == 0

    def test_stop_during_last_update_completes_cycle(self):
        provider = FakeProvider()
        monitor = Monitor(SignalAggregator(provider), ["SBIN", "INFY"], symbol_delay=0)

        def fetch_then_stop():
            monitor.stop()
            return market_data("INFY")

        provider.queue("SBIN", market_data("SBIN"))
        provider.queue("INFY", fetch_then_stop)

        assert monitor.run() == 1
        assert provider.calls == ["SBIN", "INFY"]
        assert monitor.cycles_completed == 1

    def test_stop_interrupts_wait_between_cycles(self):
        provider = FakeProvider()
        provider.queue("SBIN", market_data("SBIN"))
        monitor = Monitor(SignalAggregator(provider), ["SBIN"], interval=3600)

        timer = threading.Timer(0.05, monitor.stop)
        timer.start()
        try:
            cycles = monitor.run()
        finally:
            timer.cancel()

        assert cycles == 1
        assert monitor.stopped


class TestScheduling:
    """Cycles run back to back and respect the cycle limit."""

    def test_max_cycles(self):
        provider = FakeProvider()
        provider.queue("SBIN", *[market_data("SBIN", 100.0 + i, i) for i in range(3)])
        # Each cycle appears to take longer than the interval, so no waiting
        monitor = Monitor(
            SignalAggregator(provider),
            ["SBIN"],
            interval=10,
            clock=SteppingClock(step=20),
        )

        assert monitor.run(max_cycles=3) == 3
        assert len(provider.calls) == 3
        assert monitor.aggregator.store("SBIN").prices() == [100.0, 101.0, 102.0]
