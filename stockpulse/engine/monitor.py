"""Periodic monitoring loop.

Symbols are updated one after another within a cycle, with a fixed
delay between them to stay under the provider's rate limits. Cycles
never overlap: the next cycle starts one interval after the previous
one started, or immediately if the previous cycle overran.

Every wait goes through a threading.Event, so stop() wakes a sleeping
monitor at once. An update already in progress is allowed to finish;
the remaining symbols of that cycle are skipped.
"""

import logging
import threading
import time
from typing import Callable, Iterable, Optional

from stockpulse.engine.aggregator import SignalAggregator
from stockpulse.errors import FetchError
from stockpulse.models import Snapshot
from stockpulse.reporting import SnapshotReporter


logger = logging.getLogger(__name__)


class Monitor:
    """Drives a SignalAggregator over a list of symbols on an interval."""

    def __init__(
        self,
        aggregator: SignalAggregator,
        symbols: Iterable[str],
        interval: float = 60.0,
        symbol_delay: float = 1.0,
        reporter: Optional[SnapshotReporter] = None,
        stop_event: Optional[threading.Event] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the monitor.

        Args:
            aggregator: Aggregator that performs each symbol update.
            symbols: Symbols to monitor; duplicates are dropped.
            interval: Seconds between cycle starts.
            symbol_delay: Seconds to wait between symbols in a cycle.
            reporter: Optional reporter for per-symbol failures.
            stop_event: Optional event used as the cancellation token.
            clock: Monotonic clock, injectable for tests.

        Raises:
            ValueError: If no symbols are given or interval is not positive.
        """
        self.symbols = list(dict.fromkeys(symbols))
        if not self.symbols:
            raise ValueError("At least one symbol is required")
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")

        self.aggregator = aggregator
        self.interval = interval
        self.symbol_delay = symbol_delay
        self.reporter = reporter
        self.cycles_completed = 0
        self._stop_event = stop_event or threading.Event()
        self._clock = clock

        for symbol in self.symbols:
            self.aggregator.register(symbol)

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    def stop(self) -> None:
        """Request the monitor to stop after the in-flight update."""
        self._stop_event.set()

    def _wait(self, seconds: float) -> bool:
        """Sleep for up to `seconds`. Returns True if stop was requested."""
        if seconds <= 0:
            return self.stopped
        return self._stop_event.wait(seconds)

    def _update_symbol(self, symbol: str) -> Optional[Snapshot]:
        try:
            return self.aggregator.update(symbol)
        except FetchError as e:
            logger.warning("Fetch failed for %s: %s", symbol, e)
            self._report_error(symbol, e)
        except Exception as e:
            logger.exception("Error processing %s", symbol)
            self._report_error(symbol, e)
        return None

    def _report_error(self, symbol: str, error: Exception) -> None:
        if self.reporter is not None:
            self.reporter.report_error(symbol, error)

    def run_cycle(self) -> list[Snapshot]:
        """Update every symbol once.

        Failures are logged per symbol and never stop the cycle. A cycle
        cut short by stop() is not counted in `cycles_completed`.

        Returns:
            Snapshots of the symbols that updated successfully.
        """
        snapshots = []
        for index, symbol in enumerate(self.symbols):
            if self.stopped:
                break
            if index > 0 and self._wait(self.symbol_delay):
                break

            snapshot = self._update_symbol(symbol)
            if snapshot is not None:
                snapshots.append(snapshot)
        else:
            self.cycles_completed += 1
        return snapshots

    def run(self, max_cycles: Optional[int] = None) -> int:
        """Run cycles until stopped or `max_cycles` have completed.

        Args:
            max_cycles: Optional cycle limit; runs until stopped if None.

        Returns:
            Number of cycles run by this call.
        """
        logger.info("Starting monitoring for %d symbols", len(self.symbols))
        cycles = 0

        while not self.stopped:
            started = self._clock()
            self.run_cycle()
            cycles += 1

            if max_cycles is not None and cycles >= max_cycles:
                break

            remaining = self.interval - (self._clock() - started)
            if remaining <= 0:
                logger.warning(
                    "Cycle took longer than the %.1fs interval; starting next cycle now",
                    self.interval,
                )
            if self._wait(remaining):
                break

        logger.info("Monitoring stopped after %d cycles", cycles)
        return cycles
