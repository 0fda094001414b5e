"""Signal aggregation and the monitoring loop."""

from stockpulse.engine.aggregator import SignalAggregator
from stockpulse.engine.monitor import Monitor

__all__ = ["Monitor", "SignalAggregator"]
