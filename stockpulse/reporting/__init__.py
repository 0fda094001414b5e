"""Snapshot reporting for StockPulse."""

from stockpulse.reporting.console import SnapshotReporter

__all__ = ["SnapshotReporter"]
