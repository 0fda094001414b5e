"""CLI commands for StockPulse."""

from stockpulse.cli.main import cli, main

__all__ = ["cli", "main"]
