"""StockPulse: intraday signal monitoring with AI price-action commentary."""

__version__ = "0.1.0"
