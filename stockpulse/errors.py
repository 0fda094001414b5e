"""Exception types for StockPulse."""

from typing import Optional


class StockPulseError(Exception):
    """Base class for all StockPulse errors."""


class ConfigurationError(StockPulseError):
    """Required configuration is missing or invalid."""

    def __init__(self, message: str, missing: Optional[list[str]] = None):
        super().__init__(message)
        self.missing = missing or []


class FetchError(StockPulseError):
    """Market data could not be fetched for a symbol."""

    def __init__(
        self,
        symbol: str,
        message: str,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.symbol = symbol
        self.status_code = status_code


class SymbolNotFoundError(FetchError):
    """The symbol or its instrument could not be found."""


class RateLimitedError(FetchError):
    """The provider rejected the request due to rate limiting."""


class UnauthorizedError(FetchError):
    """The provider rejected the API credentials."""


class MalformedResponseError(FetchError):
    """The provider returned empty or unparseable data."""


class UnknownFetchError(FetchError):
    """Any other fetch failure (network errors, unexpected statuses)."""


class CommentaryServiceError(StockPulseError):
    """The commentary service failed to produce text."""
