"""Upstox market data provider using the v2 REST API."""

import json
import logging
from pathlib import Path
from typing import Any, Optional

import requests
from cachetools import LRUCache
from pydantic import ValidationError

from stockpulse.brokers.base import BaseDataProvider
from stockpulse.errors import (
    MalformedResponseError,
    RateLimitedError,
    SymbolNotFoundError,
    UnauthorizedError,
    UnknownFetchError,
)
from stockpulse.models import HistoricalPoint, MarketData


logger = logging.getLogger(__name__)

UPSTOX_BASE_URL = "https://api.upstox.com/v2"

EQUITY_EXCHANGE = "NSE"
EQUITY_SEGMENT = "NSE_EQ"

# Candle rows are [timestamp, open, high, low, close, volume, open_interest]
MIN_CANDLE_FIELDS = 6

NIFTY_50 = [
    "ADANIENT", "ADANIPORTS", "APOLLOHOSP", "ASIANPAINT", "AXISBANK",
    "BAJAJ-AUTO", "BAJFINANCE", "BAJAJFINSV", "BEL", "BHARTIARTL",
    "BPCL", "BRITANNIA", "CIPLA", "COALINDIA", "DRREDDY",
    "EICHERMOT", "GRASIM", "HCLTECH", "HDFCBANK", "HDFCLIFE",
    "HEROMOTOCO", "HINDALCO", "HINDUNILVR", "ICICIBANK", "INDUSINDBK",
    "INFY", "ITC", "JSWSTEEL", "KOTAKBANK", "LT",
    "M&M", "MARUTI", "NESTLEIND", "NTPC", "ONGC",
    "POWERGRID", "RELIANCE", "SBILIFE", "SBIN", "SHRIRAMFIN",
    "SUNPHARMA", "TATACONSUM", "TATAMOTORS", "TATASTEEL", "TCS",
    "TECHM", "TITAN", "TRENT", "ULTRACEMCO", "WIPRO",
]


class UpstoxDataProvider(BaseDataProvider):
    """Fetches intraday candles from Upstox.

    Symbols are resolved to Upstox instrument keys through the Upstox
    instruments JSON file. Resolved keys are kept in a bounded LRU cache
    owned by this provider.
    """

    def __init__(
        self,
        api_key: str,
        instruments_path: Path = Path("NSE.json"),
        base_url: str = UPSTOX_BASE_URL,
        interval: str = "1minute",
        timeout: float = 10.0,
        cache_size: int = 512,
        session: Optional[requests.Session] = None,
    ):
        """Initialize the Upstox provider.

        Args:
            api_key: Upstox access token.
            instruments_path: Path to the Upstox NSE instruments JSON file.
            base_url: Upstox API base URL.
            interval: Intraday candle interval (e.g. "1minute", "30minute").
            timeout: HTTP request timeout in seconds.
            cache_size: Maximum number of cached instrument keys.
            session: Optional requests session to use.
        """
        self.instruments_path = Path(instruments_path)
        self.base_url = base_url.rstrip("/")
        self.interval = interval
        self.timeout = timeout
        self.cache_size = cache_size

        self._session = session or requests.Session()
        self._session.headers.update({
            "Authorization": f"Bearer {api_key}",
            "Accept": "application/json",
        })
        self._instruments: Optional[list[dict[str, Any]]] = None
        self._key_cache: LRUCache = LRUCache(maxsize=cache_size)

    def close(self) -> None:
        self._session.close()

    def _load_instruments(self) -> list[dict[str, Any]]:
        """Load the instruments file once.

        Raises:
            SymbolNotFoundError: If the file is missing or unreadable.
        """
        if self._instruments is None:
            try:
                data = json.loads(self.instruments_path.read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError) as e:
                raise SymbolNotFoundError(
                    "",
                    f"Error loading instruments from {self.instruments_path}: {e}",
                ) from e
            if not isinstance(data, list):
                raise SymbolNotFoundError(
                    "", f"Instruments file {self.instruments_path} is not a list"
                )
            self._instruments = [
                inst for inst in data
                if isinstance(inst, dict)
                and inst.get("exchange") == EQUITY_EXCHANGE
                and inst.get("segment") == EQUITY_SEGMENT
            ]
        return self._instruments

    def get_instrument_key(self, symbol: str) -> str:
        """Resolve a trading symbol to its Upstox instrument key.

        An exact trading symbol match is preferred over a prefix match.
        Symbols that already look like instrument keys are returned as-is.

        Args:
            symbol: Trading symbol (e.g. "SBIN") or instrument key.

        Returns:
            Instrument key such as "NSE_EQ|INE062A01020".

        Raises:
            SymbolNotFoundError: If no NSE equity instrument matches.
        """
        if "|" in symbol:
            return symbol

        cached = self._key_cache.get(symbol)
        if cached is not None:
            return cached

        instruments = self._load_instruments()
        match = next(
            (i for i in instruments if i.get("trading_symbol") == symbol),
            None,
        )
        if match is None:
            match = next(
                (i for i in instruments
                 if str(i.get("trading_symbol", "")).startswith(symbol)),
                None,
            )

        if match is None or not match.get("instrument_key"):
            raise SymbolNotFoundError(
                symbol, f"No matching NSE equity instrument found for {symbol}"
            )

        instrument_key = match["instrument_key"]
        self._key_cache[symbol] = instrument_key
        return instrument_key

    def nifty50_symbols(self) -> list[str]:
        """Get Nifty 50 symbols available in the instruments file.

        Falls back to the built-in constituent list when the file cannot
        be read.
        """
        try:
            instruments = self._load_instruments()
        except SymbolNotFoundError as e:
            logger.warning("Using built-in Nifty 50 list: %s", e)
            return list(NIFTY_50)

        available = {i.get("trading_symbol") for i in instruments}
        return [s for s in NIFTY_50 if s in available]

    def _get(self, symbol: str, url: str) -> dict[str, Any]:
        """Perform a GET request and map failures to FetchError kinds."""
        try:
            response = self._session.get(url, timeout=self.timeout)
        except requests.Timeout as e:
            raise UnknownFetchError(symbol, f"Request timed out for {symbol}") from e
        except requests.RequestException as e:
            raise UnknownFetchError(symbol, f"Error fetching data for {symbol}: {e}") from e

        status = response.status_code
        if status == 404:
            raise SymbolNotFoundError(
                symbol,
                f"Stock data not available for {symbol}. Please verify the symbol.",
                status_code=status,
            )
        if status == 429:
            raise RateLimitedError(
                symbol, "Rate limit exceeded. Please try again later.", status_code=status
            )
        if status in (401, 403):
            raise UnauthorizedError(
                symbol,
                "Authentication failed. Please check your API key.",
                status_code=status,
            )
        if status >= 400:
            raise UnknownFetchError(
                symbol,
                f"Error fetching data for {symbol}: {_error_message(response)}",
                status_code=status,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise MalformedResponseError(
                symbol, f"Invalid JSON response for {symbol}", status_code=status
            ) from e

        if not isinstance(payload, dict):
            raise MalformedResponseError(
                symbol, f"Unexpected response shape for {symbol}", status_code=status
            )
        return payload

    def fetch(self, symbol: str) -> MarketData:
        """Fetch today's intraday candles for a symbol.

        Args:
            symbol: Trading symbol.

        Returns:
            MarketData for the most recent candle with all session
            candles, oldest first.

        Raises:
            FetchError: A subclass describing the failure.
        """
        instrument_key = self.get_instrument_key(symbol)
        url = f"{self.base_url}/historical-candle/intraday/{instrument_key}/{self.interval}"
        logger.debug("Fetching %s candles for %s (%s)", self.interval, symbol, instrument_key)

        payload = self._get(symbol, url)
        data = payload.get("data")
        rows = data.get("candles") if isinstance(data, dict) else None
        if not rows:
            raise MalformedResponseError(symbol, f"No candle data available for {symbol}")

        try:
            points = [_parse_candle(row) for row in rows]
        except (TypeError, ValueError, ValidationError) as e:
            raise MalformedResponseError(
                symbol, f"Invalid candle data format for {symbol}: {e}"
            ) from e

        # Upstox returns the newest candle first
        points.sort(key=lambda p: p.timestamp)
        latest = points[-1]

        return MarketData(
            symbol=symbol,
            timestamp=latest.timestamp,
            price=latest.price,
            open=latest.open,
            high=latest.high,
            low=latest.low,
            volume=latest.volume,
            historical_candles=points,
        )


def _parse_candle(row: Any) -> HistoricalPoint:
    """Parse an Upstox candle row into a HistoricalPoint.

    Raises:
        ValueError: If the row has too few fields.
    """
    if not isinstance(row, (list, tuple)) or len(row) < MIN_CANDLE_FIELDS:
        raise ValueError(f"expected at least {MIN_CANDLE_FIELDS} fields, got {row!r}")

    return HistoricalPoint(
        timestamp=row[0],
        open=float(row[1]),
        high=float(row[2]),
        low=float(row[3]),
        price=float(row[4]),
        volume=float(row[5]),
    )


def _error_message(response: requests.Response) -> str:
    """Extract an error message from an Upstox error response."""
    try:
        payload = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"

    if isinstance(payload, dict):
        errors = payload.get("errors")
        if isinstance(errors, list) and errors and isinstance(errors[0], dict):
            return errors[0].get("message", str(errors[0]))
        if payload.get("message"):
            return str(payload["message"])
    return f"HTTP {response.status_code}"
