"""Candle (OHLCV) and historical point data models."""

import math
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field, field_validator


# Epoch values below this are treated as seconds rather than milliseconds
_MILLIS_THRESHOLD = 10**11


def to_epoch_millis(value: Any) -> int:
    """Normalize a timestamp to integer epoch milliseconds.
    
    Args:
        value: A datetime (naive values are treated as UTC), an ISO-8601
            string, or an epoch number in seconds or milliseconds.
            
    Returns:
        Epoch milliseconds.
        
    Raises:
        ValueError: If the value cannot be interpreted as a timestamp.
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid timestamp: {value!r}")
    
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return int(value.timestamp() * 1000)
    
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError as e:
            raise ValueError(f"Invalid timestamp: {value!r}") from e
    elif isinstance(value, str):
        text = value.strip()
        try:
            number = float(text)
        except ValueError:
            # Python < 3.11 does not accept a trailing "Z"
            if text.endswith("Z"):
                text = text[:-1] + "+00:00"
            return to_epoch_millis(datetime.fromisoformat(text))
    else:
        raise ValueError(f"Invalid timestamp: {value!r}")

    if not math.isfinite(number):
        raise ValueError(f"Invalid timestamp: {value!r}")
    if abs(number) < _MILLIS_THRESHOLD:
        number *= 1000
    return int(number)


class Candle(BaseModel):
    """Represents a single OHLCV candle."""

    timestamp: int = Field(..., description="Candle timestamp (epoch millis)")
    open: float = Field(..., ge=0, description="Opening price")
    high: float = Field(..., ge=0, description="High price")
    low: float = Field(..., ge=0, description="Low price")
    close: float = Field(..., ge=0, description="Closing price")
    volume: float = Field(..., ge=0, description="Trading volume")

    model_config = {"frozen": True}


class HistoricalPoint(BaseModel):
    """A single stored market data point.
    
    The closing price is stored as ``price``. Timestamps are normalized
    to epoch milliseconds on construction.
    """

    timestamp: int = Field(..., description="Point timestamp (epoch millis)")
    price: float = Field(..., ge=0, description="Closing price")
    open: float = Field(..., ge=0, description="Opening price")
    high: float = Field(..., ge=0, description="High price")
    low: float = Field(..., ge=0, description="Low price")
    volume: float = Field(..., ge=0, description="Trading volume")

    model_config = {"frozen": True}

    @field_validator("timestamp", mode="before")
    @classmethod
    def _normalize_timestamp(cls, value: Any) -> int:
        return to_epoch_millis(value)

    def to_candle(self) -> Candle:
        """Project this point as a Candle (``price`` becomes ``close``)."""
        return Candle(
            timestamp=self.timestamp,
            open=self.open,
            high=self.high,
            low=self.low,
            close=self.price,
            volume=self.volume,
        )
