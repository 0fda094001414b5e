"""Market data returned by data providers."""

from typing import Any

from pydantic import BaseModel, Field, field_validator

from stockpulse.models.candle import HistoricalPoint, to_epoch_millis


class MarketData(BaseModel):
    """Latest market data for a symbol plus the session's candle history."""

    symbol: str = Field(..., min_length=1, description="Trading symbol")
    timestamp: int = Field(..., description="Latest candle timestamp (epoch millis)")
    price: float = Field(..., ge=0, description="Latest closing price")
    open: float = Field(..., ge=0, description="Latest opening price")
    high: float = Field(..., ge=0, description="Latest high price")
    low: float = Field(..., ge=0, description="Latest low price")
    volume: float = Field(..., ge=0, description="Latest volume")
    historical_candles: list[HistoricalPoint] = Field(
        default_factory=list, description="Session candles, oldest first"
    )

    model_config = {"frozen": True}

    @field_validator("timestamp", mode="before")
    @classmethod
    def _normalize_timestamp(cls, value: Any) -> int:
        return to_epoch_millis(value)

    @property
    def point(self) -> HistoricalPoint:
        """The latest candle as a HistoricalPoint."""
        return HistoricalPoint(
            timestamp=self.timestamp,
            price=self.price,
            open=self.open,
            high=self.high,
            low=self.low,
            volume=self.volume,
        )
