"""Indicator, pattern and snapshot data models."""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

from stockpulse.models.candle import HistoricalPoint


INSUFFICIENT_DATA = "Insufficient data"


class TechnicalIndicators(BaseModel):
    """Technical indicator values. ``None`` means not enough data."""

    sma: Optional[float] = Field(default=None, description="Simple moving average")
    rsi: Optional[float] = Field(default=None, description="Relative strength index")
    price_change: Optional[float] = Field(
        default=None, description="Percent change over the last two points"
    )
    volatility: Optional[float] = Field(
        default=None, description="Annualized volatility percentage"
    )
    sma_period: int = Field(default=20, gt=0, description="SMA window")
    rsi_period: int = Field(default=14, gt=0, description="RSI window")

    model_config = {"frozen": True}


class CandlePattern(BaseModel):
    """Classification of the latest candle."""

    pattern: str = Field(default=INSUFFICIENT_DATA, description="Pattern name")
    significance: Literal["High", "Low"] = Field(default="Low")

    model_config = {"frozen": True}


class SupportResistance(BaseModel):
    """Pivot-based support and resistance levels."""

    support: list[float] = Field(
        default_factory=list, description="Support levels, highest first"
    )
    resistance: list[float] = Field(
        default_factory=list, description="Resistance levels, lowest first"
    )

    model_config = {"frozen": True}


class VolumeAnalysis(BaseModel):
    """Latest volume relative to the recent average."""

    trend: str = Field(default=INSUFFICIENT_DATA, description="Volume trend")
    strength: float = Field(default=0.0, description="Latest / average volume ratio")

    model_config = {"frozen": True}


class PatternAnalysis(BaseModel):
    """Output of all price-action detectors for one window."""

    candle_pattern: CandlePattern = Field(default_factory=CandlePattern)
    support_resistance: SupportResistance = Field(default_factory=SupportResistance)
    volume_analysis: VolumeAnalysis = Field(default_factory=VolumeAnalysis)

    model_config = {"frozen": True}


class PatternSummary(BaseModel):
    """Flattened pattern view handed to the commentary service."""

    candle_pattern: str
    chart_pattern: str
    trend_status: str
    support_levels: list[float] = Field(default_factory=list)
    resistance_levels: list[float] = Field(default_factory=list)
    volume_trend: str

    model_config = {"frozen": True}


class Snapshot(BaseModel):
    """Everything derived for one symbol in one update cycle."""

    symbol: str = Field(..., min_length=1, description="Trading symbol")
    point: HistoricalPoint = Field(..., description="Latest fetched point")
    indicators: TechnicalIndicators
    patterns: PatternAnalysis
    summary: PatternSummary
    commentary: Optional[str] = Field(
        default=None, description="AI commentary, None if unavailable"
    )
    created_at: datetime = Field(default_factory=datetime.now)

    model_config = {"frozen": True}
