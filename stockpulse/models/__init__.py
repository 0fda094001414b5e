"""Data models for StockPulse."""

from stockpulse.models.candle import Candle, HistoricalPoint, to_epoch_millis
from stockpulse.models.market import MarketData
from stockpulse.models.analysis import (
    INSUFFICIENT_DATA,
    CandlePattern,
    PatternAnalysis,
    PatternSummary,
    Snapshot,
    SupportResistance,
    TechnicalIndicators,
    VolumeAnalysis,
)

__all__ = [
    "Candle",
    "HistoricalPoint",
    "to_epoch_millis",
    "MarketData",
    "INSUFFICIENT_DATA",
    "CandlePattern",
    "PatternAnalysis",
    "PatternSummary",
    "Snapshot",
    "SupportResistance",
    "TechnicalIndicators",
    "VolumeAnalysis",
]
