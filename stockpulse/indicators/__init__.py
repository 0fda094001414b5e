"""Technical indicators and price-action pattern detection."""

from stockpulse.indicators.technical import (
    calculate_indicators,
    calculate_price_change,
    calculate_rsi,
    calculate_sma,
    calculate_volatility,
)
from stockpulse.indicators.patterns import (
    analyze_patterns,
    analyze_volume,
    detect_candle_pattern,
    determine_chart_pattern,
    determine_trend,
    find_support_resistance,
)

__all__ = [
    "calculate_indicators",
    "calculate_price_change",
    "calculate_rsi",
    "calculate_sma",
    "calculate_volatility",
    "analyze_patterns",
    "analyze_volume",
    "detect_candle_pattern",
    "determine_chart_pattern",
    "determine_trend",
    "find_support_resistance",
]
