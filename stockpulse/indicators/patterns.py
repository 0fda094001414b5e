"""Price-action pattern detection over a candle series.

Detectors work on the candles as given and degrade to "Insufficient
data" results when the window is too short. Inconsistent candles (for
example a high below the low) produce a classification, not an error.
"""

import logging
from typing import Callable, TypeVar

from stockpulse.indicators.technical import DEFAULT_SMA_PERIOD, calculate_sma
from stockpulse.models import (
    INSUFFICIENT_DATA,
    Candle,
    CandlePattern,
    PatternAnalysis,
    SupportResistance,
    VolumeAnalysis,
)


logger = logging.getLogger(__name__)

T = TypeVar("T")

MIN_PATTERN_CANDLES = 2
MIN_PIVOT_CANDLES = 5
MIN_VOLUME_CANDLES = 5

# Number of neighbours on each side a pivot must beat
PIVOT_WINDOW = 2
MAX_LEVELS = 3

VOLUME_WINDOW = 5
VOLUME_INCREASING_RATIO = 1.2
VOLUME_DECREASING_RATIO = 0.8

DOJI_BODY_RATIO = 0.1
HAMMER_LOWER_SHADOW_RATIO = 2.0
HAMMER_UPPER_SHADOW_RATIO = 0.5

FAST_TREND_PERIOD = 5


def detect_candle_pattern(candles: list[Candle]) -> CandlePattern:
    """Classify the latest candle against the one before it.

    Checks run in priority order and the first match wins: Doji,
    Hammer, Bullish Engulfing, Bearish Engulfing.

    Args:
        candles: Candles, oldest first.

    Returns:
        CandlePattern with the pattern name and its significance.
    """
    if len(candles) < MIN_PATTERN_CANDLES:
        return CandlePattern(pattern=INSUFFICIENT_DATA, significance="Low")

    latest = candles[-1]
    prev = candles[-2]

    body = abs(latest.close - latest.open)
    total_range = latest.high - latest.low

    if body <= total_range * DOJI_BODY_RATIO:
        return CandlePattern(pattern="Doji", significance="High")

    lower_shadow = min(latest.open, latest.close) - latest.low
    upper_shadow = latest.high - max(latest.open, latest.close)
    if (lower_shadow > body * HAMMER_LOWER_SHADOW_RATIO
            and upper_shadow < body * HAMMER_UPPER_SHADOW_RATIO):
        return CandlePattern(pattern="Hammer", significance="High")

    if (latest.close > latest.open
            and latest.open < prev.close
            and latest.close > prev.open):
        return CandlePattern(pattern="Bullish Engulfing", significance="High")

    if (latest.close < latest.open
            and latest.open > prev.close
            and latest.close < prev.open):
        return CandlePattern(pattern="Bearish Engulfing", significance="High")

    return CandlePattern(pattern="No clear pattern", significance="Low")


def find_support_resistance(candles: list[Candle]) -> SupportResistance:
    """Find support and resistance levels from closing-price pivots.

    A close strictly below its two neighbours on each side is a support
    pivot; strictly above is a resistance pivot.

    Args:
        candles: Candles, oldest first.

    Returns:
        Up to three unique support levels (highest first) and up to
        three unique resistance levels (lowest first).
    """
    if len(candles) < MIN_PIVOT_CANDLES:
        return SupportResistance()

    closes = [c.close for c in candles]
    support: set[float] = set()
    resistance: set[float] = set()

    for i in range(PIVOT_WINDOW, len(closes) - PIVOT_WINDOW):
        neighbours = (
            closes[i - PIVOT_WINDOW:i] + closes[i + 1:i + PIVOT_WINDOW + 1]
        )
        if all(closes[i] < n for n in neighbours):
            support.add(closes[i])
        if all(closes[i] > n for n in neighbours):
            resistance.add(closes[i])

    return SupportResistance(
        support=sorted(support, reverse=True)[:MAX_LEVELS],
        resistance=sorted(resistance)[:MAX_LEVELS],
    )


def analyze_volume(candles: list[Candle]) -> VolumeAnalysis:
    """Compare the latest volume with the recent average.

    Args:
        candles: Candles, oldest first.

    Returns:
        VolumeAnalysis with trend "Increasing" (ratio > 1.2),
        "Decreasing" (ratio < 0.8) or "Normal", and the raw ratio.
    """
    if len(candles) < MIN_VOLUME_CANDLES:
        return VolumeAnalysis(trend=INSUFFICIENT_DATA, strength=0.0)

    recent = [c.volume for c in candles[-VOLUME_WINDOW:]]
    avg_volume = sum(recent) / VOLUME_WINDOW

    # No trades in the window at all
    if avg_volume == 0:
        return VolumeAnalysis(trend="Normal", strength=0.0)

    ratio = candles[-1].volume / avg_volume

    if ratio > VOLUME_INCREASING_RATIO:
        trend = "Increasing"
    elif ratio < VOLUME_DECREASING_RATIO:
        trend = "Decreasing"
    else:
        trend = "Normal"

    return VolumeAnalysis(trend=trend, strength=ratio)


def determine_trend(
    candles: list[Candle],
    fast_period: int = FAST_TREND_PERIOD,
    slow_period: int = DEFAULT_SMA_PERIOD,
) -> str:
    """Classify the trend by comparing a fast and a slow SMA of closes.

    Returns:
        "Uptrend", "Downtrend", "Sideways", "Calculating..." while the
        slow SMA is unavailable, or "Insufficient data".
    """
    if len(candles) < MIN_PIVOT_CANDLES:
        return INSUFFICIENT_DATA

    closes = [c.close for c in candles]
    fast = calculate_sma(closes, fast_period)
    slow = calculate_sma(closes, slow_period)

    if fast is None or slow is None:
        return "Calculating..."
    if fast > slow:
        return "Uptrend"
    if fast < slow:
        return "Downtrend"
    return "Sideways"


def determine_chart_pattern(candles: list[Candle], levels: SupportResistance) -> str:
    """Place the latest close relative to the pivot levels.

    Args:
        candles: Candles, oldest first.
        levels: Support and resistance found for the same candles.

    Returns:
        "Breakout above resistance", "Breakdown below support",
        "Range-bound", "No defined range" or "Insufficient data".
    """
    if len(candles) < MIN_PIVOT_CANDLES:
        return INSUFFICIENT_DATA
    if not levels.support and not levels.resistance:
        return "No defined range"

    close = candles[-1].close
    if levels.resistance and close > max(levels.resistance):
        return "Breakout above resistance"
    if levels.support and close < min(levels.support):
        return "Breakdown below support"
    return "Range-bound"


def degrade(name: str, func: Callable[[], T], fallback: T) -> T:
    """Run a calculation, returning the fallback on arithmetic/value errors."""
    try:
        return func()
    except (ArithmeticError, ValueError) as e:
        logger.warning("%s failed on malformed input: %s", name, e)
        return fallback


def analyze_patterns(candles: list[Candle]) -> PatternAnalysis:
    """Run all price-action detectors, each gated by its own minimum length.

    A detector that fails on malformed candles falls back to its
    "Insufficient data" result without affecting the others.
    """
    return PatternAnalysis(
        candle_pattern=degrade(
            "Candle pattern", lambda: detect_candle_pattern(candles), CandlePattern()
        ),
        support_resistance=degrade(
            "Support/resistance", lambda: find_support_resistance(candles), SupportResistance()
        ),
        volume_analysis=degrade(
            "Volume analysis", lambda: analyze_volume(candles), VolumeAnalysis()
        ),
    )
