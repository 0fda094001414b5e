"""Technical indicator calculations over a closing-price series.

Every function here is pure: it reads the price list it is given and
returns a single value for the latest point. ``None`` means the window
is too short for the indicator (or the value is undefined), never an
error.
"""

import math
from typing import Optional

from stockpulse.models import TechnicalIndicators


DEFAULT_SMA_PERIOD = 20
DEFAULT_RSI_PERIOD = 14
DEFAULT_VOLATILITY_PERIOD = 20

# Trading periods per year used to annualize volatility
PERIODS_PER_YEAR = 252


def calculate_sma(prices: list[float], period: int = DEFAULT_SMA_PERIOD) -> Optional[float]:
    """Calculate the Simple Moving Average of the last `period` prices.

    Args:
        prices: Closing prices, oldest first.
        period: Number of periods to average (default 20).

    Returns:
        The SMA, or None if fewer than `period` prices are available.
    """
    if period < 1 or len(prices) < period:
        return None

    return sum(prices[-period:]) / period


def calculate_rsi(prices: list[float], period: int = DEFAULT_RSI_PERIOD) -> Optional[float]:
    """Calculate the Relative Strength Index.

    Gains and losses are averaged with a simple mean over the last
    `period` price changes. An average loss of zero saturates the RSI
    at 100, including for a completely flat series.

    Args:
        prices: Closing prices, oldest first.
        period: RSI period (default 14).

    Returns:
        RSI in [0, 100], or None if fewer than `period + 1` prices.
    """
    if period < 1 or len(prices) < period + 1:
        return None

    changes = [prices[i] - prices[i - 1] for i in range(1, len(prices))]
    gains = [c if c > 0 else 0.0 for c in changes]
    losses = [-c if c < 0 else 0.0 for c in changes]

    avg_gain = sum(gains[-period:]) / period
    avg_loss = sum(losses[-period:]) / period

    if avg_loss == 0:
        return 100.0

    rs = avg_gain / avg_loss
    return 100 - (100 / (1 + rs))


def calculate_price_change(prices: list[float]) -> Optional[float]:
    """Calculate the percent change between the last two prices.

    Args:
        prices: Closing prices, oldest first.

    Returns:
        Percent change, 0.0 with fewer than two prices, or None when the
        previous price is zero.
    """
    if len(prices) < 2:
        return 0.0

    previous, latest = prices[-2], prices[-1]
    if previous == 0:
        return None

    return ((latest - previous) / previous) * 100


def calculate_volatility(
    prices: list[float],
    period: int = DEFAULT_VOLATILITY_PERIOD,
) -> Optional[float]:
    """Calculate annualized volatility as a percentage.

    Uses log returns over the whole available series and their
    population standard deviation (divided by N), scaled by
    sqrt(252) * 100.

    Args:
        prices: Closing prices, oldest first.
        period: Minimum number of prices required (default 20).

    Returns:
        Annualized volatility percentage, or None if fewer than `period`
        prices or any price is not positive.
    """
    if period < 1 or len(prices) < max(period, 2):
        return None
    if any(p <= 0 for p in prices):
        return None

    returns = [math.log(prices[i] / prices[i - 1]) for i in range(1, len(prices))]
    mean = sum(returns) / len(returns)
    variance = sum((r - mean) ** 2 for r in returns) / len(returns)

    return math.sqrt(variance) * math.sqrt(PERIODS_PER_YEAR) * 100


def calculate_indicators(
    prices: list[float],
    sma_period: int = DEFAULT_SMA_PERIOD,
    rsi_period: int = DEFAULT_RSI_PERIOD,
) -> TechnicalIndicators:
    """Calculate all technical indicators for a price series.

    Args:
        prices: Closing prices, oldest first.
        sma_period: SMA window.
        rsi_period: RSI window.

    Returns:
        TechnicalIndicators with None for any unavailable value.
    """
    return TechnicalIndicators(
        sma=calculate_sma(prices, sma_period),
        rsi=calculate_rsi(prices, rsi_period),
        price_change=calculate_price_change(prices),
        volatility=calculate_volatility(prices, DEFAULT_VOLATILITY_PERIOD),
        sma_period=sma_period,
        rsi_period=rsi_period,
    )
