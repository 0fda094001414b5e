"""Price-action commentary agent.

Turns a snapshot's indicators and pattern summary into a trading
commentary using an LLM.
"""

import logging
from typing import Optional, Protocol

from agents import Agent

from stockpulse.agents.base import configure_client, create_agent, run_agent_sync
from stockpulse.errors import CommentaryServiceError
from stockpulse.models import HistoricalPoint, PatternSummary, TechnicalIndicators


logger = logging.getLogger(__name__)


COMMENTARY_INSTRUCTIONS = """You are an expert Indian stock market analyst who trades price action.
You receive intraday technical readings and price-action patterns for one NSE stock.

Please provide:
1. Current Market Position:
   - Identify if we're in a trend, range, or consolidation
   - Key support and resistance levels
   - Volume confirmation

2. Pattern Analysis:
   - Identify any candlestick patterns
   - Chart patterns forming
   - False breakouts or fakeouts

3. Trade Setup (if applicable):
   - Entry points with specific price levels
   - Stop-loss levels based on support/resistance
   - Take-profit targets
   - Risk-reward ratio

4. Trading Decision:
   - Clear recommendation (Buy, Sell, or Wait)
   - Timing (Immediate or Wait for specific conditions)
   - Risk level (High, Medium, Low)

Keep the analysis actionable and focused on current trading opportunities.
"""


class CommentarySink(Protocol):
    """Anything that can turn a signal summary into commentary text."""

    def analyze(
        self,
        symbol: str,
        indicators: TechnicalIndicators,
        point: HistoricalPoint,
        summary: PatternSummary,
    ) -> str:
        ...


def _fmt(value: Optional[float], digits: int = 2) -> str:
    return "N/A" if value is None else f"{value:.{digits}f}"


def _levels(levels: list[float]) -> str:
    return ", ".join(f"{level:.2f}" for level in levels) or "None identified"


def build_prompt(
    symbol: str,
    indicators: TechnicalIndicators,
    point: HistoricalPoint,
    summary: PatternSummary,
) -> str:
    """Build the user message describing one snapshot.

    Args:
        symbol: Trading symbol.
        indicators: Technical indicators for the snapshot.
        point: Latest market data point.
        summary: Flattened pattern summary.

    Returns:
        Prompt text.
    """
    return f"""Analyze the following stock market data for {symbol} using price action strategy:

Current Price: ₹{point.price:.2f}

Technical Analysis:
- {indicators.sma_period}-period SMA: ₹{_fmt(indicators.sma)}
- RSI({indicators.rsi_period}): {_fmt(indicators.rsi)}
- Volatility: {_fmt(indicators.volatility)}%

Price Action Patterns:
- Candlestick Pattern: {summary.candle_pattern}
- Chart Pattern: {summary.chart_pattern}
- Trend Status: {summary.trend_status}
- Support Levels: {_levels(summary.support_levels)}
- Resistance Levels: {_levels(summary.resistance_levels)}

Volume Analysis:
- Current Volume: {point.volume:,.0f}
- Volume Trend: {summary.volume_trend}

Recent Price Movement:
- High: ₹{point.high:.2f}
- Low: ₹{point.low:.2f}
- Price Change: {_fmt(indicators.price_change)}%
"""


class CommentaryAgent:
    """Agent producing price-action trading commentary."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout: float = 60.0,
    ):
        """Initialize the commentary agent.

        Args:
            api_key: OpenAI API key. When omitted the SDK falls back to
                the OPENAI_API_KEY environment variable.
            model: Optional model override.
            timeout: Request timeout in seconds.
        """
        if api_key:
            configure_client(api_key, timeout)
        self.model = model
        self._agent = self._create_agent()

    def _create_agent(self) -> Agent:
        return create_agent(
            name="Price Action Commentary Agent",
            instructions=COMMENTARY_INSTRUCTIONS,
            model=self.model,
        )

    def analyze(
        self,
        symbol: str,
        indicators: TechnicalIndicators,
        point: HistoricalPoint,
        summary: PatternSummary,
    ) -> str:
        """Generate commentary for one snapshot.

        Raises:
            CommentaryServiceError: If the model call fails or returns
                no text.
        """
        prompt = build_prompt(symbol, indicators, point, summary)
        try:
            text = run_agent_sync(self._agent, prompt)
        except Exception as e:
            raise CommentaryServiceError(f"Commentary failed for {symbol}: {e}") from e

        if not text or not text.strip():
            raise CommentaryServiceError(f"Commentary service returned no text for {symbol}")
        return text.strip()
