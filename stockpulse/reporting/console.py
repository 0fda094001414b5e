"""Console rendering of snapshots."""

from typing import Optional

from rich.console import Console, Group
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table

from stockpulse.models import Snapshot


def _fmt(value: Optional[float], suffix: str = "") -> str:
    return "N/A" if value is None else f"{value:.2f}{suffix}"


class SnapshotReporter:
    """Prints snapshots and per-symbol failures to a rich console."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def build_indicator_table(self, snapshot: Snapshot) -> Table:
        """Build the indicator and pattern table for a snapshot."""
        ind = snapshot.indicators
        patterns = snapshot.patterns
        summary = snapshot.summary

        table = Table(show_header=True, header_style="bold cyan", expand=False)
        table.add_column("Signal", style="bold")
        table.add_column("Value", justify="right")

        table.add_row(f"SMA{ind.sma_period}", _fmt(ind.sma))
        table.add_row(f"RSI({ind.rsi_period})", _fmt(ind.rsi))
        table.add_row("Price Change", _fmt(ind.price_change, "%"))
        table.add_row("Volatility", _fmt(ind.volatility, "%"))
        table.add_row(
            "Candle Pattern",
            f"{patterns.candle_pattern.pattern} ({patterns.candle_pattern.significance})",
        )
        table.add_row("Trend", summary.trend_status)
        table.add_row("Chart", summary.chart_pattern)
        table.add_row(
            "Support",
            ", ".join(f"{s:.2f}" for s in summary.support_levels) or "-",
        )
        table.add_row(
            "Resistance",
            ", ".join(f"{r:.2f}" for r in summary.resistance_levels) or "-",
        )
        table.add_row(
            "Volume",
            f"{patterns.volume_analysis.trend} ({patterns.volume_analysis.strength:.2f}x)",
        )
        return table

    def report(self, snapshot: Snapshot) -> None:
        """Print one snapshot with its commentary."""
        point = snapshot.point
        change = snapshot.indicators.price_change or 0.0
        color = "green" if change >= 0 else "red"

        header = (
            f"[bold white]Price:[/bold white] ₹{point.price:.2f}  "
            f"[{color}]{change:+.2f}%[/{color}]  "
            f"[dim]H ₹{point.high:.2f}  L ₹{point.low:.2f}  Vol {point.volume:,.0f}[/dim]"
        )

        if snapshot.commentary:
            commentary = Markdown(snapshot.commentary)
        else:
            commentary = "[dim]Commentary unavailable[/dim]"

        self.console.print(Panel(
            Group(header, self.build_indicator_table(snapshot), commentary),
            title=(
                f"[bold]{snapshot.symbol}[/bold] Analysis @ "
                f"{snapshot.created_at:%Y-%m-%d %H:%M:%S}"
            ),
            border_style=color,
        ))

    def report_error(self, symbol: str, error: BaseException) -> None:
        """Print a per-symbol failure."""
        self.console.print(
            f"[red]Error processing {symbol}:[/red] {error}"
        )
