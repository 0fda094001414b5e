"""Monitoring commands for StockPulse CLI.

Handles one-shot snapshots and the continuous monitoring loop.
"""

import signal
from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel

from stockpulse.config import Settings, load_settings
from stockpulse.errors import ConfigurationError, FetchError

console = Console()


def _load_settings_or_exit() -> Settings:
    """Load settings and require both API keys, exiting with status 1 otherwise."""
    try:
        return load_settings().require_secrets()
    except ConfigurationError as e:
        details = "\n".join(f"  • {m}" for m in e.missing) or str(e)
        console.print(Panel(
            f"[red]Configuration incomplete:[/red]\n\n{details}\n\n"
            "Run [cyan]stockpulse init[/cyan] to create a config file.",
            title="[bold red]Error[/bold red]",
            border_style="red",
        ))
        raise SystemExit(1)


def _get_provider(settings: Settings):
    from stockpulse.brokers.upstox import UpstoxDataProvider

    return UpstoxDataProvider(
        api_key=settings.upstox_api_key,
        instruments_path=settings.instruments_path,
        base_url=settings.upstox_base_url,
        interval=settings.candle_interval,
        timeout=settings.request_timeout,
        cache_size=settings.instrument_cache_size,
    )


def _get_aggregator(settings: Settings, provider, reporter):
    from stockpulse.agents.commentary import CommentaryAgent
    from stockpulse.engine.aggregator import SignalAggregator

    commentary = CommentaryAgent(
        api_key=settings.openai_api_key,
        model=settings.openai_model,
        timeout=settings.commentary_timeout,
    )
    return SignalAggregator(
        provider=provider,
        commentary=commentary,
        reporter=reporter,
        max_points=settings.max_historical_points,
        sma_period=settings.sma_period,
        rsi_period=settings.rsi_period,
        seed_history=settings.seed_history,
    )


@click.command()
@click.argument("symbol")
def snapshot(symbol: str) -> None:
    """Fetch and analyze a symbol once.

    SYMBOL is the NSE trading symbol (e.g., SBIN, INFY, TCS).

    \b
    Examples:
      stockpulse snapshot SBIN
    """
    from stockpulse.reporting import SnapshotReporter

    settings = _load_settings_or_exit()
    symbol = symbol.upper()

    provider = _get_provider(settings)
    reporter = SnapshotReporter(console)
    aggregator = _get_aggregator(settings, provider, reporter)
    aggregator.register(symbol)

    console.print(f"[dim]Fetching {settings.candle_interval} candles for {symbol}...[/dim]")

    try:
        aggregator.update(symbol)
    except FetchError as e:
        console.print(Panel(
            f"[red]Failed to fetch data:[/red]\n\n{e}",
            title="[bold red]Error[/bold red]",
            border_style="red",
        ))
        raise SystemExit(1)
    finally:
        provider.close()


@click.command()
@click.argument("symbols", nargs=-1)
@click.option(
    "-i", "--interval",
    type=click.FloatRange(min=1),
    default=None,
    help="Seconds between update cycles (default: from config).",
)
@click.option(
    "-n", "--cycles",
    type=click.IntRange(min=1),
    default=None,
    help="Stop after this many cycles (default: run until Ctrl+C).",
)
@click.option(
    "--include-nifty",
    is_flag=True,
    help="Also monitor the Nifty 50 constituents.",
)
def monitor(
    symbols: tuple[str, ...],
    interval: Optional[float],
    cycles: Optional[int],
    include_nifty: bool,
) -> None:
    """Monitor symbols continuously.

    SYMBOLS are NSE trading symbols; the configured list is used when
    none are given. Press Ctrl+C to stop after the current update.

    \b
    Examples:
      stockpulse monitor SBIN
      stockpulse monitor SBIN INFY TCS --interval 300
      stockpulse monitor --include-nifty --cycles 1
    """
    from stockpulse.engine.monitor import Monitor
    from stockpulse.reporting import SnapshotReporter

    settings = _load_settings_or_exit()

    watch = [s.upper() for s in symbols] or [s.upper() for s in settings.symbols]
    provider = _get_provider(settings)
    if include_nifty:
        watch += provider.nifty50_symbols()

    reporter = SnapshotReporter(console)
    aggregator = _get_aggregator(settings, provider, reporter)

    try:
        runner = Monitor(
            aggregator,
            watch,
            interval=interval or settings.update_interval,
            symbol_delay=settings.symbol_delay,
            reporter=reporter,
        )
    except ValueError as e:
        console.print(Panel(str(e), title="[bold red]Error[/bold red]", border_style="red"))
        provider.close()
        raise SystemExit(1)

    def _handle_stop(signum, frame):
        console.print("\n[dim]Stopping after the current update...[/dim]")
        runner.stop()

    previous = signal.signal(signal.SIGINT, _handle_stop)
    console.print(
        f"[dim]Monitoring {len(runner.symbols)} symbol(s), "
        f"updating every {runner.interval:g}s...[/dim]"
    )

    try:
        runner.run(max_cycles=cycles)
    finally:
        signal.signal(signal.SIGINT, previous)
        provider.close()

    console.print("[dim]Stopped monitoring.[/dim]")
