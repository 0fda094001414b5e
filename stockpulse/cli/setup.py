"""Configuration commands for StockPulse CLI."""

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from stockpulse.config import create_template_config, get_config_path, load_settings
from stockpulse.errors import ConfigurationError

console = Console()


def _mask(value: str | None) -> str:
    if not value:
        return "[red]not set[/red]"
    return value[:4] + "…" if len(value) > 4 else "****"


@click.command()
@click.option("--force", is_flag=True, help="Overwrite an existing config file.")
def init(force: bool) -> None:
    """Create a template configuration file.

    \b
    Examples:
      stockpulse init
      stockpulse init --force
    """
    config_path = get_config_path()

    if config_path.exists() and not force:
        console.print(Panel(
            f"Config file already exists at [cyan]{config_path}[/cyan].\n\n"
            "Use [cyan]--force[/cyan] to overwrite it.",
            title="[bold yellow]Config Exists[/bold yellow]",
            border_style="yellow",
        ))
        raise SystemExit(1)

    path = create_template_config(config_path)
    console.print(Panel(
        f"Created config file at [cyan]{path}[/cyan].\n\n"
        "Add your Upstox access token and OpenAI API key, or set\n"
        "[cyan]UPSTOX_API_KEY[/cyan] and [cyan]OPENAI_API_KEY[/cyan].",
        title="[bold green]Config Created[/bold green]",
        border_style="green",
    ))


@click.command()
def check() -> None:
    """Validate configuration and show the effective settings."""
    try:
        settings = load_settings()
    except ConfigurationError as e:
        console.print(Panel(str(e), title="[bold red]Error[/bold red]", border_style="red"))
        raise SystemExit(1)

    table = Table(title="Effective Settings", show_header=True, header_style="bold cyan")
    table.add_column("Setting", style="bold")
    table.add_column("Value")

    table.add_row("Config file", str(get_config_path()))
    table.add_row("Upstox API key", _mask(settings.upstox_api_key))
    table.add_row("OpenAI API key", _mask(settings.openai_api_key))
    table.add_row("Model", settings.openai_model)
    table.add_row("Symbols", ", ".join(settings.symbols))
    table.add_row("Candle interval", settings.candle_interval)
    table.add_row("Update interval", f"{settings.update_interval:g}s")
    table.add_row("Max history points", str(settings.max_historical_points))
    table.add_row("SMA / RSI periods", f"{settings.sma_period} / {settings.rsi_period}")
    console.print(table)

    missing = settings.missing_secrets()
    if missing:
        console.print(Panel(
            "[red]Missing required configuration:[/red]\n\n"
            + "\n".join(f"  • {m}" for m in missing),
            title="[bold red]Incomplete[/bold red]",
            border_style="red",
        ))
        raise SystemExit(1)

    console.print("[green]Configuration OK[/green]")
