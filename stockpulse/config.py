"""Configuration loading for StockPulse.

Settings come from a TOML file (``~/.config/stockpulse/config.toml`` by
default, overridable with ``STOCKPULSE_CONFIG``) and environment
variables. Environment variables take precedence over the file.
"""

import os
from pathlib import Path
from typing import Any, Mapping, Optional

import toml
from pydantic import BaseModel, Field, ValidationError

from stockpulse.errors import ConfigurationError


CONFIG_DIR = Path.home() / ".config" / "stockpulse"
DEFAULT_CONFIG_PATH = CONFIG_DIR / "config.toml"

DEFAULT_MODEL = "gpt-4o"
UPSTOX_BASE_URL = "https://api.upstox.com/v2"

# Environment variable -> (section, key)
ENV_OVERRIDES = {
    "UPSTOX_API_KEY": ("upstox", "api_key"),
    "OPENAI_API_KEY": ("openai", "api_key"),
    "OPENAI_MODEL": ("openai", "model"),
    "STOCKPULSE_UPDATE_INTERVAL": ("monitor", "update_interval"),
}

# Section.key in the TOML file -> Settings field
FIELD_MAP = {
    ("upstox", "api_key"): "upstox_api_key",
    ("upstox", "base_url"): "upstox_base_url",
    ("upstox", "candle_interval"): "candle_interval",
    ("upstox", "instruments_path"): "instruments_path",
    ("upstox", "request_timeout"): "request_timeout",
    ("upstox", "instrument_cache_size"): "instrument_cache_size",
    ("openai", "api_key"): "openai_api_key",
    ("openai", "model"): "openai_model",
    ("openai", "timeout"): "commentary_timeout",
    ("monitor", "symbols"): "symbols",
    ("monitor", "update_interval"): "update_interval",
    ("monitor", "symbol_delay"): "symbol_delay",
    ("monitor", "seed_history"): "seed_history",
    ("indicators", "max_historical_points"): "max_historical_points",
    ("indicators", "sma_period"): "sma_period",
    ("indicators", "rsi_period"): "rsi_period",
}

PLACEHOLDER_PREFIX = "your-"


class Settings(BaseModel):
    """Validated runtime settings."""

    upstox_api_key: Optional[str] = Field(default=None, description="Upstox access token")
    upstox_base_url: str = Field(default=UPSTOX_BASE_URL)
    candle_interval: str = Field(default="1minute", description="Intraday candle interval")
    instruments_path: Path = Field(
        default=Path("NSE.json"), description="Upstox instruments JSON file"
    )
    request_timeout: float = Field(default=10.0, gt=0, description="HTTP timeout in seconds")
    instrument_cache_size: int = Field(default=512, ge=1)

    openai_api_key: Optional[str] = Field(default=None, description="OpenAI API key")
    openai_model: str = Field(default=DEFAULT_MODEL)
    commentary_timeout: float = Field(default=60.0, gt=0)

    symbols: list[str] = Field(default_factory=lambda: ["SBIN"])
    update_interval: float = Field(default=60.0, gt=0, description="Seconds between cycles")
    symbol_delay: float = Field(default=1.0, ge=0, description="Seconds between symbols")
    seed_history: bool = Field(default=True)

    max_historical_points: int = Field(default=100, ge=1)
    sma_period: int = Field(default=20, ge=1)
    rsi_period: int = Field(default=14, ge=1)

    def missing_secrets(self) -> list[str]:
        """List the required secrets that are not configured."""
        missing = []
        if not _is_set(self.upstox_api_key):
            missing.append("upstox.api_key (or set UPSTOX_API_KEY env var)")
        if not _is_set(self.openai_api_key):
            missing.append("openai.api_key (or set OPENAI_API_KEY env var)")
        return missing

    def require_secrets(self) -> "Settings":
        """Ensure both API keys are configured.

        Returns:
            self, for chaining.

        Raises:
            ConfigurationError: If any secret is missing.
        """
        missing = self.missing_secrets()
        if missing:
            raise ConfigurationError(
                "Missing required configuration: " + ", ".join(missing),
                missing=missing,
            )
        return self


def _is_set(value: Optional[str]) -> bool:
    return bool(value) and not value.startswith(PLACEHOLDER_PREFIX)


def get_config_path() -> Path:
    """Get the config file path, honouring STOCKPULSE_CONFIG."""
    override = os.environ.get("STOCKPULSE_CONFIG")
    return Path(override).expanduser() if override else DEFAULT_CONFIG_PATH


def load_settings(
    config_path: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Settings:
    """Load settings from the config file and environment.

    A missing config file is not an error; defaults and environment
    variables are used instead.

    Args:
        config_path: Optional config file path.
        environ: Optional environment mapping (defaults to os.environ).

    Returns:
        Validated Settings. Secrets are not checked here; call
        Settings.require_secrets() before starting.

    Raises:
        ConfigurationError: If the file cannot be parsed or a value is
            invalid.
    """
    path = config_path or get_config_path()
    env = os.environ if environ is None else environ

    raw: dict[str, Any] = {}
    if path.exists():
        try:
            raw = toml.load(path)
        except (toml.TomlDecodeError, OSError) as e:
            raise ConfigurationError(f"Could not read config file {path}: {e}") from e

    for env_name, section_key in ENV_OVERRIDES.items():
        value = env.get(env_name)
        if value:
            section, key = section_key
            raw.setdefault(section, {})[key] = value

    values: dict[str, Any] = {}
    for (section, key), field_name in FIELD_MAP.items():
        section_data = raw.get(section, {})
        if isinstance(section_data, dict) and key in section_data:
            values[field_name] = section_data[key]

    try:
        return Settings(**values)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e


def create_template_config(config_path: Optional[Path] = None) -> Path:
    """Write a template configuration file.

    Args:
        config_path: Optional destination path.

    Returns:
        The path written.
    """
    path = config_path or get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)

    defaults = Settings()
    template = {
        "upstox": {
            "api_key": "your-upstox-access-token",
            "base_url": defaults.upstox_base_url,
            "candle_interval": defaults.candle_interval,
            "instruments_path": str(defaults.instruments_path),
            "request_timeout": defaults.request_timeout,
        },
        "openai": {
            "api_key": "",  # Leave empty to use OPENAI_API_KEY env var
            "model": defaults.openai_model,
            "timeout": defaults.commentary_timeout,
        },
        "monitor": {
            "symbols": defaults.symbols,
            "update_interval": defaults.update_interval,
            "symbol_delay": defaults.symbol_delay,
            "seed_history": defaults.seed_history,
        },
        "indicators": {
            "max_historical_points": defaults.max_historical_points,
            "sma_period": defaults.sma_period,
            "rsi_period": defaults.rsi_period,
        },
    }

    with open(path, "w") as f:
        toml.dump(template, f)

    return path
