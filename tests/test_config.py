"""Tests for configuration loading."""

import tempfile
from pathlib import Path

import pytest
import toml

from stockpulse.config import Settings, create_template_config, load_settings
from stockpulse.errors import ConfigurationError


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


def write_config(path: Path, data: dict) -> Path:
    path.write_text(toml.dumps(data))
    return path


class TestLoadSettings:
    """Settings come from the file, with environment overrides."""

    def test_defaults_without_file(self, temp_dir):
        settings = load_settings(temp_dir / "missing.toml", environ={})

        assert settings.max_historical_points == 100
        assert settings.sma_period == 20
        assert settings.rsi_period == 14
        assert settings.update_interval == 60.0
        assert settings.symbols == ["SBIN"]

    def test_values_from_file(self, temp_dir):
        path = write_config(temp_dir / "config.toml", {
            "upstox": {"api_key": "upstox-token", "candle_interval": "30minute"},
            "openai": {"api_key": "sk-file", "model": "gpt-4o-mini"},
            "monitor": {"symbols": ["INFY", "TCS"], "update_interval": 300},
            "indicators": {"max_historical_points": 250, "sma_period": 50, "rsi_period": 9},
        })

        settings = load_settings(path, environ={})

        assert settings.upstox_api_key == "upstox-token"
        assert settings.candle_interval == "30minute"
        assert settings.openai_model == "gpt-4o-mini"
        assert settings.symbols == ["INFY", "TCS"]
        assert settings.update_interval == 300
        assert settings.max_historical_points == 250
        assert (settings.sma_period, settings.rsi_period) == (50, 9)

    def test_environment_overrides_file(self, temp_dir):
        path = write_config(temp_dir / "config.toml", {
            "openai": {"api_key": "sk-file"},
            "monitor": {"update_interval": 300},
        })

        settings = load_settings(path, environ={
            "OPENAI_API_KEY": "sk-env",
            "UPSTOX_API_KEY": "upstox-env",
            "STOCKPULSE_UPDATE_INTERVAL": "15",
        })

        assert settings.openai_api_key == "sk-env"
        assert settings.upstox_api_key == "upstox-env"
        assert settings.update_interval == 15.0

    def test_invalid_toml(self, temp_dir):
        path = temp_dir / "config.toml"
        path.write_text("[upstox\napi_key = ")

        with pytest.raises(ConfigurationError):
            load_settings(path, environ={})

    def test_invalid_value(self, temp_dir):
        path = write_config(temp_dir / "config.toml", {"indicators": {"sma_period": 0}})

        with pytest.raises(ConfigurationError):
            load_settings(path, environ={})


class TestSecrets:
    """Both API keys are required before starting."""

    def test_missing_both(self):
        with pytest.raises(ConfigurationError) as exc_info:
            Settings().require_secrets()

        assert len(exc_info.value.missing) == 2

    def test_placeholder_is_missing(self):
        settings = Settings(upstox_api_key="your-upstox-access-token", openai_api_key="sk-x")
        assert settings.missing_secrets() == ["upstox.api_key (or set UPSTOX_API_KEY env var)"]

    def test_complete(self):
        settings = Settings(upstox_api_key="token", openai_api_key="sk-x")
        assert settings.require_secrets() is settings


class TestTemplate:
    """The template config loads and still needs secrets."""

    def test_template_round_trip(self, temp_dir):
        path = create_template_config(temp_dir / "nested" / "config.toml")

        assert path.exists()
        settings = load_settings(path, environ={})
        assert settings == Settings(
            upstox_api_key="your-upstox-access-token",
            openai_api_key="",
        )
        assert len(settings.missing_secrets()) == 2
