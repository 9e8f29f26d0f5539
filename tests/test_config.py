import pytest
from pydantic import ValidationError

from crypto_tracker.config import Settings


def test_defaults(monkeypatch):
    for name in ("CHART_POLL_INTERVAL_MS", "CHART_WINDOW_CAP", "SEARCH_DEBOUNCE_MS", "COINGECKO_API_KEY"):
        monkeypatch.delenv(name, raising=False)
    settings = Settings.from_env()
    assert settings.poll_interval_ms == 15_000
    assert settings.window_cap == 240
    assert settings.search_debounce_seconds == 0.35
    assert settings.coingecko_api_key is None


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("CHART_POLL_INTERVAL_MS", "5000")
    monkeypatch.setenv("CHART_WINDOW_CAP", "60")
    monkeypatch.setenv("COINGECKO_API_KEY", "cg-key")
    monkeypatch.setenv("DATABASE_URL", "sqlite://")
    monkeypatch.setenv("SQL_ECHO", "1")

    settings = Settings.from_env()

    assert settings.poll_interval_ms == 5000
    assert settings.window_cap == 60
    assert settings.coingecko_api_key == "cg-key"
    assert settings.database_url == "sqlite://"
    assert settings.sql_echo is True


def test_invalid_window_cap(monkeypatch):
    monkeypatch.setenv("CHART_WINDOW_CAP", "0")
    with pytest.raises(ValidationError):
        Settings.from_env()
