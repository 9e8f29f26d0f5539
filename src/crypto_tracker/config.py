"""Runtime configuration read from environment variables."""
import os

from pydantic import BaseModel, Field

_DEFAULT_DATABASE_URL = "sqlite:///crypto_tracker.db"


class Settings(BaseModel):
    """Dashboard settings.

    Every field has a default matching the dashboard's behaviour; use
    `Settings.from_env()` to apply environment overrides.
    """

    coingecko_api_key: str | None = None
    request_timeout: float = Field(default=10.0, gt=0)
    currency: str = "usd"
    poll_interval_ms: int = Field(default=15_000, ge=0)
    window_cap: int = Field(default=240, ge=1)
    search_debounce_ms: int = Field(default=350, ge=0)
    coin_page_size: int = Field(default=80, ge=1, le=250)
    database_url: str = _DEFAULT_DATABASE_URL
    sql_echo: bool = False

    @property
    def search_debounce_seconds(self) -> float:
        return self.search_debounce_ms / 1000

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables, falling back to defaults."""
        env = {
            "coingecko_api_key": os.getenv("COINGECKO_API_KEY"),
            "request_timeout": os.getenv("COINGECKO_TIMEOUT"),
            "currency": os.getenv("DASHBOARD_CURRENCY"),
            "poll_interval_ms": os.getenv("CHART_POLL_INTERVAL_MS"),
            "window_cap": os.getenv("CHART_WINDOW_CAP"),
            "search_debounce_ms": os.getenv("SEARCH_DEBOUNCE_MS"),
            "coin_page_size": os.getenv("COIN_PAGE_SIZE"),
            "database_url": os.getenv("DATABASE_URL"),
            "sql_echo": os.getenv("SQL_ECHO", "0") == "1",
        }
        return cls.model_validate({k: v for k, v in env.items() if v is not None})
