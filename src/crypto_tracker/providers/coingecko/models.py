"""Models for the CoinGecko client (request params and response schemas)."""
from pydantic import BaseModel, Field

from crypto_tracker.schemas import CoinSearchHit


class CoinGeckoMarketsParams(BaseModel):
    """Params for /coins/markets (list_markets)."""

    vs_currency: str = "usd"
    order: str = "market_cap_desc"
    per_page: int = 50
    page: int = 1
    ids: str | None = None
    price_change_percentage: str = "24h"


class CoinGeckoChartParams(BaseModel):
    """Params for /coins/{id}/market_chart (fetch_series)."""

    vs_currency: str = "usd"
    days: str = "1"


class CoinGeckoSearchParams(BaseModel):
    """Params for /search (search_coins)."""

    query: str


class CoinGeckoMarketChart(BaseModel):
    """Response of /coins/{id}/market_chart: `[epoch_ms, value]` pairs per series.

    CoinGecko occasionally reports a null price; those samples are dropped
    by the client rather than filled in.
    """

    prices: list[tuple[float, float | None]]
    total_volumes: list[tuple[float, float | None]] = Field(default_factory=list)
    market_caps: list[tuple[float, float | None]] = Field(default_factory=list)


class CoinGeckoSearchResult(BaseModel):
    """Response of /search. Only the coins section is used."""

    coins: list[CoinSearchHit] = Field(default_factory=list)
