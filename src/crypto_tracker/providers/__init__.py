"""Market data clients for the dashboard.

- CoinGeckoClient: markets listing, price history and search via CoinGecko

All clients implement MarketDataClientABC and return the shared schemas
(MarketSnapshot, PricePoint, CoinSearchHit).

Example:
    async with CoinGeckoClient() as client:
        coins = await client.list_markets(page_size=10)
        series = await client.fetch_series("bitcoin", range_spec=7)
"""
from crypto_tracker.providers.coingecko import CoinGeckoClient
from crypto_tracker.providers.core import (MarketDataClientABC,
                                           ProviderErrorMapper, SchemaError,
                                           TransportError)

__all__ = [
    "CoinGeckoClient",
    "MarketDataClientABC",
    "ProviderErrorMapper",
    "SchemaError",
    "TransportError",
]
