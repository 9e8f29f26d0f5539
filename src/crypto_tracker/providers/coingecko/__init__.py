"""CoinGecko market data client."""
from crypto_tracker.providers.coingecko.coin_gecko_client import CoinGeckoClient

__all__ = ["CoinGeckoClient"]
