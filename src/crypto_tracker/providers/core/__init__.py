"""Core client abstractions."""
from crypto_tracker.providers.core.error_mapper import ProviderErrorMapper
from crypto_tracker.providers.core.exceptions import SchemaError, TransportError
from crypto_tracker.providers.core.market_data_client_abc import MarketDataClientABC

__all__ = [
    "MarketDataClientABC",
    "ProviderErrorMapper",
    "SchemaError",
    "TransportError",
]
