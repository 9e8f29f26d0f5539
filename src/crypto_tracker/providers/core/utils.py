"""Shared utilities for market data clients."""
from crypto_tracker.schemas import RangeSpec


def normalize_crypto_id(coin_id: str) -> str:
    """Normalize a CoinGecko id (trimmed, lowercase)."""
    return coin_id.strip().lower()


def format_days(range_spec: RangeSpec) -> str:
    """Render a range spec as the `days` query parameter.

    >>> format_days(7), format_days(0.02), format_days("max")
    ('7', '0.02', 'max')
    """
    if range_spec == "max":
        return "max"
    days = float(range_spec)
    if days <= 0:
        raise ValueError(f"Range must be a positive day count or 'max', got {range_spec!r}")
    return str(int(days)) if days.is_integer() else repr(days)
