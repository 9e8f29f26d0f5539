"""Display formatting for prices, volumes and percentage changes.

These helpers only affect presentation; stored values keep full precision.
"""

SMALL_PRICE_DECIMALS = 6
MIN_DECIMALS = 2
_COMPACT_UNITS = ((1e9, "B"), (1e6, "M"), (1e3, "k"))


def _signed(body: str, negative: bool) -> str:
    return f"-${body}" if negative else f"${body}"


def format_price(value: float | None) -> str:
    """Format a price for display.

    Sub-dollar prices keep up to six fractional digits, prices below 1,000 get
    two decimals, larger ones are grouped without decimals.

    >>> format_price(0.000123)
    '$0.000123'
    >>> format_price(42.5)
    '$42.50'
    >>> format_price(1234)
    '$1,234'
    """
    if value is None:
        return "n/a"
    magnitude = abs(float(value))
    negative = value < 0
    if magnitude < 1:
        body = f"{magnitude:.{SMALL_PRICE_DECIMALS}f}"
        whole, _, frac = body.partition(".")
        frac = frac.rstrip("0").ljust(MIN_DECIMALS, "0")
        return _signed(f"{whole}.{frac}", negative)
    if magnitude < 1000:
        return _signed(f"{magnitude:,.2f}", negative)
    return _signed(f"{magnitude:,.0f}", negative)


def format_compact(value: float | None) -> str:
    """Format a large amount (volume, market cap) with a B/M/k suffix.

    >>> format_compact(2_500_000_000)
    '$2.5B'
    """
    if value is None:
        return "n/a"
    magnitude = abs(float(value))
    for threshold, suffix in _COMPACT_UNITS:
        if magnitude >= threshold:
            return _signed(f"{magnitude / threshold:.1f}{suffix}", value < 0)
    return format_price(value)


def format_change(percent: float | None) -> str:
    """Format a 24h percentage change with two decimals."""
    if percent is None:
        return "n/a"
    return f"{percent:.2f}%"
