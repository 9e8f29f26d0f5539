"""
Shared pytest fixtures: fake market client, in-memory stores, sample data.
"""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from crypto_tracker.db import MemoryStore
from crypto_tracker.providers.core import MarketDataClientABC, TransportError
from crypto_tracker.schemas import CoinSearchHit, MarketSnapshot, PricePoint


def points(pairs):
    """[[epoch_ms, price], ...] -> list[PricePoint]."""
    return [PricePoint.from_pair(p) for p in pairs]


class FakeMarketClient(MarketDataClientABC):
    """Scriptable market client.

    `series_responses[coin_id]` is a list consumed one item per fetch_series
    call; an item is a list of pairs, an Exception to raise, or an
    asyncio.Future resolving to a list of pairs.
    """

    def __init__(self, markets=None, search_hits=None, catalog=None):
        self.markets = list(markets or [])
        self.catalog = list(catalog or self.markets)
        self.search_hits = list(search_hits or [])
        self.series_responses: dict[str, list] = {}
        self.series_calls: list[tuple[str, str, object]] = []
        self.market_calls: list[dict] = []
        self.search_calls: list[str] = []
        self.fail_markets = False
        self.closed = False

    def queue_series(self, coin_id, *responses):
        self.series_responses.setdefault(coin_id, []).extend(responses)

    async def list_markets(self, currency="usd", page_size=50, page=1, ids=None):
        self.market_calls.append({"currency": currency, "page_size": page_size, "ids": ids})
        if self.fail_markets:
            raise TransportError("markets down", status_code=503)
        if ids:
            return [m for m in self.catalog if m.id in ids]
        return list(self.markets[:page_size])

    async def fetch_series(self, coin_id, currency="usd", range_spec=1):
        self.series_calls.append((coin_id, currency, range_spec))
        queue = self.series_responses.get(coin_id)
        if not queue:
            raise TransportError(f"no scripted series for {coin_id}", status_code=404)
        item = queue.pop(0)
        if isinstance(item, asyncio.Future):
            item = await item
        if isinstance(item, Exception):
            raise item
        return points(item)

    async def search_coins(self, query):
        self.search_calls.append(query)
        q = query.lower()
        return [h for h in self.search_hits if q in h.name.lower() or q in h.symbol.lower()]

    async def close(self):
        self.closed = True


def snapshot(coin_id, name, symbol, price, change=None, market_cap=None, volume=None):
    return MarketSnapshot(
        id=coin_id,
        name=name,
        symbol=symbol,
        current_price=price,
        price_change_percentage_24h=change,
        image=f"https://img.example/{coin_id}.png",
        market_cap=market_cap,
        total_volume=volume,
    )


@pytest.fixture
def market_snapshots():
    return [
        snapshot("bitcoin", "Bitcoin", "btc", 64000.0, 2.5, 1.26e12, 3.1e10),
        snapshot("ethereum", "Ethereum", "eth", 3100.5, -1.2, 3.7e11, 1.5e10),
        snapshot("tether", "Tether", "usdt", 1.0, 0.01, 1.1e11, 5.0e10),
        snapshot("dogecoin", "Dogecoin", "doge", 0.1234, None, 1.8e10, 9.0e8),
    ]


@pytest.fixture
def fake_client(market_snapshots):
    extra = snapshot("pepe", "Pepe", "pepe", 0.0000123, 12.0, 4.5e9, 1.2e9)
    return FakeMarketClient(
        markets=market_snapshots,
        catalog=market_snapshots + [extra],
        search_hits=[
            CoinSearchHit(id="pepe", name="Pepe", symbol="PEPE"),
        ],
    )


@pytest.fixture
def memory_store():
    return MemoryStore()


@pytest.fixture
def ephemeral_store():
    return MemoryStore()


class FakeClock:
    """Controllable clock for expiry tests."""

    def __init__(self, start=None):
        self.now = start or datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock()
