"""Coin list view: market snapshot, two-tier search, sorting and watch toggles."""
import logging
from enum import Enum

from crypto_tracker.formatting import format_change, format_compact, format_price
from crypto_tracker.providers.core import MarketDataClientABC, TransportError
from crypto_tracker.schemas import CoinRow, MarketSnapshot
from crypto_tracker.services.watchlist import WatchlistStore

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 80
REMOTE_SEARCH_LIMIT = 30
REHYDRATE_PAGE_SIZE = 50


class SortKey(str, Enum):
    MARKET_CAP = "market_cap"
    NAME = "name"
    PRICE = "price"
    CHANGE_24H = "change_24h"


def _sort_value(coin: MarketSnapshot, key: SortKey) -> float | str | None:
    if key is SortKey.NAME:
        return coin.name.casefold()
    if key is SortKey.PRICE:
        return coin.current_price
    return coin.price_change_percentage_24h


def sort_coins(
    coins: list[MarketSnapshot],
    sort_by: SortKey = SortKey.MARKET_CAP,
    descending: bool = False,
) -> list[MarketSnapshot]:
    """Sort coins; market cap keeps the API's ranking. Missing values sort last."""
    if sort_by is SortKey.MARKET_CAP:
        return list(reversed(coins)) if descending else list(coins)
    present = [c for c in coins if _sort_value(c, sort_by) is not None]
    missing = [c for c in coins if _sort_value(c, sort_by) is None]
    present.sort(key=lambda c: _sort_value(c, sort_by), reverse=descending)
    return present + missing


def matches(coin: MarketSnapshot, query: str) -> bool:
    """Case-insensitive substring match on name or symbol."""
    q = query.casefold()
    return q in coin.name.casefold() or q in coin.symbol.casefold()


class CoinListView:
    """Holds the market snapshot and renders rows for the coin table."""

    def __init__(
        self,
        client: MarketDataClientABC,
        watchlist: WatchlistStore,
        *,
        currency: str = "usd",
        page_size: int = DEFAULT_PAGE_SIZE,
        keep_remote_results: bool = True,
    ) -> None:
        """Initialize the view.

        Args:
            client: Market data client for the listing and the remote search.
            watchlist: Store behind the `watched` flags.
            currency: Quote currency.
            page_size: Number of coins in the listing.
            keep_remote_results: Let a remote search replace the snapshot. A
                view shared by several callers sets this to False so only
                `load()` changes what everyone sees.
        """
        self._client = client
        self._watchlist = watchlist
        self._currency = currency
        self._page_size = page_size
        self._keep_remote_results = keep_remote_results
        self._coins: list[MarketSnapshot] = []
        self._watched: list[str] = watchlist.load()
        self._error: str | None = None
        self._search_generation = 0

    @property
    def coins(self) -> list[MarketSnapshot]:
        return list(self._coins)

    @property
    def watched(self) -> list[str]:
        return list(self._watched)

    @property
    def error(self) -> str | None:
        return self._error

    async def load(self) -> list[MarketSnapshot]:
        """Replace the snapshot with a fresh listing. On failure the old one is kept."""
        try:
            coins = await self._client.list_markets(self._currency, page_size=self._page_size)
        except TransportError as exc:
            logger.warning("Failed to load coin list: %s", exc)
            self._error = "Could not load coins."
            return self.coins
        self._coins = coins
        self._error = None
        return self.coins

    async def search(self, query: str | None) -> list[MarketSnapshot]:
        """Match locally first; only when nothing matches, ask the remote search.

        Remote hits are rehydrated into full snapshots, which then replace the
        current snapshot unless the view was built with
        `keep_remote_results=False`. When both tiers find nothing, or the
        remote round trip fails, the result is empty.
        """
        q = (query or "").strip()
        if not q:
            return self.coins
        local = [c for c in self._coins if matches(c, q)]
        if local:
            return local

        self._search_generation += 1
        generation = self._search_generation
        try:
            hits = await self._client.search_coins(q)
            ids = [hit.id for hit in hits[:REMOTE_SEARCH_LIMIT]]
            if not ids:
                return []
            remote = await self._client.list_markets(
                self._currency, page_size=REHYDRATE_PAGE_SIZE, ids=ids
            )
        except TransportError as exc:
            logger.warning("Remote search for %r failed: %s", q, exc)
            return []
        if not self._keep_remote_results:
            return remote
        if generation != self._search_generation:
            logger.debug("Discarding stale remote search for %r", q)
            return remote
        self._coins = remote
        return self.coins

    async def rows(
        self,
        query: str | None = None,
        sort_by: SortKey = SortKey.MARKET_CAP,
        descending: bool = False,
    ) -> list[CoinRow]:
        """Search, sort and render the coin table."""
        self._watched = self._watchlist.load()
        coins = await self.search(query)
        return self.render(sort_coins(coins, sort_by, descending))

    def render(self, coins: list[MarketSnapshot]) -> list[CoinRow]:
        watched = set(self._watched)
        return [
            CoinRow(
                **coin.model_dump(),
                watched=coin.id in watched,
                price_display=format_price(coin.current_price),
                change_display=format_change(coin.price_change_percentage_24h),
                market_cap_display=format_compact(coin.market_cap),
                volume_display=format_compact(coin.total_volume),
            )
            for coin in coins
        ]

    def toggle_watch(self, coin_id: str) -> list[str]:
        self._watched = self._watchlist.toggle(coin_id)
        return self.watched
