"""Persistent watchlist of favourited coin ids."""
import logging

from crypto_tracker.db.store import KeyValueStore, read_json, write_json
from crypto_tracker.providers.core.utils import normalize_crypto_id

logger = logging.getLogger(__name__)

WATCHLIST_KEY = "crypto_watchlist_v1"


class WatchlistStore:
    """Ordered, duplicate-free set of coin ids kept in a key-value store.

    Each call is a single read-modify-write against the store, so concurrent
    callers resolve as last-write-wins.
    """

    def __init__(self, store: KeyValueStore, key: str = WATCHLIST_KEY) -> None:
        self._store = store
        self._key = key

    def load(self) -> list[str]:
        """Return the watchlist in insertion order; empty on missing or corrupt data."""
        raw = read_json(self._store, self._key, [])
        if not isinstance(raw, list):
            logger.warning("Ignoring malformed watchlist under '%s'", self._key)
            return []
        ids: list[str] = []
        for item in raw:
            if isinstance(item, str) and item not in ids:
                ids.append(item)
        return ids

    def contains(self, coin_id: str) -> bool:
        return normalize_crypto_id(coin_id) in self.load()

    def toggle(self, coin_id: str) -> list[str]:
        """Add the coin if absent, remove it if present; persist and return the new list."""
        coin = normalize_crypto_id(coin_id)
        ids = self.load()
        if coin in ids:
            ids.remove(coin)
        else:
            ids.append(coin)
        write_json(self._store, self._key, ids)
        return ids
