"""Service layer: chart polling, coin list, watchlist and accounts."""
from crypto_tracker.services.accounts import (AccountDataManager, GuestStore,
                                              SessionStore, UserStore)
from crypto_tracker.services.coin_list import CoinListView, SortKey
from crypto_tracker.services.debounce import Debouncer
from crypto_tracker.services.price_series import PriceSeries
from crypto_tracker.services.price_series_poller import PriceSeriesPoller
from crypto_tracker.services.watchlist import WatchlistStore

__all__ = [
    "AccountDataManager",
    "CoinListView",
    "Debouncer",
    "GuestStore",
    "PriceSeries",
    "PriceSeriesPoller",
    "SessionStore",
    "SortKey",
    "UserStore",
    "WatchlistStore",
]
