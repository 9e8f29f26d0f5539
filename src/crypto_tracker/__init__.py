"""Crypto tracker dashboard: market list, watchlist, accounts and live price charts."""
