"""API routers for the dashboard.

Includes routes for:
- /coins - Coin table, one-shot charts and price history (CoinGecko)
- /watchlist - Watched coins
- /auth - Local accounts, sessions, guests, export/import
- /dashboard/stream - WebSocket for a live dashboard view
"""
from crypto_tracker.routers.auth import router as auth_router
from crypto_tracker.routers.coins import router as coins_router
from crypto_tracker.routers.dashboard import router as dashboard_router
from crypto_tracker.routers.watchlist import router as watchlist_router

__all__ = [
    "auth_router",
    "coins_router",
    "dashboard_router",
    "watchlist_router",
]
