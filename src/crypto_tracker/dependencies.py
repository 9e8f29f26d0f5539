"""FastAPI dependency injection: app.state holds singletons; Depends() resolves them.

The lifespan (main.py) creates the client, stores and services once and
attaches them to app.state; these getters are used by Depends().
"""
from typing import Annotated

from fastapi import Depends, Request, WebSocket

from crypto_tracker.config import Settings
from crypto_tracker.providers.core import MarketDataClientABC
from crypto_tracker.services import (AccountDataManager, CoinListView,
                                     GuestStore, SessionStore, UserStore,
                                     WatchlistStore)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_market_client(request: Request) -> MarketDataClientABC:
    """Resolve the shared market data client from app.state."""
    return request.app.state.market_client


def get_coin_list(request: Request) -> CoinListView:
    return request.app.state.coin_list


def get_watchlist(request: Request) -> WatchlistStore:
    return request.app.state.watchlist


def get_user_store(request: Request) -> UserStore:
    return request.app.state.user_store


def get_session_store(request: Request) -> SessionStore:
    return request.app.state.session_store


def get_guest_store(request: Request) -> GuestStore:
    return request.app.state.guest_store


def get_data_manager(request: Request) -> AccountDataManager:
    return request.app.state.data_manager


def get_dashboard_deps(
    websocket: WebSocket,
) -> tuple[MarketDataClientABC, WatchlistStore, Settings]:
    """Resolve what a dashboard WebSocket needs (client, watchlist, settings)."""
    state = websocket.scope["app"].state
    return state.market_client, state.watchlist, state.settings


# Type aliases for route injection
SettingsDep = Annotated[Settings, Depends(get_settings)]
MarketClient = Annotated[MarketDataClientABC, Depends(get_market_client)]
CoinList = Annotated[CoinListView, Depends(get_coin_list)]
Watchlist = Annotated[WatchlistStore, Depends(get_watchlist)]
Users = Annotated[UserStore, Depends(get_user_store)]
Sessions = Annotated[SessionStore, Depends(get_session_store)]
Guests = Annotated[GuestStore, Depends(get_guest_store)]
DataManager = Annotated[AccountDataManager, Depends(get_data_manager)]
DashboardDeps = Annotated[
    tuple[MarketDataClientABC, WatchlistStore, Settings], Depends(get_dashboard_deps)
]
