"""Watchlist routes."""
from fastapi import APIRouter
from pydantic import BaseModel

from crypto_tracker.dependencies import CoinList, Watchlist
from crypto_tracker.providers.core.utils import normalize_crypto_id

router = APIRouter(prefix="/watchlist", tags=["watchlist"])


class ToggleResult(BaseModel):
    coin_id: str
    watched: bool
    watchlist: list[str]


@router.get("", response_model=list[str])
def get_watchlist(watchlist: Watchlist) -> list[str]:
    """Get the watched coin ids in the order they were added."""
    return watchlist.load()


@router.post("/{coin_id}/toggle", response_model=ToggleResult)
def toggle_watch(coin_id: str, coin_list: CoinList) -> ToggleResult:
    """Add the coin to the watchlist if absent, remove it if present."""
    updated = coin_list.toggle_watch(coin_id)
    coin = normalize_crypto_id(coin_id)
    return ToggleResult(coin_id=coin, watched=coin in updated, watchlist=updated)
