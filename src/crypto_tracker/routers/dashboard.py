"""Live dashboard WebSocket route."""
from fastapi import APIRouter, WebSocket

from crypto_tracker.dependencies import DashboardDeps
from crypto_tracker.services.utils import handle_dashboard_socket

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.websocket("/stream")
async def dashboard_stream(websocket: WebSocket, deps: DashboardDeps) -> None:
    """Serve one mounted dashboard view.

    Client messages: {"type": "select", "coin_id": "bitcoin"},
    {"type": "range", "range": "7"}, {"type": "search", "query": "eth"}.
    Server messages: {"type": "chart", ...} and {"type": "coins", "rows": [...]}.
    """
    client, watchlist, settings = deps
    await handle_dashboard_socket(websocket, client, watchlist, settings)
