"""WebSocket dashboard handling: one connection is one mounted dashboard view.

The connection owns a PriceSeriesPoller, a CoinListView and a search
Debouncer. Client messages select a coin, change the chart range or type into
the search box; the server pushes chart and coin-list updates. Disconnecting
unmounts the poller and cancels any pending search, so nothing keeps running
for a closed view.
"""
import asyncio
import json
import logging
from typing import Any, Literal

from fastapi import WebSocket, WebSocketDisconnect
from pydantic import BaseModel, ValidationError

from crypto_tracker.config import Settings
from crypto_tracker.providers.core import MarketDataClientABC
from crypto_tracker.schemas import ChartView, DisplayRange
from crypto_tracker.services.coin_list import CoinListView
from crypto_tracker.services.debounce import Debouncer
from crypto_tracker.services.price_series_poller import PriceSeriesPoller
from crypto_tracker.services.watchlist import WatchlistStore

logger = logging.getLogger(__name__)


class ClientMessage(BaseModel):
    """A message sent by the dashboard page."""

    type: Literal["select", "range", "search"]
    coin_id: str | None = None
    range: DisplayRange | None = None
    query: str = ""


def chart_message(view: ChartView) -> dict[str, Any]:
    return {"type": "chart", **view.model_dump(mode="json")}


async def _drain(websocket: WebSocket, outbox: asyncio.Queue) -> None:
    """Send queued messages in order until cancelled."""
    while True:
        message = await outbox.get()
        await websocket.send_json(message)


def _parse_message(text: str) -> ClientMessage:
    return ClientMessage.model_validate(json.loads(text))


async def handle_dashboard_socket(
    websocket: WebSocket,
    client: MarketDataClientABC,
    watchlist: WatchlistStore,
    settings: Settings,
) -> None:
    """Accept the WebSocket and serve one dashboard view until it disconnects.

    The view gets its own coin list, so its remote searches never change what
    other connections or the HTTP routes see.
    """
    await websocket.accept()
    coin_list = CoinListView(
        client,
        watchlist,
        currency=settings.currency,
        page_size=settings.coin_page_size,
    )
    outbox: asyncio.Queue[dict[str, Any]] = asyncio.Queue()
    poller = PriceSeriesPoller(
        client,
        poll_interval_ms=settings.poll_interval_ms,
        window_cap=settings.window_cap,
        currency=settings.currency,
        on_change=lambda view: outbox.put_nowait(chart_message(view)),
    )

    async def push_rows(query: str) -> None:
        rows = await coin_list.rows(query)
        outbox.put_nowait({
            "type": "coins",
            "query": query,
            "error": coin_list.error,
            "rows": [row.model_dump(mode="json") for row in rows],
        })

    debouncer = Debouncer(push_rows, delay=settings.search_debounce_seconds)
    sender = asyncio.create_task(_drain(websocket, outbox))
    poller.start()
    try:
        outbox.put_nowait(chart_message(poller.view()))
        await coin_list.load()
        await push_rows("")
        while True:
            text = await websocket.receive_text()
            try:
                message = _parse_message(text)
            except (ValueError, ValidationError) as exc:
                outbox.put_nowait({"type": "error", "detail": f"Invalid message: {exc}"})
                continue
            if message.type == "select":
                poller.select(message.coin_id)
            elif message.type == "range" and message.range is not None:
                poller.set_range(message.range)
            elif message.type == "search":
                debouncer.push(message.query)
    except WebSocketDisconnect:
        logger.debug("Dashboard client disconnected")
    except Exception as exc:
        logger.exception("Dashboard stream error: %s", exc)
        try:
            await websocket.close(code=1011, reason="Stream error")
        except RuntimeError:
            logger.debug("Dashboard socket already closed")
    finally:
        await debouncer.aclose()
        await poller.stop()
        sender.cancel()
        await asyncio.gather(sender, return_exceptions=True)
