"""Coin list and price chart routes (CoinGecko)."""
import logging

from fastapi import APIRouter, Query

from crypto_tracker.dependencies import CoinList, MarketClient, SettingsDep
from crypto_tracker.providers.core import ProviderErrorMapper, TransportError
from crypto_tracker.schemas import ChartView, CoinRow, DisplayRange, PricePoint
from crypto_tracker.services import PriceSeriesPoller, SortKey

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/coins", tags=["coins"])

_errors = ProviderErrorMapper(resource_name="Coin", api_name="CoinGecko")


@router.get("", response_model=list[CoinRow])
async def list_coins(
    coin_list: CoinList,
    q: str | None = Query(default=None, description="Name or symbol to search for"),
    sort_by: SortKey = Query(default=SortKey.MARKET_CAP),
    descending: bool = Query(default=False),
) -> list[CoinRow]:
    """Get the coin table, optionally filtered by a search query and sorted.

    The market snapshot is fetched on first use; later calls reuse it until
    /coins/refresh is called.
    """
    if not coin_list.coins:
        await coin_list.load()
    return await coin_list.rows(q, sort_by=sort_by, descending=descending)


@router.post("/refresh")
async def refresh_coins(coin_list: CoinList) -> dict[str, str | int | None]:
    """Re-fetch the market snapshot."""
    coins = await coin_list.load()
    return {"status": "refreshed", "count": len(coins), "error": coin_list.error}


@router.get("/{coin_id}/chart", response_model=ChartView)
async def get_chart(
    coin_id: str,
    client: MarketClient,
    settings: SettingsDep,
    range: DisplayRange = Query(default=DisplayRange.ONE_DAY),  # noqa: A002
) -> ChartView:
    """Get a one-shot chart view (full-range load, no live ticking).

    A failed load is reported in the view as state `load_failed`.
    """
    poller = PriceSeriesPoller(
        client,
        poll_interval_ms=0,
        window_cap=settings.window_cap,
        currency=settings.currency,
        display_range=range,
    )
    async with poller:
        load = poller.select(coin_id)
        if load is not None:
            await load
        return poller.view()


@router.get("/{coin_id}/history", response_model=list[PricePoint])
async def get_history(
    coin_id: str,
    client: MarketClient,
    settings: SettingsDep,
    range: DisplayRange = Query(default=DisplayRange.ONE_WEEK),  # noqa: A002
) -> list[PricePoint]:
    """Get the raw price history for a coin.

    Unlike /chart, upstream failures are returned as HTTP errors.
    """
    try:
        return await client.fetch_series(coin_id, settings.currency, range.days)
    except (TransportError, ValueError) as exc:
        logger.warning("History request for %s failed: %s", coin_id, exc)
        _errors.raise_http(exc, symbol=coin_id)
