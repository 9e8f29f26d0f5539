"""CoinGecko market data client for the dashboard."""
import logging
import os
from typing import Any, TypeVar

import httpx
from pydantic import TypeAdapter, ValidationError

from crypto_tracker.providers.coingecko.models import (
    CoinGeckoChartParams, CoinGeckoMarketChart, CoinGeckoMarketsParams,
    CoinGeckoSearchParams, CoinGeckoSearchResult)
from crypto_tracker.providers.core import (MarketDataClientABC, SchemaError,
                                           TransportError)
from crypto_tracker.providers.core.utils import format_days, normalize_crypto_id
from crypto_tracker.schemas import (CoinSearchHit, MarketSnapshot, PricePoint,
                                    RangeSpec)

logger = logging.getLogger(__name__)

_ModelT = TypeVar("_ModelT")
_MARKETS_ADAPTER = TypeAdapter(list[MarketSnapshot])


class CoinGeckoClient(MarketDataClientABC):
    """Market data client for the CoinGecko REST API.

    Uses CoinGecko IDs as coin identifiers (e.g., "bitcoin", "ethereum").
    Every response is validated against an explicit schema; shape mismatches
    raise SchemaError instead of leaking half-parsed data to callers.
    """

    BASE_URL = "https://api.coingecko.com/api/v3"
    PRO_BASE_URL = "https://pro-api.coingecko.com/api/v3"

    def __init__(
        self,
        api_key: str | None = None,
        use_pro_api: bool = False,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the CoinGecko client.

        Args:
            api_key: CoinGecko API key. Defaults to COINGECKO_API_KEY env var.
            use_pro_api: Whether to use the Pro API endpoint.
            timeout: Per-request timeout in seconds.
            transport: Optional httpx transport (e.g. httpx.MockTransport in tests).
        """
        self._api_key = api_key or os.getenv("COINGECKO_API_KEY")
        self._use_pro_api = use_pro_api or bool(self._api_key)

        headers: dict[str, str] = {"Accept": "application/json"}
        if self._api_key:
            headers["x-cg-pro-api-key"] = self._api_key

        base = self.PRO_BASE_URL if self._use_pro_api else self.BASE_URL
        self._client = httpx.AsyncClient(
            base_url=base,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def list_markets(
        self,
        currency: str = "usd",
        page_size: int = 50,
        page: int = 1,
        ids: list[str] | None = None,
    ) -> list[MarketSnapshot]:
        """Fetch a page of coins ordered by market cap."""
        params = CoinGeckoMarketsParams(
            vs_currency=currency,
            per_page=page_size,
            page=page,
            ids=",".join(normalize_crypto_id(i) for i in ids) if ids else None,
        ).model_dump(exclude_none=True)
        data = await self._get_json("/coins/markets", params)
        return self._parse(_MARKETS_ADAPTER, data, "/coins/markets")

    async def fetch_series(
        self,
        coin_id: str,
        currency: str = "usd",
        range_spec: RangeSpec = 1,
    ) -> list[PricePoint]:
        """Fetch a coin's price history from /coins/{id}/market_chart.

        Args:
            coin_id: CoinGecko ID (e.g., "bitcoin").
            currency: Quote currency.
            range_spec: Day count or "max".

        Returns:
            Price points ordered by timestamp. Samples with a null price are skipped.
        """
        coin = normalize_crypto_id(coin_id)
        if not coin:
            raise ValueError("coin_id must not be empty")
        path = f"/coins/{coin}/market_chart"
        params = CoinGeckoChartParams(
            vs_currency=currency, days=format_days(range_spec)
        ).model_dump()
        data = await self._get_json(path, params)
        chart = self._parse(TypeAdapter(CoinGeckoMarketChart), data, path)
        points = [
            PricePoint.from_pair((ts_ms, price))
            for ts_ms, price in chart.prices
            if price is not None
        ]
        points.sort(key=lambda p: p.timestamp)
        return points

    async def search_coins(self, query: str) -> list[CoinSearchHit]:
        """Search coins by free text via /search."""
        text = (query or "").strip()
        if not text:
            return []
        params = CoinGeckoSearchParams(query=text).model_dump()
        data = await self._get_json("/search", params)
        return self._parse(TypeAdapter(CoinGeckoSearchResult), data, "/search").coins

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def _get_json(self, path: str, params: dict[str, Any]) -> Any:
        """GET `path` and decode JSON, translating httpx failures to TransportError."""
        try:
            response = await self._client.get(path, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            raise TransportError(
                f"CoinGecko returned HTTP {status} for {path}", status_code=status
            ) from exc
        except httpx.TimeoutException as exc:
            raise TransportError(
                f"Request to CoinGecko timed out for {path}", timed_out=True
            ) from exc
        except httpx.RequestError as exc:
            raise TransportError(f"Request to CoinGecko failed for {path}: {exc}") from exc
        try:
            return response.json()
        except ValueError as exc:
            raise SchemaError(f"CoinGecko returned invalid JSON for {path}") from exc

    @staticmethod
    def _parse(adapter: TypeAdapter[_ModelT], data: Any, path: str) -> _ModelT:
        try:
            return adapter.validate_python(data)
        except ValidationError as exc:
            logger.debug("Schema mismatch for %s: %s", path, exc)
            raise SchemaError(
                f"Unexpected response shape from CoinGecko for {path}"
            ) from exc
