"""Abstract base class for market data clients."""
from abc import ABC, abstractmethod

from crypto_tracker.schemas import CoinSearchHit, MarketSnapshot, PricePoint, RangeSpec


class MarketDataClientABC(ABC):
    """Base interface for the remote market data API.

    Every call is independent: no caching, no retries, no deduplication of
    identical in-flight requests. Failures surface as TransportError.
    """

    @abstractmethod
    async def list_markets(
        self,
        currency: str = "usd",
        page_size: int = 50,
        page: int = 1,
        ids: list[str] | None = None,
    ) -> list[MarketSnapshot]:
        """Fetch a page of market snapshots ordered by market cap.

        Args:
            currency: Quote currency (e.g. "usd").
            page_size: Number of coins per page.
            page: 1-based page number.
            ids: Optional coin ids to restrict the listing to.

        Returns:
            The full page of snapshots; a failure never yields a partial page.
        """

    @abstractmethod
    async def fetch_series(
        self,
        coin_id: str,
        currency: str = "usd",
        range_spec: RangeSpec = 1,
    ) -> list[PricePoint]:
        """Fetch a coin's historical price series.

        Args:
            coin_id: Coin identifier (e.g. "bitcoin").
            currency: Quote currency.
            range_spec: Day count (fractional allowed) or "max" for entire history.

        Returns:
            Price points ordered by timestamp.
        """

    @abstractmethod
    async def search_coins(self, query: str) -> list[CoinSearchHit]:
        """Free-text coin search. A blank query yields an empty list."""

    async def close(self) -> None:
        """Clean up resources (connections, clients).

        Override in subclasses if cleanup is needed.
        """

    async def __aenter__(self) -> "MarketDataClientABC":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        """Async context manager exit - calls close()."""
        await self.close()
