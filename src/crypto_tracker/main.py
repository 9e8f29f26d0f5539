"""Main module for the crypto tracker dashboard service."""
import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from crypto_tracker.config import Settings
from crypto_tracker.db import (KeyValueStore, MemoryStore, SqlKeyValueStore,
                               create_db_engine, init_db)
from crypto_tracker.providers import CoinGeckoClient, MarketDataClientABC
from crypto_tracker.routers import (auth_router, coins_router,
                                    dashboard_router, watchlist_router)
from crypto_tracker.services import (AccountDataManager, CoinListView,
                                     GuestStore, SessionStore, UserStore,
                                     WatchlistStore)

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    *,
    market_client: MarketDataClientABC | None = None,
    durable_store: KeyValueStore | None = None,
    ephemeral_store: KeyValueStore | None = None,
) -> FastAPI:
    """Build the FastAPI app.

    Args:
        settings: Configuration; defaults to Settings.from_env().
        market_client: Client to use instead of a CoinGeckoClient.
        durable_store: Store for users, watchlist and remembered sessions;
            defaults to the SQL store at settings.database_url.
        ephemeral_store: Store for non-remembered sessions and guests;
            defaults to a process-scoped MemoryStore.
    """
    settings = settings or Settings.from_env()

    @asynccontextmanager
    async def lifespan(fastapi_app: FastAPI):
        """Create the client, stores and services at startup; close the client on shutdown."""
        client = market_client or CoinGeckoClient(
            api_key=settings.coingecko_api_key,
            timeout=settings.request_timeout,
        )
        durable = durable_store
        if durable is None:
            engine = create_db_engine(settings.database_url, echo=settings.sql_echo)
            init_db(engine)
            durable = SqlKeyValueStore(engine)
        ephemeral = ephemeral_store if ephemeral_store is not None else MemoryStore()

        watchlist = WatchlistStore(durable)
        user_store = UserStore(durable)

        fastapi_app.state.settings = settings
        fastapi_app.state.market_client = client
        fastapi_app.state.watchlist = watchlist
        fastapi_app.state.coin_list = CoinListView(
            client,
            watchlist,
            currency=settings.currency,
            page_size=settings.coin_page_size,
            keep_remote_results=False,
        )
        fastapi_app.state.user_store = user_store
        fastapi_app.state.session_store = SessionStore(durable, ephemeral, user_store)
        fastapi_app.state.guest_store = GuestStore(ephemeral)
        fastapi_app.state.data_manager = AccountDataManager(user_store)

        yield

        try:
            await client.close()
        except Exception as exc:  # pylint: disable=broad-except
            logger.warning("Error closing market client %s: %s", type(client).__name__, exc)

    fastapi_app = FastAPI(
        title="Crypto Tracker",
        description="Market list, watchlist, local accounts and live price charts",
        version="0.1.0",
        lifespan=lifespan,
    )
    fastapi_app.include_router(coins_router)
    fastapi_app.include_router(watchlist_router)
    fastapi_app.include_router(auth_router)
    fastapi_app.include_router(dashboard_router)

    @fastapi_app.get("/")
    def health():
        """Return health check status."""
        return {"status": "ok"}

    return fastapi_app


app = create_app()


def run():
    """Run the server (uvicorn). Use for `poetry run start`."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run("crypto_tracker.main:app", host="127.0.0.1", port=8001)
