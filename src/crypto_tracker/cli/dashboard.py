"""Terminal front-end for the dashboard.

Usage:
  poetry run crypto-tracker coins --query eth
  poetry run crypto-tracker chart bitcoin --range 7 --ticks 3 --interval 15
  poetry run crypto-tracker watch bitcoin
"""
import argparse
import asyncio
import json
import sys

from crypto_tracker.config import Settings
from crypto_tracker.db import SqlKeyValueStore, create_db_engine, init_db
from crypto_tracker.providers import CoinGeckoClient
from crypto_tracker.providers.core.utils import normalize_crypto_id
from crypto_tracker.schemas import ChartView, DisplayRange, PollerState
from crypto_tracker.services import (CoinListView, PriceSeriesPoller, SortKey,
                                     WatchlistStore)


def print_json(data: object) -> None:
    print(json.dumps(data, indent=2, default=str))


def _watchlist(settings: Settings) -> WatchlistStore:
    engine = create_db_engine(settings.database_url, echo=settings.sql_echo)
    init_db(engine)
    return WatchlistStore(SqlKeyValueStore(engine))


def _client(settings: Settings) -> CoinGeckoClient:
    return CoinGeckoClient(api_key=settings.coingecko_api_key, timeout=settings.request_timeout)


def _chart_summary(view: ChartView) -> dict:
    return {
        "state": view.state.value,
        "coin": view.coin_id,
        "range": view.range.label,
        "points": len(view.points),
        "last_price": view.last_price_display,
        "message": view.message,
    }


def cmd_coins(settings: Settings, args: argparse.Namespace) -> int:
    async def run() -> int:
        async with _client(settings) as client:
            coin_list = CoinListView(
                client,
                _watchlist(settings),
                currency=settings.currency,
                page_size=settings.coin_page_size,
            )
            await coin_list.load()
            if coin_list.error:
                print(coin_list.error, file=sys.stderr)
                return 1
            rows = await coin_list.rows(
                args.query, sort_by=SortKey(args.sort_by), descending=args.descending
            )
        print(f"Found {len(rows)} coins")
        for row in rows[: args.head] if args.head else rows:
            mark = "*" if row.watched else " "
            print(
                f"{mark} {row.symbol.upper():<8} {row.name:<24} "
                f"{row.price_display:>14} {row.change_display:>9} {row.market_cap_display:>10}"
            )
        return 0

    return asyncio.run(run())


def cmd_chart(settings: Settings, args: argparse.Namespace) -> int:
    async def run() -> int:
        async with _client(settings) as client:
            poller = PriceSeriesPoller(
                client,
                poll_interval_ms=0,
                window_cap=settings.window_cap,
                currency=settings.currency,
                display_range=DisplayRange(args.range),
                on_change=lambda view: print_json(_chart_summary(view)),
            )
            async with poller:
                load = poller.select(args.coin_id)
                if load is not None:
                    await load
                if poller.state is not PollerState.LIVE:
                    return 1
                for _ in range(args.ticks):
                    await asyncio.sleep(args.interval)
                    await poller.tick()
        return 0

    try:
        return asyncio.run(run())
    except KeyboardInterrupt:
        print("\nStopped by user", file=sys.stderr)
        return 130


def cmd_watch(settings: Settings, args: argparse.Namespace) -> int:
    watchlist = _watchlist(settings)
    updated = watchlist.toggle(args.coin_id)
    state = "added to" if normalize_crypto_id(args.coin_id) in updated else "removed from"
    print(f"{args.coin_id} {state} watchlist")
    print_json(updated)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Crypto tracker dashboard in the terminal.")
    sub = parser.add_subparsers(dest="command", required=True)

    coins = sub.add_parser("coins", help="List coins (optionally searched and sorted)")
    coins.add_argument("--query", "-q", default=None)
    coins.add_argument("--sort-by", choices=[k.value for k in SortKey], default=SortKey.MARKET_CAP.value)
    coins.add_argument("--descending", action="store_true")
    coins.add_argument("--head", type=int, default=20, help="Rows to print (0 for all)")
    coins.set_defaults(func=cmd_coins)

    chart = sub.add_parser("chart", help="Load a coin's chart and poll for new samples")
    chart.add_argument("coin_id")
    chart.add_argument("--range", choices=[r.value for r in DisplayRange], default=DisplayRange.ONE_DAY.value)
    chart.add_argument("--ticks", type=int, default=0, help="Number of live ticks after the load")
    chart.add_argument("--interval", type=float, default=15.0, help="Seconds between ticks")
    chart.set_defaults(func=cmd_chart)

    watch = sub.add_parser("watch", help="Toggle a coin on the watchlist")
    watch.add_argument("coin_id")
    watch.set_defaults(func=cmd_watch)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    return args.func(Settings.from_env(), args)


if __name__ == "__main__":
    sys.exit(main())
