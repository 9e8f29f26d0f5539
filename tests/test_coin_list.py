import pytest

from crypto_tracker.services.coin_list import (REHYDRATE_PAGE_SIZE,
                                               CoinListView, SortKey,
                                               sort_coins)
from crypto_tracker.services.watchlist import WatchlistStore


@pytest.fixture
def watchlist(memory_store):
    return WatchlistStore(memory_store)


@pytest.fixture
async def coin_list(fake_client, watchlist):
    view = CoinListView(fake_client, watchlist, page_size=80)
    await view.load()
    return view


async def test_load_requests_one_page(fake_client, coin_list):
    assert [c.id for c in coin_list.coins] == ["bitcoin", "ethereum", "tether", "dogecoin"]
    assert fake_client.market_calls == [{"currency": "usd", "page_size": 80, "ids": None}]
    assert coin_list.error is None


async def test_load_failure_keeps_previous_snapshot(fake_client, coin_list):
    fake_client.fail_markets = True

    coins = await coin_list.load()

    assert len(coins) == 4
    assert coin_list.error == "Could not load coins."


async def test_blank_query_returns_everything(fake_client, coin_list):
    assert len(await coin_list.search("   ")) == 4
    assert fake_client.search_calls == []


async def test_local_match_skips_remote_search(fake_client, coin_list):
    found = await coin_list.search("ETH")

    assert [c.id for c in found] == ["ethereum", "tether"]
    assert fake_client.search_calls == []


async def test_symbol_match(coin_list):
    assert [c.id for c in await coin_list.search("doge")] == ["dogecoin"]


async def test_remote_search_rehydrates_and_replaces_snapshot(fake_client, coin_list):
    found = await coin_list.search("pepe")

    assert [c.id for c in found] == ["pepe"]
    assert found[0].current_price == 0.0000123
    assert fake_client.search_calls == ["pepe"]
    assert fake_client.market_calls[-1] == {
        "currency": "usd",
        "page_size": REHYDRATE_PAGE_SIZE,
        "ids": ["pepe"],
    }
    assert [c.id for c in coin_list.coins] == ["pepe"]


async def test_no_match_anywhere_is_empty(fake_client, coin_list):
    assert await coin_list.search("zzz") == []
    assert fake_client.search_calls == ["zzz"]
    assert len(coin_list.coins) == 4


async def test_remote_failure_is_empty(fake_client, coin_list):
    fake_client.fail_markets = True
    assert await coin_list.search("pepe") == []


@pytest.mark.parametrize(
    "sort_by,descending,expected",
    [
        (SortKey.MARKET_CAP, False, ["bitcoin", "ethereum", "tether", "dogecoin"]),
        (SortKey.MARKET_CAP, True, ["dogecoin", "tether", "ethereum", "bitcoin"]),
        (SortKey.NAME, False, ["bitcoin", "dogecoin", "ethereum", "tether"]),
        (SortKey.PRICE, False, ["dogecoin", "tether", "ethereum", "bitcoin"]),
        (SortKey.PRICE, True, ["bitcoin", "ethereum", "tether", "dogecoin"]),
        (SortKey.CHANGE_24H, False, ["ethereum", "tether", "bitcoin", "dogecoin"]),
        (SortKey.CHANGE_24H, True, ["bitcoin", "tether", "ethereum", "dogecoin"]),
    ],
)
def test_sort_coins(market_snapshots, sort_by, descending, expected):
    assert [c.id for c in sort_coins(market_snapshots, sort_by, descending)] == expected


async def test_rows_render_display_strings(coin_list):
    rows = await coin_list.rows(sort_by=SortKey.PRICE, descending=True)

    bitcoin, _, tether, dogecoin = rows
    assert bitcoin.price_display == "$64,000"
    assert bitcoin.change_display == "2.50%"
    assert tether.price_display == "$1.00"
    assert dogecoin.price_display == "$0.1234"
    assert dogecoin.change_display == "n/a"
    assert bitcoin.market_cap_display == "$1260.0B"
    assert bitcoin.volume_display == "$31.0B"


async def test_toggle_watch_marks_rows(coin_list, watchlist):
    assert coin_list.toggle_watch("bitcoin") == ["bitcoin"]

    rows = await coin_list.rows()

    assert [r.id for r in rows if r.watched] == ["bitcoin"]
    assert watchlist.load() == ["bitcoin"]

    coin_list.toggle_watch("bitcoin")
    assert not any(r.watched for r in await coin_list.rows())


async def test_watchlist_loaded_on_construction(fake_client, watchlist):
    watchlist.toggle("ethereum")
    view = CoinListView(fake_client, watchlist)
    assert view.watched == ["ethereum"]


async def test_shared_view_keeps_snapshot_after_remote_search(fake_client, watchlist):
    view = CoinListView(fake_client, watchlist, keep_remote_results=False)
    await view.load()

    found = await view.search("pepe")

    assert [c.id for c in found] == ["pepe"]
    assert [c.id for c in view.coins] == ["bitcoin", "ethereum", "tether", "dogecoin"]
    assert [r.id for r in await view.rows()] == ["bitcoin", "ethereum", "tether", "dogecoin"]


async def test_rows_pick_up_watchlist_changes_made_elsewhere(coin_list, watchlist):
    watchlist.toggle("tether")
    rows = await coin_list.rows()
    assert [r.id for r in rows if r.watched] == ["tether"]
