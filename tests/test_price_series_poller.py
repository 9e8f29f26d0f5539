"""Tests for the live price chart poller."""

import asyncio

import pytest

from conftest import FakeMarketClient
from crypto_tracker.providers.core import TransportError
from crypto_tracker.schemas import DisplayRange, PollerState
from crypto_tracker.services.price_series_poller import (TICK_RANGE_DAYS,
                                                         PriceSeriesPoller)


@pytest.fixture
def client():
    return FakeMarketClient()


async def _wait_for(predicate, timeout=1.0):
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.005)


async def test_full_load_then_tick_appends_latest_point(client):
    client.queue_series("bitcoin", [[1000, 100], [2000, 101]], [[3000, 102]])
    poller = PriceSeriesPoller(client, window_cap=240)

    await poller.select("bitcoin")
    assert poller.state is PollerState.LIVE

    assert await poller.tick() is True
    assert poller.series.as_pairs() == [[1000, 100], [2000, 101], [3000, 102]]
    assert len(poller.series) == 3


async def test_idle_view_prompts_for_selection(client):
    poller = PriceSeriesPoller(client)
    view = poller.view()
    assert view.state is PollerState.IDLE
    assert view.message == "Select a coin to see chart."
    assert view.points == []
    assert client.series_calls == []


@pytest.mark.parametrize("cap", [1, 3, 240])
async def test_full_load_keeps_most_recent_points_up_to_cap(client, cap):
    pairs = [[1000 * (i + 1), float(i)] for i in range(cap + 5)]
    client.queue_series("eth", pairs)
    poller = PriceSeriesPoller(client, window_cap=cap)

    await poller.select("eth")

    assert poller.series.as_pairs() == pairs[-cap:]


@pytest.mark.parametrize("cap", [2, 5])
async def test_ticks_drop_oldest_points_past_cap(client, cap):
    initial = [[1000 * (i + 1), float(i)] for i in range(cap)]
    ticks = [[[1000 * (cap + i + 1), 100.0 + i]] for i in range(4)]
    client.queue_series("eth", initial, *ticks)
    poller = PriceSeriesPoller(client, window_cap=cap)
    await poller.select("eth")

    for _ in ticks:
        assert await poller.tick()

    accepted = initial + [t[0] for t in ticks]
    assert poller.series.as_pairs() == accepted[-cap:]
    timestamps = [p[0] for p in poller.series.as_pairs()]
    assert timestamps == sorted(timestamps)


async def test_late_result_for_previous_coin_is_discarded(client):
    loop = asyncio.get_running_loop()
    slow_a = loop.create_future()
    client.queue_series("coin-a", slow_a)
    client.queue_series("coin-b", [[5000, 50], [6000, 60]])
    poller = PriceSeriesPoller(client)

    load_a = poller.select("coin-a")
    await asyncio.sleep(0)
    load_b = poller.select("coin-b")
    await load_b
    slow_a.set_result([[1000, 1], [2000, 2]])
    await load_a

    assert poller.coin_id == "coin-b"
    assert poller.state is PollerState.LIVE
    assert poller.series.as_pairs() == [[5000, 50], [6000, 60]]


async def test_late_tick_for_previous_coin_is_discarded(client):
    loop = asyncio.get_running_loop()
    slow_tick = loop.create_future()
    client.queue_series("coin-a", [[1000, 1]], slow_tick)
    client.queue_series("coin-b", [[5000, 50]])
    poller = PriceSeriesPoller(client)
    await poller.select("coin-a")

    tick = asyncio.create_task(poller.tick())
    await asyncio.sleep(0)
    await poller.select("coin-b")
    slow_tick.set_result([[9000, 9]])

    assert await tick is False
    assert poller.series.as_pairs() == [[5000, 50]]


async def test_failed_load_shows_could_not_load_without_retry(client):
    client.queue_series("bitcoin", TransportError("boom", status_code=500))
    poller = PriceSeriesPoller(client)

    await poller.select("bitcoin")

    view = poller.view()
    assert view.state is PollerState.LOAD_FAILED
    assert view.message == "Could not load chart data."
    assert view.points == []
    assert len(client.series_calls) == 1
    assert await poller.tick() is False
    assert len(client.series_calls) == 1


async def test_selection_after_failed_load_recovers(client):
    client.queue_series("bitcoin", TransportError("boom"), [[1000, 10]])
    poller = PriceSeriesPoller(client)
    await poller.select("bitcoin")
    assert poller.state is PollerState.LOAD_FAILED

    await poller.select("bitcoin")

    view = poller.view()
    assert view.state is PollerState.LIVE
    assert view.message is None
    assert view.last_price_display == "$10.00"


async def test_failed_tick_leaves_series_unchanged(client):
    client.queue_series(
        "bitcoin",
        [[1000, 100], [2000, 101]],
        TransportError("rate limited", status_code=429),
        [[3000, 102]],
    )
    poller = PriceSeriesPoller(client)
    await poller.select("bitcoin")

    assert await poller.tick() is False
    assert poller.state is PollerState.LIVE
    assert poller.view().message is None
    assert poller.series.as_pairs() == [[1000, 100], [2000, 101]]

    assert await poller.tick() is True
    assert poller.series.as_pairs()[-1] == [3000, 102]


async def test_tick_ignores_samples_older_than_latest(client):
    client.queue_series("bitcoin", [[1000, 100], [2000, 101]], [[1500, 99]])
    poller = PriceSeriesPoller(client)
    await poller.select("bitcoin")

    assert await poller.tick() is False
    assert poller.series.as_pairs() == [[1000, 100], [2000, 101]]


async def test_tick_uses_narrow_range_regardless_of_display_range(client):
    client.queue_series("bitcoin", [[1000, 100]], [[2000, 101]])
    poller = PriceSeriesPoller(client, display_range=DisplayRange.ONE_YEAR)
    await poller.select("bitcoin")
    await poller.tick()

    assert client.series_calls == [
        ("bitcoin", "usd", 365),
        ("bitcoin", "usd", TICK_RANGE_DAYS),
    ]


async def test_set_range_reloads_same_coin(client):
    client.queue_series("bitcoin", [[1000, 100]], [[500, 90], [1000, 100]])
    poller = PriceSeriesPoller(client)
    await poller.select("bitcoin")

    await poller.set_range("max")

    assert poller.display_range is DisplayRange.MAX
    assert client.series_calls[-1] == ("bitcoin", "usd", "max")
    assert poller.series.as_pairs() == [[500, 90], [1000, 100]]


async def test_listener_sees_loading_then_live(client):
    client.queue_series("bitcoin", [[1000, 100]])
    seen = []
    poller = PriceSeriesPoller(client, on_change=lambda view: seen.append(view.state))

    await poller.select("bitcoin")
    poller.select(None)

    assert seen == [PollerState.LOADING, PollerState.LIVE, PollerState.IDLE]


async def test_timer_ticks_until_stopped(client):
    client.queue_series("bitcoin", [[1000, 100]], *[[[2000 + i, 100 + i]] for i in range(50)])
    poller = PriceSeriesPoller(client, poll_interval_ms=10)
    poller.start()
    await poller.select("bitcoin")

    await _wait_for(lambda: len(poller.series) >= 3)
    await poller.stop()
    calls_at_stop = len(client.series_calls)
    await asyncio.sleep(0.05)

    assert len(client.series_calls) == calls_at_stop
    assert poller.stopped


async def test_no_effects_after_stop(client):
    loop = asyncio.get_running_loop()
    slow = loop.create_future()
    client.queue_series("bitcoin", slow)
    seen = []
    poller = PriceSeriesPoller(client, poll_interval_ms=10, on_change=seen.append)
    poller.start()
    poller.select("bitcoin")
    await asyncio.sleep(0)

    await poller.stop()
    await asyncio.sleep(0.03)

    assert slow.cancelled()
    assert poller.state is PollerState.LOADING
    assert len(poller.series) == 0
    assert [v.state for v in seen] == [PollerState.LOADING]
    assert poller.select("ethereum") is None
    assert poller.coin_id == "bitcoin"


async def test_context_manager_mounts_and_unmounts(client):
    async with PriceSeriesPoller(client, poll_interval_ms=10) as poller:
        assert not poller.stopped
    assert poller.stopped
