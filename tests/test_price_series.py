import pytest

from conftest import points
from crypto_tracker.schemas import PricePoint
from crypto_tracker.services.price_series import DEFAULT_WINDOW_CAP, PriceSeries


def test_default_cap():
    assert PriceSeries().cap == DEFAULT_WINDOW_CAP == 240


def test_rejects_non_positive_cap():
    with pytest.raises(ValueError):
        PriceSeries(0)


def test_replace_sorts_by_timestamp():
    series = PriceSeries(10)
    series.replace(points([[3000, 3], [1000, 1], [2000, 2]]))
    assert series.as_pairs() == [[1000, 1], [2000, 2], [3000, 3]]
    assert series.latest.price == 3


@pytest.mark.parametrize("cap,count", [(1, 1), (1, 7), (4, 3), (4, 4), (4, 9)])
def test_length_is_min_of_cap_and_accepted(cap, count):
    series = PriceSeries(cap)
    for i in range(count):
        series.append(PricePoint.from_pair([1000 * (i + 1), i]))
    assert len(series) == min(cap, count)
    assert series.as_pairs()[-1] == [1000 * count, count - 1]


def test_append_same_timestamp_replaces_latest():
    series = PriceSeries(5)
    series.replace(points([[1000, 1], [2000, 2]]))

    assert series.append(PricePoint.from_pair([2000, 2.5])) is True
    assert series.as_pairs() == [[1000, 1], [2000, 2.5]]
    assert series.append(PricePoint.from_pair([2000, 2.5])) is False


def test_append_older_sample_is_ignored():
    series = PriceSeries(5)
    series.replace(points([[1000, 1], [2000, 2]]))

    assert series.append(PricePoint.from_pair([500, 9])) is False
    assert len(series) == 2


def test_empty_series():
    series = PriceSeries()
    assert series.latest is None
    assert series.points == []
    assert list(series) == []
