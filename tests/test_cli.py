import pytest

from crypto_tracker.cli.dashboard import build_parser, main


@pytest.fixture
def database_url(tmp_path, monkeypatch):
    url = f"sqlite:///{tmp_path / 'cli.db'}"
    monkeypatch.setenv("DATABASE_URL", url)
    return url


def test_watch_toggles_persistently(database_url, capsys):
    assert main(["watch", "Bitcoin"]) == 0
    assert "Bitcoin added to watchlist" in capsys.readouterr().out

    assert main(["watch", "bitcoin"]) == 0
    assert "bitcoin removed from watchlist" in capsys.readouterr().out


def test_parser_defaults():
    args = build_parser().parse_args(["chart", "ethereum"])
    assert args.range == "1"
    assert args.ticks == 0

    args = build_parser().parse_args(["coins", "-q", "eth", "--sort-by", "price"])
    assert args.query == "eth"
    assert args.sort_by == "price"


def test_parser_rejects_unknown_range():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["chart", "bitcoin", "--range", "2"])
