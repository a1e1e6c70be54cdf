from __future__ import annotations

from datetime import date
from pathlib import Path

from edgar_feed.enrich.symbol_history import MapFileSymbolHistory, read_map_file, ticker_windows


def _map_files(root: Path) -> Path:
    root.mkdir(parents=True, exist_ok=True)
    # FB renamed to META on 2022-06-09
    (root / "meta.csv").write_text(
        "20120518,fb,Q\n20220608,fb,Q\n20501231,meta,Q\n", encoding="utf-8"
    )
    (root / "abc.csv").write_text("20000103,ABC\n20150630,ABC\n", encoding="utf-8")
    return root


def test_read_map_file_lowercases_and_sorts(tmp_path: Path) -> None:
    path = tmp_path / "x.csv"
    path.write_text("20200101,XYZ,N\n19990101,OLD,N\n", encoding="utf-8")
    pdf = read_map_file(path)
    assert list(pdf["ticker"]) == ["old", "xyz"]
    assert pdf["date"].iloc[0] == date(1999, 1, 1)


def test_ticker_windows(tmp_path: Path) -> None:
    pdf = read_map_file(_map_files(tmp_path) / "meta.csv")
    assert ticker_windows(pdf) == [
        ("fb", date(2012, 5, 18), date(2012, 5, 18)),
        ("fb", date(2012, 5, 19), date(2022, 6, 8)),
        ("meta", date(2022, 6, 9), date(2050, 12, 31)),
    ]


def test_is_known_follows_renames(tmp_path: Path) -> None:
    history = MapFileSymbolHistory(_map_files(tmp_path))

    assert history.is_known("fb", date(2020, 3, 2))
    assert not history.is_known("fb", date(2023, 1, 3))
    assert history.is_known("META", date(2023, 1, 3))
    assert not history.is_known("meta", date(2020, 3, 2))


def test_delisted_ticker_is_unknown_after_last_date(tmp_path: Path) -> None:
    history = MapFileSymbolHistory(_map_files(tmp_path))
    assert history.is_known("abc", date(2015, 6, 30))
    assert not history.is_known("abc", date(2015, 7, 1))
    assert not history.is_known("abc", date(1999, 12, 31))


def test_missing_directory_confirms_nothing(tmp_path: Path) -> None:
    history = MapFileSymbolHistory(tmp_path / "missing")
    assert not history.is_known("abc", date(2020, 3, 2))


def test_unreadable_map_file_is_skipped(tmp_path: Path) -> None:
    root = _map_files(tmp_path)
    (root / "bad.csv").write_text("not-a-date,zzz\n", encoding="utf-8")
    history = MapFileSymbolHistory(root)
    assert not history.is_known("zzz", date(2020, 3, 2))
    assert history.is_known("fb", date(2020, 3, 2))
