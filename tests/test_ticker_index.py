from __future__ import annotations

from pathlib import Path

import pytest

from edgar_feed.enrich.ticker_index import (
    TickerIndex,
    TickerMappingError,
    build_ticker_index,
    pad_cik,
)


def _write_sources(root: Path, tab: str, pipe: str) -> Path:
    root.mkdir(parents=True, exist_ok=True)
    (root / "cik-ticker-mappings.txt").write_text(tab, encoding="utf-8")
    (root / "cik-ticker-mappings-rankandfile.txt").write_text(pipe, encoding="utf-8")
    return root


def test_pad_cik() -> None:
    assert pad_cik("320193") == "0000320193"
    assert pad_cik("0000320193") == "0000320193"


def test_merge_keeps_order_and_drops_duplicates(tmp_path: Path) -> None:
    root = _write_sources(
        tmp_path,
        "goog\t1652044\ngoogl\t1652044\naapl\t320193\naapl\t320193\n",
        "1652044|GOOG|Alphabet Inc|NASDAQ\n1652044|GOOGX|Alphabet Inc|NASDAQ\n789019|MSFT|Microsoft|NASDAQ\n",
    )
    index = build_ticker_index(root)

    assert index.get("0001652044") == ["goog", "googl", "googx"]
    assert index.get("0000320193") == ["aapl"]
    assert index.get("0000789019") == ["msft"]
    assert len(index) == 3


def test_merge_preserves_every_distinct_ticker(tmp_path: Path) -> None:
    root = _write_sources(tmp_path, "a\t1\nb\t1\n", "1|B\n1|C\n2|D\n")
    index = build_ticker_index(root)

    for cik, tickers in index.items():
        assert len(tickers) == len(set(tickers))
    assert set(index.get("0000000001")) == {"a", "b", "c"}
    assert index.get("0000000002") == ["d"]


def test_tab_source_tickers_are_used_as_is(tmp_path: Path) -> None:
    root = _write_sources(tmp_path, "BRK.A\t1067983\n", "")
    assert build_ticker_index(root).get("0001067983") == ["BRK.A"]


def test_unknown_cik_is_empty() -> None:
    index = TickerIndex()
    assert index.get("0000000042") == []
    assert "0000000042" not in index


def test_blank_lines_are_skipped(tmp_path: Path) -> None:
    root = _write_sources(tmp_path, "abc\t1\n\n", "\n2|XYZ\n")
    index = build_ticker_index(root)
    assert index.get("0000000001") == ["abc"]
    assert index.get("0000000002") == ["xyz"]


@pytest.mark.parametrize(
    "tab, pipe",
    [
        ("abc 123\n", ""),
        ("abc\t123\textra\n", ""),
        ("", "123\n"),
    ],
)
def test_malformed_lines_fail_fast(tmp_path: Path, tab: str, pipe: str) -> None:
    root = _write_sources(tmp_path, tab, pipe)
    with pytest.raises(TickerMappingError, match=r":1:"):
        build_ticker_index(root)
