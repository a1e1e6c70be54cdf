"""Symbol history lookup backed by map files.

A map file (``<ticker>.csv``) lists, for one security, the dates on which its
ticker changed: each row ``YYYYMMDD,ticker[,exchange]`` gives the last date
the security traded under that ticker. The first row is the listing date.
A ticker is therefore active from the day after the previous row's date up
to and including its own row's date.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date, timedelta
from pathlib import Path
from typing import Protocol

import pandas as pd

log = logging.getLogger(__name__)

MAP_FILE_COLUMNS = ["date", "ticker"]


class SymbolHistory(Protocol):
    """Answers whether a ticker was a known symbol on a given date."""

    def is_known(self, ticker: str, as_of: date) -> bool: ...


def read_map_file(path: Path) -> pd.DataFrame:
    """Read one map file into a DataFrame with `date` and `ticker` columns.

    Args:
        path: CSV map file without a header row.

    Returns:
        DataFrame sorted by `date`; `ticker` is lowercased.
    """
    pdf = pd.read_csv(path, header=None, usecols=[0, 1], dtype=str)
    pdf.columns = MAP_FILE_COLUMNS
    pdf = pdf.dropna()
    pdf["date"] = pd.to_datetime(pdf["date"].str.strip(), format="%Y%m%d").dt.date
    pdf["ticker"] = pdf["ticker"].str.strip().str.lower()
    return pdf.sort_values("date").reset_index(drop=True)


def ticker_windows(pdf: pd.DataFrame) -> list[tuple[str, date, date]]:
    """Return `(ticker, start, end)` windows for one map file."""
    windows: list[tuple[str, date, date]] = []
    previous: date | None = None
    for row in pdf.itertuples(index=False):
        start = row.date if previous is None else previous + timedelta(days=1)
        windows.append((row.ticker, start, row.date))
        previous = row.date
    return windows


class MapFileSymbolHistory:
    """`SymbolHistory` built from every ``*.csv`` map file in a directory."""

    def __init__(self, map_files_dir: Path) -> None:
        self.map_files_dir = map_files_dir
        self._windows: dict[str, list[tuple[date, date]]] = defaultdict(list)

        files = sorted(map_files_dir.glob("*.csv")) if map_files_dir.is_dir() else []
        if not files:
            log.warning("No map files found in %s; no ticker will be confirmed", map_files_dir)

        for path in files:
            try:
                pdf = read_map_file(path)
            except (ValueError, pd.errors.ParserError) as e:
                log.warning("Skipping unreadable map file %s: %s", path, e)
                continue
            for ticker, start, end in ticker_windows(pdf):
                self._windows[ticker].append((start, end))

        log.info("Loaded %d map files covering %d tickers", len(files), len(self._windows))

    def is_known(self, ticker: str, as_of: date) -> bool:
        windows = self._windows.get(ticker.lower(), ())
        return any(start <= as_of <= end for start, end in windows)
