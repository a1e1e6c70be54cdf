"""CIK → ticker resolution index.

Two mapping sources are merged into one `TickerIndex`:

- ``cik-ticker-mappings.txt``: ``ticker<TAB>CIK`` (tickers already lowercase)
- ``cik-ticker-mappings-rankandfile.txt``: ``CIK|TICKER|...`` (tickers are
  lowercased on load; only the first two fields are used)

CIKs are zero-padded to 10 digits. Each CIK keeps its tickers in first-seen
order without duplicates.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator

log = logging.getLogger(__name__)

TAB_MAPPINGS_FILE = "cik-ticker-mappings.txt"
PIPE_MAPPINGS_FILE = "cik-ticker-mappings-rankandfile.txt"


class TickerMappingError(ValueError):
    """A mapping source line does not have the expected fields."""


def pad_cik(cik: str) -> str:
    """Return a zero-padded 10-digit CIK string."""
    return cik.strip().zfill(10)


class TickerIndex:
    """Ordered, duplicate-free tickers per CIK.

    Built single-threaded before ingestion starts and only read afterwards.
    """

    def __init__(self) -> None:
        self._tickers: dict[str, list[str]] = {}

    def add(self, cik: str, ticker: str) -> None:
        tickers = self._tickers.get(cik)
        if tickers is None:
            self._tickers[cik] = [ticker]
        elif ticker not in tickers:
            tickers.append(ticker)

    def get(self, cik: str) -> list[str]:
        """Tickers for `cik` (empty when unmapped)."""
        return list(self._tickers.get(cik, ()))

    def __contains__(self, cik: object) -> bool:
        return cik in self._tickers

    def __len__(self) -> int:
        return len(self._tickers)

    def items(self) -> Iterator[tuple[str, list[str]]]:
        for cik, tickers in self._tickers.items():
            yield cik, list(tickers)


def _lines(path: Path) -> Iterator[tuple[int, str]]:
    with path.open(encoding="utf-8") as fh:
        for lineno, line in enumerate(fh, start=1):
            line = line.rstrip("\r\n")
            if line.strip():
                yield lineno, line


def parse_tab_mappings(path: Path) -> Iterator[tuple[str, str]]:
    """Yield `(cik, ticker)` pairs from a ``ticker<TAB>CIK`` file.

    Raises:
        TickerMappingError: if a line does not have exactly two fields.
    """
    for lineno, line in _lines(path):
        fields = line.split("\t")
        if len(fields) != 2:
            raise TickerMappingError(
                f"{path}:{lineno}: expected 'ticker<TAB>CIK', got {line!r}"
            )
        ticker, cik = fields
        yield pad_cik(cik), ticker


def parse_pipe_mappings(path: Path) -> Iterator[tuple[str, str]]:
    """Yield `(cik, ticker)` pairs from a ``CIK|TICKER|...`` file.

    Raises:
        TickerMappingError: if a line has fewer than two fields.
    """
    for lineno, line in _lines(path):
        fields = line.split("|")
        if len(fields) < 2:
            raise TickerMappingError(
                f"{path}:{lineno}: expected 'CIK|TICKER|...', got {line!r}"
            )
        yield pad_cik(fields[0]), fields[1].lower()


def build_ticker_index(raw_source: Path) -> TickerIndex:
    """Merge both mapping files under `raw_source` into a `TickerIndex`.

    Args:
        raw_source: Directory containing the two mapping files.

    Returns:
        The merged index.
    """
    index = TickerIndex()

    for cik, ticker in parse_tab_mappings(raw_source / TAB_MAPPINGS_FILE):
        index.add(cik, ticker)
    tab_ciks = len(index)

    for cik, ticker in parse_pipe_mappings(raw_source / PIPE_MAPPINGS_FILE):
        index.add(cik, ticker)

    log.info(
        "Ticker index built: %d CIKs (%d from %s, %d added from %s)",
        len(index),
        tab_ciks,
        TAB_MAPPINGS_FILE,
        len(index) - tab_ciks,
        PIPE_MAPPINGS_FILE,
    )
    return index
