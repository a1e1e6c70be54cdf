"""Thread-safe grouping of reports by ticker and filing day.

Ingestion workers append concurrently; the writer drains each
``(ticker, day)`` slot exactly once. A drained slot is gone, so a second
drain for the same key returns None.
"""

from __future__ import annotations

import threading
from datetime import date

from edgar_feed.ingest.parse_report import ParsedReport


class ReportBuckets:
    """Two-level ticker → day → reports structure guarded by one lock."""

    def __init__(self) -> None:
        self._buckets: dict[str, dict[date, list[ParsedReport]]] = {}
        self._lock = threading.Lock()

    def add(self, ticker: str, day: date, report: ParsedReport) -> None:
        """Append `report` under `(ticker, day)`, creating the slot if needed."""
        with self._lock:
            by_day = self._buckets.setdefault(ticker, {})
            by_day.setdefault(day, []).append(report)

    def drain(self, ticker: str, day: date) -> list[ParsedReport] | None:
        """Remove and return the reports under `(ticker, day)`, or None."""
        with self._lock:
            by_day = self._buckets.get(ticker)
            if by_day is None:
                return None
            return by_day.pop(day, None)

    def tickers(self) -> list[str]:
        """Snapshot of every ticker that ever received a report."""
        with self._lock:
            return list(self._buckets)

    def pending(self) -> int:
        """Number of undrained `(ticker, day)` slots."""
        with self._lock:
            return sum(len(by_day) for by_day in self._buckets.values())
