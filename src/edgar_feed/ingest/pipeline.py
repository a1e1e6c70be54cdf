"""Bounded-parallel ingestion of feed records into report buckets.

Each archive entry goes through the same steps: escape the markup, parse the
submission, resolve the primary filer's CIK to tickers, correct the
publication timestamp from the side index and append the report to the
bucket of every ticker that was a known symbol on the processing date.

Every entry ends in an `EntryOutcome`; nothing raised while handling one
entry reaches the scheduler or affects its siblings.
"""

from __future__ import annotations

import enum
import logging
import threading
import time
from collections import Counter
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable

from dask import compute, delayed  # type: ignore[attr-defined]
from lxml import etree

from edgar_feed.aggregate.buckets import ReportBuckets
from edgar_feed.enrich.publication_dates import PublicationDateCache
from edgar_feed.enrich.symbol_history import SymbolHistory
from edgar_feed.enrich.ticker_index import TickerIndex
from edgar_feed.ingest.archive import RawArchiveEntry, iter_batches
from edgar_feed.ingest.parse_report import ParsedReport, UnsupportedFormTypeError, parse_report
from edgar_feed.ingest.transform import transform_record

log = logging.getLogger(__name__)

PROGRESS_INTERVAL = 100


class EntryStatus(str, enum.Enum):
    """Why an entry was routed or dropped."""
    ROUTED = "routed"
    UNSUPPORTED_FORM = "unsupported_form"
    PARSE_ERROR = "parse_error"
    FAILED = "failed"
    NO_FILER = "no_filer"
    NO_TICKER = "no_ticker"
    NO_INDEX = "no_index"
    NO_KNOWN_SYMBOL = "no_known_symbol"


@dataclass
class EntryOutcome:
    """Tagged result of processing one archive entry.

    Attributes:
        name: Archive member name.
        status: Outcome tag.
        report: Parsed report, when parsing succeeded.
        tickers: Tickers the report was appended under.
        enriched: Whether the publication timestamp came from the side index.
        error: Error message for PARSE_ERROR / FAILED outcomes.
    """
    name: str
    status: EntryStatus
    report: ParsedReport | None = None
    tickers: list[str] = field(default_factory=list)
    enriched: bool = False
    error: str | None = None


class ProgressCounter:
    """Thread-safe entry counter with periodic throughput logging."""

    def __init__(self, interval: int = PROGRESS_INTERVAL) -> None:
        self.interval = interval
        self._count = 0
        self._lock = threading.Lock()
        self._started = time.monotonic()
        self._window_started = self._started

    @property
    def count(self) -> int:
        return self._count

    def increment(self) -> int:
        """Add one; log files/min every `interval` increments."""
        with self._lock:
            self._count += 1
            count = self._count
            now = time.monotonic()
            if count % self.interval != 0:
                return count
            elapsed = now - self._window_started
            self._window_started = now

        rate = self.interval / (elapsed / 60) if elapsed > 0 else float("inf")
        log.info("%d nc files read at %.2f files/min.", count, rate)
        return count

    def elapsed(self) -> float:
        return time.monotonic() - self._started


def decode_entry(entry: RawArchiveEntry) -> str:
    """Decode a raw record as UTF-8, replacing undecodable bytes."""
    return entry.content.decode("utf-8", errors="replace")


class IngestPipeline:
    """Parse archive entries and route them into `ReportBuckets`.

    All shared state is passed in: the read-only `TickerIndex`, the lazily
    filled `PublicationDateCache`, the `SymbolHistory` used to confirm
    tickers and the `ReportBuckets` that the writer drains afterwards.
    """

    def __init__(
        self,
        processing_date: date,
        ticker_index: TickerIndex,
        publication_dates: PublicationDateCache,
        symbol_history: SymbolHistory,
        buckets: ReportBuckets,
        workers: int = 1,
        batch_size: int = 500,
    ) -> None:
        self.processing_date = processing_date
        self.ticker_index = ticker_index
        self.publication_dates = publication_dates
        self.symbol_history = symbol_history
        self.buckets = buckets
        self.workers = workers
        self.batch_size = batch_size
        self.progress = ProgressCounter()

    # --------------------------------------------------
    # Per-entry steps
    # --------------------------------------------------
    def parse_entry(self, entry: RawArchiveEntry) -> ParsedReport | EntryOutcome:
        """Escape and parse one entry; failures come back as an outcome."""
        try:
            markup = transform_record(decode_entry(entry))
            return parse_report(markup)
        except UnsupportedFormTypeError as e:
            return EntryOutcome(entry.name, EntryStatus.UNSUPPORTED_FORM, error=str(e))
        except etree.XMLSyntaxError as e:
            return EntryOutcome(entry.name, EntryStatus.PARSE_ERROR, error=str(e))
        except Exception as e:
            return EntryOutcome(entry.name, EntryStatus.FAILED, error=f"{type(e).__name__}: {e}")

    def route(self, name: str, report: ParsedReport) -> EntryOutcome:
        """Resolve tickers, enrich and append `report` to the buckets."""
        cik = report.cik
        if cik is None:
            return EntryOutcome(name, EntryStatus.NO_FILER, report=report)

        # Companies can list under several tickers with one CIK
        tickers = self.ticker_index.get(cik)
        if not tickers:
            return EntryOutcome(name, EntryStatus.NO_TICKER, report=report)

        if not self.publication_dates.has_index(cik):
            log.error(
                "%s:%s - Failed to find index file for ticker %s with CIK: %s",
                f"{report.filing_date:%Y-%m-%d}",
                name,
                tickers[0],
                cik,
            )
            return EntryOutcome(name, EntryStatus.NO_INDEX, report=report)

        enriched = False
        try:
            enriched = self.publication_dates.resolve(report, cik)
        except Exception:
            log.exception(
                "%s:%s - Index file loading failed for ticker: %s with CIK: %s even though it exists",
                f"{report.filing_date:%Y-%m-%d}",
                name,
                tickers[0],
                cik,
            )

        # Output paths are lower case, so `ABC` and `abc` share one bucket
        routed: list[str] = []
        for ticker in dict.fromkeys(t.lower() for t in tickers):
            if not self.symbol_history.is_known(ticker, self.processing_date):
                continue
            self.buckets.add(ticker, report.filing_date.date(), report)
            routed.append(ticker)

        status = EntryStatus.ROUTED if routed else EntryStatus.NO_KNOWN_SYMBOL
        return EntryOutcome(name, status, report=report, tickers=routed, enriched=enriched)

    def process_entry(self, entry: RawArchiveEntry) -> EntryOutcome:
        """Run one entry through parse and routing, logging by outcome."""
        parsed = self.parse_entry(entry)
        self.progress.increment()

        if isinstance(parsed, EntryOutcome):
            if parsed.status is EntryStatus.UNSUPPORTED_FORM:
                log.debug("Skipping %s: %s", entry.name, parsed.error)
            elif parsed.status is EntryStatus.PARSE_ERROR:
                log.error("Failed to parse XML from file: %s (%s)", entry.name, parsed.error)
            else:
                log.error("Unknown error encountered for %s: %s", entry.name, parsed.error)
            return parsed

        try:
            outcome = self.route(entry.name, parsed)
        except Exception as e:
            log.exception("Failed to route %s", entry.name)
            return EntryOutcome(
                entry.name,
                EntryStatus.FAILED,
                report=parsed,
                error=f"{type(e).__name__}: {e}",
            )

        if outcome.status is not EntryStatus.ROUTED:
            log.debug("Dropping %s: %s (CIK %s)", entry.name, outcome.status.value, parsed.cik)
        return outcome

    # --------------------------------------------------
    # Driver
    # --------------------------------------------------
    def process_batch(self, batch: list[RawArchiveEntry]) -> list[EntryOutcome]:
        """Process a batch of entries on the threaded scheduler."""
        tasks = [delayed(self.process_entry)(entry) for entry in batch]
        return list(compute(*tasks, scheduler="threads", num_workers=self.workers))

    def run(self, entries: Iterable[RawArchiveEntry]) -> Counter[EntryStatus]:
        """Process every entry and return the tally of outcomes.

        Entries are consumed lazily in batches of `batch_size`, so at most
        one batch of raw records is held in memory.
        """
        tally: Counter[EntryStatus] = Counter()
        for batch in iter_batches(entries, self.batch_size):
            tally.update(outcome.status for outcome in self.process_batch(batch))

        elapsed = self.progress.elapsed()
        count = self.progress.count
        rate = count / (elapsed / 60) if elapsed > 0 else 0.0
        log.info(
            "%d nc files read finished in %.1fs (%.2f files/min).",
            count,
            elapsed,
            rate,
        )
        summary = ", ".join(f"{status.value}={n}" for status, n in tally.most_common())
        log.info("Entry outcomes: %s", summary or "none")
        return tally
