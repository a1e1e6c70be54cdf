"""Run one day's conversion: archive → report buckets → zipped JSON.

`convert` is the single processing entry point. It fails fast when the
day's archive is missing, builds the lookup structures, ingests every `.nc`
record in parallel and finally drains and writes the buckets for the
processing date.
"""

from __future__ import annotations

import logging
import tempfile
from collections import Counter
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path

from edgar_feed.aggregate.buckets import ReportBuckets
from edgar_feed.aggregate.write_reports import flush_reports
from edgar_feed.config import Settings
from edgar_feed.enrich.publication_dates import PublicationDateCache
from edgar_feed.enrich.symbol_history import MapFileSymbolHistory, SymbolHistory
from edgar_feed.enrich.ticker_index import build_ticker_index
from edgar_feed.ingest.archive import archive_name, copy_archive_locally, iter_archive_entries
from edgar_feed.ingest.pipeline import EntryStatus, IngestPipeline

log = logging.getLogger(__name__)

INDEXES_DIR = "indexes"


class ArchiveNotFoundError(FileNotFoundError):
    """The raw archive for the processing date does not exist."""


@dataclass
class ConversionResult:
    """Summary of a conversion run."""
    processing_date: date
    outcomes: Counter[EntryStatus] = field(default_factory=Counter)
    written: int = 0
    failed_writes: int = 0

    @property
    def entries(self) -> int:
        return sum(self.outcomes.values())


def raw_archive_path(raw_source: Path, processing_date: date) -> Path:
    """Return `<raw_source>/<YYYYMMDD>.nc.tar.gz`."""
    return raw_source / archive_name(f"{processing_date:%Y%m%d}")


def convert(
    processing_date: date,
    settings: Settings,
    symbol_history: SymbolHistory | None = None,
) -> ConversionResult:
    """Convert the raw feed archive for `processing_date`.

    Args:
        processing_date: Day whose archive is processed; only reports filed
            on this day are written.
        settings: Directories and parallelism settings.
        symbol_history: Ticker confirmation lookup. Defaults to map files
            read from `settings.map_files_dir`.

    Returns:
        `ConversionResult` with outcome counts and written group counts.

    Raises:
        ArchiveNotFoundError: if the day's archive does not exist.
        TickerMappingError: if a ticker mapping file is malformed.
    """
    archive = raw_archive_path(settings.raw_source, processing_date)
    if not archive.is_file():
        raise ArchiveNotFoundError(
            f"Raw data {archive} not found. No process can be done."
        )

    ticker_index = build_ticker_index(settings.raw_source)
    if symbol_history is None:
        symbol_history = MapFileSymbolHistory(settings.map_files_dir)

    buckets = ReportBuckets()
    pipeline = IngestPipeline(
        processing_date=processing_date,
        ticker_index=ticker_index,
        publication_dates=PublicationDateCache(settings.raw_source / INDEXES_DIR),
        symbol_history=symbol_history,
        buckets=buckets,
        workers=settings.workers,
        batch_size=settings.batch_size,
    )

    result = ConversionResult(processing_date=processing_date)
    log.info("Start processing %s with %d workers", archive, settings.workers)

    with tempfile.TemporaryDirectory(prefix="edgar_feed_") as tmp:
        source = copy_archive_locally(archive, Path(tmp)) if settings.copy_archive else archive
        result.outcomes = pipeline.run(iter_archive_entries(source))

    result.written, result.failed_writes = flush_reports(
        buckets,
        processing_date,
        settings.destination,
        settings.workers,
    )

    leftover = buckets.pending()
    if leftover:
        log.info("Discarding %d report groups filed on other dates", leftover)

    log.info(
        "Conversion for %s done: entries=%d written=%d failed_writes=%d",
        processing_date,
        result.entries,
        result.written,
        result.failed_writes,
    )
    return result
