"""Write drained report groups as zipped JSON documents.

Output layout, relative to the destination root::

    <ticker>/<YYYYMMDD>_<FORMTYPE>.zip
        └── <FORMTYPE>.json   (JSON array of submissions)

The JSON is written into a transient directory which is zipped next to
itself and then removed. Existing output for the same key is replaced only
once the new zip is complete.
"""

from __future__ import annotations

import logging
import os
import shutil
import zipfile
from datetime import date
from pathlib import Path

from dask import compute, delayed  # type: ignore[attr-defined]
from pydantic import TypeAdapter

from edgar_feed.aggregate.buckets import ReportBuckets
from edgar_feed.ingest.parse_report import ParsedReport
from edgar_feed.models import ReportSubmission

log = logging.getLogger(__name__)

_SUBMISSIONS = TypeAdapter(list[ReportSubmission])


def normalize_form_type(form_type: str) -> str:
    """Form type as used in file names (`10-K` → `10K`)."""
    return form_type.replace("-", "")


def report_dir(destination: Path, ticker: str, report: ParsedReport) -> Path:
    """Return the transient directory for a group represented by `report`."""
    form = normalize_form_type(report.form_type)
    return destination / ticker.lower() / f"{report.filing_date:%Y%m%d}_{form}"


def serialize_reports(reports: list[ParsedReport]) -> bytes:
    """Compact JSON array of the underlying submissions, nulls omitted."""
    return _SUBMISSIONS.dump_json(
        [r.submission for r in reports],
        by_alias=True,
        exclude_none=True,
    )


def zip_directory(source: Path, zip_path: Path) -> Path:
    """Zip the files under `source` (paths relative to it) into `zip_path`."""
    with zipfile.ZipFile(zip_path, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for path in sorted(source.rglob("*")):
            if path.is_file():
                zf.write(path, path.relative_to(source).as_posix())
    return zip_path


def write_report(reports: list[ParsedReport], ticker: str, destination: Path) -> Path:
    """Write one `(ticker, day)` group and return the zip path.

    Args:
        reports: Non-empty group sharing ticker and filing date. The first
            report names the output.
        ticker: Ticker the group was bucketed under.
        destination: Output root directory.

    Returns:
        Path of the written `.zip`.
    """
    if not reports:
        raise ValueError(f"No reports to write for {ticker}")

    out_dir = report_dir(destination, ticker, reports[0])
    form = normalize_form_type(reports[0].form_type)
    zip_path = out_dir.with_name(f"{out_dir.name}.zip")
    partial = zip_path.with_name(f"{zip_path.name}.tmp")

    out_dir.mkdir(parents=True, exist_ok=True)
    try:
        (out_dir / f"{form}.json").write_bytes(serialize_reports(reports))
        zip_directory(out_dir, partial)
        # the previous zip stays intact until the new one is complete
        os.replace(partial, zip_path)
    finally:
        shutil.rmtree(out_dir, ignore_errors=True)
        partial.unlink(missing_ok=True)

    log.debug("Wrote %d reports for %s -> %s", len(reports), ticker, zip_path)
    return zip_path


def flush_reports(
    buckets: ReportBuckets,
    processing_date: date,
    destination: Path,
    workers: int,
) -> tuple[int, int]:
    """Drain every ticker's slot for `processing_date` and write it.

    Tickers are written in parallel on the threaded scheduler. A failure for
    one ticker is logged and does not stop the others.

    Returns:
        Tuple `(written, failed)` group counts.
    """
    tickers = buckets.tickers()
    if not tickers:
        log.info("No reports routed; nothing to write.")
        return 0, 0

    def _flush(ticker: str) -> str:
        reports = buckets.drain(ticker, processing_date)
        if reports is None:
            return "empty"
        try:
            write_report(reports, ticker, destination)
        except Exception:
            log.exception("Failed to write %d reports for %s", len(reports), ticker)
            return "failed"
        return "written"

    tasks = [delayed(_flush)(ticker) for ticker in tickers]
    results = list(compute(*tasks, scheduler="threads", num_workers=workers))

    written = results.count("written")
    failed = results.count("failed")
    log.info(
        "Write complete for %s: written=%d failed=%d tickers=%d",
        processing_date,
        written,
        failed,
        len(tickers),
    )
    return written, failed
