"""Per-company publication timestamps from side index files.

Each company has an ``indexes/<CIK>.json`` directory listing of its EDGAR
folder. Folder entries are named after accession numbers (without hyphens)
and carry the time the filing was made available on EDGAR, which is the
timestamp reports should be published at rather than the filing date.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from pathlib import Path

from edgar_feed.ingest.parse_report import ParsedReport
from edgar_feed.models import IndexFile, IndexItem

log = logging.getLogger(__name__)

FOLDER_TYPE = "folder.gif"


def load_publication_times(index_path: Path) -> dict[str, datetime]:
    """Return accession number → last-modified time for folder entries.

    Listings sometimes repeat a folder; the first occurrence wins. File
    entries are skipped before validation, so their shape does not matter.

    Raises:
        OSError: if the file cannot be read.
        pydantic.ValidationError: if the listing or a folder entry is malformed.
    """
    index = IndexFile.model_validate_json(index_path.read_bytes())

    times: dict[str, datetime] = {}
    for raw in index.directory.item:
        if raw.get("type") != FOLDER_TYPE:
            continue
        item = IndexItem.model_validate(raw)
        if item.name not in times:
            times[item.name] = item.last_modified
    return times


class PublicationDateCache:
    """Lazily loaded, run-scoped cache of publication times keyed by CIK.

    Two threads may load the same CIK concurrently; only the first stored
    mapping is kept and both callers use it.
    """

    def __init__(self, indexes_dir: Path) -> None:
        self.indexes_dir = indexes_dir
        self._times: dict[str, dict[str, datetime]] = {}
        self._lock = threading.Lock()

    def index_path(self, cik: str) -> Path:
        return self.indexes_dir / f"{cik}.json"

    def has_index(self, cik: str) -> bool:
        return self.index_path(cik).is_file()

    def publication_times(self, cik: str) -> dict[str, datetime]:
        """Get-or-load the accession → timestamp mapping for `cik`."""
        times = self._times.get(cik)
        if times is not None:
            return times

        loaded = load_publication_times(self.index_path(cik))
        with self._lock:
            return self._times.setdefault(cik, loaded)

    def resolve(self, report: ParsedReport, cik: str) -> bool:
        """Overwrite `report.made_available_at` from the index when possible.

        Returns:
            True when the accession number was found in the index.
        """
        times = self.publication_times(cik)
        published = times.get(report.accession_number.replace("-", ""))
        if published is None:
            return False
        report.made_available_at = published
        return True

    def __len__(self) -> int:
        return len(self._times)
