"""Streaming access to the daily feed archive.

`iter_archive_entries` yields the raw `.nc` records of a `<YYYYMMDD>.nc.tar.gz`
without extracting the archive to disk; `iter_batches` groups them so that
only a bounded number of records is held in memory at once.
"""

from __future__ import annotations

import logging
import shutil
import tarfile
from dataclasses import dataclass
from itertools import islice
from pathlib import Path
from typing import Iterable, Iterator, TypeVar

log = logging.getLogger(__name__)

RAW_RECORD_EXTENSION = ".nc"

T = TypeVar("T")


@dataclass(frozen=True)
class RawArchiveEntry:
    """A single record pulled out of the feed archive.

    Attributes:
        name: Member path inside the archive.
        content: Raw bytes of the record.
    """
    name: str
    content: bytes


def archive_name(processing_date: str) -> str:
    """Return the archive file name for a `YYYYMMDD` processing date."""
    return f"{processing_date}{RAW_RECORD_EXTENSION}.tar.gz"


def copy_archive_locally(archive: Path, tmp_dir: Path) -> Path:
    """Copy the archive into `tmp_dir` and return the local path."""
    local = tmp_dir / archive.name
    log.info("Copying raw data locally: %s -> %s", archive, local)
    shutil.copyfile(archive, local)
    return local


def iter_archive_entries(
    archive: Path,
    extension: str = RAW_RECORD_EXTENSION,
) -> Iterator[RawArchiveEntry]:
    """Stream regular-file members of a `.tar.gz` whose name ends with `extension`.

    Args:
        archive: Path to the gzip-compressed tar archive.
        extension: Member name suffix to keep (defaults to `.nc`).

    Yields:
        `RawArchiveEntry` for each matching member, in archive order.
    """
    # Stream mode: members are read sequentially without seeking
    with tarfile.open(archive, mode="r|gz") as tar:
        for member in tar:
            if not member.isfile() or not member.name.endswith(extension):
                continue
            fh = tar.extractfile(member)
            if fh is None:
                log.warning("Could not extract %s from %s", member.name, archive)
                continue
            with fh:
                yield RawArchiveEntry(name=member.name, content=fh.read())


def iter_batches(items: Iterable[T], size: int) -> Iterator[list[T]]:
    """Yield lists of at most `size` items.

    Args:
        items: Any iterable (consumed lazily).
        size: Maximum batch length; must be positive.
    """
    if size <= 0:
        raise ValueError("batch size must be positive")
    it = iter(items)
    while True:
        batch = list(islice(it, size))
        if not batch:
            return
        yield batch
