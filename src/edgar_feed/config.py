"""Configuration helpers and Settings container.

This module provides a small `Settings` dataclass and `get_settings` which
reads the converter's directories and parallelism knobs from the environment.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import os

from dotenv import load_dotenv

# Explicitly load .env from project root
PROJECT_ROOT = Path(__file__).resolve().parents[2]
load_dotenv(PROJECT_ROOT / ".env")

TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    """Container for converter configuration read from the environment.

    Attributes:
        raw_source: Directory holding the daily archives, the CIK/ticker
            mapping files and the `indexes/` side index folder.
        destination: Root directory for the per-ticker zip output.
        map_files_dir: Directory of symbol-history map files (`*.csv`).
        workers: Number of worker threads for each parallel pass.
        batch_size: Number of archive entries held in memory per batch.
        copy_archive: Copy the archive to a temp directory before reading.
        log_path: Optional log file path.
    """
    raw_source: Path
    destination: Path
    map_files_dir: Path
    workers: int
    batch_size: int
    copy_archive: bool
    log_path: Path | None


def default_workers() -> int:
    """Half the available CPUs, leaving headroom for archive I/O."""
    return max(1, (os.cpu_count() or 2) // 2)


def _positive_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}") from None
    if value <= 0:
        raise RuntimeError(f"{name} must be positive, got {value}")
    return value


def get_settings() -> Settings:
    """Read environment variables and return a frozen `Settings` object.

    Raises:
        RuntimeError: if `EDGAR_WORKERS` or `EDGAR_BATCH_SIZE` is not a
            positive integer.
    """
    raw_source = Path(os.getenv("EDGAR_RAW_SOURCE", "data/raw/sec"))
    destination = Path(os.getenv("EDGAR_DESTINATION", "data/alternative/sec"))
    map_files_dir = Path(os.getenv("EDGAR_MAP_FILES_DIR", "data/equity/usa/map_files"))
    workers = _positive_int("EDGAR_WORKERS", default_workers())
    batch_size = _positive_int("EDGAR_BATCH_SIZE", 500)
    copy_archive = os.getenv("EDGAR_COPY_ARCHIVE", "true").strip().lower() in TRUE_VALUES
    log_path_raw = os.getenv("EDGAR_LOG_PATH", "logs/edgar_feed.log").strip()

    return Settings(
        raw_source=raw_source,
        destination=destination,
        map_files_dir=map_files_dir,
        workers=workers,
        batch_size=batch_size,
        copy_archive=copy_archive,
        log_path=Path(log_path_raw) if log_path_raw else None,
    )
