"""Command-line interface for the feed converter.

Provides the `convert` subcommand, implemented as `cmd_convert`, which
accepts an argparse namespace. Directory options override the values read
from the environment by `get_settings`.
"""
from __future__ import annotations

import argparse
import dataclasses
import logging
from datetime import date, datetime
from pathlib import Path

from dotenv import load_dotenv

from edgar_feed.config import Settings, get_settings
from edgar_feed.converter import ConversionResult, convert
from edgar_feed.logging_config import configure_logging

log = logging.getLogger(__name__)


# --------------------------------------------------
# Helpers
# --------------------------------------------------
def _parse_date(value: str) -> date:
    """argparse type for `YYYYMMDD` dates."""
    try:
        return datetime.strptime(value, "%Y%m%d").date()
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected YYYYMMDD, got {value!r}") from None


def _positive(value: str) -> int:
    n = int(value)
    if n <= 0:
        raise argparse.ArgumentTypeError(f"must be positive, got {n}")
    return n


def _apply_overrides(s: Settings, args: argparse.Namespace) -> Settings:
    """Return `s` with any directory/worker flags from `args` applied."""
    overrides: dict[str, object] = {}
    if args.raw_source is not None:
        overrides["raw_source"] = args.raw_source
    if args.destination is not None:
        overrides["destination"] = args.destination
    if args.map_files is not None:
        overrides["map_files_dir"] = args.map_files
    if args.workers is not None:
        overrides["workers"] = args.workers
    if args.no_copy:
        overrides["copy_archive"] = False
    return dataclasses.replace(s, **overrides)


# --------------------------------------------------
# CONVERT
# --------------------------------------------------
def cmd_convert(args: argparse.Namespace, settings: Settings | None = None) -> ConversionResult:
    """Convert the raw archive for `args.date`.

    Args:
        args: argparse namespace with `date` and the optional overrides.
        settings: Base settings; read from the environment when omitted.
    """
    s = _apply_overrides(settings or get_settings(), args)
    return convert(args.date, s)


# --------------------------------------------------
# CLI
# --------------------------------------------------
def build_parser() -> argparse.ArgumentParser:
    """Build and return the top-level argument parser for the CLI.

    Returns:
        Configured argparse.ArgumentParser instance.
    """
    p = argparse.ArgumentParser(prog="edgar-feed")
    p.add_argument("--verbose", action="store_true", help="log at DEBUG level")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_convert = sub.add_parser("convert", help="convert one day's feed archive")
    p_convert.add_argument("--date", type=_parse_date, required=True, help="YYYYMMDD")
    p_convert.add_argument("--raw-source", type=Path, default=None)
    p_convert.add_argument("--destination", type=Path, default=None)
    p_convert.add_argument("--map-files", type=Path, default=None)
    p_convert.add_argument("--workers", type=_positive, default=None)
    p_convert.add_argument("--no-copy", action="store_true", help="read the archive in place")

    return p


def main(argv: list[str] | None = None) -> None:
    """CLI entry point: parse args, configure logging and dispatch commands."""
    load_dotenv()
    args = build_parser().parse_args(argv)
    settings = get_settings()
    configure_logging(settings.log_path, logging.DEBUG if args.verbose else logging.INFO)

    if args.cmd == "convert":
        cmd_convert(args, settings)
    else:
        raise SystemExit(2)


if __name__ == "__main__":
    main()
