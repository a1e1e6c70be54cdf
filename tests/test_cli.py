from __future__ import annotations

import argparse
from datetime import date
from pathlib import Path

import pytest

from conftest import nc_record, write_archive
from edgar_feed.cli import build_parser, cmd_convert
from edgar_feed.config import Settings


def test_parser_reads_date_and_overrides() -> None:
    args = build_parser().parse_args(
        ["convert", "--date", "20200302", "--workers", "4", "--destination", "out", "--no-copy"]
    )
    assert args.date == date(2020, 3, 2)
    assert args.workers == 4
    assert args.destination == Path("out")
    assert args.no_copy


def test_parser_rejects_bad_date() -> None:
    with pytest.raises(SystemExit):
        build_parser().parse_args(["convert", "--date", "2020-03-02"])


def test_cmd_convert_applies_overrides(tmp_path: Path, raw_source: Path) -> None:
    write_archive(raw_source / "20200302.nc.tar.gz", {"a.nc": nc_record()})
    map_files = tmp_path / "maps"
    map_files.mkdir()
    (map_files / "abc.csv").write_text("20000101,abc\n20501231,abc\n", encoding="utf-8")
    base = Settings(
        raw_source=tmp_path / "elsewhere",
        destination=tmp_path / "unused",
        map_files_dir=tmp_path / "nowhere",
        workers=1,
        batch_size=10,
        copy_archive=True,
        log_path=None,
    )
    args = argparse.Namespace(
        date=date(2020, 3, 2),
        raw_source=raw_source,
        destination=tmp_path / "out",
        map_files=map_files,
        workers=2,
        no_copy=True,
    )

    result = cmd_convert(args, base)

    assert result.written == 1
    assert (tmp_path / "out" / "abc" / "20200302_8K.zip").is_file()
    assert not (tmp_path / "unused").exists()
