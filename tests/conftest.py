from __future__ import annotations

import io
import json
import tarfile
from datetime import date
from pathlib import Path

import pytest


def nc_record(
    accession: str = "0000123456-20-000001",
    form_type: str = "8-K",
    cik: str = "0000123456",
    filing_date: str = "20200302",
    company: str = "ABC Holdings & Co",
) -> str:
    """A small dissemination-feed record in raw pseudo-SGML."""
    lines = [
        "<SUBMISSION>",
        f"<ACCESSION-NUMBER>{accession}",
        f"<TYPE>{form_type}",
        "<PUBLIC-DOCUMENT-COUNT>1",
        "<ITEMS>2.02",
        "<ITEMS>9.01",
        f"<FILING-DATE>{filing_date}",
        "<CONFIRMING-COPY>",
        "<FILER>",
        "<COMPANY-DATA>",
        f"<CONFORMED-NAME>{company}",
        f"<CIK>{cik}",
        "<ASSIGNED-SIC>7372",
        "</COMPANY-DATA>",
        "<FILING-VALUES>",
        f"<FORM-TYPE>{form_type}",
        "<ACT>34",
        "</FILING-VALUES>",
        "</FILER>",
        "<DOCUMENT>",
        f"<TYPE>{form_type}",
        "<SEQUENCE>1",
        "<FILENAME>form.htm",
        "<TEXT>",
        '<html><body>Results & "outlook"</body></html>',
        "</TEXT>",
        "</DOCUMENT>",
        "</SUBMISSION>",
        "",
    ]
    return "\n".join(lines)


def index_listing(items: list[dict[str, object]]) -> str:
    return json.dumps(
        {
            "directory": {
                "item": items,
                "name": "/Archives/edgar/data/123456",
                "parent-dir": "/Archives/edgar/data",
            }
        }
    )


def folder(name: str, last_modified: str) -> dict[str, str]:
    return {"last-modified": last_modified, "name": name, "type": "folder.gif", "size": ""}


def write_archive(path: Path, members: dict[str, str]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with tarfile.open(path, "w:gz") as tar:
        for name, text in members.items():
            data = text.encode("utf-8")
            info = tarfile.TarInfo(name)
            info.size = len(data)
            tar.addfile(info, io.BytesIO(data))
    return path


class StaticSymbolHistory:
    """Confirms every ticker except the ones listed as unknown."""

    def __init__(self, unknown: set[str] | None = None) -> None:
        self.unknown = unknown or set()

    def is_known(self, ticker: str, as_of: date) -> bool:
        return ticker not in self.unknown


@pytest.fixture
def raw_source(tmp_path: Path) -> Path:
    """Raw source root with mappings for CIK 0000123456 → abc and an index file."""
    root = tmp_path / "raw"
    (root / "indexes").mkdir(parents=True)
    (root / "cik-ticker-mappings.txt").write_text("abc\t123456\nxyz\t999\n", encoding="utf-8")
    (root / "cik-ticker-mappings-rankandfile.txt").write_text(
        "123456|ABC|ABC Holdings|NYSE|7372\n", encoding="utf-8"
    )
    (root / "indexes" / "0000123456.json").write_text(
        index_listing(
            [
                folder("000012345620000001", "2020-03-02 16:05:11"),
                folder("000012345620000001", "2020-03-03 09:00:00"),
                {
                    "last-modified": "2020-03-02 16:05:11",
                    "name": "0000123456-20-000001.txt",
                    "type": "text.gif",
                    "size": "12 KB",
                },
            ]
        ),
        encoding="utf-8",
    )
    return root
