"""Parse escaped `.nc` markup into report models.

The escaped markup produced by `edgar_feed.ingest.transform` is well-formed
XML rooted at ``<SUBMISSION>``. The element tree is folded into a nested dict
keyed by model field names (derived from the tag names) and validated into a
`ReportSubmission`, which is wrapped in a `ParsedReport` exposing the few
fields the converter routes on.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from lxml import etree

from edgar_feed.models import ReportFiler, ReportSubmission

log = logging.getLogger(__name__)

SUPPORTED_FORM_TYPES = frozenset({"8-K", "10-K", "10-Q"})

# Tags whose field name is not the snake_cased tag
FIELD_NAMES = {
    "TYPE": "form_type",
    "DATE-OF-FILING-CHANGE": "filing_date_change",
    "FILER": "filers",
    "DOCUMENT": "documents",
    "FILING-VALUES": "values",
    "MAIL-ADDRESS": "mailing_address",
    "FORMER-COMPANY": "former_companies",
}

_PARSER = etree.XMLParser(huge_tree=True, resolve_entities=False, no_network=True)


class UnsupportedFormTypeError(ValueError):
    """Raised for a well-formed submission whose form type is not handled."""

    def __init__(self, form_type: str | None) -> None:
        super().__init__(f"SEC form type {form_type!r} is not supported at this time")
        self.form_type = form_type


@dataclass
class ParsedReport:
    """Routing view over a parsed submission.

    The full document lives in `submission`; this wrapper only exposes what
    the converter needs. The primary company is the first listed filer.
    """
    submission: ReportSubmission

    @property
    def accession_number(self) -> str:
        return self.submission.accession_number

    @property
    def form_type(self) -> str:
        return self.submission.form_type

    @property
    def filing_date(self) -> datetime:
        return self.submission.filing_date

    @property
    def made_available_at(self) -> datetime:
        return self.submission.made_available_at or self.submission.filing_date

    @made_available_at.setter
    def made_available_at(self, value: datetime) -> None:
        self.submission.made_available_at = value

    @property
    def filers(self) -> list[ReportFiler]:
        return self.submission.filers

    @property
    def cik(self) -> str | None:
        if not self.filers or self.filers[0].company_data is None:
            return None
        return self.filers[0].company_data.cik


def field_name(tag: str) -> str:
    """Map a markup tag to its model field name."""
    return FIELD_NAMES.get(tag) or tag.lower().replace("-", "_")


def element_to_dict(element: Any) -> dict[str, Any]:
    """Fold an element's children into a dict; repeated tags become lists.

    Leaf children contribute their stripped text, except `text` which keeps
    the document body verbatim.
    """
    out: dict[str, Any] = {}
    for child in element:
        if not isinstance(child.tag, str):
            # comments / processing instructions
            continue
        key = field_name(child.tag)
        if len(child):
            value: Any = element_to_dict(child)
        elif key == "text":
            value = child.text or ""
        else:
            value = (child.text or "").strip()

        if key not in out:
            out[key] = value
        elif isinstance(out[key], list):
            out[key].append(value)
        else:
            out[key] = [out[key], value]
    return out


def parse_report(markup: str) -> ParsedReport:
    """Parse escaped markup into a `ParsedReport`.

    Raises:
        lxml.etree.XMLSyntaxError: if the markup is not well-formed.
        UnsupportedFormTypeError: if the submission's form type is not one
            of `SUPPORTED_FORM_TYPES`.
        pydantic.ValidationError: if required header fields are missing or
            malformed.
    """
    root = etree.fromstring(markup.encode("utf-8"), parser=_PARSER)
    data = element_to_dict(root)

    form_type = data.get("form_type")
    if isinstance(form_type, list):
        form_type = form_type[0]
    if form_type not in SUPPORTED_FORM_TYPES:
        raise UnsupportedFormTypeError(form_type)

    return ParsedReport(submission=ReportSubmission.model_validate(data))
