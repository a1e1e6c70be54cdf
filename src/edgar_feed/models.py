"""Pydantic models for parsed feed reports and per-company side indexes.

Report models are populated from the escaped `.nc` markup (field names are
derived from the SGML tag names) and serialized with camelCase aliases when
written out. Index models mirror the JSON directory listings stored under
`indexes/<CIK>.json`.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

REPORT_DATE_FORMAT = "%Y%m%d %H:%M:%S"


def _as_list(value: Any) -> Any:
    """Wrap a single parsed element in a list; repeated tags already are."""
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def _parse_report_date(value: Any) -> Any:
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
        return datetime.strptime(value, REPORT_DATE_FORMAT)
    return value


ReportDate = Annotated[datetime | None, BeforeValidator(_parse_report_date)]


class ReportModel(BaseModel):
    """Base for report models: camelCase on output, unknown tags ignored."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class ReportCompanyData(ReportModel):
    """`<COMPANY-DATA>` block of a filer."""
    conformed_name: str | None = None
    cik: str | None = None
    assigned_sic: str | None = None
    irs_number: str | None = None
    state_of_incorporation: str | None = None
    fiscal_year_end: str | None = None

    @field_validator("cik", mode="before")
    @classmethod
    def pad_cik(cls, v: Any) -> Any:
        if isinstance(v, str) and v.strip():
            return v.strip().zfill(10)
        return v


class ReportFilingValues(ReportModel):
    """`<FILING-VALUES>` block of a filer."""
    form_type: str | None = None
    act: str | None = None
    file_number: str | None = None
    film_number: str | None = None


class ReportAddress(ReportModel):
    """`<BUSINESS-ADDRESS>` / `<MAIL-ADDRESS>` block of a filer."""
    street1: str | None = None
    street2: str | None = None
    city: str | None = None
    state: str | None = None
    zip: str | None = None
    phone: str | None = None


class ReportFormerCompany(ReportModel):
    """`<FORMER-COMPANY>` block of a filer."""
    former_conformed_name: str | None = None
    date_changed: ReportDate = None


class ReportFiler(ReportModel):
    """`<FILER>` block: the company plus its addresses and filing values."""
    company_data: ReportCompanyData | None = None
    values: Annotated[list[ReportFilingValues], BeforeValidator(_as_list)] = Field(
        default_factory=list
    )
    business_address: Annotated[list[ReportAddress], BeforeValidator(_as_list)] = Field(
        default_factory=list
    )
    mailing_address: Annotated[list[ReportAddress], BeforeValidator(_as_list)] = Field(
        default_factory=list
    )
    former_companies: Annotated[list[ReportFormerCompany], BeforeValidator(_as_list)] = Field(
        default_factory=list
    )


class ReportDocument(ReportModel):
    """`<DOCUMENT>` block: one attached document with its raw text."""
    form_type: str | None = None
    sequence: str | None = None
    filename: str | None = None
    description: str | None = None
    text: str | None = None


class ReportSubmission(ReportModel):
    """A full `<SUBMISSION>`: header fields, filers and documents.

    `made_available_at` is the authoritative publication time. It starts out
    equal to `filing_date` and is overwritten from the side index when the
    accession number is found there.
    """
    accession_number: str
    form_type: str
    public_document_count: str | None = None
    period: ReportDate = None
    items: Annotated[list[str], BeforeValidator(_as_list)] = Field(default_factory=list)
    filing_date: Annotated[datetime, BeforeValidator(_parse_report_date)]
    filing_date_change: ReportDate = None
    made_available_at: datetime | None = None
    filers: Annotated[list[ReportFiler], BeforeValidator(_as_list)] = Field(default_factory=list)
    documents: Annotated[list[ReportDocument], BeforeValidator(_as_list)] = Field(
        default_factory=list
    )

    @model_validator(mode="after")
    def default_made_available_at(self) -> "ReportSubmission":
        if self.made_available_at is None:
            self.made_available_at = self.filing_date
        return self


class IndexItem(BaseModel):
    """One entry of a company's EDGAR directory listing."""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)
    name: str
    type: str
    last_modified: datetime = Field(..., alias="last-modified")
    size: str | int | None = None


class IndexDirectory(BaseModel):
    """The `directory` object of a side index file."""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)
    name: str | None = None
    parent_dir: str | None = Field(None, alias="parent-dir")
    # Raw entries; only folder entries are validated as `IndexItem`
    item: list[dict[str, Any]] = Field(default_factory=list)


class IndexFile(BaseModel):
    """Schema of `indexes/<CIK>.json`."""
    model_config = ConfigDict(extra="ignore")
    directory: IndexDirectory
