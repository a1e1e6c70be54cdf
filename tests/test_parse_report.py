from __future__ import annotations

from datetime import datetime

import pytest
from lxml import etree
from pydantic import ValidationError

from conftest import nc_record
from edgar_feed.ingest.parse_report import (
    UnsupportedFormTypeError,
    element_to_dict,
    field_name,
    parse_report,
)
from edgar_feed.ingest.transform import transform_record


def test_parse_supported_report() -> None:
    report = parse_report(transform_record(nc_record()))

    assert report.accession_number == "0000123456-20-000001"
    assert report.form_type == "8-K"
    assert report.filing_date == datetime(2020, 3, 2)
    assert report.made_available_at == report.filing_date
    assert report.cik == "0000123456"

    sub = report.submission
    assert sub.items == ["2.02", "9.01"]
    assert sub.public_document_count == "1"
    assert sub.filers[0].company_data is not None
    assert sub.filers[0].company_data.conformed_name == "ABC Holdings & Co"
    assert sub.filers[0].values[0].act == "34"
    assert sub.documents[0].filename == "form.htm"
    assert '<html><body>Results & "outlook"</body></html>' in (sub.documents[0].text or "")


def test_unsupported_form_type_raises() -> None:
    with pytest.raises(UnsupportedFormTypeError) as exc:
        parse_report(transform_record(nc_record(form_type="SC 13G")))
    assert exc.value.form_type == "SC 13G"


def test_malformed_markup_raises_syntax_error() -> None:
    raw = nc_record().replace("<CONFIRMING-COPY>", "<DELETION>")
    with pytest.raises(etree.XMLSyntaxError):
        parse_report(transform_record(raw))


def test_bad_filing_date_raises_validation_error() -> None:
    with pytest.raises(ValidationError):
        parse_report(transform_record(nc_record(filing_date="2020-03-02")))


def test_short_cik_is_padded() -> None:
    report = parse_report(transform_record(nc_record(cik="123456")))
    assert report.cik == "0000123456"


def test_report_without_filers_has_no_cik() -> None:
    raw = "\n".join(
        [
            "<SUBMISSION>",
            "<ACCESSION-NUMBER>0000000001-20-000001",
            "<TYPE>10-K",
            "<FILING-DATE>20200302",
            "</SUBMISSION>",
        ]
    )
    report = parse_report(transform_record(raw))
    assert report.filers == []
    assert report.cik is None


def test_field_names_follow_tags() -> None:
    assert field_name("TYPE") == "form_type"
    assert field_name("CONFORMED-NAME") == "conformed_name"
    assert field_name("FILER") == "filers"


def test_repeated_tags_become_lists() -> None:
    root = etree.fromstring(b"<A><ITEMS>1</ITEMS><ITEMS>2</ITEMS><ITEMS>3</ITEMS><X> y </X></A>")
    assert element_to_dict(root) == {"items": ["1", "2", "3"], "x": "y"}


def test_submission_serializes_camel_case_without_nulls() -> None:
    report = parse_report(transform_record(nc_record()))
    dumped = report.submission.model_dump(mode="json", by_alias=True, exclude_none=True)

    assert dumped["accessionNumber"] == "0000123456-20-000001"
    assert dumped["filingDate"] == "2020-03-02T00:00:00"
    assert dumped["madeAvailableAt"] == "2020-03-02T00:00:00"
    assert dumped["filers"][0]["companyData"]["cik"] == "0000123456"
    assert "period" not in dumped
