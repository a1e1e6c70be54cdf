"""edgar_feed package.

Converts a daily EDGAR dissemination feed archive (``<YYYYMMDD>.nc.tar.gz``)
into per-ticker, per-filing-date JSON bundles.

Architecture:
- Ingest: stream `.nc` entries out of the archive, escape the pseudo-SGML
  into well-formed markup and parse it into report models
- Enrich: resolve CIK → tickers, correct publication timestamps from the
  per-company side indexes, confirm tickers against symbol history
- Aggregate: bucket reports by ticker and filing date, then drain each
  bucket once and write it as a zipped JSON document
- Dask bags on the threaded scheduler provide bounded parallelism
- Pydantic models describe the parsed reports and side index files
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
