"""Ingestion of the daily feed archive.

Streams `.nc` records out of the archive, escapes their pseudo-SGML into
well-formed markup, parses submissions and routes them into report buckets.
"""
