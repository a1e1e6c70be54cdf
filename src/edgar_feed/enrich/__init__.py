"""Lookup structures used while routing reports.

CIK → ticker resolution, per-company publication timestamps from side
index files and symbol history from map files.
"""
