"""Report bucketing and output.

Reports are grouped per ticker and filing day while ingestion runs, then
each group is drained once and written as a zipped JSON document.
"""
