"""CSV ingestion and export.

This module converts row-major CSV files into the column store and back.
It also infers column types from a bounded sample of the source file.
"""
