"""Consolidate per-subdirectory CSV files into one reconciled CSV each."""

__version__ = "0.1.0"
