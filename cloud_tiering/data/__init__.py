"""Workload record tables and loaders."""

from .loaders import load_records, records_from_frame, RECORD_COLUMNS

__all__ = ["load_records", "records_from_frame", "RECORD_COLUMNS"]
