"""Utilities."""

from .date_utils import (
    extract_iso_date,
    long_format,
    parse_iso_date,
)
from .log_setup import configure_logging
from .storage import DatasetStore, write_json_atomic

__all__ = [
    "extract_iso_date",
    "long_format",
    "parse_iso_date",
    "configure_logging",
    "DatasetStore",
    "write_json_atomic",
]
