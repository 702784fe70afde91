"""Normalization stages for the scraped appointments dataset."""

from .href_cleaner import clean_hrefs
from .location_mapper import map_locations
from .name_cleaner import clean_name, clean_names
from .date_formatter import format_dates
from .date_consistency import fix_date_consistency
from .pipeline import NORMALIZATION_STAGES, normalize_dataset, normalize_file, run_stage_on_file

__all__ = [
    "clean_hrefs",
    "map_locations",
    "clean_name",
    "clean_names",
    "format_dates",
    "fix_date_consistency",
    "NORMALIZATION_STAGES",
    "normalize_dataset",
    "normalize_file",
    "run_stage_on_file",
]
