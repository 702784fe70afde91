#!/usr/bin/env python3
"""
Normalization pipeline: ordered, independently idempotent passes over the dataset.

Order matters: hrefs are sanitized before anything parses them, and the
date consistency repair runs last as the final authority on `date`.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Dict, List, Tuple, Union

from loguru import logger

from ..models.dataset import Dataset
from ..utils.storage import DatasetStore
from .date_consistency import fix_date_consistency
from .date_formatter import format_dates
from .href_cleaner import clean_hrefs
from .location_mapper import map_locations
from .name_cleaner import clean_names


Stage = Callable[[Dict[str, Any]], Dict[str, int]]

NORMALIZATION_STAGES: List[Tuple[str, Stage]] = [
    ("clean_hrefs", clean_hrefs),
    ("map_locations", map_locations),
    ("clean_names", clean_names),
    ("format_dates", format_dates),
    ("fix_date_consistency", fix_date_consistency),
]


def normalize_dataset(dataset: Dataset) -> Dict[str, Dict[str, int]]:
    """
    Run every stage over an in-memory dataset.

    Args:
        dataset: Dataset, modified in place

    Returns:
        Stats report per stage name
    """
    reports: Dict[str, Dict[str, int]] = {}
    for i, (name, stage) in enumerate(NORMALIZATION_STAGES, 1):
        logger.info(f"[{i}/{len(NORMALIZATION_STAGES)}] {name}")
        reports[name] = stage(dataset.clinicians)
    return reports


def run_stage_on_file(stage: Stage, path: Union[str, Path]) -> Dict[str, int]:
    """Read the persisted document, apply one stage, rewrite the document."""
    store = DatasetStore(path)
    dataset = store.load()
    stats = stage(dataset.clinicians)
    store.save(dataset)
    return stats


def normalize_file(path: Union[str, Path]) -> Dict[str, Dict[str, int]]:
    """
    Run every stage against the persisted dataset, each one reading and
    rewriting the same document.

    Args:
        path: Path to the appointments JSON document

    Returns:
        Stats report per stage name
    """
    path = Path(path)
    if not path.exists():
        logger.warning(f"No dataset at {path}, nothing to normalize")
        return {}

    reports: Dict[str, Dict[str, int]] = {}
    for i, (name, stage) in enumerate(NORMALIZATION_STAGES, 1):
        logger.info(f"[{i}/{len(NORMALIZATION_STAGES)}] {name} -> {path}")
        reports[name] = run_stage_on_file(stage, path)
    return reports
