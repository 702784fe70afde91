"""Workflows for the availability pipeline."""

from .scrape_workflow import BatchOrchestrator, record_from_search
from .retry_workflow import ErrorRetrySweep
from .availability_workflow import run_availability_workflow

__all__ = [
    "BatchOrchestrator",
    "record_from_search",
    "ErrorRetrySweep",
    "run_availability_workflow",
]
