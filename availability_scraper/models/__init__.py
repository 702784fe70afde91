"""Data models."""

from .types import (
    ClinicianStatus,
    SlotStatus,
    RosterEntry,
)
from .records import (
    LocationRef,
    SlotRecord,
    ClinicianRecord,
    derive_locations,
)
from .dataset import Dataset, merge_slots

__all__ = [
    "ClinicianStatus",
    "SlotStatus",
    "RosterEntry",
    "LocationRef",
    "SlotRecord",
    "ClinicianRecord",
    "derive_locations",
    "Dataset",
    "merge_slots",
]
