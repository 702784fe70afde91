"""
The appointments dataset: clinician ID -> clinician record (plain JSON dicts).

A Dataset is passed explicitly from the orchestrator to the error-retry
sweep and then to the normalization pipeline. Records are merged, never
replaced, so booked and error slot history survives a portal that stops
listing a slot.
"""

import copy
import json
from typing import Any, Dict, Iterator, List, Optional, Tuple

from .records import ClinicianRecord, derive_locations
from .types import ClinicianStatus, RosterEntry, SlotStatus


INVALID_HREFS = ("", "#")

# Statuses that outlive the portal listing the slot
RETAINED_SLOT_STATUSES = (SlotStatus.BOOKED.value, SlotStatus.ERROR.value)


def merge_slots(existing: Any, fresh: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Merge freshly scraped slots into the slots already recorded.

    Args:
        existing: Slots from the previous pass (may be malformed)
        fresh: Slots from the current scrape

    Returns:
        Merged list: fresh slots in scrape order (previously recorded fields
        kept, strongest status wins), followed by retained booked/error slots
        the portal no longer lists.
    """
    if isinstance(existing, dict):
        existing = [existing]
    elif not isinstance(existing, list):
        existing = []

    previous: Dict[str, Dict[str, Any]] = {}
    for slot in existing:
        if isinstance(slot, dict) and slot.get("href") not in (None, *INVALID_HREFS):
            previous.setdefault(slot["href"], slot)

    merged: List[Dict[str, Any]] = []
    seen = set()
    for slot in fresh:
        href = slot.get("href")
        if href in (None, *INVALID_HREFS):
            # left for href sanitation to drop
            merged.append(slot)
            continue
        if href in seen:
            continue
        seen.add(href)

        prior = previous.get(href)
        if prior is None:
            merged.append(slot)
            continue

        kept = {**slot, **prior}
        kept["status"] = SlotStatus.stronger(prior.get("status"), slot.get("status")).value
        merged.append(kept)

    for href, prior in previous.items():
        if href not in seen and prior.get("status") in RETAINED_SLOT_STATUSES:
            merged.append(prior)

    return merged


class Dataset:
    """In-memory appointments dataset keyed by clinician ID."""

    def __init__(self, clinicians: Optional[Dict[str, Dict[str, Any]]] = None):
        self.clinicians: Dict[str, Dict[str, Any]] = clinicians if clinicians is not None else {}

    def __len__(self) -> int:
        return len(self.clinicians)

    def __contains__(self, clinician_id: str) -> bool:
        return clinician_id in self.clinicians

    def __getitem__(self, clinician_id: str) -> Dict[str, Any]:
        return self.clinicians[clinician_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self.clinicians)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Dataset) and self.clinicians == other.clinicians

    def items(self) -> Iterator[Tuple[str, Dict[str, Any]]]:
        return iter(self.clinicians.items())

    def get(self, clinician_id: str, default: Any = None) -> Any:
        return self.clinicians.get(clinician_id, default)

    def copy(self) -> "Dataset":
        return Dataset(copy.deepcopy(self.clinicians))

    def record_result(self, clinician_id: str, record: ClinicianRecord) -> Dict[str, Any]:
        """
        Write one clinician's scrape outcome into the dataset.

        An error keeps the previously recorded slots and only flags the
        record; any other outcome merges its slots with the recorded ones.

        Returns:
            The stored record dict
        """
        fresh = record.to_json()
        prior = self.clinicians.get(clinician_id)

        if not isinstance(prior, dict):
            # absent, or a malformed entry from a loaded checkpoint
            fresh.setdefault("slots", [])
            fresh["locations"] = derive_locations(fresh["slots"])
            self.clinicians[clinician_id] = fresh
            return fresh

        merged = dict(prior)
        merged["name"] = fresh["name"]

        if record.status == ClinicianStatus.ERROR:
            merged["status"] = ClinicianStatus.ERROR.value
            merged["errorMessage"] = fresh.get("errorMessage", "")
            merged.setdefault("slots", [])
        else:
            merged["slots"] = merge_slots(prior.get("slots"), fresh.get("slots", []))
            merged.pop("errorMessage", None)
            if "status" in fresh:
                merged["status"] = fresh["status"]
            else:
                merged.pop("status", None)

        merged["locations"] = derive_locations(merged["slots"])
        self.clinicians[clinician_id] = merged
        return merged

    def error_clinicians(self) -> List[RosterEntry]:
        """Clinicians whose last pass ended in an error, in dataset order."""
        return [
            RosterEntry.from_record(clinician_id, record)
            for clinician_id, record in self.clinicians.items()
            if isinstance(record, dict) and record.get("status") == ClinicianStatus.ERROR.value
        ]

    def status_counts(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for record in self.clinicians.values():
            status = (record.get("status") if isinstance(record, dict) else None) or ClinicianStatus.OK.value
            counts[status] = counts.get(status, 0) + 1
        return counts

    def to_json(self) -> str:
        return json.dumps(self.clinicians, indent=2, ensure_ascii=False)

    @classmethod
    def from_json(cls, text: str) -> "Dataset":
        data = json.loads(text) if text.strip() else {}
        if not isinstance(data, dict):
            raise ValueError(f"Expected a JSON object keyed by clinician ID, got {type(data).__name__}")
        return cls(data)
