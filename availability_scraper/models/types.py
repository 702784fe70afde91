"""Type definitions for the availability scraper."""

from enum import Enum
from typing import Dict, Any

from pydantic import BaseModel


class ClinicianStatus(str, Enum):
    """Terminal per-pass outcome of a clinician. A record without a status is ok."""
    OK = "ok"
    NO_APPOINTMENTS = "no_appointments"
    NO_SLOTS_FOUND = "no_slots_found"
    ERROR = "error"


class SlotStatus(str, Enum):
    """Lifecycle of a single bookable slot."""
    LISTED = "listed"
    BOOKED = "booked"
    ERROR = "error"

    @property
    def precedence(self) -> int:
        # booked is terminal, error is retained for diagnostics
        return {"listed": 0, "error": 1, "booked": 2}[self.value]

    @classmethod
    def coerce(cls, value: Any) -> "SlotStatus":
        """Map a raw status value onto the enum, treating unknown values as listed."""
        try:
            return cls(value)
        except ValueError:
            return cls.LISTED

    @classmethod
    def stronger(cls, left: Any, right: Any) -> "SlotStatus":
        """Pick the status that wins when the same href is seen twice."""
        a, b = cls.coerce(left), cls.coerce(right)
        return a if a.precedence >= b.precedence else b


class RosterEntry(BaseModel):
    """A clinician as listed in the portal's selection control."""
    id: str
    name: str

    @classmethod
    def from_record(cls, clinician_id: str, record: Dict[str, Any]) -> "RosterEntry":
        """Create a RosterEntry from a dataset record."""
        return cls(id=clinician_id, name=record.get("name") or f"Clinician {clinician_id}")
