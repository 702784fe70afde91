#!/usr/bin/env python3
"""
Canonical record shapes of the appointments dataset.

The JSON document handed to the sync step is keyed by clinician ID; each
value serializes a ClinicianRecord with camelCase keys.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from .types import ClinicianStatus, SlotStatus


class LocationRef(BaseModel):
    """A distinct location a clinician has slots at."""

    id: str
    name: str


class SlotRecord(BaseModel):
    """
    One bookable appointment opportunity.

    The href is the primary key: two slots with the same href are the same
    opportunity, even across re-scrapes.
    """

    href: str = Field(..., description="Booking URL carrying the timeslot and location codes")
    time: str = Field("", description="Display time (e.g., '9:00 AM')")
    date: str = Field("", description="Long-form display date, derived from isoDate")
    short_date: Optional[str] = Field(None, alias="shortDate", description="Date label as first scraped (write-once)")
    iso_date: Optional[str] = Field(None, alias="isoDate", description="YYYY-MM-DD from the href timestamp")
    location_id: Optional[str] = Field(None, alias="locationId")
    location: Optional[str] = None
    status: SlotStatus = SlotStatus.LISTED

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "href": "https://www.therapyportal.com/p/crownc/appointments/requests/?timeSlot=2025-03-10T09:00&location=250637",
                "time": "9:00 AM",
                "date": "Monday, March 10, 2025",
                "shortDate": "Mon 3/10",
                "isoDate": "2025-03-10",
                "locationId": "250637",
                "location": "Main Office 1",
                "status": "listed",
            }
        }


class ClinicianRecord(BaseModel):
    """A clinician's entry in the dataset."""

    name: str
    clean_name: Optional[str] = Field(None, alias="cleanName")
    searchable_name: Optional[str] = Field(None, alias="searchableName")
    status: Optional[ClinicianStatus] = None
    error_message: Optional[str] = Field(None, alias="errorMessage")
    slots: List[SlotRecord] = Field(default_factory=list)
    locations: List[LocationRef] = Field(default_factory=list)

    def to_json(self) -> Dict[str, Any]:
        data = self.model_dump(by_alias=True, exclude_none=True, mode="json")
        # ok is implicit in the document
        if data.get("status") == ClinicianStatus.OK.value:
            del data["status"]
        return data

    class Config:
        populate_by_name = True


def derive_locations(slots: Any) -> List[Dict[str, str]]:
    """
    Distinct (locationId, location) pairs present in a list of slot dicts.

    Order follows first appearance so the result is stable across runs.
    """
    if not isinstance(slots, list):
        return []

    pairs: Dict[tuple, Dict[str, str]] = {}
    for slot in slots:
        if not isinstance(slot, dict):
            continue
        location_id = slot.get("locationId")
        name = slot.get("location")
        if location_id and name and (location_id, name) not in pairs:
            pairs[(location_id, name)] = {"id": location_id, "name": name}
    return list(pairs.values())
