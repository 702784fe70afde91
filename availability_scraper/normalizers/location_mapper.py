"""
Extract location information from slot hrefs.

No scraping needed: every booking href carries the portal's location code,
which resolves through the static location table.
"""

import re
from typing import Any, Dict, Optional

from loguru import logger

from ..locations import LOCATION_IDS, LOCATIONS
from ..models.records import derive_locations


LOCATION_CODE_RE = re.compile(r"location=(\d+)")


def extract_location_id(href: Any) -> Optional[str]:
    if not isinstance(href, str):
        return None
    match = LOCATION_CODE_RE.search(href)
    return match.group(1) if match else None


def map_locations(appointments: Dict[str, Any]) -> Dict[str, int]:
    """
    Set locationId/location on every slot and recompute each clinician's locations.

    A slot whose href carries no location code keeps what it already has;
    a name without an ID (hand-edited data) is resolved through the reverse
    table.

    Args:
        appointments: Dataset mapping, modified in place

    Returns:
        Stats for the run
    """
    stats = {"clinicians": 0, "total_slots": 0, "locations_added": 0, "unknown_codes": 0}

    for clinician in appointments.values():
        if not isinstance(clinician, dict):
            continue
        stats["clinicians"] += 1

        slots = clinician.get("slots")
        if not isinstance(slots, list):
            clinician["locations"] = []
            continue

        for slot in slots:
            if not isinstance(slot, dict):
                continue
            stats["total_slots"] += 1

            location_id = extract_location_id(slot.get("href"))
            if location_id is None and not slot.get("locationId") and slot.get("location") in LOCATION_IDS:
                location_id = LOCATION_IDS[slot["location"]]
            if location_id is None:
                continue

            slot["locationId"] = location_id
            name = LOCATIONS.get(location_id)
            if name is None:
                stats["unknown_codes"] += 1
                logger.warning(f"Unknown location code {location_id} in {slot.get('href')}")
                continue

            slot["location"] = name
            stats["locations_added"] += 1

        clinician["locations"] = derive_locations(slots)

    logger.info(
        f"Processed {stats['clinicians']} clinicians with {stats['total_slots']} slots, "
        f"location added to {stats['locations_added']}"
    )
    return stats
