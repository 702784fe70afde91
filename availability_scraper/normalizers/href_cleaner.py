"""
Href sanitation: the first normalization stage.

Slots are identified by their href, so a slot without one (or with the
"#" placeholder the scraper writes for anchors lacking an href) cannot be
booked or synced and is dropped here.
"""

from typing import Any, Dict

from loguru import logger

from ..models.types import SlotStatus


def is_valid_href(href: Any) -> bool:
    return isinstance(href, str) and href.strip() not in ("", "#")


def clean_hrefs(appointments: Dict[str, Any]) -> Dict[str, int]:
    """
    Drop invalid slots and make every record structurally sound.

    - `slots` always becomes a list (a lone slot object is wrapped)
    - slots with a missing or "#" href are removed
    - slots without a status are marked listed (existing statuses are kept)
    - a record without a name gets "Clinician <id>"

    Args:
        appointments: Dataset mapping, modified in place

    Returns:
        Stats for the run
    """
    stats = {"clinicians": 0, "slots_removed": 0, "statuses_defaulted": 0, "names_backfilled": 0}

    for clinician_id, clinician in appointments.items():
        if not isinstance(clinician, dict):
            continue
        stats["clinicians"] += 1

        if not clinician.get("name"):
            clinician["name"] = f"Clinician {clinician_id}"
            stats["names_backfilled"] += 1

        slots = clinician.get("slots")
        if slots is None:
            slots = []
        elif not isinstance(slots, list):
            slots = [slots]

        valid = [slot for slot in slots if isinstance(slot, dict) and is_valid_href(slot.get("href"))]
        stats["slots_removed"] += len(slots) - len(valid)

        for slot in valid:
            if not slot.get("status"):
                slot["status"] = SlotStatus.LISTED.value
                stats["statuses_defaulted"] += 1

        clinician["slots"] = valid

    logger.info(
        f"Cleaned hrefs for {stats['clinicians']} clinicians "
        f"({stats['slots_removed']} invalid slots removed)"
    )
    return stats
