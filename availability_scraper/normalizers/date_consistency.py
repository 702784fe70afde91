"""
Repair drift between a slot's isoDate and its display date.

Runs last: whatever happened to `date` before (manual edits, an older
formatter), isoDate is authoritative. shortDate is left untouched.
"""

from typing import Any, Dict

from loguru import logger

from ..utils.date_utils import long_format


def fix_date_consistency(appointments: Dict[str, Any]) -> Dict[str, int]:
    """
    Overwrite `date` wherever it disagrees with the long form of `isoDate`.

    Args:
        appointments: Dataset mapping, modified in place

    Returns:
        Stats for the run
    """
    stats = {"total_slots": 0, "fixed_slots": 0, "invalid_iso_dates": 0}

    for clinician_id, clinician in appointments.items():
        if not isinstance(clinician, dict) or not isinstance(clinician.get("slots"), list):
            continue

        for slot in clinician["slots"]:
            if not isinstance(slot, dict):
                continue
            stats["total_slots"] += 1
            if not slot.get("isoDate"):
                continue

            correct = long_format(slot["isoDate"])
            if correct is None:
                stats["invalid_iso_dates"] += 1
                logger.error(f"Invalid isoDate {slot['isoDate']!r} for clinician {clinician_id}")
                continue

            if slot.get("date") != correct:
                logger.debug(
                    f"Fixing date for clinician {clinician_id}: "
                    f"{slot.get('date') or 'missing'} -> {correct} (isoDate {slot['isoDate']})"
                )
                slot["date"] = correct
                stats["fixed_slots"] += 1

    logger.info(f"Date consistency: fixed {stats['fixed_slots']}/{stats['total_slots']} slots")
    return stats
