"""Format slot dates from the timestamps embedded in their hrefs."""

from typing import Any, Dict

from loguru import logger

from ..utils.date_utils import extract_iso_date, long_format


def format_dates(appointments: Dict[str, Any]) -> Dict[str, int]:
    """
    Set isoDate from the href and the long-form date from isoDate.

    The date label the slot carried before its first formatting is kept in
    shortDate; once shortDate exists it is never rewritten.

    Args:
        appointments: Dataset mapping, modified in place

    Returns:
        Stats for the run
    """
    stats = {"updated": 0, "skipped": 0}

    for clinician in appointments.values():
        if not isinstance(clinician, dict) or not isinstance(clinician.get("slots"), list):
            continue

        for slot in clinician["slots"]:
            if not isinstance(slot, dict):
                continue

            iso_date = extract_iso_date(slot.get("href"))
            if iso_date is None:
                stats["skipped"] += 1
                logger.warning(f"Could not extract date from URL: {slot.get('href')}")
                continue

            if "shortDate" not in slot:
                slot["shortDate"] = slot.get("date", "")

            slot["isoDate"] = iso_date
            slot["date"] = long_format(iso_date)
            stats["updated"] += 1

    logger.info(f"Date formatting complete: {stats['updated']} dates updated, {stats['skipped']} skipped")
    return stats
