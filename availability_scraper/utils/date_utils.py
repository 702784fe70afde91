"""Date utilities for slot hrefs and display dates."""

import re
from datetime import date
from typing import Optional


# Portal hrefs embed the slot start as timeSlot=2025-03-10T09:00
TIMESLOT_DATE_RE = re.compile(r"timeSlot=(\d{4}-\d{2}-\d{2})T")

WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
MONTHS = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)


def parse_iso_date(value: str) -> Optional[date]:
    """Parse YYYY-MM-DD, returning None for anything that is not a real date."""
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        return None


def extract_iso_date(href: str) -> Optional[str]:
    """
    Extract the slot date embedded in a booking href.

    Args:
        href: Slot href (e.g., "...&timeSlot=2025-03-10T09:00&location=250637")

    Returns:
        "YYYY-MM-DD" when the href carries a valid timestamp, else None
    """
    if not isinstance(href, str):
        return None
    match = TIMESLOT_DATE_RE.search(href)
    if not match or parse_iso_date(match.group(1)) is None:
        return None
    return match.group(1)


def long_format(iso_date: str) -> Optional[str]:
    """
    Canonical long-form display date.

    Independent of the process locale, e.g. "2025-03-10" -> "Monday, March 10, 2025".
    """
    d = parse_iso_date(iso_date)
    if d is None:
        return None
    return f"{WEEKDAYS[d.weekday()]}, {MONTHS[d.month - 1]} {d.day}, {d.year}"
