#!/usr/bin/env python3
"""
Read time slots out of the portal's rendered results view.

The results markup is not stable, so extraction tries an ordered list of
selector strategies. Each strategy is a pure function over the parsed
document returning None when it matches nothing; the first strategy with
matches wins and results are never merged across strategies.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple, Union

from bs4 import BeautifulSoup, Tag

from ..models.types import RosterEntry


RESULTS_MARKER = ".AvailableTimeSlot"
NO_RESULTS_MARKER = ".NoAvailableAppointments"
NO_RESULTS_TEXT = "No available appointments"

CLINICIAN_SELECT = "#InputSelectClinician"

# Ancestors walked when looking for a slot's date header
MAX_HEADER_DEPTH = 5
DATE_HEADER_SELECTORS = (".CalendarDayHeader", '[class*="day-header"]', "h3", "h4")

TIMESLOT_TOKEN = "TimeSlot"


@dataclass
class RawSlot:
    time: str
    href: str
    date_label: str
    element_id: str = ""


Document = Union[str, BeautifulSoup]
Strategy = Callable[[BeautifulSoup], Optional[List[Tag]]]


def parse_document(html: Document) -> BeautifulSoup:
    if isinstance(html, BeautifulSoup):
        return html
    return BeautifulSoup(html or "", "html.parser")


def _matches(elements: Sequence[Tag]) -> Optional[List[Tag]]:
    return list(elements) or None


def by_results_item_class(doc: BeautifulSoup) -> Optional[List[Tag]]:
    return _matches(doc.select(RESULTS_MARKER))


def by_timeslot_href(doc: BeautifulSoup) -> Optional[List[Tag]]:
    return _matches(doc.select('a[href*="timeSlot="]'))


def by_timeslot_class(doc: BeautifulSoup) -> Optional[List[Tag]]:
    return _matches(doc.select(".TimeSlot"))


def by_id_or_onclick_heuristic(doc: BeautifulSoup) -> Optional[List[Tag]]:
    """Anchors whose id, onclick handler or class mentions TimeSlot."""
    found = []
    for a in doc.find_all("a"):
        classes = " ".join(a.get("class") or [])
        if (
            TIMESLOT_TOKEN in (a.get("id") or "")
            or TIMESLOT_TOKEN in (a.get("onclick") or "")
            or TIMESLOT_TOKEN in classes
        ):
            found.append(a)
    return _matches(found)


SLOT_STRATEGIES: List[Tuple[str, Strategy]] = [
    ("results_item_class", by_results_item_class),
    ("timeslot_href", by_timeslot_href),
    ("timeslot_class", by_timeslot_class),
    ("id_onclick_heuristic", by_id_or_onclick_heuristic),
]


def find_date_label(element: Tag, max_depth: int = MAX_HEADER_DEPTH) -> str:
    """
    Walk up at most `max_depth` ancestors looking for a day header.

    Returns:
        Header text, or "" when no header is found within range
    """
    parent = element
    for _ in range(max_depth):
        parent = parent.parent
        if parent is None or not isinstance(parent, Tag):
            break
        for selector in DATE_HEADER_SELECTORS:
            header = parent.select_one(selector)
            if header is not None:
                return header.get_text(" ", strip=True)
    return ""


def to_raw_slot(element: Tag) -> RawSlot:
    return RawSlot(
        time=re.sub(r"\s+", " ", element.get_text(" ", strip=True)),
        href=(element.get("href") or "").strip(),
        date_label=find_date_label(element),
        element_id=element.get("id") or "",
    )


def extract_slots(
    html: Document,
    strategies: Optional[List[Tuple[str, Strategy]]] = None,
) -> Tuple[List[RawSlot], Optional[str]]:
    """
    Extract raw slots with the first strategy that matches anything.

    Args:
        html: Results page HTML (or an already parsed document)
        strategies: Ordered (name, strategy) pairs, defaults to SLOT_STRATEGIES

    Returns:
        Tuple of (raw slots, name of the winning strategy or None)
    """
    doc = parse_document(html)
    for name, strategy in strategies or SLOT_STRATEGIES:
        elements = strategy(doc)
        if elements:
            return [to_raw_slot(el) for el in elements], name
    return [], None


def has_no_results_marker(html: Document) -> bool:
    doc = parse_document(html)
    if doc.select_one(NO_RESULTS_MARKER) is not None:
        return True
    return NO_RESULTS_TEXT in doc.get_text(" ")


def has_results_marker(html: Document) -> bool:
    return parse_document(html).select_one(RESULTS_MARKER) is not None


def parse_roster(html: Document) -> List[RosterEntry]:
    """
    Read the clinician roster from the selection control.

    Placeholder options ("" and "-1") are skipped; duplicates keep the first.
    """
    doc = parse_document(html)
    select = doc.select_one(CLINICIAN_SELECT)
    if select is None:
        return []

    roster: List[RosterEntry] = []
    seen = set()
    for option in select.find_all("option"):
        value = (option.get("value") or "").strip()
        if value in ("", "-1") or value in seen:
            continue
        seen.add(value)
        roster.append(RosterEntry(id=value, name=option.get_text(" ", strip=True)))
    return roster
