"""Browser automation services."""

from .browser_pool import BrowserSessionManager
from .portal_form import PortalFormDriver, SearchOutcome, SearchResult
from .slot_extractor import RawSlot, extract_slots, parse_roster

__all__ = [
    "BrowserSessionManager",
    "PortalFormDriver",
    "SearchOutcome",
    "SearchResult",
    "RawSlot",
    "extract_slots",
    "parse_roster",
]
