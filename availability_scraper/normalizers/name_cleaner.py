"""Derive display and search names from the scraped clinician name."""

import re
from typing import Any, Dict, Tuple

from loguru import logger


REMOTE_SUFFIX_RE = re.compile(r"\s*-\s*Remote\s*$", re.I)
PARENTHETICAL_RE = re.compile(r"\s*\([^)]*\)")
LEADING_TITLE_RE = re.compile(r"^Dr\.?\s+", re.I)
CREDENTIAL_SUFFIX_RE = re.compile(
    r"\s*\b(Ph\.?D\.?|Psy\.?D\.?|Dr\.|MD|LCSW|LMSW|LSW|LMHC|LMFT|MFT|LPC|Psychologist|Counselor|Therapist)\.?$",
    re.I,
)
# Case-sensitive so names ending in "vi" or "i" survive
GENERATIONAL_SUFFIX_RE = re.compile(r"\s+([JS]r\.?|I{1,3}|IV|VI?)$")
NON_ALNUM_RE = re.compile(r"[^a-zA-Z0-9]")


def clean_name(raw_name: str) -> Tuple[str, str]:
    """
    Clean a portal display name.

    Args:
        raw_name: Name as scraped (e.g., "Jane Smith, PhD - Remote")

    Returns:
        Tuple of (cleanName, searchableName), e.g. ("Jane Smith", "janesmith")
    """
    name = REMOTE_SUFFIX_RE.sub("", raw_name.strip())
    name = PARENTHETICAL_RE.sub("", name)

    # Titles after a comma ("Jane Smith, PhD, LCSW")
    name = name.split(",")[0].strip()
    name = LEADING_TITLE_RE.sub("", name)

    # Credentials can stack without commas ("John Doe LCSW MFT")
    previous = None
    while previous != name:
        previous = name
        name = CREDENTIAL_SUFFIX_RE.sub("", name).strip()
        name = GENERATIONAL_SUFFIX_RE.sub("", name).strip()

    name = re.sub(r"\s+", " ", name).strip(" -")
    if not name:
        name = re.sub(r"\s+", " ", raw_name).strip()

    return name, NON_ALNUM_RE.sub("", name).casefold()


def clean_names(appointments: Dict[str, Any]) -> Dict[str, int]:
    """
    Set cleanName and searchableName on every clinician, always from `name`.

    Args:
        appointments: Dataset mapping, modified in place

    Returns:
        Stats for the run
    """
    stats = {"clinicians_processed": 0, "names_changed": 0}

    for clinician in appointments.values():
        if not isinstance(clinician, dict) or not isinstance(clinician.get("name"), str) or not clinician["name"]:
            continue
        stats["clinicians_processed"] += 1

        cleaned, searchable = clean_name(clinician["name"])
        if cleaned != clinician["name"]:
            stats["names_changed"] += 1

        clinician["cleanName"] = cleaned
        clinician["searchableName"] = searchable

    logger.info(f"Cleaned names for {stats['clinicians_processed']} clinicians")
    return stats
