"""Location ID to name mapping for the scheduling portal."""

from typing import Dict


LOCATIONS: Dict[str, str] = {
    "250637": "Main Office 1",
    "232862": "Main Office 2",
    "232863": "Main Office 3",
    "232864": "Main Office 4",
    "232865": "Main Office 5",
    "232866": "Main Office 6",
    "172794": "Telehealth",
    "233904": "Hamaspik Residence",
}

# Reverse mapping for lookups by name
LOCATION_IDS: Dict[str, str] = {name: location_id for location_id, name in LOCATIONS.items()}
