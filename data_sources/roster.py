"""
Monitored Roster - The fixed list of countries the pipeline scores.
"""

import re
from typing import Iterable, Tuple

from core.exceptions import RosterError
from data_sources.models import MonitoredEntity


SUB_SAHARAN_AFRICA = "Sub-Saharan Africa"
NORTH_AFRICA = "North Africa"
MIDDLE_EAST = "Middle East"
SOUTH_ASIA = "South Asia"
EAST_ASIA = "East Asia"
SOUTHEAST_ASIA = "Southeast Asia"
EUROPE = "Europe"
AMERICAS = "Americas"
OCEANIA = "Oceania"

_ISO2 = re.compile(r"^[A-Z]{2}$")


MONITORED_ENTITIES: Tuple[MonitoredEntity, ...] = (
    # Africa
    MonitoredEntity("NG", "Nigeria", SUB_SAHARAN_AFRICA),
    MonitoredEntity("ET", "Ethiopia", SUB_SAHARAN_AFRICA),
    MonitoredEntity("EG", "Egypt", NORTH_AFRICA),
    MonitoredEntity("CD", "DR Congo", SUB_SAHARAN_AFRICA),
    MonitoredEntity("ZA", "South Africa", SUB_SAHARAN_AFRICA),
    MonitoredEntity("KE", "Kenya", SUB_SAHARAN_AFRICA),
    MonitoredEntity("SD", "Sudan", NORTH_AFRICA),
    MonitoredEntity("TZ", "Tanzania", SUB_SAHARAN_AFRICA),
    # Middle East
    MonitoredEntity("SA", "Saudi Arabia", MIDDLE_EAST),
    MonitoredEntity("IQ", "Iraq", MIDDLE_EAST),
    MonitoredEntity("YE", "Yemen", MIDDLE_EAST),
    MonitoredEntity("SY", "Syria", MIDDLE_EAST),
    MonitoredEntity("JO", "Jordan", MIDDLE_EAST),
    MonitoredEntity("LB", "Lebanon", MIDDLE_EAST),
    # South Asia
    MonitoredEntity("IN", "India", SOUTH_ASIA),
    MonitoredEntity("PK", "Pakistan", SOUTH_ASIA),
    MonitoredEntity("BD", "Bangladesh", SOUTH_ASIA),
    MonitoredEntity("AF", "Afghanistan", SOUTH_ASIA),
    MonitoredEntity("NP", "Nepal", SOUTH_ASIA),
    # East & Southeast Asia
    MonitoredEntity("CN", "China", EAST_ASIA),
    MonitoredEntity("JP", "Japan", EAST_ASIA),
    MonitoredEntity("ID", "Indonesia", SOUTHEAST_ASIA),
    MonitoredEntity("PH", "Philippines", SOUTHEAST_ASIA),
    MonitoredEntity("VN", "Vietnam", SOUTHEAST_ASIA),
    MonitoredEntity("MM", "Myanmar", SOUTHEAST_ASIA),
    MonitoredEntity("TH", "Thailand", SOUTHEAST_ASIA),
    MonitoredEntity("KR", "South Korea", EAST_ASIA),
    # Europe
    MonitoredEntity("DE", "Germany", EUROPE),
    MonitoredEntity("FR", "France", EUROPE),
    MonitoredEntity("GB", "United Kingdom", EUROPE),
    MonitoredEntity("IT", "Italy", EUROPE),
    MonitoredEntity("UA", "Ukraine", EUROPE),
    MonitoredEntity("PL", "Poland", EUROPE),
    MonitoredEntity("RU", "Russia", EUROPE),
    MonitoredEntity("TR", "Turkey", EUROPE),
    # Americas
    MonitoredEntity("US", "United States", AMERICAS),
    MonitoredEntity("BR", "Brazil", AMERICAS),
    MonitoredEntity("MX", "Mexico", AMERICAS),
    MonitoredEntity("CO", "Colombia", AMERICAS),
    MonitoredEntity("AR", "Argentina", AMERICAS),
    MonitoredEntity("VE", "Venezuela", AMERICAS),
    MonitoredEntity("PE", "Peru", AMERICAS),
    MonitoredEntity("HT", "Haiti", AMERICAS),
    # Oceania
    MonitoredEntity("AU", "Australia", OCEANIA),
)


def validate_roster(entities: Iterable[MonitoredEntity]) -> Tuple[MonitoredEntity, ...]:
    """
    Check a roster and return it as a tuple.

    Raises:
        RosterError: empty roster, duplicate or malformed ISO code,
            missing name or region
    """
    roster = tuple(entities)
    if not roster:
        raise RosterError("Monitored roster is empty")

    seen = set()
    for entity in roster:
        if not isinstance(entity.iso2, str) or not _ISO2.match(entity.iso2):
            raise RosterError(f"Invalid ISO code {entity.iso2!r}", iso2=str(entity.iso2))
        if entity.iso2 in seen:
            raise RosterError(f"Duplicate ISO code {entity.iso2}", iso2=entity.iso2)
        if not entity.name or not entity.region:
            raise RosterError(f"{entity.iso2} is missing a name or region", iso2=entity.iso2)
        seen.add(entity.iso2)

    return roster
