"""
Closed catalog of ice rinks used in the schedule exports.

Each code from the "ZS" column maps to one address label (used as LOCATION)
and a one-way travel estimate in minutes (used for the arrival reminder).
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Mapping, Tuple

from .errors import UnknownVenue


@dataclass(frozen=True)
class Venue:
    code: str
    label: str
    travel_minutes: int


# code, label, travel minutes
_VENUE_TABLE: Tuple[Tuple[str, str, int], ...] = (
    ("BE", "Beroun, Zimní stadion", 15),
    ("KL", "Kladno, ČEZ STADION Kladno", 45),
    ("KD", "Kladno, ČEZ STADION Kladno - malá hala", 45),
    ("PB", "Příbram, Zimní stadion", 60),
    ("MP", "Příbram, Zimní stadion - malá hala", 60),
    ("HC", "Hořovice, Zimní stadion", 30),
    ("KR", "Kralupy nad Vltavou, Městský zimní stadion", 75),
    ("CE", "Černošice, Zimní stadion", 40),
    ("K", "Praha - Kobra, Zimní stadion HC Kobra Praha", 60),
    ("RA", "Rakovník, Zimní stadion města Rakovníka", 45),
    ("RD", "Praha, SPM ARENA", 45),
    ("SL", "VSH Slaný, Zimní stadion", 60),
    ("H", "Praha - Hvězda, Zimní stadion HC Hvězda Praha", 45),
    ("BN", "Benešov, Zimní stadion", 90),
    ("SD", "Sedlčany, Zimní stadion", 75),
    ("S", "Praha - Holešovice, Sportovní hala Fortuna", 60),
    ("V", "Praha - Výstaviště, Malá sportovní hala", 45),
    ("RY", "Říčany u Prahy, Com-Sys Ice Arena", 45),
    ("ME", "Mělník, Zimní stadion", 70),
    ("NB", "Nymburk, Zimní stadion", 75),
    ("VP", "Velké Popovice, Zimní stadion", 45),
    ("NE", "Neratovice, Buldok Arena", 60),
    ("TM", "Třemošná, Sport Aréna", 45),
    ("SB", "Soběslav, ZS TJ Spartak Soběslav", 100),
    ("KT", "Klatovy, Zimní stadion města Klatov", 70),
    ("DO", "Domažlice, Zimní stadion", 90),
    ("JH", "Jindřichův Hradec, Zimní stadion", 120),
    ("PK", "Plzeň - Košutka, ICE ARENA Plzeň", 45),
    ("HU", "Humpolec, Zimní stadion", 80),
    ("RO", "Rokycany, Zimní stadion", 30),
    ("MI", "Milevsko, Zimní stadion", 80),
    ("VM", "Vlašim, Zimní stadion", 70),
    ("KH", "Kutná Hora, Zimní stadion", 90),
    ("BJ", "Benátky nad Jizerou, Zimní stadion", 70),
    ("ČA", "Čáslav, Zimní stadion", 90),
    ("KO", "Kolín, Zimní stadion", 90),
)


def build_catalog(table: Iterable[Tuple[str, str, int]]) -> Mapping[str, Venue]:
    """Build a read-only code -> Venue mapping, rejecting duplicates and empty data."""
    catalog = {}
    for code, label, minutes in table:
        if not code or code != code.strip():
            raise ValueError(f"Invalid venue code {code!r}")
        if code in catalog:
            raise ValueError(f"Duplicate venue code {code!r}")
        if not label.strip():
            raise ValueError(f"Venue {code!r} has an empty label")
        if int(minutes) <= 0:
            raise ValueError(f"Venue {code!r} has non-positive travel time {minutes!r}")
        catalog[code] = Venue(code=code, label=label, travel_minutes=int(minutes))
    return MappingProxyType(catalog)


VENUES: Mapping[str, Venue] = build_catalog(_VENUE_TABLE)


def lookup(code: str) -> Venue:
    try:
        return VENUES[code]
    except KeyError:
        raise UnknownVenue(code) from None
