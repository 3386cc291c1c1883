"""
Enumeration normalisation for decoded vehicle data.

Maps free-text provider values (NHTSA / EPA wording) onto the closed
enumerations the listing form accepts. Matching is deliberately strict:

1. exact match against a curated synonym table (first entry wins),
2. case-insensitive exact match against the enumeration's own codes,
3. otherwise unmapped (``None``).

There is no substring or fuzzy matching; a dealer can always fill in a
field the normaliser could not map.
"""
from __future__ import annotations

from enum import Enum
from typing import Dict, Optional, Sequence, Tuple, Type, TypeVar

from commercialx.enrichment.enums import Confidence, DriveType, FuelType, RearWheels

E = TypeVar("E", bound=Enum)


# ---------------------------------------------------------------------------
# Synonym tables
#
# Ordered (raw, member) pairs.  Raw strings are compared after trimming,
# case-sensitively, exactly as the providers spell them.
# ---------------------------------------------------------------------------

DRIVE_TYPE_SYNONYMS: Tuple[Tuple[str, DriveType], ...] = (
    ("Rear Wheel Drive", DriveType.RWD),
    ("Rear-Wheel Drive", DriveType.RWD),
    ("Front Wheel Drive", DriveType.FWD),
    ("Front-Wheel Drive", DriveType.FWD),
    ("All Wheel Drive", DriveType.AWD),
    ("All-Wheel Drive", DriveType.AWD),
    ("Four Wheel Drive", DriveType.FOUR_WD),
    ("Four-Wheel Drive", DriveType.FOUR_WD),
    ("4-Wheel Drive", DriveType.FOUR_WD),
    ("4-Wheel or All-Wheel Drive", DriveType.AWD),
    ("Part-time 4-Wheel Drive", DriveType.FOUR_WD),
    ("4WD/4-Wheel Drive/4x4", DriveType.FOUR_WD),
    ("AWD/All-Wheel Drive", DriveType.AWD),
    ("RWD/Rear-Wheel Drive", DriveType.RWD),
    ("FWD/Front-Wheel Drive", DriveType.FWD),
    ("4x2", DriveType.RWD),
    ("4x4", DriveType.FOUR_WD),
)

FUEL_TYPE_SYNONYMS: Tuple[Tuple[str, FuelType], ...] = (
    ("Gasoline", FuelType.GASOLINE),
    ("Regular Gasoline", FuelType.GASOLINE),
    ("Premium Gasoline", FuelType.GASOLINE),
    ("Midgrade Gasoline", FuelType.GASOLINE),
    ("Diesel", FuelType.DIESEL),
    ("Electric", FuelType.ELECTRIC),
    ("Electricity", FuelType.ELECTRIC),
    ("Compressed Natural Gas (CNG)", FuelType.CNG),
    ("Compressed Natural Gas", FuelType.CNG),
    ("Liquefied Petroleum Gas (Propane or LPG)", FuelType.PROPANE),
    ("Propane", FuelType.PROPANE),
    ("Hybrid", FuelType.HYBRID),
)

REAR_WHEEL_SYNONYMS: Tuple[Tuple[str, RearWheels], ...] = (
    ("Single Rear Wheels", RearWheels.SRW),
    ("Single Rear Wheel", RearWheels.SRW),
    ("Single", RearWheels.SRW),
    ("Dual Rear Wheels", RearWheels.DRW),
    ("Dual Rear Wheel", RearWheels.DRW),
    ("Dual", RearWheels.DRW),
)

SYNONYM_TABLES: Dict[Type[Enum], Sequence[Tuple[str, Enum]]] = {
    DriveType: DRIVE_TYPE_SYNONYMS,
    FuelType: FUEL_TYPE_SYNONYMS,
    RearWheels: REAR_WHEEL_SYNONYMS,
    Confidence: (),
}


def normalize_enum(raw, enum_cls: Type[E]) -> Optional[E]:
    """Map ``raw`` onto a member of ``enum_cls``.

    Returns ``None`` when the value is empty, not a string, or matches
    neither the synonym table nor a member code.
    """
    if not isinstance(raw, str):
        return None
    value = raw.strip()
    if not value:
        return None

    for synonym, member in SYNONYM_TABLES.get(enum_cls, ()):
        if value == synonym:
            return member

    folded = value.casefold()
    for member in enum_cls:
        if folded == str(member.value).casefold():
            return member
    return None


def normalize_drive_type(raw) -> Optional[DriveType]:
    return normalize_enum(raw, DriveType)


def normalize_fuel_type(raw) -> Optional[FuelType]:
    return normalize_enum(raw, FuelType)


def normalize_rear_wheels(raw) -> Optional[RearWheels]:
    return normalize_enum(raw, RearWheels)


def normalize_confidence(raw) -> Optional[Confidence]:
    return normalize_enum(raw, Confidence)
