"""
VIN-decode field reconciliation.

Walks a decoded provider payload once, in a fixed field order, and writes
normalised values into the listing form without triggering validation or
marking fields dirty. The set of fields written this way is returned as the
provenance set, which replaces (never merges with) the previous decode's set.

Each logical field is read through ``read_field`` which classifies the raw
payload into one of three outcomes:

- ABSENT: no accepted key carries a value (missing, null, "" or
  "Not Applicable"); the form field is left alone.
- INVALID: a value is present but has the wrong type, does not parse, or
  does not map onto the field's enumeration; also left alone.
- PRESENT: the normalised value that gets assigned.

Usage:
    from commercialx.enrichment.reconciler import reconcile
    result = reconcile(payload, form, current_step=wizard.step)
    result.provenance   # frozenset({"year", "make", ...})
"""
from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple

from commercialx.enrichment.derived import roof_height_category
from commercialx.enrichment.enums import DriveType, FuelType, RearWheels
from commercialx.enrichment.normalizer import normalize_enum
from commercialx.listing.form import FormFieldTable
from commercialx.utils.logger import get_logger

logger = get_logger("enrichment.reconciler")

# NHTSA's placeholder for "no value"
NOT_APPLICABLE = "Not Applicable"

_LEADING_NUMBER_RE = re.compile(r"^(\d+(?:\.\d+)?)")
_RANGE_SPLIT_RE = re.compile(r"\s*(?:-|–|\bto\b)\s*", re.IGNORECASE)

_TRUE_STRINGS = {"yes", "true", "standard", "direct", "indirect"}
_FALSE_STRINGS = {"no", "false", "none", "not available"}


class FieldStatus(Enum):
    ABSENT = "absent"
    INVALID = "invalid"
    PRESENT = "present"


class ValueKind(Enum):
    TEXT = "text"
    INTEGER = "integer"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DRIVE_TYPE = "drive_type"
    FUEL_TYPE = "fuel_type"
    REAR_WHEELS = "rear_wheels"
    ROOF_HEIGHT = "roof_height"


@dataclass(frozen=True)
class FieldSpec:
    """A logical form field and the raw payload keys that can feed it."""
    field: str
    keys: Tuple[str, ...]
    kind: ValueKind


@dataclass(frozen=True)
class FieldReading:
    """Outcome of reading one logical field out of a raw payload."""
    status: FieldStatus
    value: Any = None
    source_key: Optional[str] = None


@dataclass
class ReconciliationResult:
    """What a reconciliation pass did to the form."""
    provenance: frozenset
    assigned: Dict[str, Any] = field(default_factory=dict)
    skipped: Tuple[str, ...] = ()
    restore_step: Optional[int] = None

    @property
    def auto_filled_count(self) -> int:
        return len(self.provenance)


# Keys are in precedence order: a later key is only consulted when every
# earlier one is absent.
FIELD_SPECS: Tuple[FieldSpec, ...] = (
    FieldSpec("year", ("year",), ValueKind.INTEGER),
    FieldSpec("make", ("make",), ValueKind.TEXT),
    FieldSpec("model", ("model",), ValueKind.TEXT),
    FieldSpec("series", ("series", "trim"), ValueKind.TEXT),
    FieldSpec("bodyStyle", ("bodyStyle", "bodyClass"), ValueKind.TEXT),
    FieldSpec("fuelType", ("fuelTypePrimary", "fuelType"), ValueKind.FUEL_TYPE),
    FieldSpec("wheelbase", ("wheelbase",), ValueKind.NUMBER),
    FieldSpec("gvwr", ("gvwr",), ValueKind.NUMBER),
    FieldSpec("payload", ("payloadCapacity", "payload"), ValueKind.NUMBER),
    FieldSpec("engineDescription", ("engineDescription", "engineModel"), ValueKind.TEXT),
    FieldSpec("transmission", ("transmission",), ValueKind.TEXT),
    FieldSpec("driveType", ("driveType",), ValueKind.DRIVE_TYPE),
    FieldSpec("heightType", ("overallHeight",), ValueKind.ROOF_HEIGHT),
    FieldSpec("axleDescription", ("axleDescription",), ValueKind.TEXT),
    FieldSpec("rearWheels", ("rearWheels",), ValueKind.REAR_WHEELS),
    FieldSpec("batteryVoltage", ("batteryVoltage",), ValueKind.NUMBER),
    FieldSpec("horsepower", ("horsepower",), ValueKind.NUMBER),
    FieldSpec("mpgCity", ("mpgCity",), ValueKind.NUMBER),
    FieldSpec("mpgHighway", ("mpgHighway",), ValueKind.NUMBER),
    FieldSpec("mpge", ("mpge",), ValueKind.NUMBER),
    FieldSpec("lengthInches", ("overallLength",), ValueKind.NUMBER),
    FieldSpec("widthInches", ("overallWidth",), ValueKind.NUMBER),
    FieldSpec("baseCurbWeightLbs", ("curbWeight",), ValueKind.NUMBER),
    FieldSpec("seatingCapacity", ("seatingCapacity",), ValueKind.INTEGER),
    FieldSpec("gawrFront", ("gawrFront",), ValueKind.NUMBER),
    FieldSpec("gawrRear", ("gawrRear",), ValueKind.NUMBER),
    FieldSpec("towingCapacity", ("towingCapacity",), ValueKind.NUMBER),
    FieldSpec("fuelTankCapacity", ("fuelTankCapacity",), ValueKind.NUMBER),
    FieldSpec("backupCamera", ("backupCamera",), ValueKind.BOOLEAN),
    FieldSpec("bluetoothCapable", ("bluetoothCapable",), ValueKind.BOOLEAN),
    FieldSpec("tpms", ("tpms",), ValueKind.BOOLEAN),
)

RECONCILED_FIELDS = tuple(spec.field for spec in FIELD_SPECS)


# ---------------------------------------------------------------------------
# Value conversion
# ---------------------------------------------------------------------------

def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        stripped = value.strip()
        return stripped == "" or stripped == NOT_APPLICABLE
    return False


def to_number(value: Any) -> Optional[float]:
    """
    Convert a raw measurement to a non-negative finite number.

    Strings may carry units ("26001 lbs"), a range ("6001 - 7000") or a list
    ("26001, 7000"); the first value wins. Booleans are not numbers.

    Returns:
        int when the value is integral, float otherwise, or None.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = value
    elif isinstance(value, str):
        text = value.strip().split(",")[0]
        text = _RANGE_SPLIT_RE.split(text, maxsplit=1)[0].strip()
        match = _LEADING_NUMBER_RE.match(text)
        if not match:
            return None
        number = float(match.group(1))
    else:
        return None

    try:
        finite = math.isfinite(number)
    except OverflowError:
        # int beyond float range
        return None
    if not finite or number < 0:
        return None
    if isinstance(number, float) and number.is_integer() and not isinstance(value, float):
        return int(number)
    return number


def to_integer(value: Any) -> Optional[int]:
    number = to_number(value)
    if number is None:
        return None
    if isinstance(number, float):
        if not number.is_integer():
            return None
        return int(number)
    return number


def to_boolean(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        folded = value.strip().lower()
        if folded in _TRUE_STRINGS:
            return True
        if folded in _FALSE_STRINGS:
            return False
    return None


def to_text(value: Any) -> Optional[str]:
    if isinstance(value, str):
        return value.strip() or None
    return None


def _convert(kind: ValueKind, raw: Any) -> Any:
    if kind is ValueKind.TEXT:
        return to_text(raw)
    if kind is ValueKind.INTEGER:
        return to_integer(raw)
    if kind is ValueKind.NUMBER:
        return to_number(raw)
    if kind is ValueKind.BOOLEAN:
        return to_boolean(raw)
    if kind is ValueKind.DRIVE_TYPE:
        return normalize_enum(raw, DriveType)
    if kind is ValueKind.FUEL_TYPE:
        return normalize_enum(raw, FuelType)
    if kind is ValueKind.REAR_WHEELS:
        return normalize_enum(raw, RearWheels)
    if kind is ValueKind.ROOF_HEIGHT:
        height = to_number(raw)
        return roof_height_category(height) if height is not None else None
    raise ValueError(f"Unknown value kind: {kind}")


def read_field(payload: Mapping[str, Any], spec: FieldSpec) -> FieldReading:
    """Read one logical field, honouring key precedence."""
    for key in spec.keys:
        raw = payload.get(key)
        if _is_blank(raw):
            continue
        value = _convert(spec.kind, raw)
        if value is None:
            return FieldReading(FieldStatus.INVALID, raw, key)
        return FieldReading(FieldStatus.PRESENT, value, key)
    return FieldReading(FieldStatus.ABSENT)


# ---------------------------------------------------------------------------
# Reconciliation pass
# ---------------------------------------------------------------------------

def reconcile(
    payload: Mapping[str, Any],
    form: FormFieldTable,
    current_step: Optional[int] = None,
) -> ReconciliationResult:
    """
    Apply a decoded payload to the form in a single pass.

    Args:
        payload: Raw decode result (provider keys -> heterogeneous values)
        form: Form field table to write into
        current_step: Wizard step visible when the decode landed; handed
            back untouched as ``restore_step``

    Returns:
        ReconciliationResult with the replacement provenance set
    """
    assigned: Dict[str, Any] = {}
    skipped = []

    for spec in FIELD_SPECS:
        reading = read_field(payload, spec)
        if reading.status is FieldStatus.PRESENT:
            form.set_value(spec.field, reading.value, validate=False, dirty=False)
            assigned[spec.field] = reading.value
        elif reading.status is FieldStatus.INVALID:
            skipped.append(spec.field)

    if skipped:
        logger.info(f"Decode left {len(skipped)} field(s) unset: {', '.join(skipped)}")
    logger.debug(f"Reconciled {len(assigned)} field(s) from decode payload")

    return ReconciliationResult(
        provenance=frozenset(assigned),
        assigned=assigned,
        skipped=tuple(skipped),
        restore_step=current_step,
    )
