"""
Data-quality scoring for submitted vehicle listings.

The score is what the catalog stores as the listing's confidence:

    overall = 0.3 * completeness + 0.5 * accuracy + 0.2 * consistency

clamped to [0, 1].
"""
from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterable, Mapping, Optional

CRITICAL_FIELDS = (
    "bodyStyle", "wheelbase", "gvwr", "payload",
    "engineDescription", "transmission", "driveType", "seatingCapacity",
)

OPTIONAL_FIELDS = (
    "horsepower", "torqueFtLbs", "mpgCity", "mpgHighway",
    "lengthInches", "widthInches", "heightInches",
    "gawrFront", "gawrRear", "towingCapacity",
)

SOURCE_RELIABILITY = {
    "vin_decode_both": 1.0,
    "vin_decode_nhtsa": 0.8,
    "vin_decode_epa": 0.7,
    "oem_api": 0.9,
    "admin_curated": 0.95,
    "dealer_input": 0.6,
    "manual_entry": 0.4,
}

# Applied when NHTSA and EPA both contributed and could disagree
TWO_SOURCE_CONSISTENCY = 0.9


@dataclass
class QualityFactors:
    has_vin_decode: bool
    has_epa_data: bool
    has_dealer_verification: bool
    field_population: float
    data_source_reliability: float


@dataclass
class QualityScore:
    overall: float
    completeness: float
    accuracy: float
    consistency: float
    factors: QualityFactors

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _populated(value: Any) -> bool:
    return value is not None and value != ""


def field_population(config: Mapping[str, Any]) -> float:
    """Critical fields weigh 70%, optional fields 30%."""
    critical = sum(1 for f in CRITICAL_FIELDS if _populated(config.get(f)))
    optional = sum(1 for f in OPTIONAL_FIELDS if _populated(config.get(f)))
    return (critical / len(CRITICAL_FIELDS)) * 0.7 + (optional / len(OPTIONAL_FIELDS)) * 0.3


def source_reliability(data_source: Optional[str]) -> float:
    return SOURCE_RELIABILITY.get(data_source or "manual_entry", 0.5)


def data_source_for(provenance: Iterable[str], sources: Iterable[str]) -> str:
    """
    Name the listing's data source from what the decode contributed.

    No auto-filled fields means the dealer typed everything in.
    """
    if not set(provenance):
        return "manual_entry"
    sources = set(sources)
    if {"nhtsa", "epa"} <= sources:
        return "vin_decode_both"
    if "nhtsa" in sources:
        return "vin_decode_nhtsa"
    if "epa" in sources:
        return "vin_decode_epa"
    return "manual_entry"


def calculate_vehicle_quality_score(
    config: Mapping[str, Any],
    needs_verification: bool = True,
    data_source: Optional[str] = None,
    epa_available: bool = False,
) -> QualityScore:
    """
    Score one vehicle configuration.

    Args:
        config: Listing field values (form field names)
        needs_verification: True until a dealer has confirmed the specs
        data_source: One of SOURCE_RELIABILITY's keys
        epa_available: Whether EPA data took part in the decode
    """
    data_source = data_source or "manual_entry"
    factors = QualityFactors(
        has_vin_decode="vin_decode" in data_source,
        has_epa_data="epa" in data_source or "both" in data_source,
        has_dealer_verification=not needs_verification,
        field_population=field_population(config),
        data_source_reliability=source_reliability(data_source),
    )

    completeness = factors.field_population
    accuracy = (
        (0.4 if factors.has_vin_decode else 0.0)
        + (0.3 if factors.has_epa_data else 0.0)
        + (0.3 if factors.has_dealer_verification else 0.15)
        + factors.data_source_reliability * 0.3
    )

    consistency = 1.0
    if factors.has_vin_decode and factors.has_epa_data and epa_available:
        consistency = TWO_SOURCE_CONSISTENCY

    overall = completeness * 0.3 + accuracy * 0.5 + consistency * 0.2
    return QualityScore(
        overall=min(1.0, max(0.0, overall)),
        completeness=completeness,
        accuracy=accuracy,
        consistency=consistency,
        factors=factors,
    )
