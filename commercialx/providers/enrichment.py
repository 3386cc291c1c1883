"""
Vehicle data enrichment: NHTSA + EPA merged into one decode payload.

NHTSA is required and authoritative for identity, classification,
dimensions and weights. EPA is optional; when it answers it is preferred
for fuel type, engine description, transmission and drive type, and it is
the only source of fuel economy figures.

The merged payload uses the same keys the reconciler reads, plus
``dataSources``, ``nhtsaConfidence`` and ``epaAvailable``.
"""
from typing import Any, Dict, List, Optional

from commercialx.core.config import CommercialXConfig, get_config
from commercialx.core.errors import VINDecodeError
from commercialx.enrichment.enums import Confidence
from commercialx.enrichment.normalizer import normalize_drive_type
from commercialx.providers.epa import EPAClient, normalize_epa_fuel_type
from commercialx.providers.nhtsa import NHTSAClient, validate_vin
from commercialx.utils.cache import TTLCache, epa_key, nhtsa_key
from commercialx.utils.logger import get_logger

logger = get_logger("providers.enrichment")

CONFIDENCE_FIELDS = ("year", "make", "model", "bodyClass", "gvwr", "engineModel", "transmission")

# NHTSA keys copied into the merged payload as-is
NHTSA_PASSTHROUGH = (
    "year", "make", "model", "trim", "series", "vehicleType", "bodyClass", "bodyStyle",
    "transmissionStyle", "engineModel", "engineConfiguration", "wheelbase",
    "overallLength", "overallWidth", "overallHeight", "curbWeight", "gvwr",
    "payloadCapacity", "gawrFront", "gawrRear", "towingCapacity", "fuelTankCapacity",
    "seatingCapacity", "horsepower", "batteryVoltage", "batteryKWh", "axleDescription",
    "backupCamera", "bluetoothCapable", "tpms", "plantCountry",
)


def determine_nhtsa_confidence(data: Dict[str, Any]) -> Confidence:
    """Share of critical fields NHTSA filled: >=80% high, >=50% medium."""
    filled = sum(1 for key in CONFIDENCE_FIELDS if data.get(key) is not None)
    share = filled / len(CONFIDENCE_FIELDS)
    if share >= 0.8:
        return Confidence.HIGH
    if share >= 0.5:
        return Confidence.MEDIUM
    return Confidence.LOW


def rear_wheels_from(wheels: Optional[str]) -> Optional[str]:
    if not wheels:
        return None
    if "Dual" in wheels:
        return "DRW"
    if "Single" in wheels:
        return "SRW"
    return None


def merge_vehicle_data(nhtsa: Dict[str, Any], epa: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Combine an NHTSA decode with an optional EPA record."""
    epa = epa or {}
    merged: Dict[str, Any] = {key: nhtsa.get(key) for key in NHTSA_PASSTHROUGH}

    epa_drive = normalize_drive_type(epa.get("driveType"))
    merged.update({
        "fuelTypePrimary": normalize_epa_fuel_type(epa.get("fuelType")) or nhtsa.get("fuelTypePrimary"),
        "engineDescription": epa.get("engineDescription") or nhtsa.get("engineModel"),
        "transmission": epa.get("transmission") or nhtsa.get("transmission"),
        "driveType": epa_drive.value if epa_drive else nhtsa.get("driveType"),
        "engineCylinders": epa.get("cylinders") or nhtsa.get("engineCylinders"),
        "displacementL": epa.get("displacementL") or nhtsa.get("displacementL"),
        "rearWheels": rear_wheels_from(nhtsa.get("rearWheels")),
        "wheels": nhtsa.get("rearWheels"),
        "mpgCity": epa.get("mpgCity"),
        "mpgHighway": epa.get("mpgHighway"),
        "mpgCombined": epa.get("mpgCombined"),
        "mpge": epa.get("mpge"),
        "electricRange": epa.get("electricRange"),
        "epaId": epa.get("epaId"),
    })
    return {key: value for key, value in merged.items() if value is not None}


class VehicleEnrichmentService:
    """Decode a VIN against NHTSA and EPA, with per-provider caching."""

    def __init__(
        self,
        nhtsa: Optional[NHTSAClient] = None,
        epa: Optional[EPAClient] = None,
        cache: Optional[TTLCache] = None,
        config: Optional[CommercialXConfig] = None,
    ):
        self.config = config or get_config()
        self.nhtsa = nhtsa or NHTSAClient()
        self.epa = epa if epa is not None else (EPAClient() if self.config.epa_enabled else None)
        self.cache = cache or TTLCache(
            self.config.decode_cache_ttl_minutes * 60,
            cleanup_interval=self.config.decode_cache_cleanup_minutes * 60,
        )

    def _decode_nhtsa(self, vin: str) -> Dict[str, Any]:
        key = nhtsa_key(vin)
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug(f"NHTSA cache hit for {vin}")
            return cached
        data = self.nhtsa.decode(vin)
        self.cache.set(key, data)
        return data

    def _lookup_epa(self, year: int, make: str, model: str) -> Optional[Dict[str, Any]]:
        if self.epa is None:
            return None
        key = epa_key(year, make, model)
        cached = self.cache.get(key)
        if cached is not None:
            return cached
        try:
            data = self.epa.lookup(year, make, model)
        except Exception as e:
            logger.warning(f"EPA data fetch failed (non-critical): {e}")
            return None
        if data:
            self.cache.set(key, data)
        return data

    def enrich(self, vin: str) -> Dict[str, Any]:
        """
        Decode and enrich a VIN.

        Raises:
            InvalidVINError: malformed VIN
            VINDecodeError: NHTSA failed or did not return year, make and model
        """
        vin = validate_vin(vin)
        nhtsa = self._decode_nhtsa(vin)

        if not (nhtsa.get("year") and nhtsa.get("make") and nhtsa.get("model")):
            logger.error(
                f"NHTSA data for {vin} missing required fields: "
                f"year={nhtsa.get('year')} make={nhtsa.get('make')} model={nhtsa.get('model')}"
            )
            raise VINDecodeError("NHTSA data missing required fields (year, make, model)")

        epa = self._lookup_epa(nhtsa["year"], nhtsa["make"], nhtsa["model"])

        data_sources: List[str] = ["nhtsa"]
        if epa:
            data_sources.append("epa")

        enriched = merge_vehicle_data(nhtsa, epa)
        enriched["vin"] = vin
        enriched["dataSources"] = data_sources
        enriched["nhtsaConfidence"] = determine_nhtsa_confidence(nhtsa).value
        enriched["epaAvailable"] = bool(epa)

        logger.info(f"Enriched {vin} from {', '.join(data_sources)} ({len(enriched)} keys)")
        return enriched
