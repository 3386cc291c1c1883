"""
NHTSA vPIC VIN decoder client.

Calls the DecodeVinValues endpoint (one flat result row per VIN) and turns
the row into the camelCase payload the reconciler and the enrichment
service work with.

Usage:
    client = NHTSAClient()
    data = client.decode("1FDUF5HT5PED12345")
    data["make"], data["gvwr"], data["payloadCapacity"]
"""
import re
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Tuple

import httpx

from commercialx.core.config import get_config
from commercialx.core.errors import InvalidVINError, VINDecodeError
from commercialx.utils.logger import get_logger

logger = get_logger("providers.nhtsa")

VIN_RE = re.compile(r"^[A-HJ-NPR-Z0-9]{17}$")
NOT_APPLICABLE = "Not Applicable"
CLEAN_DECODE_CODES = ("0", "0 - VIN decoded clean. Check Digit (9th position) is correct")

_RANGE_RE = re.compile(r"[-–]|to", re.IGNORECASE)
_LEADING_DIGITS_RE = re.compile(r"^(\d+)")
_FIRST_DECIMAL_RE = re.compile(r"\d+(?:\.\d+)?")


def validate_vin(vin: Optional[str]) -> str:
    """Return the trimmed, upper-cased VIN or raise InvalidVINError."""
    value = (vin or "").strip().upper()
    if len(value) != 17:
        raise InvalidVINError("VIN must be exactly 17 characters")
    if not VIN_RE.match(value):
        raise InvalidVINError("Invalid VIN format. VINs cannot contain I, O, or Q")
    return value


def _usable(value: Any) -> bool:
    return value is not None and value != "" and value != NOT_APPLICABLE


def find_value(row: Mapping[str, Any], key: str, alt_keys: Sequence[str] = ()) -> Optional[str]:
    """
    Look a variable up in a DecodeVinValues row.

    Tries the exact key, then a case-insensitive match, then each alternate
    key the same way. "Not Applicable" and "" count as missing.
    """
    for candidate in (key, *alt_keys):
        value = row.get(candidate)
        if _usable(value):
            return str(value)
        lowered = candidate.lower()
        for prop, value in row.items():
            if prop.lower() == lowered and _usable(value):
                return str(value)
    return None


def parse_int(value: Optional[str]) -> Optional[int]:
    """
    First integer in a vPIC value.

    "6001 - 7000" -> 6001, "26001, 27223" -> 26001, "26001 lbs" -> 26001.
    """
    if not value:
        return None
    text = value.strip()
    text = _RANGE_RE.split(text, maxsplit=1)[0].strip()
    text = text.split(",")[0].strip()
    match = _LEADING_DIGITS_RE.match(text)
    if not match:
        return None
    return int(match.group(1))


def parse_float(value: Optional[str]) -> Optional[float]:
    if not value:
        return None
    match = _FIRST_DECIMAL_RE.search(value)
    if not match:
        return None
    return float(match.group(0))


def _text(value: Optional[str]) -> Optional[str]:
    return value.strip() if value and value.strip() else None


# payload key -> (vPIC variable, alternate spellings, parser)
_FIELDS: Tuple[Tuple[str, str, Tuple[str, ...], Callable[[Optional[str]], Any]], ...] = (
    ("year", "ModelYear", ("Model_Year", "Model Year"), parse_int),
    ("make", "Make", (), _text),
    ("model", "Model", (), _text),
    ("trim", "Trim", (), _text),
    ("series", "Series", (), _text),
    ("vehicleType", "VehicleType", ("Vehicle_Type", "Vehicle Type"), _text),
    ("bodyClass", "BodyClass", ("Body_Class", "Body Class"), _text),
    ("bodyStyle", "BodyType", ("Body_Type", "Body Type"), _text),
    ("driveType", "DriveType", ("Drive_Type", "Drive Type"), _text),
    ("transmission", "Transmission", (), _text),
    ("transmissionStyle", "TransmissionStyle", ("Transmission_Style", "Transmission Style"), _text),
    ("engineModel", "EngineModel", ("Engine_Model", "Engine Model"), _text),
    ("engineConfiguration", "EngineConfiguration", ("Engine_Configuration", "Engine Configuration"), _text),
    ("engineCylinders", "EngineCylinders", ("Engine_Number_of_Cylinders", "Engine Number of Cylinders"), parse_int),
    ("displacementL", "DisplacementL", ("Displacement_L", "Displacement (L)"), parse_float),
    ("fuelTypePrimary", "FuelTypePrimary", ("Fuel_Type_Primary", "Fuel Type - Primary"), _text),
    ("wheelbase", "WheelBase", ("Wheelbase", "WheelBaseShort", "Wheelbase (inches)"), parse_float),
    ("overallLength", "OverallLength", ("Overall_Length", "Overall Length (inches)"), parse_float),
    ("overallWidth", "OverallWidth", ("Overall_Width", "Overall Width (inches)"), parse_float),
    ("overallHeight", "OverallHeight", ("Overall_Height", "Overall Height (inches)"), parse_float),
    ("curbWeight", "CurbWeight", ("Curb_Weight", "CurbWeightLB", "Curb Weight (lbs)"), parse_int),
    ("gvwr", "GVWR", ("Gross_Vehicle_Weight_Rating_GVWR", "Gross Vehicle Weight Rating (GVWR)"), parse_int),
    ("gawrFront", "GAWR_Front", ("GAWRFront", "Gross Axle Weight Rating (GAWR) - Front"), parse_int),
    ("gawrRear", "GAWR_Rear", ("GAWRRear", "Gross Axle Weight Rating (GAWR) - Rear"), parse_int),
    ("towingCapacity", "TowingCapacity", ("Towing Capacity", "Maximum Towing Capacity (lbs)"), parse_int),
    ("fuelTankCapacity", "FuelTankCapacity", ("Fuel_Tank_Capacity_gallons", "Fuel Tank Capacity (gallons)"), parse_float),
    ("seatingCapacity", "SeatingCapacity", ("Seats", "Seating_Capacity", "Seating Capacity"), parse_int),
    ("horsepower", "EngineHP", ("Engine_Brake_hp_From", "Engine Brake (hp) From"), parse_int),
    ("batteryVoltage", "BatteryVoltage", ("BatteryV", "Battery Voltage (V)"), parse_float),
    ("batteryKWh", "BatteryKWh", ("BatteryEnergy", "Battery Energy (kWh)"), parse_float),
    ("axleDescription", "AxleConfiguration", ("Axle_Configuration", "Axle Configuration"), _text),
    ("rearWheels", "Wheels", (), _text),
    ("backupCamera", "BackupCamera", ("RearVisibilitySystem", "Backup Camera", "Rear View Camera"), _text),
    ("bluetoothCapable", "Bluetooth", ("BluetoothCapability", "Bluetooth Capability"), _text),
    ("tpms", "TPMS", ("Tire Pressure Monitoring System (TPMS)", "Tire Pressure Monitoring"), _text),
    ("plantCountry", "PlantCountry", ("Plant_Country", "Plant Country"), _text),
)


def parse_result_row(row: Mapping[str, Any]) -> Dict[str, Any]:
    """Flatten one DecodeVinValues row into the camelCase decode payload."""
    data: Dict[str, Any] = {}
    for name, variable, alt_keys, parser in _FIELDS:
        data[name] = parser(find_value(row, variable, alt_keys))

    data["payloadCapacity"] = None
    if data["gvwr"] and data["curbWeight"]:
        data["payloadCapacity"] = data["gvwr"] - data["curbWeight"]

    data["errorCode"] = row.get("ErrorCode") or None
    data["errorText"] = row.get("ErrorText") or None
    return data


class NHTSAClient:
    """Synchronous httpx client for vPIC."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        config = get_config()
        self.base_url = (base_url or config.nhtsa_base_url).rstrip("/")
        self.client = httpx.Client(
            base_url=self.base_url,
            timeout=timeout or config.nhtsa_timeout,
            headers={"Accept": "application/json"},
            transport=transport,
        )

    def close(self) -> None:
        self.client.close()

    def decode(self, vin: str) -> Dict[str, Any]:
        """
        Decode a VIN.

        Raises:
            InvalidVINError: malformed VIN (nothing is sent)
            VINDecodeError: vPIC unreachable, HTTP error, no result row,
                or a fatal decode error code
        """
        vin = validate_vin(vin)
        logger.info(f"Decoding VIN {vin} via NHTSA vPIC")

        try:
            response = self.client.get(f"/DecodeVinValues/{vin}", params={"format": "json"})
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.error(f"NHTSA returned HTTP {status} for {vin}")
            if status == 404:
                raise VINDecodeError("VIN not found in NHTSA database. Please verify the VIN is correct.") from e
            if status == 429:
                raise VINDecodeError("Too many requests to NHTSA API. Please try again in a moment.") from e
            if status >= 500:
                raise VINDecodeError(f"NHTSA service error ({status}). Please try again later.") from e
            raise VINDecodeError(f"NHTSA API error: {status} {e.response.reason_phrase}") from e
        except httpx.TimeoutException as e:
            logger.error(f"NHTSA request timed out for {vin}: {e}")
            raise VINDecodeError("Request to NHTSA service timed out. Please try again.") from e
        except httpx.ConnectError as e:
            logger.error(f"Could not connect to NHTSA: {e}")
            raise VINDecodeError("Unable to connect to NHTSA service. Please check your internet connection.") from e
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"NHTSA decode failed for {vin}: {e}")
            raise VINDecodeError(f"Failed to decode VIN from NHTSA: {e}") from e

        results = body.get("Results") if isinstance(body, dict) else None
        row = results[0] if results else None
        if not row:
            logger.error(f"No results in NHTSA response for {vin}")
            raise VINDecodeError("No data returned from VIN decoder. The VIN may be invalid or not found in the database.")

        error_code = str(row.get("ErrorCode") or "")
        if error_code and error_code not in CLEAN_DECODE_CODES:
            error_text = row.get("ErrorText")
            logger.warning(f"NHTSA decode warning for {vin}: {error_code} {error_text}")
            if error_code.startswith(("1", "2")):
                raise VINDecodeError(f"NHTSA decode error: {error_text or 'Invalid VIN or data not available'}")

        data = parse_result_row(row)
        logger.info(
            f"Decoded {vin}: {data['year']} {data['make']} {data['model']} "
            f"(gvwr={'yes' if data['gvwr'] else 'no'}, engine={'yes' if data['engineModel'] else 'no'})"
        )
        return data
