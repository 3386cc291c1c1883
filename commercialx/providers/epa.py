"""
fueleconomy.gov (EPA) web service client.

EPA data is optional enrichment: every failure is logged and turned into
None so a VIN decode never fails because EPA is down or has no match.
"""
from typing import Any, Dict, Optional

import httpx

from commercialx.core.config import get_config
from commercialx.utils.logger import get_logger

logger = get_logger("providers.epa")

# EPA fuel names that differ from the listing's fuel codes
EPA_FUEL_TYPES = {
    "Regular Gasoline": "gasoline",
    "Premium Gasoline": "gasoline",
    "Midgrade Gasoline": "gasoline",
    "Diesel": "diesel",
    "Electricity": "electric",
    "Compressed Natural Gas": "cng",
    "Hybrid": "hybrid",
}


def normalize_epa_fuel_type(fuel_type: Optional[str]) -> Optional[str]:
    if not fuel_type:
        return None
    return EPA_FUEL_TYPES.get(fuel_type, fuel_type.lower())


def _first(data: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        value = data.get(key)
        if value not in (None, "", 0, "0"):
            return value
    return None


def _number(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if number.is_integer():
        return int(number)
    return number


class EPAClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        config = get_config()
        self.base_url = (base_url or config.epa_base_url).rstrip("/")
        self.client = httpx.Client(
            base_url=self.base_url,
            timeout=timeout or config.epa_timeout,
            headers={"Accept": "application/json"},
            transport=transport,
        )

    def close(self) -> None:
        self.client.close()

    def find_vehicle_id(self, year: int, make: str, model: str) -> Optional[int]:
        """Return the EPA id of the first (most common) configuration, or None."""
        try:
            response = self.client.get(
                "/vehicle/menu/options",
                params={"year": year, "make": make, "model": model},
            )
            response.raise_for_status()
            body = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"EPA vehicle id lookup failed for {year} {make} {model}: {e}")
            return None

        items = body.get("menuItem") if isinstance(body, dict) else None
        # A single match comes back as an object instead of a list
        if isinstance(items, dict):
            items = [items]
        if not items:
            logger.info(f"No EPA data found for {year} {make} {model}")
            return None

        try:
            return int(items[0].get("value"))
        except (TypeError, ValueError):
            return None

    def get_vehicle(self, epa_id: int) -> Optional[Dict[str, Any]]:
        """Fetch one EPA vehicle record, mapped to decode payload keys."""
        try:
            response = self.client.get(f"/vehicle/{epa_id}")
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"EPA vehicle fetch failed for id {epa_id}: {e}")
            return None

        if not isinstance(data, dict):
            return None

        return {
            "mpgCity": _number(_first(data, "city08")),
            "mpgHighway": _number(_first(data, "highway08")),
            "mpgCombined": _number(_first(data, "comb08")),
            # cityE is only set for electric vehicles
            "mpge": _number(_first(data, "cityE", "city08")),
            "fuelType": _first(data, "fuelType", "fuelType1"),
            "engineDescription": _first(data, "evMotor", "eng_dscr"),
            "transmission": _first(data, "trany"),
            "driveType": _first(data, "drive"),
            "cylinders": _number(_first(data, "cylinders")),
            "displacementL": _number(_first(data, "displ")),
            "electricRange": _number(_first(data, "rangeElectric", "range")),
            "epaId": _number(_first(data, "id")) or epa_id,
        }

    def lookup(self, year: int, make: str, model: str) -> Optional[Dict[str, Any]]:
        """find_vehicle_id + get_vehicle. None when EPA has nothing usable."""
        epa_id = self.find_vehicle_id(year, make, model)
        if not epa_id:
            return None
        return self.get_vehicle(epa_id)
