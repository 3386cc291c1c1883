"""Pytest configuration for CommercialX tests."""

import pytest

from commercialx.core.config import CommercialXConfig, set_config
from commercialx.listing.wizard import ListingWizard

VALID_VIN = "1FDUF5HT5PED12345"


@pytest.fixture(autouse=True)
def default_config():
    """Every test runs against built-in defaults, not a local config file."""
    config = CommercialXConfig()
    set_config(config)
    yield config
    set_config(None)


@pytest.fixture
def wizard(default_config):
    return ListingWizard(default_config)


@pytest.fixture
def f550_payload():
    """Decode result for a 2024 Ford F-550 cab chassis."""
    return {
        "year": 2024,
        "make": "Ford",
        "model": "F-550",
        "driveType": "4-Wheel Drive",
        "overallHeight": 95,
        "gawrFront": 7260,
        "gawrRear": 13110,
    }


@pytest.fixture
def full_payload():
    """A richer merged NHTSA + EPA payload."""
    return {
        "year": 2023,
        "make": "Ford",
        "model": "Transit",
        "trim": "XLT",
        "bodyClass": "Van",
        "fuelTypePrimary": "Gasoline",
        "wheelbase": 148,
        "gvwr": "9500 lbs",
        "payloadCapacity": 4100,
        "engineModel": "3.5L PFDi V6",
        "transmission": "10-Speed Automatic",
        "driveType": "Rear-Wheel Drive",
        "overallHeight": 83.5,
        "rearWheels": "SRW",
        "seatingCapacity": 2,
        "backupCamera": "Standard",
        "tpms": "Direct",
        "dataSources": ["nhtsa", "epa"],
        "nhtsaConfidence": "high",
        "epaAvailable": True,
    }
