"""
Closed enumerations used by listing form fields.

Members subclass ``str`` so they serialize as their code in JSON responses
and compare equal to the plain string ("4WD" == DriveType.FOUR_WD).
"""
from enum import Enum


class DriveType(str, Enum):
    RWD = "RWD"
    AWD = "AWD"
    FOUR_WD = "4WD"
    FWD = "FWD"


class FuelType(str, Enum):
    GASOLINE = "gasoline"
    DIESEL = "diesel"
    ELECTRIC = "electric"
    HYBRID = "hybrid"
    CNG = "cng"
    PROPANE = "propane"


class RearWheels(str, Enum):
    """Single vs dual rear wheel configuration."""
    SRW = "SRW"
    DRW = "DRW"


class Confidence(str, Enum):
    """How complete the NHTSA decode was."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class RoofHeight(str, Enum):
    LOW = "Low Roof"
    MEDIUM = "Medium Roof"
    HIGH = "High Roof"
