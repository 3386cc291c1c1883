"""
Pydantic models for the listing wizard's form values.

``ListingDraft`` is the permissive shape the wizard edits step by step:
every field optional, but each value that is present must be well formed.
``ListingSubmission`` is what the final step submits, with the required
fields and the cross-field rules enforced.

Both accept the camelCase field names the form uses (``askingPrice``,
``gawrFront``) as well as their snake_case attribute names.
"""
import re
from datetime import date
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator
from pydantic.alias_generators import to_camel

from commercialx.enrichment.enums import DriveType, FuelType, RearWheels, RoofHeight

VIN_PATTERN = re.compile(r"^[A-HJ-NPR-Z0-9]{17}$")
MIN_MODEL_YEAR = 2000

ListingType = Literal["stock_unit", "build_to_order"]
Condition = Literal["new", "used", "certified_pre_owned", "demo"]
PriceType = Literal["negotiable", "fixed", "call_for_price"]
Grade = Literal["excellent", "good", "fair", "poor"]

Positive = Optional[float]


def max_model_year() -> int:
    return date.today().year + 1


class ListingDraft(BaseModel):
    """Form values of an in-progress listing. Nothing is required yet."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    # Listing type
    listing_type: Optional[ListingType] = None

    # Vehicle
    vin: Optional[str] = None
    year: Optional[int] = None
    make: Optional[str] = None
    model: Optional[str] = None
    series: Optional[str] = None
    body_style: Optional[str] = None
    fuel_type: Optional[FuelType] = None
    wheelbase: Positive = Field(default=None, gt=0)
    gvwr: Positive = Field(default=None, gt=0)
    payload: Positive = Field(default=None, gt=0)
    engine_description: Optional[str] = None
    transmission: Optional[str] = None
    drive_type: Optional[DriveType] = None

    # Decoded specifications
    height_type: Optional[RoofHeight] = None
    axle_description: Optional[str] = None
    rear_wheels: Optional[RearWheels] = None
    battery_voltage: Positive = Field(default=None, gt=0)
    horsepower: Positive = Field(default=None, gt=0)
    torque_ft_lbs: Positive = Field(default=None, gt=0)
    mpg_city: Positive = Field(default=None, gt=0)
    mpg_highway: Positive = Field(default=None, gt=0)
    mpge: Positive = Field(default=None, gt=0)
    length_inches: Positive = Field(default=None, gt=0)
    width_inches: Positive = Field(default=None, gt=0)
    height_inches: Positive = Field(default=None, gt=0)
    base_curb_weight_lbs: Positive = Field(default=None, gt=0)
    seating_capacity: Optional[int] = Field(default=None, gt=0)
    gawr_front: Positive = Field(default=None, gt=0)
    gawr_rear: Positive = Field(default=None, gt=0)
    towing_capacity: Positive = Field(default=None, gt=0)
    fuel_tank_capacity: Positive = Field(default=None, gt=0)
    backup_camera: Optional[bool] = None
    bluetooth_capable: Optional[bool] = None
    tpms: Optional[bool] = None

    # Equipment
    has_equipment: Optional[bool] = None
    equipment_manufacturer: Optional[str] = None
    equipment_product_line: Optional[str] = None
    equipment_type: Optional[str] = None
    equipment_length: Positive = Field(default=None, gt=0)
    equipment_width: Positive = Field(default=None, gt=0)
    equipment_height: Positive = Field(default=None, gt=0)
    equipment_weight: Positive = Field(default=None, gt=0)
    equipment_material: Optional[str] = None
    door_configuration: Optional[str] = None
    compartment_count: Optional[int] = Field(default=None, gt=0)
    has_interior_lighting: Optional[bool] = None
    has_exterior_lighting: Optional[bool] = None

    # Pricing & details
    asking_price: Positive = Field(default=None, gt=0)
    special_price: Positive = Field(default=None, gt=0)
    price_type: Optional[PriceType] = None
    stock_number: Optional[str] = None
    condition: Optional[Condition] = None
    mileage: Optional[float] = Field(default=None, ge=0)
    exterior_color: Optional[str] = None
    interior_color: Optional[str] = None
    paint_condition: Optional[Grade] = None
    interior_condition: Optional[Grade] = None
    previous_owners: Optional[int] = Field(default=None, ge=0)
    accident_history: Optional[str] = None
    warranty_type: Optional[str] = None
    description: Optional[str] = None
    location_city: Optional[str] = None
    location_state: Optional[str] = None

    # Marketing
    listing_title: Optional[str] = None
    key_highlights: Optional[str] = None
    marketing_headline: Optional[str] = None
    is_featured: Optional[bool] = None
    is_hot_deal: Optional[bool] = None
    is_clearance: Optional[bool] = None

    # Photos
    photos: List[str] = Field(default_factory=list)

    @field_validator("vin")
    @classmethod
    def check_vin(cls, value: Optional[str]) -> Optional[str]:
        if value is None or value == "":
            return value
        value = value.strip().upper()
        if not VIN_PATTERN.match(value):
            raise ValueError("VIN must be 17 characters and cannot contain I, O, or Q")
        return value

    @field_validator("year")
    @classmethod
    def check_year(cls, value: Optional[int]) -> Optional[int]:
        if value is None:
            return value
        if value < MIN_MODEL_YEAR or value > max_model_year():
            raise ValueError(f"Year must be between {MIN_MODEL_YEAR} and {max_model_year()}")
        return value

    @field_validator("photos")
    @classmethod
    def check_photos(cls, value: List[str]) -> List[str]:
        for url in value:
            if not url.startswith(("http://", "https://")):
                raise ValueError(f"Photo must be an http(s) URL: {url}")
        return value

    @model_validator(mode="after")
    def check_special_price(self):
        if self.special_price is not None and self.asking_price is not None:
            if self.special_price >= self.asking_price:
                raise ValueError("Special price must be less than asking price")
        return self


class ListingSubmission(ListingDraft):
    """A complete listing, as submitted from the final wizard step."""

    listing_type: ListingType
    vin: str = Field(min_length=17)
    year: int
    make: str = Field(min_length=1)
    model: str = Field(min_length=1)
    fuel_type: FuelType
    has_equipment: bool
    asking_price: float = Field(gt=0)
    condition: Condition

    @model_validator(mode="after")
    def check_required_when(self):
        if self.condition in ("used", "certified_pre_owned") and self.mileage is None:
            raise ValueError("Mileage is required for used vehicles")
        if self.has_equipment and not (self.equipment_manufacturer or "").strip():
            raise ValueError("Equipment manufacturer is required when equipment is installed")
        return self


def validate_field(name: str, value: Any) -> Optional[str]:
    """
    Check a single form value against ``ListingDraft``.

    Used as the form's per-field validator. Returns the first error message
    for that field, or None when the value is acceptable. Unknown field
    names are accepted.
    """
    if value is None:
        return None
    try:
        ListingDraft.model_validate({name: value})
    except ValidationError as e:
        for error in e.errors():
            loc = error.get("loc") or ()
            if not loc or loc[0] == name:
                return error.get("msg")
    return None
