"""
Tests for listing draft / submission validation.
"""

from datetime import date

import pytest
from pydantic import ValidationError

from commercialx.enrichment.enums import DriveType, FuelType
from commercialx.listing.schema import ListingDraft, ListingSubmission, validate_field

from conftest import VALID_VIN


def submission(**overrides):
    data = {
        "listingType": "stock_unit",
        "vin": VALID_VIN,
        "year": 2024,
        "make": "Ford",
        "model": "F-550",
        "fuelType": "diesel",
        "hasEquipment": False,
        "askingPrice": 89500,
        "condition": "new",
    }
    data.update(overrides)
    return data


class TestListingDraft:
    """Drafts accept partial data."""

    def test_empty_draft(self):
        draft = ListingDraft.model_validate({})
        assert draft.vin is None
        assert draft.photos == []

    def test_camel_case_and_snake_case(self):
        assert ListingDraft.model_validate({"gawrFront": 7260}).gawr_front == 7260
        assert ListingDraft.model_validate({"gawr_front": 7260}).gawr_front == 7260

    def test_decoded_enums_accepted(self):
        draft = ListingDraft.model_validate({"driveType": DriveType.FOUR_WD, "heightType": "High Roof"})
        assert draft.drive_type is DriveType.FOUR_WD

    def test_empty_vin_allowed(self):
        assert ListingDraft.model_validate({"vin": ""}).vin == ""


class TestListingSubmission:
    """Test submission rules."""

    def test_valid(self):
        listing = ListingSubmission.model_validate(submission())
        assert listing.fuel_type is FuelType.DIESEL
        dumped = listing.model_dump(mode="json", by_alias=True, exclude_none=True)
        assert dumped["askingPrice"] == 89500
        assert dumped["listingType"] == "stock_unit"

    @pytest.mark.parametrize("vin", ["1FDUF5HT5PED1234", "1FDUF5HT5PED1234Q", ""])
    def test_bad_vin(self, vin):
        with pytest.raises(ValidationError):
            ListingSubmission.model_validate(submission(vin=vin))

    def test_year_range(self):
        with pytest.raises(ValidationError):
            ListingSubmission.model_validate(submission(year=1999))
        with pytest.raises(ValidationError):
            ListingSubmission.model_validate(submission(year=date.today().year + 2))
        ListingSubmission.model_validate(submission(year=date.today().year + 1))

    def test_unknown_fuel_type(self):
        with pytest.raises(ValidationError):
            ListingSubmission.model_validate(submission(fuelType="coal"))

    def test_positive_measurements(self):
        with pytest.raises(ValidationError):
            ListingSubmission.model_validate(submission(gvwr=0))
        with pytest.raises(ValidationError):
            ListingSubmission.model_validate(submission(askingPrice=-1))

    def test_special_price_below_asking(self):
        with pytest.raises(ValidationError, match="Special price"):
            ListingSubmission.model_validate(submission(specialPrice=90000))
        ListingSubmission.model_validate(submission(specialPrice=85000))

    def test_mileage_required_when_used(self):
        with pytest.raises(ValidationError, match="Mileage"):
            ListingSubmission.model_validate(submission(condition="used"))
        ListingSubmission.model_validate(submission(condition="used", mileage=42000))

    def test_equipment_manufacturer_required(self):
        with pytest.raises(ValidationError, match="Equipment manufacturer"):
            ListingSubmission.model_validate(submission(hasEquipment=True))
        ListingSubmission.model_validate(submission(hasEquipment=True, equipmentManufacturer="Knapheide"))

    def test_photos_must_be_urls(self):
        with pytest.raises(ValidationError):
            ListingSubmission.model_validate(submission(photos=["not a url"]))


class TestValidateField:
    """Test per-field validation used by the form."""

    def test_ok(self):
        assert validate_field("askingPrice", 1000) is None
        assert validate_field("unknownField", "x") is None
        assert validate_field("make", None) is None

    def test_error_message(self):
        assert validate_field("askingPrice", -5)
        assert "VIN" in validate_field("vin", "123")
