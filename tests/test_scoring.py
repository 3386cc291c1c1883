"""
Tests for listing data-quality scoring.
"""

import pytest

from commercialx.quality.scoring import (
    calculate_vehicle_quality_score,
    data_source_for,
    field_population,
)

COMPLETE = {
    "bodyStyle": "Cab Chassis", "wheelbase": 168.8, "gvwr": 19500, "payload": 10600,
    "engineDescription": "6.7L", "transmission": "10-spd", "driveType": "4WD", "seatingCapacity": 3,
    "horsepower": 330, "torqueFtLbs": 750, "mpgCity": 15, "mpgHighway": 21,
    "lengthInches": 280, "widthInches": 96, "heightInches": 95,
    "gawrFront": 7260, "gawrRear": 13110, "towingCapacity": 20000,
}


class TestFieldPopulation:
    """Critical fields weigh 70%, optional 30%."""

    def test_empty(self):
        assert field_population({}) == 0

    def test_complete(self):
        assert field_population(COMPLETE) == pytest.approx(1.0)

    def test_critical_only(self):
        critical = {k: COMPLETE[k] for k in list(COMPLETE)[:8]}
        assert field_population(critical) == pytest.approx(0.7)

    def test_blank_strings_do_not_count(self):
        assert field_population({"bodyStyle": ""}) == 0


class TestDataSource:
    """Test data source naming."""

    def test_sources(self):
        assert data_source_for({"make"}, ["nhtsa", "epa"]) == "vin_decode_both"
        assert data_source_for({"make"}, ["nhtsa"]) == "vin_decode_nhtsa"
        assert data_source_for({"make"}, ["epa"]) == "vin_decode_epa"

    def test_nothing_auto_filled(self):
        assert data_source_for(frozenset(), ["nhtsa", "epa"]) == "manual_entry"


class TestQualityScore:
    """Test the overall score."""

    def test_manual_entry(self):
        score = calculate_vehicle_quality_score({}, needs_verification=True)
        assert score.completeness == 0
        assert score.accuracy == pytest.approx(0.15 + 0.4 * 0.3)
        assert score.consistency == 1.0
        assert score.overall == pytest.approx(score.accuracy * 0.5 + 0.2)

    def test_two_source_decode(self):
        score = calculate_vehicle_quality_score(
            COMPLETE, needs_verification=False, data_source="vin_decode_both", epa_available=True,
        )
        assert score.factors.has_vin_decode
        assert score.factors.has_epa_data
        assert score.consistency == pytest.approx(0.9)
        assert score.overall == 1.0

    def test_clamped(self):
        score = calculate_vehicle_quality_score(COMPLETE, needs_verification=False, data_source="vin_decode_both")
        assert 0.0 <= score.overall <= 1.0
        assert score.to_dict()["factors"]["data_source_reliability"] == 1.0
