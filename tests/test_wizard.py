"""
Tests for the listing wizard: step pointer, decode generations, provenance.
"""

import threading

import pytest
from pydantic import ValidationError

from commercialx.core.config import CommercialXConfig
from commercialx.core.errors import InvalidVINError, WizardStateError
from commercialx.enrichment.enums import Confidence
from commercialx.listing.form import FormFieldTable
from commercialx.listing.step_guard import GuardState, StepPreservationGuard
from commercialx.listing.wizard import ListingWizard

from conftest import VALID_VIN


class TestStepPointer:
    """Test wizard navigation."""

    def test_starts_on_first_step(self, wizard):
        assert wizard.step == 0
        assert wizard.step_title == "Listing Type"
        assert len(wizard.steps) == 6

    def test_next_and_prev_clamp(self, wizard):
        wizard.prev_step()
        assert wizard.step == 0
        for _ in range(10):
            wizard.next_step()
        assert wizard.step == 5
        assert wizard.is_last_step

    def test_go_to_clamps(self, wizard):
        assert wizard.go_to(3) == 3
        assert wizard.go_to(99) == 5
        assert wizard.go_to(-4) == 0

    def test_needs_steps(self):
        with pytest.raises(WizardStateError):
            ListingWizard(CommercialXConfig(wizard_steps=[]))


class TestStepPreservationGuard:
    """Test the guard state machine."""

    def test_restore_when_step_drifted(self):
        guard = StepPreservationGuard()
        guard.capture(2)
        assert guard.state is GuardState.PENDING_RESTORE
        assert guard.settle(4) == 2
        assert guard.state is GuardState.IDLE

    def test_nothing_to_restore(self):
        guard = StepPreservationGuard()
        guard.capture(2)
        assert guard.settle(2) is None

    def test_settle_while_idle(self):
        assert StepPreservationGuard().settle(3) is None


class TestDecode:
    """Test applying decode results."""

    def test_begin_decode_requires_full_vin(self, wizard):
        wizard.set_vin("1FDUF5")
        with pytest.raises(InvalidVINError):
            wizard.begin_decode()

    def test_apply_decode(self, wizard, f550_payload):
        wizard.set_vin(VALID_VIN)
        token = wizard.begin_decode()
        result = wizard.apply_decode(token, f550_payload)

        assert result is not None
        assert wizard.provenance == frozenset(
            {"year", "make", "model", "driveType", "heightType", "gawrFront", "gawrRear"}
        )
        assert wizard.form["model"] == "F-550"
        assert wizard.enrichment.auto_filled_count == 7

    def test_enrichment_summary(self, wizard, full_payload):
        wizard.set_vin(VALID_VIN)
        wizard.apply_decode(wizard.begin_decode(), full_payload)
        summary = wizard.enrichment
        assert summary.data_sources == ["nhtsa", "epa"]
        assert summary.confidence is Confidence.HIGH
        assert summary.epa_available is True
        assert summary.to_dict()["nhtsaConfidence"] == "high"

    def test_step_preserved_when_side_effect_moves_it(self, wizard, f550_payload):
        wizard.set_vin(VALID_VIN)
        wizard.go_to(2)

        # A watcher reacting to a decoded field jumps the wizard forward
        def jump(name, value):
            if name == "driveType":
                wizard.go_to(4)

        wizard.form.watch(jump)
        wizard.apply_decode(wizard.begin_decode(), f550_payload)
        assert wizard.step == 2

    def test_step_unchanged_without_side_effects(self, wizard, f550_payload):
        wizard.set_vin(VALID_VIN)
        wizard.go_to(1)
        wizard.apply_decode(wizard.begin_decode(), f550_payload)
        assert wizard.step == 1

    def test_stale_decode_discarded(self, wizard):
        wizard.set_vin(VALID_VIN)
        first = wizard.begin_decode()
        second = wizard.begin_decode()

        assert wizard.apply_decode(second, {"make": "Ram"}) is not None
        assert wizard.apply_decode(first, {"make": "Ford", "model": "F-550"}) is None
        assert wizard.form["make"] == "Ram"
        assert "model" not in wizard.form
        assert wizard.provenance == frozenset({"make"})

    def test_out_of_order_arrival(self, wizard):
        wizard.set_vin(VALID_VIN)
        first = wizard.begin_decode()
        second = wizard.begin_decode()
        assert wizard.apply_decode(first, {"make": "Ford"}) is None
        assert wizard.apply_decode(second, {"make": "Ram"}) is not None
        assert wizard.form["make"] == "Ram"

    def test_reapplying_same_payload(self, wizard, full_payload):
        wizard.set_vin(VALID_VIN)
        wizard.apply_decode(wizard.begin_decode(), full_payload)
        fields = wizard.form.to_dict()
        provenance = wizard.provenance
        wizard.apply_decode(wizard.begin_decode(), full_payload)
        assert wizard.form.to_dict() == fields
        assert wizard.provenance == provenance


class TestVinClearing:
    """Clearing, shortening or replacing the VIN drops auto-fill state."""

    @pytest.mark.parametrize("vin", ["", "1FDUF5HT5PED1234"])
    def test_clears_provenance_and_summary(self, wizard, f550_payload, vin):
        wizard.set_vin(VALID_VIN)
        wizard.apply_decode(wizard.begin_decode(), f550_payload)
        wizard.set_vin(vin)
        assert wizard.provenance == frozenset()
        assert wizard.enrichment is None

    def test_late_result_after_clear_is_discarded(self, wizard, f550_payload):
        wizard.set_vin(VALID_VIN)
        token = wizard.begin_decode()
        wizard.set_vin("")
        assert wizard.apply_decode(token, f550_payload) is None
        assert "make" not in wizard.form
        assert wizard.provenance == frozenset()

    def test_full_vin_keeps_provenance(self, wizard, f550_payload):
        wizard.set_vin(VALID_VIN)
        wizard.apply_decode(wizard.begin_decode(), f550_payload)
        wizard.set_vin(VALID_VIN.lower())
        assert len(wizard.provenance) == 7

    def test_swapped_vin_discards_running_decode(self, wizard, f550_payload):
        wizard.set_vin(VALID_VIN)
        token = wizard.begin_decode()
        wizard.set_vin("2FDUF5HT5PED99999")
        assert wizard.apply_decode(token, f550_payload) is None
        assert wizard.form.to_dict() == {"vin": "2FDUF5HT5PED99999"}
        assert wizard.provenance == frozenset()

    def test_swapped_vin_drops_auto_fill_markers(self, wizard, f550_payload):
        wizard.set_vin(VALID_VIN)
        wizard.apply_decode(wizard.begin_decode(), f550_payload)
        wizard.set_vin("2FDUF5HT5PED99999")
        assert wizard.provenance == frozenset()
        assert wizard.enrichment is None
        # Values stay, only the markers go
        assert wizard.form["make"] == "Ford"

    def test_clear_from_another_thread_waits_for_apply(self, wizard, f550_payload):
        wizard.set_vin(VALID_VIN)
        token = wizard.begin_decode()
        clearing = threading.Thread(target=wizard.set_vin, args=("",))
        seen = {}

        def clear_mid_apply(name, value):
            if name == "make" and "blocked" not in seen:
                clearing.start()
                clearing.join(timeout=0.2)
                seen["blocked"] = clearing.is_alive()

        wizard.form.watch(clear_mid_apply)
        result = wizard.apply_decode(token, f550_payload)
        clearing.join(timeout=5)

        assert result is not None
        assert seen["blocked"] is True
        assert wizard.vin == ""
        assert wizard.provenance == frozenset()
        assert wizard.generation > token


class TestManualEdits:
    """Test dealer edits."""

    def test_edit_marks_dirty_and_drops_provenance(self, wizard, f550_payload):
        wizard.set_vin(VALID_VIN)
        wizard.apply_decode(wizard.begin_decode(), f550_payload)
        wizard.edit_fields({"model": "F-450"})
        assert wizard.form["model"] == "F-450"
        assert "model" in wizard.form.dirty_fields
        assert "model" not in wizard.provenance
        assert "make" in wizard.provenance

    def test_edit_returns_validation_errors(self, wizard):
        errors = wizard.edit_fields({"askingPrice": -100, "make": "Ford"})
        assert "askingPrice" in errors
        assert "make" not in errors

    def test_decoded_values_are_not_dirty(self, wizard, f550_payload):
        wizard.set_vin(VALID_VIN)
        wizard.apply_decode(wizard.begin_decode(), f550_payload)
        assert wizard.form.dirty_fields == frozenset({"vin"})


class TestSubmit:
    """Test submission from the final step."""

    def fill(self, wizard):
        wizard.edit_fields({
            "listingType": "stock_unit",
            "vin": VALID_VIN,
            "year": 2024,
            "make": "Ford",
            "model": "F-550",
            "fuelType": "diesel",
            "hasEquipment": False,
            "askingPrice": 89500,
            "condition": "new",
        })

    def test_refused_before_last_step(self, wizard):
        self.fill(wizard)
        wizard.go_to(3)
        with pytest.raises(WizardStateError):
            wizard.submit()

    def test_submit_on_last_step(self, wizard):
        self.fill(wizard)
        wizard.go_to(5)
        listing = wizard.submit()
        assert listing.vin == VALID_VIN
        assert listing.asking_price == 89500

    def test_incomplete_listing(self, wizard):
        wizard.go_to(5)
        with pytest.raises(ValidationError):
            wizard.submit()


class TestFormFlush:
    """Change notifications are delivered on flush."""

    def test_deferred_delivery(self):
        seen = []
        form = FormFieldTable()
        form.watch(lambda name, value: seen.append((name, value)))
        form.set_value("make", "Ford")
        assert seen == []
        assert form.has_pending_updates()
        assert form.flush() == 1
        assert seen == [("make", "Ford")]

    def test_changes_made_during_flush_are_delivered(self):
        seen = []
        form = FormFieldTable()

        def cascade(name, value):
            seen.append(name)
            if name == "make":
                form.set_value("model", None, validate=False)

        form.watch(cascade)
        form.set_value("make", "Ford")
        assert form.flush() == 2
        assert seen == ["make", "model"]
