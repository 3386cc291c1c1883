"""
Listing-creation wizard state.

ListingWizard owns everything one dealer's in-progress listing needs:

- the step pointer (clamped to the configured steps),
- the form field table,
- the provenance set of decode-filled fields and the enrichment summary,
- a decode generation counter so only the latest decode is ever applied.

The decode flow is:

    token = wizard.begin_decode()              # VIN must be complete
    payload = enrichment_service.enrich(vin)   # may be slow / async
    wizard.apply_decode(token, payload)        # None if superseded
"""
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from commercialx.core.config import CommercialXConfig, get_config
from commercialx.core.errors import InvalidVINError, WizardStateError
from commercialx.enrichment.enums import Confidence
from commercialx.enrichment.normalizer import normalize_confidence
from commercialx.enrichment.reconciler import ReconciliationResult, reconcile
from commercialx.listing.form import FormFieldTable
from commercialx.listing.schema import VIN_PATTERN, ListingSubmission, validate_field
from commercialx.listing.step_guard import StepPreservationGuard
from commercialx.utils.logger import get_logger

logger = get_logger("listing.wizard")

VIN_FIELD = "vin"


@dataclass
class EnrichmentSummary:
    """What the last applied decode contributed, for the "N fields auto-filled" banner."""
    data_sources: List[str] = field(default_factory=list)
    confidence: Optional[Confidence] = None
    epa_available: bool = False
    auto_filled_count: int = 0

    @classmethod
    def from_decode(cls, payload: Mapping[str, Any], result: ReconciliationResult) -> "EnrichmentSummary":
        sources = payload.get("dataSources")
        if not isinstance(sources, (list, tuple)):
            sources = []
        return cls(
            data_sources=[s for s in sources if isinstance(s, str)],
            confidence=normalize_confidence(payload.get("nhtsaConfidence")),
            epa_available=payload.get("epaAvailable") is True,
            auto_filled_count=result.auto_filled_count,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dataSources": list(self.data_sources),
            "nhtsaConfidence": self.confidence.value if self.confidence else None,
            "epaAvailable": self.epa_available,
            "autoFilledCount": self.auto_filled_count,
        }


class ListingWizard:
    """
    State of one listing being created.

    Safe to share between the request threads of one draft: every mutation
    runs under the wizard's lock, and ``apply_decode`` checks its token and
    writes the form in one critical section.
    """

    def __init__(self, config: Optional[CommercialXConfig] = None, initial: Optional[Mapping[str, Any]] = None):
        self.config = config or get_config()
        self.steps: List[str] = list(self.config.wizard_steps)
        if not self.steps:
            raise WizardStateError("Wizard needs at least one step")

        self.form = FormFieldTable(initial, validator=validate_field)
        self.form.watch(self._on_field_change)
        self.provenance: frozenset = frozenset()
        self.enrichment: Optional[EnrichmentSummary] = None

        self._step = 0
        self._generation = 0
        self._guard = StepPreservationGuard()
        self._lock = threading.RLock()
        self._last_vin = self.vin

    # ------------------------------------------------------------------
    # Step pointer
    # ------------------------------------------------------------------

    @property
    def step(self) -> int:
        return self._step

    @property
    def step_title(self) -> str:
        return self.steps[self._step]

    @property
    def is_last_step(self) -> bool:
        return self._step == len(self.steps) - 1

    def go_to(self, step: int) -> int:
        with self._lock:
            self._step = max(0, min(int(step), len(self.steps) - 1))
            return self._step

    def next_step(self) -> int:
        with self._lock:
            return self.go_to(self._step + 1)

    def prev_step(self) -> int:
        with self._lock:
            return self.go_to(self._step - 1)

    # ------------------------------------------------------------------
    # Field edits
    # ------------------------------------------------------------------

    def set_vin(self, vin: Optional[str]) -> str:
        """Store the VIN as typed (trimmed, upper-cased)."""
        value = (vin or "").strip().upper()
        with self._lock:
            self.form.set_value(VIN_FIELD, value)
            self.form.flush()
        return value

    def edit_fields(self, values: Mapping[str, Any]) -> Dict[str, str]:
        """
        Apply dealer edits.

        Edited fields become dirty and lose their auto-filled marking.
        Returns validation errors for the edited fields.
        """
        with self._lock:
            for name, value in values.items():
                if name == VIN_FIELD:
                    self.set_vin(value)
                    continue
                self.form.set_value(name, value)
            edited = set(values) - {VIN_FIELD}
            if edited & self.provenance:
                self.provenance = self.provenance - edited
            self.form.flush()
            errors = self.form.errors
            return {name: errors[name] for name in values if name in errors}

    def _on_field_change(self, name: str, value: Any) -> None:
        if name != VIN_FIELD:
            return
        value = value or ""
        if value == self._last_vin:
            return
        self._last_vin = value
        self._clear_enrichment()

    def _clear_enrichment(self) -> None:
        if self.provenance or self.enrichment is not None:
            logger.info("VIN changed, dropping auto-filled markers")
        self.provenance = frozenset()
        self.enrichment = None
        # Any decode still in flight belongs to the old VIN
        self._generation += 1

    # ------------------------------------------------------------------
    # Decode
    # ------------------------------------------------------------------

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def vin(self) -> str:
        return self.form.get(VIN_FIELD) or ""

    def begin_decode(self) -> int:
        """
        Start a decode of the current VIN.

        Returns:
            Token to hand back to ``apply_decode``. Issuing a new token, or
            changing the VIN, makes every earlier one stale.
        """
        with self._lock:
            vin = self.vin
            if len(vin) != self.config.vin_length or not VIN_PATTERN.match(vin):
                raise InvalidVINError("VIN must be 17 characters and cannot contain I, O, or Q")
            self._generation += 1
            logger.debug(f"Decode {self._generation} started for VIN {vin}")
            return self._generation

    def apply_decode(self, token: int, payload: Mapping[str, Any]) -> Optional[ReconciliationResult]:
        """
        Apply a decoded payload if ``token`` is still the latest decode.

        The visible step is captured before the form is written and forced
        back once the writes' change notifications have been delivered.

        Returns:
            The reconciliation result, or None when the payload was stale.
        """
        with self._lock:
            if token != self._generation:
                logger.info(f"Discarding stale decode {token} (current: {self._generation})")
                return None

            self._guard.capture(self._step)
            result = reconcile(payload, self.form, current_step=self._step)
            self.provenance = result.provenance
            self.enrichment = EnrichmentSummary.from_decode(payload, result)
            logger.info(f"Auto-filled {result.auto_filled_count} field(s) from decode {token}")

            self.form.flush()
            self._settle_step()
            return result

    def _settle_step(self) -> None:
        restore = self._guard.settle(self._step)
        if restore is not None:
            logger.warning(f"Step moved to {self._step} while applying decode, restoring {restore}")
            self._step = restore

    # ------------------------------------------------------------------
    # Submit
    # ------------------------------------------------------------------

    def submit(self) -> ListingSubmission:
        """
        Validate the complete listing.

        Raises:
            WizardStateError: if the wizard is not on its final step
            pydantic.ValidationError: if the form values are incomplete or invalid
        """
        with self._lock:
            if not self.is_last_step:
                raise WizardStateError(
                    f"Listing can only be submitted from '{self.steps[-1]}' (currently on '{self.step_title}')"
                )
            return ListingSubmission.model_validate(self.form.to_dict())

    def to_dict(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "step": self._step,
                "stepTitle": self.step_title,
                "steps": list(self.steps),
                "fields": self.form.to_dict(),
                "dirtyFields": sorted(self.form.dirty_fields),
                "errors": self.form.errors,
                "autoFilledFields": sorted(self.provenance),
                "enrichment": self.enrichment.to_dict() if self.enrichment else None,
                "generation": self._generation,
            }
