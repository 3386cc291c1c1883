"""
FastAPI server for CommercialX listing enrichment.

Holds in-progress listing drafts (one ListingWizard each) in memory and
exposes VIN decoding, wizard navigation, field edits and submission.

Usage:
    python -m commercialx.api.server
    # or
    uvicorn commercialx.api.server:app --reload --port 8000
"""
import traceback
import uuid
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError

from commercialx import __version__
from commercialx.api.models import (
    CreateDraftRequest,
    DecodeResponse,
    DraftDecodeResponse,
    DraftResponse,
    FieldsRequest,
    HealthResponse,
    StepRequest,
    SubmitResponse,
    VinRequest,
)
from commercialx.core.config import get_config
from commercialx.core.errors import CommercialXError, InvalidVINError, WizardStateError
from commercialx.listing.wizard import ListingWizard
from commercialx.providers.enrichment import VehicleEnrichmentService
from commercialx.quality.scoring import calculate_vehicle_quality_score, data_source_for
from commercialx.utils.logger import draft_context, get_logger
from commercialx.utils.supabase_client import get_supabase

logger = get_logger("api.server")

LISTINGS_TABLE = "vehicle_listings"

# Initialize FastAPI app
app = FastAPI(
    title="CommercialX API",
    description="VIN decode enrichment and listing wizard API",
    version=__version__,
)

# Enable CORS for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def bind_draft_context(request: Request, call_next):
    """Tag log records with the draft named in the path."""
    parts = request.url.path.strip("/").split("/")
    draft_id = parts[1] if len(parts) > 1 and parts[0] == "drafts" else None
    with draft_context(draft_id):
        return await call_next(request)


# Draft storage: draft_id -> ListingWizard
drafts: Dict[str, ListingWizard] = {}

_enrichment_service: Optional[VehicleEnrichmentService] = None


def get_enrichment_service() -> VehicleEnrichmentService:
    global _enrichment_service
    if _enrichment_service is None:
        _enrichment_service = VehicleEnrichmentService()
    return _enrichment_service


def set_enrichment_service(service: Optional[VehicleEnrichmentService]) -> None:
    global _enrichment_service
    _enrichment_service = service


def get_draft(draft_id: str) -> ListingWizard:
    if draft_id not in drafts:
        raise HTTPException(status_code=404, detail="Draft not found")
    return drafts[draft_id]


def draft_state(draft_id: str, wizard: ListingWizard) -> Dict[str, Any]:
    state = wizard.to_dict()
    return {
        "draft_id": draft_id,
        "step": state["step"],
        "step_title": state["stepTitle"],
        "steps": state["steps"],
        "fields": state["fields"],
        "dirty_fields": state["dirtyFields"],
        "errors": state["errors"],
        "auto_filled_fields": state["autoFilledFields"],
        "enrichment": state["enrichment"],
        "generation": state["generation"],
    }


# API Endpoints

@app.get("/", response_model=HealthResponse)
async def root():
    """Health check endpoint."""
    config = get_config()
    return HealthResponse(
        status="online",
        service="CommercialX API",
        version=__version__,
        config={
            "epa_enabled": config.epa_enabled,
            "wizard_steps": len(config.wizard_steps),
        }
    )


@app.get("/status")
async def get_status():
    """Get server status."""
    config = get_config()
    return {
        "status": "online",
        "config": {
            "nhtsa_base_url": config.nhtsa_base_url,
            "epa_enabled": config.epa_enabled,
            "decode_cache_ttl_minutes": config.decode_cache_ttl_minutes,
        },
        "active_drafts": len(drafts),
    }


@app.post("/vin/decode", response_model=DecodeResponse)
def decode_vin(request: VinRequest):
    """
    Decode a VIN against NHTSA (and EPA when available) without a draft.
    """
    try:
        data = get_enrichment_service().enrich(request.vin)
        return DecodeResponse(success=True, data=data)
    except CommercialXError as e:
        logger.warning(f"VIN decode failed for {request.vin}: {e}")
        return DecodeResponse(success=False, error=str(e))
    except Exception as e:
        logger.error(f"Error in /vin/decode: {e}\n{traceback.format_exc()}")
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/drafts", response_model=DraftResponse)
async def create_draft(request: Optional[CreateDraftRequest] = None):
    """Start a new listing draft on the first wizard step."""
    draft_id = str(uuid.uuid4())
    wizard = ListingWizard()
    if request and request.fields:
        wizard.edit_fields(request.fields)
    drafts[draft_id] = wizard
    with draft_context(draft_id):
        logger.info("Created new draft")
    return DraftResponse(**draft_state(draft_id, wizard))


@app.get("/drafts/{draft_id}", response_model=DraftResponse)
async def get_draft_state(draft_id: str):
    """Get current draft state."""
    return DraftResponse(**draft_state(draft_id, get_draft(draft_id)))


@app.delete("/drafts/{draft_id}")
async def delete_draft(draft_id: str):
    """Discard a draft."""
    if draft_id in drafts:
        del drafts[draft_id]
        logger.info(f"Deleted draft: {draft_id}")
        return {"status": "deleted", "draft_id": draft_id}
    raise HTTPException(status_code=404, detail="Draft not found")


@app.put("/drafts/{draft_id}/vin", response_model=DraftResponse)
async def set_draft_vin(draft_id: str, request: VinRequest):
    """Update the VIN. A VIN shorter than 17 characters clears the auto-filled markers."""
    wizard = get_draft(draft_id)
    wizard.set_vin(request.vin)
    return DraftResponse(**draft_state(draft_id, wizard))


@app.post("/drafts/{draft_id}/decode", response_model=DraftDecodeResponse)
def decode_draft_vin(draft_id: str):
    """
    Decode the draft's VIN and auto-fill the form.

    The decode only lands if no newer decode was started and the VIN was
    not cleared while it was running.
    """
    wizard = get_draft(draft_id)
    try:
        token = wizard.begin_decode()
    except InvalidVINError as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        payload = get_enrichment_service().enrich(wizard.vin)
    except CommercialXError as e:
        logger.warning(f"Decode failed for draft {draft_id}: {e}")
        return DraftDecodeResponse(**draft_state(draft_id, wizard), applied=False, error=str(e))
    except Exception as e:
        logger.error(f"Error in /drafts/{draft_id}/decode: {e}\n{traceback.format_exc()}")
        raise HTTPException(status_code=500, detail=str(e))

    result = wizard.apply_decode(token, payload)
    if result is None:
        return DraftDecodeResponse(
            **draft_state(draft_id, wizard),
            applied=False,
            error="A newer decode superseded this one",
        )
    return DraftDecodeResponse(
        **draft_state(draft_id, wizard),
        applied=True,
        skipped_fields=list(result.skipped),
    )


@app.patch("/drafts/{draft_id}/fields", response_model=DraftResponse)
async def edit_draft_fields(draft_id: str, request: FieldsRequest):
    """Apply dealer edits. Edited fields are no longer shown as auto-filled."""
    wizard = get_draft(draft_id)
    wizard.edit_fields(request.fields)
    return DraftResponse(**draft_state(draft_id, wizard))


@app.post("/drafts/{draft_id}/step", response_model=DraftResponse)
async def move_draft_step(draft_id: str, request: StepRequest):
    """Navigate the wizard. Targets outside the step range are clamped."""
    wizard = get_draft(draft_id)
    if request.action == "next":
        wizard.next_step()
    elif request.action == "prev":
        wizard.prev_step()
    else:
        if request.step is None:
            raise HTTPException(status_code=400, detail="'goto' requires a step")
        wizard.go_to(request.step)
    return DraftResponse(**draft_state(draft_id, wizard))


@app.post("/drafts/{draft_id}/submit", response_model=SubmitResponse)
def submit_draft(draft_id: str):
    """
    Validate the listing, score its data quality and store it.
    """
    wizard = get_draft(draft_id)
    try:
        listing = wizard.submit()
    except WizardStateError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValidationError as e:
        errors = [{"loc": [str(p) for p in err["loc"]], "msg": err["msg"]} for err in e.errors()]
        raise HTTPException(status_code=422, detail=errors)

    sources = wizard.enrichment.data_sources if wizard.enrichment else []
    data_source = data_source_for(wizard.provenance, sources)
    quality = calculate_vehicle_quality_score(
        wizard.form.to_dict(),
        needs_verification=True,
        data_source=data_source,
        epa_available=bool(wizard.enrichment and wizard.enrichment.epa_available),
    )

    listing_data = listing.model_dump(mode="json", by_alias=True, exclude_none=True)
    row = dict(listing_data)
    row["dataSource"] = data_source
    row["confidenceScore"] = quality.overall
    row["autoFilledFields"] = sorted(wizard.provenance)

    record = None
    supabase = get_supabase()
    if supabase.configured:
        stored = supabase.insert(LISTINGS_TABLE, row)
        record = stored[0] if stored else None
    else:
        logger.warning("Supabase not configured, listing not persisted")

    logger.info(f"Submitted draft {draft_id}: source={data_source} quality={quality.overall:.2f}")
    return SubmitResponse(
        success=True,
        listing=listing_data,
        data_source=data_source,
        quality=quality.to_dict(),
        persisted=record is not None,
        record=record,
    )


if __name__ == "__main__":
    import uvicorn

    print("=" * 60)
    print("CommercialX API Server")
    print("=" * 60)
    print("API Documentation: http://localhost:8000/docs")
    print("Status endpoint:   http://localhost:8000/status")
    print("")
    print("Environment variables:")
    print("  SUPABASE_URL / SUPABASE_KEY - listing persistence")
    print("  LOG_LEVEL                   - logging verbosity")
    print("=" * 60)

    uvicorn.run(app, host="0.0.0.0", port=8000)
