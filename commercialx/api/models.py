"""
Pydantic models for CommercialX API requests and responses.
"""
from pydantic import BaseModel, Field
from typing import Optional, Dict, Any, List, Literal


class VinRequest(BaseModel):
    """Request model carrying a VIN."""
    vin: str = Field(description="Vehicle identification number (17 characters, no I/O/Q)")


class DecodeResponse(BaseModel):
    """Response model for a stand-alone VIN decode."""
    success: bool
    data: Optional[Dict[str, Any]] = Field(default=None, description="Merged NHTSA/EPA payload")
    error: Optional[str] = Field(default=None, description="User-facing error message")


class CreateDraftRequest(BaseModel):
    """Request model for starting a listing draft."""
    fields: Dict[str, Any] = Field(default_factory=dict, description="Initial form values")


class DraftResponse(BaseModel):
    """Full state of one listing draft."""
    draft_id: str
    step: int = Field(description="Current wizard step (0-indexed)")
    step_title: str
    steps: List[str]
    fields: Dict[str, Any] = Field(default_factory=dict, description="Current form values")
    dirty_fields: List[str] = Field(default_factory=list, description="Fields edited by the dealer")
    errors: Dict[str, str] = Field(default_factory=dict, description="Per-field validation errors")
    auto_filled_fields: List[str] = Field(default_factory=list, description="Fields filled by the last VIN decode")
    enrichment: Optional[Dict[str, Any]] = Field(default=None, description="Summary of the last applied decode")
    generation: int = Field(default=0, description="Decode generation counter")


class DraftDecodeResponse(DraftResponse):
    """Draft state after a decode attempt."""
    applied: bool = Field(description="False if the decode was superseded or failed")
    skipped_fields: List[str] = Field(default_factory=list, description="Fields the decode had unusable values for")
    error: Optional[str] = None


class FieldsRequest(BaseModel):
    """Request model for manual field edits."""
    fields: Dict[str, Any] = Field(description="Field name -> new value")


class StepRequest(BaseModel):
    """Request model for wizard navigation."""
    action: Literal["next", "prev", "goto"]
    step: Optional[int] = Field(default=None, description="Target step for 'goto'")


class SubmitResponse(BaseModel):
    """Response model for listing submission."""
    success: bool
    listing: Dict[str, Any] = Field(description="Validated listing (camelCase)")
    data_source: str
    quality: Dict[str, Any] = Field(description="Data-quality score breakdown")
    persisted: bool = Field(description="Whether the listing was stored")
    record: Optional[Dict[str, Any]] = None


class HealthResponse(BaseModel):
    """Response model for health check."""
    status: str
    service: str
    version: str
    config: Dict[str, Any] = Field(default_factory=dict)
