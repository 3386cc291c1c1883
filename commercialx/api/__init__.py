"""
API module for CommercialX.

Provides REST endpoints for VIN decoding and the listing wizard.
"""
from commercialx.api.models import (
    VinRequest,
    DecodeResponse,
    CreateDraftRequest,
    DraftResponse,
    DraftDecodeResponse,
    FieldsRequest,
    StepRequest,
    SubmitResponse,
)

__all__ = [
    "VinRequest",
    "DecodeResponse",
    "CreateDraftRequest",
    "DraftResponse",
    "DraftDecodeResponse",
    "FieldsRequest",
    "StepRequest",
    "SubmitResponse",
]
