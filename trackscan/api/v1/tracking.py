"""
==============================================================================
Tracking Endpoints
==============================================================================

Classification of already-decoded text, for clients that run their own
barcode reader.

==============================================================================
"""

from fastapi import APIRouter

from trackscan.schemas.scan import CarrierListResponse, ExtractRequest, ExtractResponse
from trackscan.tracking import carrier_table, extract_tracking_number


router = APIRouter(prefix="/tracking", tags=["Tracking"])


@router.post("/extract", response_model=ExtractResponse)
async def extract(request: ExtractRequest):
    """Find a carrier tracking number in raw barcode text."""
    return ExtractResponse(text=request.text, tracking=extract_tracking_number(request.text))


@router.get("/carriers", response_model=CarrierListResponse)
async def list_carriers():
    """Carrier formats in the order they are matched."""
    return CarrierListResponse(carriers=carrier_table())
