"""
==============================================================================
Schemas Package - Pydantic Models
==============================================================================

Request and response schemas using Pydantic for validation.

This package provides:
- Scan: Still-image scan requests and responses
- Tracking: Text extraction and carrier table responses

==============================================================================
"""

from .scan import (
    CarrierListResponse,
    CarrierPattern,
    CropRect,
    ExtractRequest,
    ExtractResponse,
    ScanRequest,
    ScanResponse,
)

__all__ = [
    "CarrierListResponse",
    "CarrierPattern",
    "CropRect",
    "ExtractRequest",
    "ExtractResponse",
    "ScanRequest",
    "ScanResponse",
]
