"""
==============================================================================
Scan Schemas Module
==============================================================================

Request and response schemas for still-image scanning and text extraction.

==============================================================================
"""

from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from trackscan.tracking import TrackingMatch


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================

class CropRect(BaseModel):
    """Manual crop rectangle in image pixel coordinates."""
    x: int = Field(..., ge=0)
    y: int = Field(..., ge=0)
    width: int = Field(..., gt=0)
    height: int = Field(..., gt=0)


class ScanRequest(BaseModel):
    """Still image to decode, optionally restricted to a crop rectangle."""
    image: str = Field(..., min_length=1, description="Base64 image or data URL")
    crop: Optional[CropRect] = Field(default=None)

    @field_validator("image")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        return v.strip()


class ExtractRequest(BaseModel):
    """Raw decoded text to classify."""
    text: str = Field(..., min_length=1, max_length=4096)


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class ScanResponse(BaseModel):
    """Outcome of one still-image decode pass."""
    success: bool = Field(default=True)
    found: bool
    raw_text: Optional[str] = None
    tracking: Optional[TrackingMatch] = None
    variant: Optional[str] = None
    backend: Optional[str] = None
    attempts: int = Field(ge=0)


class ExtractResponse(BaseModel):
    """Tracking number found in a text, if any."""
    success: bool = Field(default=True)
    text: str
    tracking: Optional[TrackingMatch] = None


class CarrierPattern(BaseModel):
    carrier: str
    pattern: str


class CarrierListResponse(BaseModel):
    """Carrier table in matching priority order."""
    success: bool = Field(default=True)
    carriers: List[CarrierPattern]
