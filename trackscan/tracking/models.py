"""
==============================================================================
Tracking Models Module
==============================================================================

Pydantic models for carrier-tagged tracking numbers.

==============================================================================
"""

import enum

from pydantic import BaseModel, ConfigDict, Field


class Carrier(str, enum.Enum):
    """
    Shipping carrier enumeration.

    Declaration order is the matching priority of the extractor.
    The enum inherits from str to enable JSON serialization.
    """

    UPS = "UPS"
    FEDEX = "FedEx"
    USPS = "USPS"
    DHL = "DHL"
    AMAZON = "Amazon"
    ONTRAC = "OnTrac"

    def __str__(self) -> str:
        """Return the enum value as string."""
        return self.value


class TrackingMatch(BaseModel):
    """
    A tracking number validated against a carrier format.

    Attributes:
        carrier: Carrier whose pattern matched
        number: The matched text, exactly as it appeared after normalization
    """

    model_config = ConfigDict(frozen=True)

    carrier: Carrier = Field(..., description="Carrier whose format matched")
    number: str = Field(..., min_length=1, description="Tracking number")
