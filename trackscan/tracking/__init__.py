"""
==============================================================================
Tracking Package - Carrier Number Extraction
==============================================================================

Classes / Functions:
--------------------
- Carrier: Supported carriers in matching priority order
- TrackingMatch: Carrier-tagged tracking number
- extract_tracking_number: Raw decoded text -> TrackingMatch or None

==============================================================================
"""

from .extractor import CARRIER_PATTERNS, carrier_table, extract_tracking_number
from .models import Carrier, TrackingMatch

__all__ = [
    "CARRIER_PATTERNS",
    "Carrier",
    "TrackingMatch",
    "carrier_table",
    "extract_tracking_number",
]
