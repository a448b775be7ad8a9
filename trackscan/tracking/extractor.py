"""
==============================================================================
Tracking Number Extractor Module
==============================================================================

Maps raw decoded barcode text to a carrier-tagged tracking number.

Carrier Table (priority order, whole-string match):
--------------------------------------------------
- UPS:    1Z + 16 alphanumerics (case-insensitive)
- FedEx:  exactly 12 or 15 digits
- USPS:   20-22 digits, or 4 4 4 4 4 4 2 digit groups with optional spaces
- DHL:    exactly 10 digits
- Amazon: TBA + 12 digits, or AMZN + 8 or more word characters (case-insensitive)
- OnTrac: C + 14 digits

Passes (first hit wins):
-----------------------
1. Raw text against the table
2. Text with all whitespace removed against the table
3. USPS spaced groups anywhere in the text, whitespace collapsed to one space
4. Any run of 20-22 digits anywhere in the text, tagged USPS

Pass 4 is deliberately broad: a long numeric payload from another carrier
will be reported as USPS.

==============================================================================
"""

from __future__ import annotations

import logging
import re
from typing import Optional, Pattern, Tuple

from .models import Carrier, TrackingMatch


# Module logger
logger = logging.getLogger(__name__)


CARRIER_PATTERNS: Tuple[Tuple[Carrier, Pattern[str]], ...] = (
    (Carrier.UPS, re.compile(r"1Z[0-9A-Z]{16}", re.IGNORECASE | re.ASCII)),
    (Carrier.FEDEX, re.compile(r"\d{12}|\d{15}", re.ASCII)),
    (Carrier.USPS, re.compile(
        r"\d{20,22}|\d{4}\s?\d{4}\s?\d{4}\s?\d{4}\s?\d{4}\s?\d{4}\s?\d{2}",
        re.ASCII,
    )),
    (Carrier.DHL, re.compile(r"\d{10}", re.ASCII)),
    (Carrier.AMAZON, re.compile(r"TBA\d{12}|AMZN\w{8,}", re.IGNORECASE | re.ASCII)),
    (Carrier.ONTRAC, re.compile(r"C\d{14}", re.ASCII)),
)

USPS_SPACED = re.compile(
    r"(\d{4}\s+\d{4}\s+\d{4}\s+\d{4}\s+\d{4}\s+\d{4}\s+\d{2})",
    re.ASCII,
)
LONG_NUMBER = re.compile(r"(\d{20,22})", re.ASCII)
WHITESPACE = re.compile(r"\s+")


def _match_table(text: str) -> Optional[TrackingMatch]:
    for carrier, pattern in CARRIER_PATTERNS:
        match = pattern.fullmatch(text)
        if match:
            return TrackingMatch(carrier=carrier, number=match.group(0))
    return None


def extract_tracking_number(text: Optional[str]) -> Optional[TrackingMatch]:
    """
    Find a carrier tracking number in decoded text.

    Args:
        text: Raw text from a decode backend

    Returns:
        TrackingMatch, or None when no carrier format matches
    """
    if not text:
        return None

    found = _match_table(text)
    if found:
        return found

    found = _match_table(WHITESPACE.sub("", text))
    if found:
        return found

    spaced = USPS_SPACED.search(text)
    if spaced:
        # Collapse runs of whitespace so the number still fits the USPS pattern
        number = WHITESPACE.sub(" ", spaced.group(1))
        return TrackingMatch(carrier=Carrier.USPS, number=number)

    long_number = LONG_NUMBER.search(text)
    if long_number:
        return TrackingMatch(carrier=Carrier.USPS, number=long_number.group(1))

    logger.debug(f"No tracking pattern matched for: {text!r}")
    return None


def carrier_table() -> list:
    """Carrier patterns in priority order, for display."""
    return [
        {"carrier": carrier.value, "pattern": pattern.pattern}
        for carrier, pattern in CARRIER_PATTERNS
    ]
