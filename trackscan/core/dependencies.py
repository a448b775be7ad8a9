"""
==============================================================================
FastAPI Dependencies Module
==============================================================================

Dependency injection for scanner sessions.

Every HTTP request and every WebSocket connection gets its own
BarcodeScanner, so no decode or stability state is shared between users.
Tests replace `get_scanner` through `app.dependency_overrides` to inject
fake backends.

Usage Examples:
--------------
    @router.post("/scan")
    async def scan(scanner: BarcodeScanner = Depends(get_scanner)):
        ...

==============================================================================
"""

from __future__ import annotations

import logging

from trackscan.config import get_settings
from trackscan.scanner import BarcodeScanner
from trackscan.scanner.backends import NativeDetector
from trackscan.utils.image_io import ImagePayloadDecoder


# Module logger
logger = logging.getLogger(__name__)


def get_scanner() -> BarcodeScanner:
    """Create a scanner session wired from settings."""
    return BarcodeScanner.from_settings(get_settings())


def get_image_decoder() -> ImagePayloadDecoder:
    """Create a base64 image decoder honouring the upload limit."""
    settings = get_settings()
    return ImagePayloadDecoder(
        max_bytes=settings.max_image_bytes,
        max_pixels=settings.max_image_pixels,
    )


def get_native_detector() -> NativeDetector:
    """Native detector as configured, for capability reporting."""
    return NativeDetector(enabled=get_settings().native_enabled)
